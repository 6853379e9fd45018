"""Quiz session state machine: load question → answer → level update → next."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from pixellearn.engine.adaptive import (
    AdaptiveLevelPolicy,
    LevelChangeResult,
    LevelState,
    NoChange,
    level_change_to_dict,
)
from pixellearn.engine.question_bank import QuestionBankError
from pixellearn.engine.questions import QuestionRecord, Subject
from pixellearn.engine.selector import QuestionSelector
from pixellearn.engine.session import (
    AnsweredQuestion,
    QuizSession,
    SessionEvent,
    end_session,
    record_answer,
)

logger = logging.getLogger(__name__)

LOAD_ERROR_MESSAGE = "Unable to load question. Please try again."
TIMED_OUT_INDEX = -1


class ControllerState(str, Enum):
    IDLE = "idle"
    AWAITING_QUESTION = "awaiting_question"  # Loading, or load failed and awaiting retry
    QUESTION_READY = "question_ready"
    RESULT_SHOWN = "result_shown"


@dataclass(frozen=True)
class AnswerResult:
    is_correct: bool
    level_change: LevelChangeResult
    explanation: Optional[str]
    correct_answer: str

    def to_dict(self) -> dict:
        return {
            "isCorrect": self.is_correct,
            "levelChange": level_change_to_dict(self.level_change),
            "explanation": self.explanation,
            "correctAnswer": self.correct_answer,
        }


@dataclass(frozen=True)
class QuizProgress:
    questions_answered: int
    correct_count: int
    current_level: int
    start_level: int
    streak: int

    @property
    def accuracy(self) -> float:
        if self.questions_answered == 0:
            return 0.0
        return self.correct_count / self.questions_answered

    @property
    def level_change(self) -> int:
        return self.current_level - self.start_level

    def to_dict(self) -> dict:
        return {
            "questionsAnswered": self.questions_answered,
            "correctCount": self.correct_count,
            "currentLevel": self.current_level,
            "startLevel": self.start_level,
            "streak": self.streak,
            "accuracy": self.accuracy,
            "levelChange": self.level_change,
        }


class QuizSessionController:
    """Drives one quiz session end-to-end for a single UI owner."""

    def __init__(
        self,
        selector: QuestionSelector,
        policy: Optional[AdaptiveLevelPolicy] = None,
        on_event: Optional[Callable[[SessionEvent], None]] = None,
    ):
        self.selector = selector
        self.policy = policy or AdaptiveLevelPolicy()
        self._on_event = on_event or (lambda e: None)

        self.state = ControllerState.IDLE
        self.session: Optional[QuizSession] = None
        self.level_state: Optional[LevelState] = None
        self.current_question: Optional[QuestionRecord] = None
        self.last_result: Optional[AnswerResult] = None
        self.load_error: Optional[str] = None
        self.is_loading = False

    @property
    def showing_result(self) -> bool:
        return self.state is ControllerState.RESULT_SHOWN

    async def start_session(self, subject: Subject, starting_level: int) -> Optional[QuestionRecord]:
        if self.session is not None:
            logger.info("Replacing active %s session %s", self.session.subject.value, self.session.id)

        self.level_state = self.policy.initial_state(starting_level)
        self.session = QuizSession.start(subject, self.level_state.level)
        self.last_result = None
        self.selector.begin_session()
        return await self.load_question()

    async def load_question(self) -> Optional[QuestionRecord]:
        """Fetch a question at the current level. Also the manual retry path."""
        if self.session is None or self.level_state is None:
            return None
        return await self.load_question_at(self.session.subject, self.level_state.level)

    async def load_question_at(self, subject: Subject, level: int) -> Optional[QuestionRecord]:
        self.state = ControllerState.AWAITING_QUESTION
        self.is_loading = True
        self.load_error = None
        try:
            question = await self.selector.select(subject, level)
        except QuestionBankError as e:
            logger.warning("Question load failed: %s", e)
            question = None
        finally:
            self.is_loading = False

        self.current_question = question
        if question is None:
            self.load_error = LOAD_ERROR_MESSAGE
        else:
            self.state = ControllerState.QUESTION_READY
        return question

    def submit_answer(self, selected_index: int, response_time_ms: int = 0) -> AnswerResult:
        question = self.current_question
        if (
            self.state is not ControllerState.QUESTION_READY
            or question is None
            or self.level_state is None
            or self.session is None
        ):
            # Callers should only submit while a question is ready
            logger.warning("submit_answer called in state %s", self.state.value)
            level = self.level_state.level if self.level_state else self.policy.min_level
            return AnswerResult(
                is_correct=False,
                level_change=NoChange(level=level, streak=0),
                explanation=None,
                correct_answer="",
            )

        answer = AnsweredQuestion(
            question=question,
            selected_index=selected_index,
            response_time_ms=response_time_ms,
        )
        self.level_state, change = self.policy.record_answer(self.level_state, answer.is_correct)
        self.session, event = record_answer(self.session, answer, change)

        result = AnswerResult(
            is_correct=answer.is_correct,
            level_change=change,
            explanation=question.explanation,
            correct_answer=question.correct_answer,
        )
        self.last_result = result
        self.state = ControllerState.RESULT_SHOWN
        self._on_event(event)
        return result

    def time_out(self, response_time_ms: int = 0) -> AnswerResult:
        """An expired answer timer counts as an incorrect answer."""
        return self.submit_answer(TIMED_OUT_INDEX, response_time_ms)

    async def continue_after_result(self) -> Optional[QuestionRecord]:
        self.last_result = None
        return await self.load_question()

    def end_session(self) -> Optional[QuizSession]:
        """Finalize the session and hand it back for the caller to persist."""
        if self.session is None:
            return None

        final, event = end_session(self.session)

        self.session = None
        self.level_state = None
        self.current_question = None
        self.last_result = None
        self.load_error = None
        self.state = ControllerState.IDLE

        self._on_event(event)
        return final

    @property
    def progress(self) -> QuizProgress:
        if self.session is None:
            return QuizProgress(
                questions_answered=0,
                correct_count=0,
                current_level=self.policy.min_level,
                start_level=self.policy.min_level,
                streak=0,
            )
        return QuizProgress(
            questions_answered=self.session.total_questions,
            correct_count=self.session.correct_count,
            current_level=self.level_state.level if self.level_state else self.session.current_level,
            start_level=self.session.start_level,
            streak=self.level_state.consecutive_correct if self.level_state else 0,
        )
