"""Immutable quiz session snapshots and the transitions between them."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional, Union

from pixellearn.engine.adaptive import LevelChangeResult, level_change_to_dict
from pixellearn.engine.questions import QuestionRecord, Subject


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class AnsweredQuestion:
    question: QuestionRecord
    selected_index: int
    response_time_ms: int = 0
    answered_at: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        if self.response_time_ms < 0:
            object.__setattr__(self, "response_time_ms", 0)

    @property
    def is_correct(self) -> bool:
        return self.question.is_correct(self.selected_index)


@dataclass(frozen=True)
class QuizSession:
    subject: Subject
    start_level: int
    current_level: int
    answered_questions: tuple[AnsweredQuestion, ...] = ()
    started_at: datetime = field(default_factory=datetime.now)
    ended_at: Optional[datetime] = None
    id: str = field(default_factory=_new_id)

    @classmethod
    def start(cls, subject: Subject, start_level: int) -> "QuizSession":
        return cls(subject=subject, start_level=start_level, current_level=start_level)

    @property
    def total_questions(self) -> int:
        return len(self.answered_questions)

    @property
    def correct_count(self) -> int:
        return sum(1 for a in self.answered_questions if a.is_correct)

    @property
    def incorrect_count(self) -> int:
        return self.total_questions - self.correct_count

    @property
    def accuracy(self) -> float:
        if self.total_questions == 0:
            return 0.0
        return self.correct_count / self.total_questions

    @property
    def level_change(self) -> int:
        return self.current_level - self.start_level

    @property
    def is_active(self) -> bool:
        return self.ended_at is None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "subject": self.subject.value,
            "startLevel": self.start_level,
            "currentLevel": self.current_level,
            "totalQuestions": self.total_questions,
            "correctCount": self.correct_count,
            "incorrectCount": self.incorrect_count,
            "accuracy": self.accuracy,
            "levelChange": self.level_change,
            "startedAt": self.started_at.isoformat(),
            "endedAt": self.ended_at.isoformat() if self.ended_at else None,
        }


@dataclass(frozen=True)
class AnswerRecorded:
    session: QuizSession
    answer: AnsweredQuestion
    level_change: LevelChangeResult

    name = "answerRecorded"

    def to_dict(self) -> dict:
        return {
            "sessionId": self.session.id,
            "questionId": self.answer.question.id,
            "isCorrect": self.answer.is_correct,
            "levelChange": level_change_to_dict(self.level_change),
        }


@dataclass(frozen=True)
class SessionEnded:
    session: QuizSession

    name = "sessionEnded"

    def to_dict(self) -> dict:
        return self.session.to_dict()


SessionEvent = Union[AnswerRecorded, SessionEnded]


def record_answer(
    session: QuizSession, answer: AnsweredQuestion, level_change: LevelChangeResult
) -> tuple[QuizSession, AnswerRecorded]:
    if not session.is_active:
        raise ValueError(f"Session {session.id} has already ended")
    updated = replace(
        session,
        answered_questions=session.answered_questions + (answer,),
        current_level=level_change.current_level,
    )
    return updated, AnswerRecorded(session=updated, answer=answer, level_change=level_change)


def end_session(
    session: QuizSession, at: Optional[datetime] = None
) -> tuple[QuizSession, SessionEnded]:
    if not session.is_active:
        raise ValueError(f"Session {session.id} has already ended")
    ended = replace(session, ended_at=at or datetime.now())
    return ended, SessionEnded(session=ended)
