"""Pass-and-play multiplayer: players take turns on one device.

Every player keeps an independent level and streak, all driven by the same
``AdaptiveLevelPolicy`` used for solo play.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from pixellearn.engine.adaptive import AdaptiveLevelPolicy, LevelChangeResult, LevelState, NoChange
from pixellearn.engine.questions import QuestionRecord, Subject
from pixellearn.engine.selector import QuestionSelector

logger = logging.getLogger(__name__)

MIN_PLAYERS = 2
MAX_PLAYERS = 4
DEFAULT_TOTAL_TURNS = 10
TROPHIES = {1: "gold", 2: "silver", 3: "bronze"}


@dataclass
class PlayerConfig:
    name: str
    level: int = 1
    profile_id: Optional[int] = None


@dataclass
class PlayerState:
    config: PlayerConfig
    level_state: LevelState
    score: int = 0

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def level(self) -> int:
        return self.level_state.level


@dataclass(frozen=True)
class TurnResult:
    player_name: str
    is_correct: bool
    timed_out: bool
    level_change: LevelChangeResult
    correct_answer: str
    explanation: Optional[str]


@dataclass(frozen=True)
class Standing:
    placement: int
    player_name: str
    score: int
    level: int
    profile_id: Optional[int]

    @property
    def trophy(self) -> Optional[str]:
        return TROPHIES.get(self.placement)

    @property
    def is_win(self) -> bool:
        return self.placement == 1


class MultiplayerMatch:
    def __init__(
        self,
        subject: Subject,
        players: list[PlayerConfig],
        selector: QuestionSelector,
        policy: Optional[AdaptiveLevelPolicy] = None,
        total_turns: int = DEFAULT_TOTAL_TURNS,
    ):
        if not MIN_PLAYERS <= len(players) <= MAX_PLAYERS:
            raise ValueError(f"A match needs {MIN_PLAYERS}-{MAX_PLAYERS} players, got {len(players)}")
        if total_turns < 1:
            raise ValueError("total_turns must be positive")

        self.subject = subject
        self.selector = selector
        self.policy = policy or AdaptiveLevelPolicy()
        self.total_turns = total_turns
        self.players = [PlayerState(p, self.policy.initial_state(p.level)) for p in players]
        self.turn = 0
        self.current_player_index = 0
        self.current_question: Optional[QuestionRecord] = None

    @property
    def current_player(self) -> PlayerState:
        return self.players[self.current_player_index]

    @property
    def is_finished(self) -> bool:
        return self.turn >= self.total_turns

    async def next_question(self) -> QuestionRecord:
        if self.is_finished:
            raise ValueError("Match is finished")
        self.current_question = await self.selector.select(self.subject, self.current_player.level)
        return self.current_question

    def answer(self, selected_index: Optional[int]) -> TurnResult:
        """Score the current player's answer. ``None`` means the timer ran out."""
        question = self.current_question
        player = self.current_player
        if question is None:
            logger.warning("answer called for %s with no question in play", player.name)
            return TurnResult(
                player_name=player.name,
                is_correct=False,
                timed_out=False,
                level_change=NoChange(level=player.level, streak=0),
                correct_answer="",
                explanation=None,
            )

        correct = selected_index is not None and question.is_correct(selected_index)
        if correct:
            player.score += 1
        player.level_state, change = self.policy.record_answer(player.level_state, correct)
        self.current_question = None

        return TurnResult(
            player_name=player.name,
            is_correct=correct,
            timed_out=selected_index is None,
            level_change=change,
            correct_answer=question.correct_answer,
            explanation=question.explanation,
        )

    def time_out(self) -> TurnResult:
        return self.answer(None)

    def advance(self) -> None:
        """Pass the device to the next player."""
        self.turn += 1
        self.current_question = None
        if not self.is_finished:
            self.current_player_index = (self.current_player_index + 1) % len(self.players)

    def standings(self) -> list[Standing]:
        # sorted() is stable, so ties keep turn order
        ranked = sorted(self.players, key=lambda p: p.score, reverse=True)
        return [
            Standing(
                placement=i + 1,
                player_name=p.name,
                score=p.score,
                level=p.level,
                profile_id=p.config.profile_id,
            )
            for i, p in enumerate(ranked)
        ]
