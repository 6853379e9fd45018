"""Adaptive difficulty leveling.

Two consecutive correct answers move the learner up one level, a single
incorrect answer moves them down one level. The level never leaves
``[min_level, max_level]``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Union

DEFAULT_MIN_LEVEL = 1
DEFAULT_MAX_LEVEL = 65
DEFAULT_CORRECT_TO_LEVEL_UP = 2


@dataclass(frozen=True)
class LevelState:
    level: int
    consecutive_correct: int = 0


class _LevelChange:
    kind = ""

    @property
    def did_level_change(self) -> bool:
        return self.kind in ("leveled_up", "leveled_down")


@dataclass(frozen=True)
class NoChange(_LevelChange):
    level: int
    streak: int

    kind = "no_change"

    @property
    def current_level(self) -> int:
        return self.level

    @property
    def message(self) -> Optional[str]:
        if self.streak > 0:
            return f"{self.streak} in a row!"
        return None


@dataclass(frozen=True)
class LeveledUp(_LevelChange):
    from_level: int
    to_level: int

    kind = "leveled_up"

    @property
    def current_level(self) -> int:
        return self.to_level

    @property
    def message(self) -> Optional[str]:
        return f"Level Up! Now at Level {self.to_level}"


@dataclass(frozen=True)
class LeveledDown(_LevelChange):
    from_level: int
    to_level: int

    kind = "leveled_down"

    @property
    def current_level(self) -> int:
        return self.to_level

    @property
    def message(self) -> Optional[str]:
        return f"Level Down. Now at Level {self.to_level}"


@dataclass(frozen=True)
class AtMaxLevel(_LevelChange):
    level: int

    kind = "at_max_level"

    @property
    def current_level(self) -> int:
        return self.level

    @property
    def message(self) -> Optional[str]:
        return "Maximum Level Reached!"


@dataclass(frozen=True)
class AtMinLevel(_LevelChange):
    level: int

    kind = "at_min_level"

    @property
    def current_level(self) -> int:
        return self.level

    @property
    def message(self) -> Optional[str]:
        return None


LevelChangeResult = Union[NoChange, LeveledUp, LeveledDown, AtMaxLevel, AtMinLevel]


def level_change_to_dict(result: LevelChangeResult) -> dict:
    """Serialize a level change for the JSON-lines bridge."""
    return {
        "kind": result.kind,
        "currentLevel": result.current_level,
        "didLevelChange": result.did_level_change,
        "message": result.message,
    }


class AdaptiveLevelPolicy:
    """Streak-based level transitions shared by solo and multiplayer play."""

    def __init__(
        self,
        min_level: int = DEFAULT_MIN_LEVEL,
        max_level: int = DEFAULT_MAX_LEVEL,
        correct_to_level_up: int = DEFAULT_CORRECT_TO_LEVEL_UP,
    ):
        if max_level < min_level:
            raise ValueError("max_level must be >= min_level")
        if correct_to_level_up < 1:
            raise ValueError("correct_to_level_up must be >= 1")
        self.min_level = min_level
        self.max_level = max_level
        self.correct_to_level_up = correct_to_level_up

    @classmethod
    def from_settings(cls, settings) -> "AdaptiveLevelPolicy":
        leveling = settings.leveling
        return cls(
            min_level=leveling.min_level,
            max_level=leveling.max_level,
            correct_to_level_up=leveling.correct_to_level_up,
        )

    def clamp(self, level: int) -> int:
        return max(self.min_level, min(self.max_level, level))

    def initial_state(self, starting_level: int) -> LevelState:
        return LevelState(level=self.clamp(starting_level))

    def reset(self, state: LevelState, to_level: int) -> LevelState:
        """Re-enter a subject at a saved level with a fresh streak."""
        return replace(state, level=self.clamp(to_level), consecutive_correct=0)

    def record_answer(
        self, state: LevelState, correct: bool
    ) -> tuple[LevelState, LevelChangeResult]:
        if correct:
            streak = state.consecutive_correct + 1
            if streak < self.correct_to_level_up:
                new_state = replace(state, consecutive_correct=streak)
                return new_state, NoChange(level=state.level, streak=streak)

            if state.level < self.max_level:
                new_state = LevelState(level=state.level + 1, consecutive_correct=0)
                return new_state, LeveledUp(from_level=state.level, to_level=new_state.level)
            return LevelState(level=self.max_level), AtMaxLevel(level=self.max_level)

        if state.level > self.min_level:
            new_state = LevelState(level=state.level - 1, consecutive_correct=0)
            return new_state, LeveledDown(from_level=state.level, to_level=new_state.level)
        return LevelState(level=self.min_level), AtMinLevel(level=self.min_level)
