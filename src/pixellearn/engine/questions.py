"""Subjects and the multiple-choice question record."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Subject(str, Enum):
    GRAMMAR = "grammar"
    MATH = "math"
    SPELLING = "spelling"
    MEMORY = "memory"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, raw: str) -> "Subject":
        """Accept either the value or the display name, any case."""
        try:
            return cls(raw.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown subject: {raw}") from None


@dataclass(frozen=True)
class QuestionRecord:
    id: str
    subject: Subject
    level: int
    text: str
    options: tuple[str, ...]
    correct_index: int
    explanation: Optional[str] = None

    def __post_init__(self):
        if len(self.options) < 2:
            raise ValueError(f"Question {self.id} needs at least 2 options")
        if not 0 <= self.correct_index < len(self.options):
            raise ValueError(
                f"Question {self.id}: correct_index {self.correct_index} "
                f"out of range for {len(self.options)} options"
            )

    @property
    def correct_answer(self) -> str:
        return self.options[self.correct_index]

    def is_correct(self, selected_index: int) -> bool:
        return selected_index == self.correct_index

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "subject": self.subject.value,
            "level": self.level,
            "text": self.text,
            "options": list(self.options),
            "correctIndex": self.correct_index,
            "explanation": self.explanation,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "QuestionRecord":
        return cls(
            id=str(data["id"]),
            subject=Subject.parse(data["subject"]),
            level=int(data["level"]),
            text=data["text"],
            options=tuple(str(o) for o in data["options"]),
            correct_index=int(data["correctIndex"]),
            explanation=data.get("explanation"),
        )


def fallback_question(subject: Subject, level: int) -> QuestionRecord:
    """Trivial question served when a pool has no content at all."""
    return QuestionRecord(
        id=f"fallback-{subject.value}-{level}",
        subject=subject,
        level=level,
        text="What is 1 + 1?",
        options=("2", "3", "1", "4"),
        correct_index=0,
        explanation="1 + 1 = 2",
    )
