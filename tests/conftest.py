"""Shared fixtures for PixelLearn tests."""

from __future__ import annotations

import random

import pytest
import yaml

from pixellearn.config.settings import ContentConfig, Settings
from pixellearn.engine.adaptive import AdaptiveLevelPolicy
from pixellearn.engine.question_bank import QuestionBank
from pixellearn.engine.questions import QuestionRecord, Subject
from pixellearn.engine.selector import QuestionSelector


def make_question(qid: str, subject: Subject = Subject.MATH, level: int = 1,
                  correct_index: int = 0, explanation: str | None = None) -> QuestionRecord:
    return QuestionRecord(
        id=qid,
        subject=subject,
        level=level,
        text=f"Question {qid}?",
        options=("a", "b", "c", "d"),
        correct_index=correct_index,
        explanation=explanation,
    )


class StaticSource:
    """In-memory question source keyed by (subject, level); counts loads."""

    def __init__(self, pools: dict | None = None):
        self.pools = pools or {}
        self.calls: list[tuple[Subject, int]] = []

    def load(self, subject, level):
        self.calls.append((subject, level))
        return list(self.pools.get((subject, level), []))


@pytest.fixture
def policy():
    return AdaptiveLevelPolicy()


@pytest.fixture
def static_source():
    """Every math level 1-65 has five questions; other subjects are empty."""
    pools = {
        (Subject.MATH, level): [
            make_question(f"m{level}-{i}", level=level, correct_index=i % 4,
                          explanation=f"because {i}")
            for i in range(5)
        ]
        for level in range(1, 66)
    }
    return StaticSource(pools)


@pytest.fixture
def bank(static_source):
    return QuestionBank(static_source)


@pytest.fixture
def selector(bank):
    return QuestionSelector(bank, rng=random.Random(42))


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path / "data", content=ContentConfig(seed=7))


@pytest.fixture
def content_dir(tmp_path):
    """A directory with one grammar file and one spelling file."""
    directory = tmp_path / "content"
    directory.mkdir()

    grammar = {
        "subject": "grammar",
        "questions": [
            {"level": 3, "text": "Pick the noun", "options": ["run", "cat"], "answer": 1,
             "explanation": "'Cat' names a thing"},
            {"level": 3, "text": "Pick the verb", "options": ["jump", "red"], "answer": 0},
            {"levels": "4-6", "text": "Plural of mouse?", "options": ["mouses", "mice", "mices"],
             "answer": 1},
        ],
    }
    with open(directory / "grammar.yaml", "w") as f:
        yaml.dump(grammar, f)

    spelling = {
        "subject": "Spelling",
        "questions": [
            {"id": "sp-friend", "level": 1, "text": "Which is correct?",
             "options": ["freind", "friend"], "answer": 1},
        ],
    }
    with open(directory / "spelling.yml", "w") as f:
        yaml.dump(spelling, f)

    (directory / "notes.txt").write_text("ignored")
    return directory
