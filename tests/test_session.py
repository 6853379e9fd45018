"""Tests for session snapshots and transitions."""

from __future__ import annotations

import dataclasses
from datetime import datetime

import pytest

from conftest import make_question
from pixellearn.engine.adaptive import LeveledUp, NoChange
from pixellearn.engine.questions import Subject
from pixellearn.engine.session import (
    AnswerRecorded,
    AnsweredQuestion,
    QuizSession,
    SessionEnded,
    end_session,
    record_answer,
)


def _answer(correct: bool, qid: str = "q") -> AnsweredQuestion:
    return AnsweredQuestion(question=make_question(qid), selected_index=0 if correct else 1)


def _play(outcomes: list[bool]) -> QuizSession:
    session = QuizSession.start(Subject.MATH, 5)
    for i, correct in enumerate(outcomes):
        session, _ = record_answer(session, _answer(correct, f"q{i}"),
                                   NoChange(level=5, streak=0))
    return session


class TestQuizSession:
    def test_start(self):
        session = QuizSession.start(Subject.GRAMMAR, 7)
        assert session.start_level == session.current_level == 7
        assert session.total_questions == 0
        assert session.accuracy == 0.0
        assert session.is_active

    def test_counts_and_accuracy(self):
        session = _play([True, False, True, True])
        assert session.total_questions == 4
        assert session.correct_count == 3
        assert session.incorrect_count == 1
        assert session.accuracy == 0.75

    def test_snapshots_are_immutable(self):
        session = QuizSession.start(Subject.MATH, 1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            session.current_level = 2

    def test_ids_are_unique(self):
        assert QuizSession.start(Subject.MATH, 1).id != QuizSession.start(Subject.MATH, 1).id

    def test_to_dict(self):
        data = _play([True, False]).to_dict()
        assert data["subject"] == "math"
        assert data["totalQuestions"] == 2
        assert data["correctCount"] == 1
        assert data["accuracy"] == 0.5
        assert data["endedAt"] is None


class TestAnsweredQuestion:
    def test_correctness_follows_question(self):
        assert _answer(True).is_correct
        assert not _answer(False).is_correct

    def test_negative_response_time_clamped(self):
        answer = AnsweredQuestion(question=make_question("q"), selected_index=0,
                                  response_time_ms=-50)
        assert answer.response_time_ms == 0

    def test_timed_out_index_is_incorrect(self):
        assert not AnsweredQuestion(question=make_question("q"), selected_index=-1).is_correct


class TestTransitions:
    def test_record_answer_returns_new_snapshot(self):
        before = QuizSession.start(Subject.MATH, 5)
        change = LeveledUp(from_level=5, to_level=6)
        after, event = record_answer(before, _answer(True), change)

        assert before.total_questions == 0
        assert before.current_level == 5
        assert after.total_questions == 1
        assert after.current_level == 6
        assert after.id == before.id
        assert isinstance(event, AnswerRecorded)
        assert event.session is after
        assert event.to_dict()["levelChange"]["kind"] == "leveled_up"

    def test_end_session(self):
        session = _play([True])
        at = datetime(2024, 1, 1, 12, 0)
        ended, event = end_session(session, at)
        assert ended.ended_at == at
        assert not ended.is_active
        assert session.is_active
        assert isinstance(event, SessionEnded)
        assert event.name == "sessionEnded"
        assert event.to_dict()["endedAt"] == at.isoformat()

    def test_end_twice_raises(self):
        ended, _ = end_session(_play([]))
        with pytest.raises(ValueError, match="already ended"):
            end_session(ended)

    def test_record_after_end_raises(self):
        ended, _ = end_session(_play([]))
        with pytest.raises(ValueError):
            record_answer(ended, _answer(True), NoChange(level=5, streak=1))
