"""Tests for the SQLite profile store."""

from __future__ import annotations

import pytest

from conftest import make_question
from pixellearn.engine.adaptive import LeveledUp
from pixellearn.engine.questions import Subject
from pixellearn.engine.session import AnsweredQuestion, QuizSession, end_session, record_answer
from pixellearn.state.profiles import ProfileStore


@pytest.fixture
def store(tmp_path):
    return ProfileStore(db_path=tmp_path / "profiles.db")


class TestProfiles:
    def test_create_and_get(self, store):
        profile = store.create_profile("Ada", "star.fill")
        loaded = store.get_profile(profile.id)
        assert loaded.name == "Ada"
        assert loaded.avatar == "star.fill"
        assert loaded.total_answered == 0
        assert loaded.accuracy == 0.0

    def test_duplicate_name(self, store):
        store.create_profile("Ada")
        with pytest.raises(ValueError, match="already exists"):
            store.create_profile("Ada")

    def test_find_and_list(self, store):
        store.create_profile("Zed")
        store.create_profile("Ada")
        assert store.find_by_name("Zed").name == "Zed"
        assert store.find_by_name("nobody") is None
        assert [p.name for p in store.list_profiles()] == ["Ada", "Zed"]

    def test_missing_profile(self, store):
        assert store.get_profile(999) is None

    def test_delete(self, store):
        profile = store.create_profile("Ada")
        store.set_level(profile.id, Subject.MATH, 9)
        store.delete_profile(profile.id)
        assert store.get_profile(profile.id) is None
        assert store.get_level(profile.id, Subject.MATH) == 1


class TestLevels:
    def test_default_level_is_minimum(self, store):
        profile = store.create_profile("Ada")
        assert store.get_level(profile.id, Subject.GRAMMAR) == 1
        assert profile.level_for(Subject.GRAMMAR) == 1

    def test_levels_are_per_subject(self, store):
        profile = store.create_profile("Ada")
        store.set_level(profile.id, Subject.MATH, 12)
        store.set_level(profile.id, Subject.SPELLING, 4)
        loaded = store.get_profile(profile.id)
        assert loaded.level_for(Subject.MATH) == 12
        assert loaded.level_for(Subject.SPELLING) == 4
        assert loaded.highest_level == 12
        assert loaded.to_dict()["levels"]["grammar"] == 1

    def test_set_level_clamps(self, store):
        profile = store.create_profile("Ada")
        assert store.set_level(profile.id, Subject.MATH, 100) == 65
        assert store.set_level(profile.id, Subject.MATH, -3) == 1


class TestRecording:
    def test_record_session(self, store):
        profile = store.create_profile("Ada")
        session = QuizSession.start(Subject.MATH, 3)
        for i, selected in enumerate((0, 0, 1)):
            answer = AnsweredQuestion(question=make_question(f"q{i}"), selected_index=selected)
            session, _ = record_answer(session, answer, LeveledUp(from_level=3, to_level=4))
        session, _ = end_session(session)

        store.record_session(profile.id, session)
        loaded = store.get_profile(profile.id)
        assert loaded.level_for(Subject.MATH) == 4
        assert loaded.total_answered == 3
        assert loaded.total_correct == 2
        assert loaded.last_played_at == session.ended_at.isoformat()

    def test_award_placements(self, store):
        profile = store.create_profile("Ada")
        for placement in (1, 1, 2, 3, 4):
            store.award_placement(profile.id, placement)
        data = store.get_profile(profile.id).to_dict()
        assert data["wins"] == 2
        assert data["trophies"] == {"gold": 2, "silver": 1, "bronze": 1}
