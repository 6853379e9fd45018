"""Tests for question selection and used-question tracking."""

from __future__ import annotations

import random

import pytest

from conftest import StaticSource, make_question
from pixellearn.config.settings import UsedQuestionScope
from pixellearn.engine.question_bank import QuestionBank
from pixellearn.engine.questions import Subject
from pixellearn.engine.selector import QuestionSelector, select_question


class TestSelectQuestion:
    @pytest.mark.asyncio
    async def test_no_repeats_until_pool_exhausted(self, bank):
        rng = random.Random(0)
        used: frozenset[str] = frozenset()
        seen = []
        for _ in range(5):
            question, used = await select_question(bank, Subject.MATH, 7, used, rng)
            seen.append(question.id)
        pool_ids = {q.id for q in await bank.pool(Subject.MATH, 7)}
        assert len(seen) == len(set(seen)) == 5
        assert set(seen) == pool_ids

        reused, used_after = await select_question(bank, Subject.MATH, 7, used, rng)
        assert reused.id in pool_ids
        assert used_after == used

    @pytest.mark.asyncio
    async def test_skips_used_ids(self, bank):
        used = frozenset({"m3-0", "m3-1", "m3-2", "m3-3"})
        question, updated = await select_question(bank, Subject.MATH, 3, used)
        assert question.id == "m3-4"
        assert updated == used | {"m3-4"}

    @pytest.mark.asyncio
    async def test_empty_pool_returns_valid_fallback(self, bank):
        question, used = await select_question(bank, Subject.MEMORY, 12, frozenset())
        assert question.text == "What is 1 + 1?"
        assert 0 <= question.correct_index < len(question.options)
        assert question.correct_answer == "2"
        assert question.subject is Subject.MEMORY
        assert used == frozenset()


class TestQuestionSelector:
    @pytest.mark.asyncio
    async def test_tracks_used_ids(self, selector):
        first = await selector.select(Subject.MATH, 1)
        assert selector.state.used_ids == frozenset({first.id})

    @pytest.mark.asyncio
    async def test_reset_used_questions(self, selector):
        await selector.select(Subject.MATH, 1)
        selector.reset_used_questions()
        assert selector.state.used_ids == frozenset()

    @pytest.mark.asyncio
    async def test_global_scope_survives_session_start(self, bank):
        selector = QuestionSelector(bank, scope=UsedQuestionScope.GLOBAL)
        await selector.select(Subject.MATH, 1)
        selector.begin_session()
        assert len(selector.state.used_ids) == 1

    @pytest.mark.asyncio
    async def test_session_scope_clears_on_session_start(self, bank):
        selector = QuestionSelector(bank, scope=UsedQuestionScope.SESSION)
        await selector.select(Subject.MATH, 1)
        selector.begin_session()
        assert selector.state.used_ids == frozenset()

    @pytest.mark.asyncio
    async def test_single_question_pool_reuses(self):
        only = make_question("solo", subject=Subject.SPELLING, level=2)
        selector = QuestionSelector(QuestionBank(StaticSource({(Subject.SPELLING, 2): [only]})))
        assert (await selector.select(Subject.SPELLING, 2)).id == "solo"
        assert (await selector.select(Subject.SPELLING, 2)).id == "solo"
