"""Tests for the math question generators."""

from __future__ import annotations

import random

import pytest

from pixellearn.engine.generators import (
    generate_math_questions,
    monomial,
    shuffled_options,
    unique_options,
)
from pixellearn.engine.questions import Subject


class TestGenerateMathQuestions:
    @pytest.mark.parametrize("level", range(1, 66))
    def test_every_level_has_valid_questions(self, level):
        questions = generate_math_questions(level)
        assert questions, f"level {level} is empty"
        for q in questions:
            assert q.subject is Subject.MATH
            assert q.level == level
            assert 0 <= q.correct_index < len(q.options)
            assert len(set(q.options)) == len(q.options)

    def test_ids_unique_within_level(self):
        questions = generate_math_questions(20)
        assert len({q.id for q in questions}) == len(questions)

    def test_deterministic_per_level(self):
        first = generate_math_questions(33)
        second = generate_math_questions(33)
        assert [(q.id, q.text, q.options) for q in first] == [
            (q.id, q.text, q.options) for q in second
        ]

    def test_limit(self):
        assert len(generate_math_questions(12, limit=5)) == 5

    def test_counting_answers_match_picture(self):
        for q in generate_math_questions(1):
            picture = q.text.split("\n\n", 1)[1]
            assert q.correct_answer == str(len(picture.split(" ")))

    def test_explicit_rng(self):
        questions = generate_math_questions(18, rng=random.Random(1))
        assert all(q.id.startswith("math-18-") for q in questions)


class TestOptionHelpers:
    def test_unique_options_contains_answer(self):
        options = unique_options(7, 3, random.Random(0))
        assert "7" in options
        assert len(set(options)) == len(options)

    def test_shuffled_options_contains_all(self):
        options = shuffled_options("a", ["b", "c", "d"], random.Random(0))
        assert sorted(options) == ["a", "b", "c", "d"]

    def test_monomial(self):
        assert monomial(1, 1) == "x"
        assert monomial(3, 2) == "3x^2"
