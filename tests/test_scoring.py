"""
Tests for the scoring engine

Covers answer comparison, percentage rounding and whole-submission grading.
"""
from types import SimpleNamespace

import pytest

from tutorial_app.services.scoring_service import (
    ScoringService,
    is_passed,
    loose_equals,
    percentage,
    scoring_service,
)


def _questions():
    return [
        SimpleNamespace(id="q1", correct_answer="B", points=10),
        SimpleNamespace(id="q2", correct_answer="2", points=10),
    ]


class TestLooseEquals:
    """Answer comparison rules."""

    @pytest.mark.parametrize("submitted,correct", [
        ("B", "B"),
        (2, "2"),
        ("2.0", "2"),
        (" 2 ", 2),
        (True, "true"),
        ("TRUE", "true"),
        ("False", False),
    ])
    def test_matches(self, submitted, correct):
        assert loose_equals(submitted, correct)

    @pytest.mark.parametrize("submitted,correct", [
        ("A", "B"),
        ("b", "B"),
        (3, "2"),
        (None, "B"),
        ("", "0"),
        ("   ", "B"),
        (True, "1"),
    ])
    def test_mismatches(self, submitted, correct):
        assert not loose_equals(submitted, correct)


class TestPercentage:

    def test_rounds_half_up(self):
        assert percentage(1, 8) == 13  # 12.5
        assert percentage(1, 3) == 33
        assert percentage(2, 3) == 67

    def test_nothing_to_earn_is_zero(self):
        assert percentage(0, 0) == 0

    def test_pass_threshold_is_inclusive(self):
        assert is_passed(70, 70)
        assert not is_passed(69, 70)


class TestGrade:
    """Grading complete submissions."""

    def test_all_correct(self):
        result = scoring_service.grade(_questions(), {"q1": "B", "q2": 2})

        assert result.correct_answers == 2
        assert result.points_earned == 20
        assert result.total_points == 20
        assert result.score == 100
        assert is_passed(result.score, 70)

    def test_half_correct(self):
        result = scoring_service.grade(_questions(), {"q1": "A", "q2": 2})

        assert result.correct_answers == 1
        assert result.points_earned == 10
        assert result.total_points == 20
        assert result.score == 50

    def test_breakdown_per_question(self):
        result = scoring_service.grade(_questions(), {"q1": "A", "q2": "2"})

        assert result.results == [
            {"question_id": "q1", "user_answer": "A", "is_correct": False, "points_earned": 0},
            {"question_id": "q2", "user_answer": "2", "is_correct": True, "points_earned": 10},
        ]

    def test_missing_and_unknown_answers(self):
        """Unanswered questions score zero; answers to unknown ids are ignored."""
        result = scoring_service.grade(_questions(), {"q9": "B"})

        assert result.correct_answers == 0
        assert result.score == 0
        assert len(result.results) == 2

    def test_no_questions(self):
        result = scoring_service.grade([], {"q1": "B"})
        assert result.score == 0
        assert result.total_points == 0

    def test_weighted_points(self):
        questions = [
            SimpleNamespace(id="q1", correct_answer="B", points=3),
            SimpleNamespace(id="q2", correct_answer="2", points=1),
        ]
        result = scoring_service.grade(questions, {"q1": "B"})
        assert result.score == 75

    def test_deterministic(self):
        answers = {"q1": "B", "q2": "3"}
        first = scoring_service.grade(_questions(), answers)
        for _ in range(5):
            assert scoring_service.grade(_questions(), answers) == first

    def test_score_stays_in_bounds(self):
        for answers in ({}, {"q1": "B"}, {"q1": "B", "q2": "2"}, {"q1": "x", "q2": "y"}):
            result = scoring_service.grade(_questions(), answers)
            assert 0 <= result.score <= 100

    def test_custom_comparator(self):
        strict = ScoringService(comparator=lambda submitted, correct: submitted == correct)
        result = strict.grade(_questions(), {"q1": "B", "q2": 2})

        assert result.correct_answers == 1
        assert result.score == 50
