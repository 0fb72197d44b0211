"""
Quiz scoring service
Deterministic grading of submitted answers against a question set
"""
import logging
import math
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence

logger = logging.getLogger(__name__)

_BOOLEAN_WORDS = ("true", "false")


def _normalize(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip()


def _as_number(text: str) -> Optional[float]:
    try:
        number = float(text)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def loose_equals(submitted: Any, correct: Any) -> bool:
    """
    Compare a submitted answer with a stored correct answer

    Rules:
    - A missing or blank answer never matches
    - Values that both read as numbers match when numerically equal ("2" == 2 == "2.0")
    - true/false match case-insensitively, and Python booleans read as true/false
    - Anything else is compared as stripped text
    """
    if submitted is None or correct is None:
        return False

    left = _normalize(submitted)
    right = _normalize(correct)

    if left == "":
        return False

    left_number = _as_number(left)
    right_number = _as_number(right)
    if left_number is not None and right_number is not None:
        return left_number == right_number

    if left.lower() in _BOOLEAN_WORDS and right.lower() in _BOOLEAN_WORDS:
        return left.lower() == right.lower()

    return left == right


def percentage(points_earned: int, total_points: int) -> int:
    """Integer percentage rounded half up; 0 when there is nothing to earn"""
    if total_points <= 0:
        return 0
    return (points_earned * 200 + total_points) // (2 * total_points)


def is_passed(score: int, passing_score: int) -> bool:
    return score >= passing_score


class ScoreResult(NamedTuple):
    correct_answers: int
    total_points: int
    points_earned: int
    score: int
    results: List[Dict[str, Any]]


class ScoringService:
    """
    Service for grading quiz submissions

    Questions only need id, correct_answer and points attributes, so the
    engine works on ORM rows and plain objects alike. The answer comparison
    is injectable; loose_equals is the default.
    """

    def __init__(self, comparator: Callable[[Any, Any], bool] = loose_equals):
        self.comparator = comparator

    def grade(self, questions: Sequence[Any], answers: Dict[str, Any]) -> ScoreResult:
        """
        Grade a complete submission

        Args:
            questions: Questions included in the attempt, in grading order
            answers: Submitted answers keyed by question id

        Returns:
            ScoreResult with counts, points, percentage score and breakdown
        """
        answers = answers or {}
        correct_answers = 0
        total_points = 0
        points_earned = 0
        results = []

        for question in questions:
            question_id = str(question.id)
            user_answer = answers.get(question_id)
            points = question.points or 0

            is_correct = self.comparator(user_answer, question.correct_answer)
            earned = points if is_correct else 0

            total_points += points
            points_earned += earned
            if is_correct:
                correct_answers += 1

            results.append({
                "question_id": question_id,
                "user_answer": user_answer,
                "is_correct": is_correct,
                "points_earned": earned
            })

        score = percentage(points_earned, total_points)

        logger.debug(
            f"Graded {len(results)} questions: {points_earned}/{total_points} points, score={score}"
        )

        return ScoreResult(
            correct_answers=correct_answers,
            total_points=total_points,
            points_earned=points_earned,
            score=score,
            results=results
        )


# Global instance
scoring_service = ScoringService()
