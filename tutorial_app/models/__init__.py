"""
Database models package
"""
from tutorial_app.models.category import Category
from tutorial_app.models.tutorial import Tutorial
from tutorial_app.models.quiz import Quiz
from tutorial_app.models.question import Question
from tutorial_app.models.quiz_attempt import QuizAttempt
from tutorial_app.models.progress import Progress
from tutorial_app.models.review import Review

__all__ = ["Category", "Tutorial", "Quiz", "Question", "QuizAttempt", "Progress", "Review"]
