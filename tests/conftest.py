import os
import uuid

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_URL", "redis://127.0.0.1:1/0")
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "100000")
os.environ.setdefault("RATE_LIMIT_PER_HOUR", "1000000")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tutorial_app.database import Base, get_db
from tutorial_app.main import app
from tutorial_app.models import Category, Question, Quiz, Tutorial
from tutorial_app.utils.rate_limiter import rate_limiter


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    rate_limiter.reset()
    # Not used as a context manager so the startup hook does not touch the real engine
    yield TestClient(app)
    app.dependency_overrides.clear()


class User:
    """Caller identity as the gateway would pass it"""

    def __init__(self, role):
        self.id = uuid.uuid4()
        self.role = role

    @property
    def is_admin(self):
        return self.role == "admin"

    @property
    def headers(self):
        return {"X-User-Id": str(self.id), "X-User-Role": self.role}


@pytest.fixture
def teacher():
    return User("teacher")


@pytest.fixture
def other_teacher():
    return User("teacher")


@pytest.fixture
def student():
    return User("student")


@pytest.fixture
def other_student():
    return User("student")


@pytest.fixture
def admin():
    return User("admin")


@pytest.fixture
def category(db_session):
    category = Category(name="Mathematics", description="Grade 9-12 mathematics", color="#3B82F6")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture
def tutorial(db_session, teacher, category):
    tutorial = Tutorial(
        title="Quadratic equations",
        description="Solving ax^2 + bx + c = 0",
        teacher_id=teacher.id,
        category_id=category.id,
        is_published=True
    )
    db_session.add(tutorial)
    db_session.commit()
    return tutorial


@pytest.fixture
def make_quiz(db_session, teacher, tutorial):
    """Factory for a quiz with two 10-point questions answered "B" and "2" """

    def _make_quiz(published=True, time_limit=0, passing_score=70, max_attempts=0, show_correct_answers=True):
        quiz = Quiz(
            title="Quadratics check",
            tutorial_id=tutorial.id,
            teacher_id=teacher.id,
            time_limit=time_limit,
            passing_score=passing_score,
            max_attempts=max_attempts,
            show_correct_answers=show_correct_answers,
            is_published=published
        )
        quiz.questions.append(Question(
            question="Which option is the discriminant?",
            type="multiple_choice",
            options=["A", "B", "C"],
            correct_answer="B",
            explanation="The discriminant is b^2 - 4ac",
            points=10,
            order=1
        ))
        quiz.questions.append(Question(
            question="How many roots does x^2 - 1 = 0 have?",
            type="short_answer",
            options=[],
            correct_answer="2",
            points=10,
            order=2
        ))
        quiz.total_questions = 2
        db_session.add(quiz)
        db_session.commit()
        return quiz

    return _make_quiz


@pytest.fixture
def quiz(make_quiz):
    return make_quiz()
