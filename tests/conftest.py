import os

# Must be set before database.database is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database.database import Base, get_db
from database import models
from main import app


OPTIONS = [
    {"label": "A", "text": "first"},
    {"label": "B", "text": "second"},
    {"label": "C", "text": "third"},
    {"label": "D", "text": "fourth"},
]


@pytest.fixture
def engine():
    """Fresh in-memory database per test, with foreign keys enforced as on Postgres."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(eng, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_course(db):
    """
    Create a course with a question bank.

    bank: {"CO1": (n_weight1, n_weight2), ...}; every question's answer is "A".
    """
    def _make(co_count=2, exam_marks=10, exam_question_count=6, bank=None, is_draft=False):
        course = models.Course(
            name="Data Structures",
            course_code="CS201",
            co_count=co_count,
            exam_marks=exam_marks,
            exam_question_count=exam_question_count,
            is_draft=is_draft,
        )
        db.add(course)
        db.flush()
        for co in range(1, co_count + 1):
            db.add(models.CourseOutcome(course_id=course.id, co_number=f"CO{co}", k_level=2))
        for co_number, (n_w1, n_w2) in (bank or {}).items():
            for weightage, n in ((1, n_w1), (2, n_w2)):
                for i in range(n):
                    db.add(models.Question(
                        course_id=course.id,
                        co_number=co_number,
                        k_level=2,
                        question_text=f"{co_number} w{weightage} question {i + 1}",
                        options=OPTIONS,
                        correct_answer="A",
                        weightage=weightage,
                    ))
        db.commit()
        db.refresh(course)
        return course

    return _make


@pytest.fixture
def make_student(db):
    counter = {"n": 0}

    def _make(name="Student"):
        counter["n"] += 1
        student = models.Student(name=f"{name} {counter['n']}", register_no=f"REG{counter['n']:04d}")
        db.add(student)
        db.commit()
        db.refresh(student)
        return student

    return _make


@pytest.fixture
def questions_of(db):
    """Question rows of a course, ordered by id."""
    def _questions(course_id):
        return (
            db.query(models.Question)
            .filter(models.Question.course_id == course_id)
            .order_by(models.Question.id)
            .all()
        )

    return _questions
