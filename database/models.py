"""
SQLAlchemy models for the examination portal
Course → CourseOutcome / Question, plus the per-student exam records

Course, CourseOutcome, Question and Student are maintained by the CRUD layer.
ExamAttempt, StudentAnswer and MalpracticeLog are written by the exam service.
"""

from sqlalchemy import (
    Column, Integer, String, Boolean, ForeignKey, DateTime, Text, JSON,
    CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database.database import Base


# ==========================================
# COURSES & COURSE OUTCOMES
# ==========================================

class Course(Base):
    """
    A course with an MCQ exam.
    exam_marks and exam_question_count must both be set before a paper can be assembled.
    Draft courses (is_draft) cannot be started, submitted or scored.
    """
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    course_code = Column(String(50), nullable=True, index=True)
    co_count = Column(Integer, default=0, nullable=False, server_default="0")
    exam_marks = Column(Integer, nullable=True)
    exam_question_count = Column(Integer, nullable=True)
    is_draft = Column(Boolean, default=True, nullable=False, server_default="true")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    outcomes = relationship("CourseOutcome", back_populates="course", cascade="all, delete-orphan")
    questions = relationship("Question", back_populates="course", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("co_count >= 0", name="ck_courses_co_count"),
    )

    def __repr__(self):
        return f"<Course(id={self.id}, name='{self.name}', co_count={self.co_count})>"


class CourseOutcome(Base):
    """CO1..COn of a course, each capped at a K-level (1–6)."""
    __tablename__ = "course_outcomes"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    co_number = Column(String(10), nullable=False)  # "CO1", "CO2", ...
    k_level = Column(Integer, nullable=False)
    description = Column(Text, nullable=True)

    course = relationship("Course", back_populates="outcomes")

    __table_args__ = (
        UniqueConstraint("course_id", "co_number", name="uq_course_outcomes_course_co"),
        CheckConstraint("k_level >= 1 AND k_level <= 6", name="ck_course_outcomes_k_level"),
    )

    def __repr__(self):
        return f"<CourseOutcome(course_id={self.course_id}, co='{self.co_number}', k={self.k_level})>"


class Question(Base):
    """
    MCQ question of a course, tagged with a CO.
    weightage is the mark value (1 or 2); correct_answer is the option label "A".."D".
    """
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    co_number = Column(String(10), nullable=False, index=True)
    k_level = Column(Integer, nullable=False)
    question_text = Column(Text, nullable=False)
    options = Column(JSON, nullable=False)  # [{"label":"A","text":"..."},{"label":"B","text":"..."},...]
    correct_answer = Column(String(5), nullable=False)
    weightage = Column(Integer, default=1, nullable=False)

    course = relationship("Course", back_populates="questions")

    __table_args__ = (
        CheckConstraint("weightage IN (1, 2)", name="ck_questions_weightage"),
        CheckConstraint("k_level >= 1 AND k_level <= 6", name="ck_questions_k_level"),
        CheckConstraint("correct_answer IN ('A', 'B', 'C', 'D')", name="ck_questions_correct_answer"),
    )

    def __repr__(self):
        return f"<Question(id={self.id}, course_id={self.course_id}, co='{self.co_number}', w={self.weightage})>"


# ==========================================
# STUDENTS
# ==========================================

class Student(Base):
    """Student identity. Registration and eligibility live outside this service."""
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    register_no = Column(String(50), unique=True, nullable=False, index=True)

    def __repr__(self):
        return f"<Student(id={self.id}, register_no='{self.register_no}')>"


# ==========================================
# EXAM RECORDS
# ==========================================

class ExamAttempt(Base):
    """
    The paper assembled for one student in one course.
    Created on first start; later starts return it unchanged.
    """
    __tablename__ = "exam_attempts"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    phase1 = Column(JSON, nullable=False)  # weight-1 question ids
    phase2 = Column(JSON, nullable=False)  # weight-2 question ids
    started_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    student = relationship("Student")
    course = relationship("Course")

    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_exam_attempts_student_course"),
    )

    def __repr__(self):
        return f"<ExamAttempt(student_id={self.student_id}, course_id={self.course_id})>"


class StudentAnswer(Base):
    """
    One submitted answer. Any row for a (student, course) pair means the exam is taken.
    malpractice_flag is written identically on every row of a submission.
    """
    __tablename__ = "student_answers"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True)
    selected_option = Column(String(5), nullable=True)  # "A".."D" or null if left blank
    malpractice_flag = Column(Boolean, default=False, nullable=False, server_default="false")
    submitted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    student = relationship("Student")
    question = relationship("Question")

    __table_args__ = (
        UniqueConstraint("student_id", "course_id", "question_id", name="uq_student_answers_student_course_question"),
    )

    def __repr__(self):
        return f"<StudentAnswer(student_id={self.student_id}, q_id={self.question_id}, ans='{self.selected_option}')>"


class MalpracticeLog(Base):
    """Malpractice report raised during an exam (tab switch, copy attempt, ...)."""
    __tablename__ = "malpractice_logs"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    event_type = Column(String(50), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<MalpracticeLog(student_id={self.student_id}, course_id={self.course_id}, type='{self.event_type}')>"
