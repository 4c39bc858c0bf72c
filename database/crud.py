"""
Read/write contracts for the exam service
Courses and questions are read-only here; attempts, answers and malpractice logs are written.
"""

from sqlalchemy.orm import Session
from typing import List, Optional
from database import models


# ==========================================
# COURSE & QUESTION BANK (read-only)
# ==========================================

def get_course(db: Session, course_id: int) -> Optional[models.Course]:
    """Get course by ID"""
    return db.query(models.Course).filter(models.Course.id == course_id).first()


def get_course_questions(db: Session, course_id: int) -> List[models.Question]:
    """Every question of a course (the full bank, not one student's paper)"""
    return (
        db.query(models.Question)
        .filter(models.Question.course_id == course_id)
        .order_by(models.Question.id)
        .all()
    )


def get_questions_by_ids(db: Session, question_ids: List[int]) -> List[models.Question]:
    if not question_ids:
        return []
    return db.query(models.Question).filter(models.Question.id.in_(question_ids)).all()


# ==========================================
# EXAM ATTEMPTS
# ==========================================

def get_exam_attempt(db: Session, student_id: int, course_id: int) -> Optional[models.ExamAttempt]:
    return (
        db.query(models.ExamAttempt)
        .filter(models.ExamAttempt.student_id == student_id, models.ExamAttempt.course_id == course_id)
        .first()
    )


def create_exam_attempt(
    db: Session, student_id: int, course_id: int, phase1: List[int], phase2: List[int]
) -> models.ExamAttempt:
    """Record the paper shown to a student"""
    attempt = models.ExamAttempt(
        student_id=student_id,
        course_id=course_id,
        phase1=phase1,
        phase2=phase2,
    )
    db.add(attempt)
    db.commit()
    db.refresh(attempt)
    return attempt


# ==========================================
# SUBMISSIONS
# ==========================================

def has_submitted(db: Session, student_id: int, course_id: int) -> bool:
    """True once any answer row exists for the (student, course) pair"""
    return (
        db.query(models.StudentAnswer.id)
        .filter(models.StudentAnswer.student_id == student_id, models.StudentAnswer.course_id == course_id)
        .first()
        is not None
    )


def get_submission(db: Session, student_id: int, course_id: int) -> List[models.StudentAnswer]:
    return (
        db.query(models.StudentAnswer)
        .filter(models.StudentAnswer.student_id == student_id, models.StudentAnswer.course_id == course_id)
        .order_by(models.StudentAnswer.id)
        .all()
    )


def save_submission(
    db: Session,
    student_id: int,
    course_id: int,
    answers: List[tuple],
    malpractice: bool,
) -> int:
    """
    Insert every (question_id, selected_option) pair in one transaction.
    Raises sqlalchemy.exc.IntegrityError if a row for the pair already exists;
    the caller rolls back.
    """
    for question_id, selected_option in answers:
        db.add(models.StudentAnswer(
            student_id=student_id,
            course_id=course_id,
            question_id=question_id,
            selected_option=selected_option,
            malpractice_flag=malpractice,
        ))
    db.commit()
    return len(answers)


def get_course_student_ids(db: Session, course_id: int) -> List[int]:
    """Students with at least one recorded answer for the course"""
    rows = (
        db.query(models.StudentAnswer.student_id)
        .filter(models.StudentAnswer.course_id == course_id)
        .distinct()
        .order_by(models.StudentAnswer.student_id)
        .all()
    )
    return [r[0] for r in rows]


def get_student(db: Session, student_id: int) -> Optional[models.Student]:
    return db.query(models.Student).filter(models.Student.id == student_id).first()


# ==========================================
# MALPRACTICE
# ==========================================

def log_malpractice(db: Session, student_id: int, course_id: int, event_type: str) -> models.MalpracticeLog:
    entry = models.MalpracticeLog(student_id=student_id, course_id=course_id, event_type=event_type)
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry
