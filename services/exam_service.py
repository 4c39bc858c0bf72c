"""
Exam service — orchestration around the assessment engine.

Loads course configuration, question bank and answers through database.crud,
hands plain values to the pure engine functions, and records what the engine
produced (the paper shown to a student, the submitted answers).

The engine never touches the database; this module never re-implements
quota, assembly or scoring arithmetic.
"""

import logging
import random
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from assessment import (
    AssessmentError, InvalidSubmissionReference,
    assemble_paper, build_co_pools, compute_co_max_marks, quotas_for_course,
    score_submission,
)
from assessment.schemas import AnswerEntry, BankQuestion, CourseConfig, PoolQuestion, ScoreResult
from database import crud, models

log = logging.getLogger("services.exam")


# ─── Service errors ────────────────────────────────────────────────────────────

class CourseNotFound(AssessmentError):
    code = "course_not_found"


class CourseNotPublished(AssessmentError):
    """Course is still a draft: no papers, submissions or results."""
    code = "course_not_published"


class StudentNotFound(AssessmentError):
    code = "student_not_found"


class QuestionNotOnPaper(AssessmentError):
    code = "question_not_on_paper"


class ExamAlreadyTaken(AssessmentError):
    code = "exam_already_taken"


class SubmissionNotFound(AssessmentError):
    code = "submission_not_found"


class EmptySubmission(AssessmentError):
    """No answers given and no paper questions to record blanks against."""
    code = "empty_submission"


# ─── Helpers ───────────────────────────────────────────────────────────────────

def _require_course(db: Session, course_id: int) -> models.Course:
    course = crud.get_course(db, course_id)
    if not course:
        raise CourseNotFound(course_id=course_id)
    return course


def _require_published_course(db: Session, course_id: int) -> models.Course:
    course = _require_course(db, course_id)
    if course.is_draft:
        raise CourseNotPublished(course_id=course_id)
    return course


def _require_student(db: Session, student_id: int) -> models.Student:
    student = crud.get_student(db, student_id)
    if not student:
        raise StudentNotFound(student_id=student_id)
    return student


def _question_bank(db: Session, course_id: int) -> Dict[int, BankQuestion]:
    return {
        q.id: BankQuestion(
            id=q.id,
            co_number=q.co_number,
            weightage=q.weightage,
            correct_answer=q.correct_answer,
        )
        for q in crud.get_course_questions(db, course_id)
    }


def _course_config(course: models.Course) -> CourseConfig:
    return CourseConfig(co_count=course.co_count or 0, exam_marks=course.exam_marks or 0)


# ─── Paper ─────────────────────────────────────────────────────────────────────

def start_exam(
    db: Session,
    student_id: int,
    course_id: int,
    rng: Optional[random.Random] = None,
) -> models.ExamAttempt:
    """
    Return the student's paper for a course, assembling it on first call.

    Raises:
        CourseNotFound, CourseNotPublished, StudentNotFound, ExamAlreadyTaken,
        ExamNotConfigured, NoCourseOutcomes, InvalidQuota, InsufficientQuestionPool
    """
    course = _require_published_course(db, course_id)
    _require_student(db, student_id)

    if crud.has_submitted(db, student_id, course_id):
        log.warning(f"[START] student={student_id} course={course_id}: exam already submitted")
        raise ExamAlreadyTaken(student_id=student_id, course_id=course_id)

    existing = crud.get_exam_attempt(db, student_id, course_id)
    if existing:
        return existing

    quotas = quotas_for_course(course.exam_marks, course.exam_question_count, course.co_count)
    pool_questions = [
        PoolQuestion(id=q.id, co_number=q.co_number, weightage=q.weightage)
        for q in crud.get_course_questions(db, course_id)
    ]
    log.info(f"[START] course={course_id}: {len(pool_questions)} questions in bank")

    co_pools = build_co_pools(pool_questions, course.co_count)
    selection = assemble_paper(quotas, co_pools, rng=rng)

    try:
        attempt = crud.create_exam_attempt(db, student_id, course_id, selection.phase1, selection.phase2)
    except IntegrityError:
        # Concurrent start for the same pair; the first stored paper wins
        db.rollback()
        attempt = crud.get_exam_attempt(db, student_id, course_id)
        if attempt is None:
            raise

    log.info(
        f"[START] student={student_id} course={course_id}: paper with "
        f"{len(attempt.phase1)} × 1-mark, {len(attempt.phase2)} × 2-mark"
    )
    return attempt


def paper_questions(db: Session, attempt: models.ExamAttempt) -> Tuple[List[models.Question], List[models.Question]]:
    """Resolve an attempt's question ids to Question rows, preserving paper order."""
    by_id = {q.id: q for q in crud.get_questions_by_ids(db, list(attempt.phase1) + list(attempt.phase2))}
    phase1 = [by_id[qid] for qid in attempt.phase1 if qid in by_id]
    phase2 = [by_id[qid] for qid in attempt.phase2 if qid in by_id]
    return phase1, phase2


# ─── Submission ────────────────────────────────────────────────────────────────

def submit_exam(
    db: Session,
    student_id: int,
    course_id: int,
    answers: List[AnswerEntry],
    is_malpractice: bool = False,
) -> int:
    """
    Record a student's answers. First submission wins.

    Repeated question ids collapse to the last selection. An empty answer list
    records a blank entry for every question on the student's paper. Once a
    paper has been assembled, only its questions may be answered.

    Returns:
        Number of answer rows stored

    Raises:
        CourseNotFound, CourseNotPublished, StudentNotFound, ExamAlreadyTaken,
        InvalidSubmissionReference, QuestionNotOnPaper, EmptySubmission
    """
    _require_published_course(db, course_id)
    _require_student(db, student_id)

    if crud.has_submitted(db, student_id, course_id):
        log.warning(f"[SUBMIT] student={student_id} course={course_id}: already submitted")
        raise ExamAlreadyTaken(student_id=student_id, course_id=course_id)

    bank = _question_bank(db, course_id)
    unknown = [a.question_id for a in answers if a.question_id not in bank]
    if unknown:
        raise InvalidSubmissionReference(unknown)

    attempt = crud.get_exam_attempt(db, student_id, course_id)
    paper = list(attempt.phase1) + list(attempt.phase2) if attempt else []
    if attempt:
        off_paper = sorted({a.question_id for a in answers if a.question_id not in paper})
        if off_paper:
            log.warning(f"[SUBMIT] student={student_id} course={course_id}: answers outside paper {off_paper}")
            raise QuestionNotOnPaper(question_ids=off_paper)

    selected: Dict[int, Optional[str]] = {}
    for a in answers:
        selected[a.question_id] = a.selected_option.strip().upper() if a.selected_option else None

    if not selected:
        selected = {qid: None for qid in paper}
    if not selected:
        raise EmptySubmission(student_id=student_id, course_id=course_id)

    try:
        stored = crud.save_submission(db, student_id, course_id, list(selected.items()), is_malpractice)
    except IntegrityError:
        db.rollback()
        log.warning(f"[SUBMIT] student={student_id} course={course_id}: lost race to an earlier submission")
        raise ExamAlreadyTaken(student_id=student_id, course_id=course_id)

    log.info(
        f"[SUBMIT] student={student_id} course={course_id}: {stored} answers stored, "
        f"malpractice={is_malpractice}"
    )
    return stored


def report_malpractice(db: Session, student_id: int, course_id: int, event_type: str) -> models.MalpracticeLog:
    _require_course(db, course_id)
    _require_student(db, student_id)
    entry = crud.log_malpractice(db, student_id, course_id, event_type)
    log.warning(f"[MALPRACTICE] student={student_id} course={course_id}: {event_type}")
    return entry


# ─── Results ───────────────────────────────────────────────────────────────────

def _score_student(
    db: Session,
    student_id: int,
    course_id: int,
    config: CourseConfig,
    co_max_marks: Dict[int, int],
    bank: Dict[int, BankQuestion],
) -> Optional[ScoreResult]:
    rows = crud.get_submission(db, student_id, course_id)
    if not rows:
        return None
    entries = [AnswerEntry(question_id=r.question_id, selected_option=r.selected_option) for r in rows]
    malpractice = any(r.malpractice_flag for r in rows)
    return score_submission(config, co_max_marks, entries, malpractice, bank)


def student_result(db: Session, student_id: int, course_id: int) -> ScoreResult:
    """
    Score one student's submission.

    Raises:
        CourseNotFound, CourseNotPublished, SubmissionNotFound, InvalidSubmissionReference
    """
    course = _require_published_course(db, course_id)
    config = _course_config(course)
    bank = _question_bank(db, course_id)
    co_max_marks = compute_co_max_marks(bank.values(), config.co_count)

    result = _score_student(db, student_id, course_id, config, co_max_marks, bank)
    if result is None:
        raise SubmissionNotFound(student_id=student_id, course_id=course_id)
    return result


def course_results(
    db: Session, course_id: int
) -> Tuple[models.Course, List[Tuple[int, Optional[models.Student], ScoreResult]]]:
    """
    Results for every student who submitted, with the course they belong to.
    CO maxima are computed once per call.
    """
    course = _require_published_course(db, course_id)
    config = _course_config(course)
    bank = _question_bank(db, course_id)
    co_max_marks = compute_co_max_marks(bank.values(), config.co_count)
    log.info(f"[RESULTS] course={course_id}: max marks per CO {co_max_marks}")

    results = []
    for student_id in crud.get_course_student_ids(db, course_id):
        result = _score_student(db, student_id, course_id, config, co_max_marks, bank)
        if result is not None:
            results.append((student_id, crud.get_student(db, student_id), result))
    return course, results
