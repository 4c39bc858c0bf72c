"""
Student exam router.
Start an exam (assemble or return the student's paper), submit answers,
report malpractice, view own result.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from assessment.errors import AssessmentError
from assessment.schemas import AnswerEntry
from database.database import get_db
from database import crud, models
from database.schemas import (
    StartExamRequest, PaperQuestion, PaperResponse,
    SubmitExamRequest, SubmitExamResponse, MalpracticeReport, StudentResultResponse,
)
from routers.errors import to_http
from services import exam_service

router = APIRouter(prefix="/student/exams", tags=["student-exams"])


def _paper_question(q: models.Question) -> PaperQuestion:
    return PaperQuestion(
        id=q.id,
        co_number=q.co_number,
        weightage=q.weightage,
        question_text=q.question_text,
        options=q.options or [],
    )


# ─── Routes ────────────────────────────────────────────────────────────────────

@router.post("/{course_id}/start", response_model=PaperResponse)
def start_exam(course_id: int, request: StartExamRequest, db: Session = Depends(get_db)):
    """Assemble the student's paper on first call; later calls return the same paper."""
    try:
        attempt = exam_service.start_exam(db, request.student_id, course_id)
    except AssessmentError as e:
        raise to_http(e)

    phase1, phase2 = exam_service.paper_questions(db, attempt)
    return PaperResponse(
        attempt_id=attempt.id,
        course_id=course_id,
        student_id=request.student_id,
        started_at=attempt.started_at,
        phase1=[_paper_question(q) for q in phase1],
        phase2=[_paper_question(q) for q in phase2],
    )


@router.post("/{course_id}/submit", response_model=SubmitExamResponse)
def submit_exam(course_id: int, request: SubmitExamRequest, db: Session = Depends(get_db)):
    """Final submit. Rejected if the student already submitted for this course."""
    answers = [AnswerEntry(question_id=a.question_id, selected_option=a.selected_option) for a in request.answers]
    try:
        stored = exam_service.submit_exam(db, request.student_id, course_id, answers, request.is_malpractice)
    except AssessmentError as e:
        raise to_http(e)

    return SubmitExamResponse(
        status="auto_evaluated_malpractice" if request.is_malpractice else "submitted",
        answers_recorded=stored,
        malpractice=request.is_malpractice,
    )


@router.post("/{course_id}/malpractice", status_code=201)
def report_malpractice(course_id: int, request: MalpracticeReport, db: Session = Depends(get_db)):
    """Log a malpractice event raised by the exam client."""
    try:
        entry = exam_service.report_malpractice(db, request.student_id, course_id, request.event_type)
    except AssessmentError as e:
        raise to_http(e)
    return {
        "id": entry.id,
        "student_id": entry.student_id,
        "course_id": entry.course_id,
        "event_type": entry.event_type,
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
    }


@router.get("/{course_id}/result/{student_id}", response_model=StudentResultResponse)
def get_result(course_id: int, student_id: int, db: Session = Depends(get_db)):
    try:
        result = exam_service.student_result(db, student_id, course_id)
    except AssessmentError as e:
        raise to_http(e)

    student = crud.get_student(db, student_id)
    return StudentResultResponse(
        student_id=student_id,
        student_name=student.name if student else None,
        register_no=student.register_no if student else None,
        **result.model_dump(),
    )
