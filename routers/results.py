"""
Course results router (staff-facing).
Per-CO and overall marks for every student who submitted an exam.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from assessment.errors import AssessmentError
from database.database import get_db
from database.schemas import CourseResultsResponse, StudentResultResponse
from routers.errors import to_http
from services import exam_service

router = APIRouter(prefix="/results", tags=["results"])


@router.get("/{course_id}", response_model=CourseResultsResponse)
def get_course_results(course_id: int, db: Session = Depends(get_db)):
    """All results for a published course, ordered by student id."""
    try:
        course, rows = exam_service.course_results(db, course_id)
    except AssessmentError as e:
        raise to_http(e)

    return CourseResultsResponse(
        course_id=course_id,
        co_count=course.co_count,
        exam_marks=course.exam_marks,
        total_students=len(rows),
        results=[
            StudentResultResponse(
                student_id=student_id,
                student_name=student.name if student else None,
                register_no=student.register_no if student else None,
                **result.model_dump(),
            )
            for student_id, student, result in rows
        ],
    )
