"""
Maps engine / service errors onto HTTP responses.
detail = {"error": <code>, "message": <text>, **context}
"""

from fastapi import HTTPException, status

from assessment.errors import (
    AssessmentError, InvalidQuota, NoCourseOutcomes, ExamNotConfigured,
    InsufficientQuestionPool, InvalidSubmissionReference,
)
from services.exam_service import (
    CourseNotFound, CourseNotPublished, StudentNotFound, QuestionNotOnPaper,
    ExamAlreadyTaken, SubmissionNotFound, EmptySubmission,
)


def _message(err: AssessmentError) -> str:
    ctx = err.context
    if isinstance(err, CourseNotFound):
        return "Course not found"
    if isinstance(err, CourseNotPublished):
        return "Exam is still in draft mode"
    if isinstance(err, StudentNotFound):
        return "Student not found"
    if isinstance(err, SubmissionNotFound):
        return "No submission found for this student and course"
    if isinstance(err, ExamAlreadyTaken):
        return "Exam already submitted for this course"
    if isinstance(err, NoCourseOutcomes):
        return "No COs defined for this course"
    if isinstance(err, ExamNotConfigured):
        return "Exam marks and question count must both be set for this course"
    if isinstance(err, InvalidQuota):
        return (
            f"Invalid examQuestionCount or examMarks: cannot distribute {ctx['question_count']} "
            f"questions over {ctx['exam_marks']} marks using weightage 1 and 2"
        )
    if isinstance(err, InsufficientQuestionPool):
        return (
            f"Not enough questions to meet the required distribution: required "
            f"{ctx['required_weightage1']} weightage 1 and {ctx['required_weightage2']} weightage 2, "
            f"got {ctx['obtained_weightage1']} and {ctx['obtained_weightage2']}"
        )
    if isinstance(err, InvalidSubmissionReference):
        return f"Questions not in this course: {ctx['question_ids']}"
    if isinstance(err, QuestionNotOnPaper):
        return f"Questions not in this exam: {ctx['question_ids']}"
    if isinstance(err, EmptySubmission):
        return "No answers submitted and no exam paper questions to record"
    return err.code


def to_http(err: AssessmentError) -> HTTPException:
    if isinstance(err, (CourseNotFound, StudentNotFound, SubmissionNotFound)):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(err, ExamAlreadyTaken):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(
        status_code=code,
        detail={"error": err.code, "message": _message(err), **err.context},
    )
