"""
Error taxonomy for the assessment engine.

Every error carries a stable `code` and a `context` dict with the numbers
needed to explain the failure. No user-facing text is produced here; the
routers turn these into HTTP responses.
"""

from typing import Any, Dict, Iterable, List


class AssessmentError(Exception):
    """Base class for all engine and exam-service failures."""

    code = "assessment_error"

    def __init__(self, **context: Any):
        self.context: Dict[str, Any] = context
        super().__init__(f"{self.code}: {context}")


class InvalidQuota(AssessmentError):
    """exam_marks / exam_question_count cannot be split into 1- and 2-mark questions."""

    code = "invalid_quota"

    def __init__(self, exam_marks: int, question_count: int):
        super().__init__(
            exam_marks=exam_marks,
            question_count=question_count,
            weightage1=2 * question_count - exam_marks,
            weightage2=exam_marks - question_count,
        )


class NoCourseOutcomes(AssessmentError):
    code = "no_course_outcomes"


class ExamNotConfigured(AssessmentError):
    """Course is missing exam_marks and/or exam_question_count."""

    code = "exam_not_configured"

    def __init__(self, exam_marks, question_count):
        super().__init__(exam_marks=exam_marks, question_count=question_count)


class InsufficientQuestionPool(AssessmentError):
    code = "insufficient_question_pool"

    def __init__(self, required_w1: int, required_w2: int, obtained_w1: int, obtained_w2: int):
        super().__init__(
            required_weightage1=required_w1,
            required_weightage2=required_w2,
            obtained_weightage1=obtained_w1,
            obtained_weightage2=obtained_w2,
        )


class InvalidSubmissionReference(AssessmentError):
    """Submission cites question ids that are not in the course's question bank."""

    code = "invalid_submission_reference"

    def __init__(self, question_ids: Iterable[int]):
        ids: List[int] = sorted(set(question_ids))
        super().__init__(question_ids=ids)
