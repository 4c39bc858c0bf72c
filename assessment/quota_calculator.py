"""
Step 1 — Quota Calculator

Derives how many 1-mark and 2-mark questions a paper needs from the course's
exam_marks (M) and exam_question_count (N):

    w2 = M - N        (each 2-mark question adds one mark over a 1-mark one)
    w1 = N - w2 = 2N - M

Feasible only for N <= M <= 2N.
"""

import logging
from typing import Optional

from assessment.errors import InvalidQuota, NoCourseOutcomes, ExamNotConfigured
from assessment.schemas import Quotas

log = logging.getLogger("assessment.engine")


def compute_quotas(exam_marks: int, exam_question_count: int, co_count: int) -> Quotas:
    """
    Split a paper of `exam_question_count` questions worth `exam_marks` marks
    into weight-1 and weight-2 counts.

    Raises:
        NoCourseOutcomes: co_count is 0 (a paper cannot be CO-balanced)
        InvalidQuota: marks outside [N, 2N] or negative inputs
    """
    if co_count <= 0:
        raise NoCourseOutcomes(co_count=co_count)

    w2 = exam_marks - exam_question_count
    w1 = exam_question_count - w2

    if exam_marks < 0 or exam_question_count < 0 or w1 < 0 or w2 < 0:
        raise InvalidQuota(exam_marks, exam_question_count)

    log.info(f"[QUOTA] marks={exam_marks}, questions={exam_question_count} → w1={w1}, w2={w2}")
    return Quotas(w1=w1, w2=w2)


def quotas_for_course(
    exam_marks: Optional[int],
    exam_question_count: Optional[int],
    co_count: Optional[int],
) -> Quotas:
    """Same as compute_quotas, for values read straight from a Course row."""
    if exam_marks is None or exam_question_count is None:
        raise ExamNotConfigured(exam_marks, exam_question_count)
    return compute_quotas(exam_marks, exam_question_count, co_count or 0)
