"""
Step 3 — Score Aggregator

Turns one student's submitted answers into per-CO and overall marks and
percentages.

Sentinels:
    "M" — the submission is flagged for malpractice; every field is "M"
    "A" — no answer was recorded for that CO

CO percentages are measured against the CO's bank-wide maximum (sum of the
weightage of every question tagged with that CO in the course), not against
what happened to be on this student's paper.
"""

import logging
from typing import Dict, Iterable, List, Mapping

from assessment.errors import InvalidSubmissionReference
from assessment.schemas import (
    ABSENT, MALPRACTICE, AnswerEntry, BankQuestion, CoScore, CourseConfig,
    ScoreResult, co_label,
)

log = logging.getLogger("assessment.engine")


def _percentage(marks: int, out_of: int) -> str:
    if not out_of:
        return "0.00"
    return f"{marks / out_of * 100:.2f}"


def _is_correct(entry: AnswerEntry, question: BankQuestion) -> bool:
    if not entry.selected_option:
        return False
    return entry.selected_option.strip().upper() == question.correct_answer.strip().upper()


def compute_co_max_marks(questions: Iterable[BankQuestion], co_count: int) -> Dict[int, int]:
    """Sum of weightage of every bank question per CO, for CO1..COn."""
    by_label = {co_label(co): co for co in range(1, co_count + 1)}
    max_marks = {co: 0 for co in by_label.values()}
    for q in questions:
        co = by_label.get(q.co_number)
        if co is not None:
            max_marks[co] += q.weightage
    return max_marks


def malpractice_result(co_count: int) -> ScoreResult:
    return ScoreResult(
        co_scores=[
            CoScore(co_number=co, marks=MALPRACTICE, percentage=MALPRACTICE)
            for co in range(1, co_count + 1)
        ],
        overall_marks=MALPRACTICE,
        overall_percentage=MALPRACTICE,
        malpractice=True,
    )


def score_submission(
    course: CourseConfig,
    co_max_marks: Mapping[int, int],
    answers: List[AnswerEntry],
    malpractice: bool,
    question_bank: Mapping[int, BankQuestion],
) -> ScoreResult:
    """
    Score one (student, course) submission.

    Args:
        course: co_count and exam_marks of the course
        co_max_marks: CO number → bank-wide maximum marks (compute_co_max_marks)
        answers: the student's recorded entries
        malpractice: submission flag; short-circuits to all "M"
        question_bank: question id → BankQuestion for the whole course

    Raises:
        InvalidSubmissionReference: an answer cites a question not in the bank
    """
    if malpractice:
        log.info("[SCORING] malpractice flagged → all fields 'M'")
        return malpractice_result(course.co_count)

    unknown = [a.question_id for a in answers if a.question_id not in question_bank]
    if unknown:
        raise InvalidSubmissionReference(unknown)

    resolved = [(a, question_bank[a.question_id]) for a in answers]

    co_scores: List[CoScore] = []
    for co in range(1, course.co_count + 1):
        label = co_label(co)
        in_co = [(a, q) for a, q in resolved if q.co_number == label]
        if not in_co:
            co_scores.append(CoScore(co_number=co, marks=ABSENT, percentage=ABSENT))
            continue
        marks = sum(q.weightage for a, q in in_co if _is_correct(a, q))
        co_scores.append(CoScore(
            co_number=co,
            marks=marks,
            percentage=_percentage(marks, co_max_marks.get(co, 0)),
        ))

    overall = sum(q.weightage for a, q in resolved if _is_correct(a, q))
    result = ScoreResult(
        co_scores=co_scores,
        overall_marks=overall,
        overall_percentage=_percentage(overall, course.exam_marks),
    )
    log.info(f"[SCORING] overall={overall}/{course.exam_marks} ({result.overall_percentage}%)")
    return result
