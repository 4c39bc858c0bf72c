"""
Assessment Assembly & Scoring Engine
assessment/

Steps:
1. Quota Calculator  — exam marks + question count → weight-1 / weight-2 counts
2. Paper Assembler   — CO-balanced, randomized per-student question set
3. Score Aggregator  — per-CO and overall marks with "A" / "M" sentinels

Pure functions only: callers load pools and answers and persist the results.
"""

from assessment.errors import (
    AssessmentError, InvalidQuota, NoCourseOutcomes, ExamNotConfigured,
    InsufficientQuestionPool, InvalidSubmissionReference,
)
from assessment.quota_calculator import compute_quotas, quotas_for_course
from assessment.paper_assembler import assemble_paper, build_co_pools
from assessment.score_aggregator import score_submission, compute_co_max_marks
