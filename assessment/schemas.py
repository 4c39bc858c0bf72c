"""
Pydantic value types for the assessment engine.

Quotas        → QuotaCalculator output
CoPool        → per-CO question ids, split by weightage (PaperAssembler input)
PaperSelection→ PaperAssembler output
ScoreResult   → ScoreAggregator output (numbers or "A"/"M" sentinels)
"""

from typing import List, Optional, Union, Literal
from pydantic import BaseModel, Field


# ─── Sentinels ─────────────────────────────────────────────────────────────────

ABSENT = "A"        # no answer recorded for this CO
MALPRACTICE = "M"   # submission flagged, nothing is scored

Sentinel = Literal["A", "M"]


def co_label(co_number: int) -> str:
    """1 → 'CO1'."""
    return f"CO{co_number}"


# ─── Quotas & assembly ─────────────────────────────────────────────────────────

class Quotas(BaseModel):
    """Required count of weight-1 (w1) and weight-2 (w2) questions on a paper."""
    w1: int = Field(..., ge=0)
    w2: int = Field(..., ge=0)

    @property
    def question_count(self) -> int:
        return self.w1 + self.w2

    @property
    def total_marks(self) -> int:
        return self.w1 + 2 * self.w2


class PoolQuestion(BaseModel):
    """The slice of a Question the assembler needs."""
    id: int
    co_number: str          # "CO1".."COn"
    weightage: int


class CoPool(BaseModel):
    """Question ids of one CO, split by weightage. The two lists are disjoint."""
    weightage1: List[int] = Field(default_factory=list)
    weightage2: List[int] = Field(default_factory=list)


class PaperSelection(BaseModel):
    phase1: List[int] = Field(default_factory=list)   # weight-1 question ids
    phase2: List[int] = Field(default_factory=list)   # weight-2 question ids


# ─── Scoring ───────────────────────────────────────────────────────────────────

class CourseConfig(BaseModel):
    co_count: int = Field(..., ge=0)
    exam_marks: int = Field(0, ge=0)


class BankQuestion(BaseModel):
    """A question as the scorer sees it: CO tag, weightage and answer key."""
    id: int
    co_number: str
    weightage: int
    correct_answer: str


class AnswerEntry(BaseModel):
    question_id: int
    selected_option: Optional[str] = None   # None = left blank


class CoScore(BaseModel):
    co_number: int
    marks: Union[int, Sentinel]
    percentage: str                          # "66.67" | "A" | "M"


class ScoreResult(BaseModel):
    co_scores: List[CoScore]
    overall_marks: Union[int, Sentinel]
    overall_percentage: str
    malpractice: bool = False
