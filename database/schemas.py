"""
Pydantic schemas for request/response validation
Separate from SQLAlchemy models for clean API contracts
"""

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Union, Literal
from datetime import datetime

from assessment.schemas import CoScore


# ==========================================
# EXAM PAPER SCHEMAS
# ==========================================

class StartExamRequest(BaseModel):
    student_id: int = Field(..., gt=0)


class OptionOut(BaseModel):
    label: str
    text: str


class PaperQuestion(BaseModel):
    """A question as shown to a student (no correct answer)"""
    id: int
    co_number: str
    weightage: int
    question_text: str
    options: List[OptionOut]

    model_config = ConfigDict(from_attributes=True)


class PaperResponse(BaseModel):
    attempt_id: int
    course_id: int
    student_id: int
    started_at: Optional[datetime] = None
    phase1: List[PaperQuestion]
    phase2: List[PaperQuestion]


# ==========================================
# SUBMISSION SCHEMAS
# ==========================================

class AnswerIn(BaseModel):
    question_id: int
    selected_option: Optional[str] = Field(None, pattern="^[A-Da-d]$", description="A, B, C, D or null if left blank")


class SubmitExamRequest(BaseModel):
    student_id: int = Field(..., gt=0)
    answers: List[AnswerIn]
    is_malpractice: bool = False


class SubmitExamResponse(BaseModel):
    status: str
    answers_recorded: int
    malpractice: bool


class MalpracticeReport(BaseModel):
    student_id: int = Field(..., gt=0)
    event_type: str = Field(..., min_length=1, max_length=50)


# ==========================================
# RESULT SCHEMAS
# ==========================================

class StudentResultResponse(BaseModel):
    student_id: int
    student_name: Optional[str] = None
    register_no: Optional[str] = None
    co_scores: List[CoScore]
    overall_marks: Union[int, Literal["A", "M"]]
    overall_percentage: str
    malpractice: bool


class CourseResultsResponse(BaseModel):
    course_id: int
    co_count: int
    exam_marks: Optional[int] = None
    total_students: int
    results: List[StudentResultResponse]
