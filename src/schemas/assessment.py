from datetime import datetime
from typing import List, Optional

from pydantic import Field

from services.style_engine.models import (
    AssessmentScore,
    CamelModel,
    Coordinates,
    DimensionInterpretation,
    GeneratedQuestion,
    Response,
    StyleInterpretation,
)


class QuestionsResponse(CamelModel):
    questions: List[GeneratedQuestion]
    total: int
    strategy: str


class ScoreRequest(CamelModel):
    questions: List[GeneratedQuestion] = Field(..., min_length=1)
    responses: List[Response] = Field(..., min_length=1)
    custom_code: Optional[str] = None
    assessment_id: Optional[str] = None
    email: Optional[str] = None


class ScoreResponse(CamelModel):
    score: AssessmentScore
    interpretation: StyleInterpretation
    dimension_interpretations: List[DimensionInterpretation]
    result_id: Optional[int] = None


class InterpretRequest(Coordinates):
    neutral_threshold: Optional[float] = Field(None, ge=0.0, lt=1.0)


class SessionCreateRequest(CamelModel):
    count: Optional[int] = Field(None, ge=1)
    seed: Optional[str] = None
    custom_code: Optional[str] = None


class SessionResponse(CamelModel):
    session_id: str
    state: str
    question_index: int
    total_questions: int
    phase: int
    progress: float
    current_question: Optional[GeneratedQuestion] = None
    questions: Optional[List[GeneratedQuestion]] = None
    result: Optional[ScoreResponse] = None


class ResponseSubmission(CamelModel):
    value: int = Field(..., ge=0, le=10)


class SubmissionResult(SessionResponse):
    submitted_value: int
    legacy_value: int  # same answer on the 0-300 scale older clients expect


class ResultRecordCreate(CamelModel):
    x: float = Field(..., ge=-1.0, le=1.0)
    y: float = Field(..., ge=-1.0, le=1.0)
    style_name: Optional[str] = None
    custom_code: Optional[str] = None
    assessment_id: Optional[str] = None
    email_domain: Optional[str] = None
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None
    completed_at: Optional[datetime] = None


class ResultRecordOut(CamelModel):
    id: int
    x: float
    y: float
    style_name: Optional[str] = None
    custom_code: Optional[str] = None
    assessment_id: Optional[str] = None
    email_domain: Optional[str] = None
    completed_at: datetime
    created_at: Optional[datetime] = None


class AnalyticsSummary(CamelModel):
    custom_code: str
    total_assessments: int
    avg_x: Optional[float] = None
    avg_y: Optional[float] = None
    first_assessment: Optional[datetime] = None
    last_assessment: Optional[datetime] = None
