"""Pydantic schemas for the interview session API."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from analysis.models import Analysis


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateInterviewReq(ApiModel):
    company: str = Field(min_length=1)
    position: str = Field(min_length=1)
    description: str = ""
    requirements: str = ""
    resume_text: str = ""
    num_questions: Optional[int] = Field(default=None, ge=1, le=50)
    difficulty: Optional[str] = None
    mode: Optional[str] = None


class CreateInterviewResp(ApiModel):
    interview_id: str
    first_question: str


class TurnReq(ApiModel):
    answer: Any = None


class CompleteReq(ApiModel):
    transcript: Optional[str] = None
    transcript_text: Optional[str] = None
    media_ref: Optional[str] = None


class CompleteResp(ApiModel):
    interview_id: str
    message: str = "Interview completed"


class AnalyzeResp(ApiModel):
    analysis: Analysis


class RawAnalysisResp(ApiModel):
    analysis_raw: Optional[str] = None
    analysis_at: Optional[datetime] = None
