"""FastAPI routes for interview sessions."""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Callable, Dict, List, NoReturn, Optional, Sequence

from fastapi import APIRouter, Depends, Header, HTTPException

from analysis.service import run_analysis
from api.schemas import (
    AnalyzeResp,
    CompleteReq,
    CompleteResp,
    CreateInterviewReq,
    CreateInterviewResp,
    RawAnalysisResp,
    TurnReq,
)
from config.registry import COMPLETION_KEY, get_model
from config.settings import settings
from interview_session import (
    AccessDenied,
    InterviewError,
    InterviewSettings,
    InvalidInput,
    InvalidState,
    NotFound,
    RoleMeta,
    SessionStore,
    SessionSummary,
    SqliteSessionStore,
    StoreError,
    TurnResult,
    complete_session,
    create_session,
    get_session,
    list_sessions,
    submit_turn,
)

router = APIRouter(prefix="/api/interviews")

Complete = Callable[[Sequence[Dict[str, str]]], str]

_STATUS_FOR: Dict[type, int] = {
    InvalidInput: 400,
    NotFound: 404,
    AccessDenied: 404,
    InvalidState: 409,
}


@lru_cache(maxsize=1)
def get_store() -> SessionStore:
    """Shared store; its path follows ``settings.DB_PATH`` on every connection."""

    return SqliteSessionStore()


def get_completion() -> Complete:
    return get_model(COMPLETION_KEY)


def current_user(x_user_id: Optional[str] = Header(default=None)) -> str:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Unauthorized: no user id provided")
    return x_user_id.strip()


def _raise_http(exc: Exception, failure: str) -> NoReturn:
    if isinstance(exc, InterviewError):
        raise HTTPException(status_code=_STATUS_FOR.get(type(exc), 400), detail=exc.message) from exc
    raise HTTPException(status_code=500, detail=failure) from exc


def _owned(store: SessionStore, interview_id: str, user_id: str, failure: str):
    try:
        return get_session(store, interview_id, owner_id=user_id)
    except (InterviewError, StoreError) as exc:
        _raise_http(exc, failure)


@router.get("", response_model=List[SessionSummary])
def list_interviews(
    user_id: str = Depends(current_user),
    store: SessionStore = Depends(get_store),
) -> List[SessionSummary]:
    try:
        return list_sessions(store, user_id)
    except StoreError as exc:
        _raise_http(exc, "Failed to list interviews")


@router.post("", response_model=CreateInterviewResp)
def create_interview(
    req: CreateInterviewReq,
    user_id: str = Depends(current_user),
    store: SessionStore = Depends(get_store),
    complete: Complete = Depends(get_completion),
) -> CreateInterviewResp:
    role = RoleMeta(
        company=req.company,
        position=req.position,
        description=req.description,
        requirements=req.requirements,
        resume_text=req.resume_text,
    )
    interview_settings = InterviewSettings(
        num_questions=req.num_questions,
        difficulty=req.difficulty,
        mode=req.mode,
    )
    try:
        session, first_question = create_session(
            user_id,
            role,
            interview_settings,
            store=store,
            complete=complete,
            settings=settings,
        )
    except (InterviewError, StoreError) as exc:
        _raise_http(exc, "Failed to create interview session")
    return CreateInterviewResp(interview_id=session.id, first_question=first_question)


@router.get("/{interview_id}")
def read_interview(
    interview_id: str,
    user_id: str = Depends(current_user),
    store: SessionStore = Depends(get_store),
) -> Dict[str, Any]:
    session = _owned(store, interview_id, user_id, "Failed to fetch interview")
    return session.model_dump(mode="json", by_alias=True, exclude={"role_meta": {"resume_text"}})


@router.post("/{interview_id}/turn", response_model=TurnResult)
def turn(
    interview_id: str,
    req: TurnReq,
    user_id: str = Depends(current_user),
    store: SessionStore = Depends(get_store),
    complete: Complete = Depends(get_completion),
) -> TurnResult:
    _owned(store, interview_id, user_id, "Failed to process turn")
    try:
        return submit_turn(interview_id, req.answer, store=store, complete=complete, settings=settings)
    except (InterviewError, StoreError) as exc:
        _raise_http(exc, "Failed to process turn")


@router.post("/{interview_id}/complete", response_model=CompleteResp)
def complete(
    interview_id: str,
    req: CompleteReq,
    user_id: str = Depends(current_user),
    store: SessionStore = Depends(get_store),
) -> CompleteResp:
    _owned(store, interview_id, user_id, "Failed to complete interview")
    transcript = req.transcript if req.transcript is not None else req.transcript_text
    try:
        session_id = complete_session(interview_id, transcript, req.media_ref, store=store)
    except (InterviewError, StoreError) as exc:
        _raise_http(exc, "Failed to complete interview")
    return CompleteResp(interview_id=session_id)


@router.post("/{interview_id}/analyze", response_model=AnalyzeResp)
def analyze(
    interview_id: str,
    user_id: str = Depends(current_user),
    store: SessionStore = Depends(get_store),
    complete: Complete = Depends(get_completion),
) -> AnalyzeResp:
    _owned(store, interview_id, user_id, "Failed to analyze interview")
    try:
        analysis = run_analysis(interview_id, store=store, complete=complete, settings=settings)
    except (InterviewError, StoreError) as exc:
        _raise_http(exc, "Failed to analyze interview")
    return AnalyzeResp(analysis=analysis)


@router.get("/{interview_id}/analysis/raw", response_model=RawAnalysisResp)
def raw_analysis(
    interview_id: str,
    user_id: str = Depends(current_user),
    store: SessionStore = Depends(get_store),
) -> RawAnalysisResp:
    session = _owned(store, interview_id, user_id, "Failed to fetch analysis")
    return RawAnalysisResp(analysis_raw=session.analysis_raw, analysis_at=session.analysis_at)
