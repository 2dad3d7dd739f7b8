import logging
from functools import lru_cache
from typing import Any, Dict, List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from config.settings import AppSettings, get_settings
from services.style_engine.generator import generate_questions, generate_seeded_questions, uses_dimension_focus
from services.style_engine.interpreter import interpret_coordinates, interpret_dimensions, to_result_record
from services.style_engine.loader import load_phrase_config_or_fallback, summarize_config
from services.style_engine.models import (
    AssessmentScore,
    Coordinates,
    InsufficientPhrasesError,
    InvalidDimensionError,
    PairingStrategy,
    PhraseConfig,
    StyleInterpretation,
)
from services.style_engine.scorer import score_assessment
from services.style_engine.session import AssessmentSession, SessionState, SessionStateError
from src.db.database import get_db
from src.schemas.assessment import (
    AnalyticsSummary,
    InterpretRequest,
    QuestionsResponse,
    ResponseSubmission,
    ResultRecordCreate,
    ResultRecordOut,
    ScoreRequest,
    ScoreResponse,
    SessionCreateRequest,
    SessionResponse,
    SubmissionResult,
)
from src.services.storage import (
    StorageError,
    extract_email_domain,
    get_analytics_by_custom_code,
    get_client_ip,
    get_results_by_custom_code,
    save_assessment_result,
    to_record_out,
)

router = APIRouter()
logger = logging.getLogger(__name__)

# --- In-Memory Session Storage ---
# session id -> {"session": AssessmentSession, "custom_code": str | None, "result": ScoreResponse | None}
# Lost on restart; sessions are short-lived.
assessment_sessions: Dict[str, Dict[str, Any]] = {}


@lru_cache()
def get_phrase_config() -> PhraseConfig:
    """Loaded once per process; the built-in fallback document is served if the file is unusable."""
    return load_phrase_config_or_fallback(get_settings().phrase_config_path)


def get_session_store() -> Dict[str, Dict[str, Any]]:
    return assessment_sessions


def _evict_sessions(store: Dict[str, Dict[str, Any]], limit: int) -> None:
    """Makes room for one more session. Completed sessions go first, then the oldest in-progress ones."""
    while store and len(store) >= limit:
        victim = next(
            (sid for sid, entry in store.items() if entry["session"].state == SessionState.COMPLETED),
            next(iter(store)),
        )
        logger.info(f"Evicting assessment session {victim} from the in-memory store")
        del store[victim]


def to_legacy_range(value: int) -> int:
    """Maps a 0-10 answer onto the 0-300 slider range older clients send and expect."""
    if value == 5:
        return 150
    if value < 5:
        return value * 10
    return 200 + (value - 6) * 10


def _raise_for_engine_error(e: ValueError) -> NoReturn:
    """Configuration errors become 500, bad responses (unknown question, duplicate answer) 422."""
    if isinstance(e, (InsufficientPhrasesError, InvalidDimensionError)):
        # The phrase document is broken, not the request
        logger.error(f"Assessment configuration error: {e}")
        raise HTTPException(status_code=500, detail=f"Assessment configuration error: {e}")
    logger.warning(f"Rejected assessment data: {e}")
    raise HTTPException(status_code=422, detail=str(e))


def _build_score_response(score: AssessmentScore, config: PhraseConfig) -> ScoreResponse:
    return ScoreResponse(
        score=score,
        interpretation=interpret_coordinates(score.coordinates, config),
        dimension_interpretations=interpret_dimensions(score),
    )


def _persist_result(
    db: Session,
    request: Request,
    score: AssessmentScore,
    interpretation: StyleInterpretation,
    custom_code: Optional[str] = None,
    assessment_id: Optional[str] = None,
    email: Optional[str] = None,
) -> Optional[int]:
    """Stores the final result. A storage failure is logged and the result is still returned to the caller."""
    record = ResultRecordCreate(
        **to_result_record(score, interpretation, custom_code),
        assessment_id=assessment_id,
        email_domain=extract_email_domain(email),
        user_agent=request.headers.get("user-agent"),
        ip_address=get_client_ip(request.headers) or (request.client.host if request.client else None),
    )
    try:
        return save_assessment_result(db, record).id
    except StorageError as e:
        logger.error(f"Result not persisted: {e}")
        return None


def _get_session_entry(store: Dict[str, Dict[str, Any]], session_id: str) -> Dict[str, Any]:
    entry = store.get(session_id)
    if entry is None:
        logger.warning(f"Session not found: {session_id}")
        raise HTTPException(status_code=404, detail=f"Session with ID '{session_id}' not found.")
    return entry


def _session_fields(entry: Dict[str, Any], include_questions: bool = False) -> Dict[str, Any]:
    session: AssessmentSession = entry["session"]
    return {
        "session_id": session.id,
        "state": session.state.value,
        "question_index": session.question_index,
        "total_questions": len(session.questions),
        "phase": session.phase,
        "progress": session.progress,
        "current_question": session.current_question,
        "questions": session.questions if include_questions else None,
        "result": entry.get("result"),
    }


# --- Configuration & Questions ---

@router.get("/config/summary", tags=["assessment"])
def get_config_summary(config: PhraseConfig = Depends(get_phrase_config)) -> Dict[str, Any]:
    """Metadata, categories, dimensions and settings of the loaded phrase document."""
    return summarize_config(config)


@router.get("/questions", response_model=QuestionsResponse, tags=["assessment"])
def get_questions(
    count: Optional[int] = Query(None, ge=1, description="Number of questions; defaults to the recommended count"),
    seed: Optional[str] = Query(None, description="Seed for a reproducible question set"),
    config: PhraseConfig = Depends(get_phrase_config),
):
    try:
        if seed is not None:
            questions = generate_seeded_questions(config, seed, count=count)
        else:
            questions = generate_questions(config, count=count)
    except ValueError as e:
        _raise_for_engine_error(e)

    strategy = PairingStrategy.DIMENSION_FOCUSED if uses_dimension_focus(config) else PairingStrategy.RANDOM
    return QuestionsResponse(questions=questions, total=len(questions), strategy=strategy.value)


# --- Stateless Scoring ---

@router.post("/assessment/score", response_model=ScoreResponse, tags=["assessment"])
def score(
    payload: ScoreRequest,
    request: Request,
    config: PhraseConfig = Depends(get_phrase_config),
    settings: AppSettings = Depends(get_settings),
    db: Session = Depends(get_db),
):
    """
    Scores a complete set of answers and interprets the resulting coordinates.
    Nothing is stored when scoring fails.
    """
    try:
        assessment_score = score_assessment(payload.questions, payload.responses, config)
    except ValueError as e:
        _raise_for_engine_error(e)

    result = _build_score_response(assessment_score, config)
    if settings.persist_results:
        result_id = _persist_result(
            db, request, assessment_score, result.interpretation,
            custom_code=payload.custom_code, assessment_id=payload.assessment_id, email=payload.email,
        )
        result = result.model_copy(update={"result_id": result_id})

    logger.info(f"Scored assessment: {result.interpretation.position.value} ({result.interpretation.style})")
    return result


@router.post("/assessment/interpret", response_model=StyleInterpretation, tags=["assessment"])
def interpret(payload: InterpretRequest, config: PhraseConfig = Depends(get_phrase_config)):
    coordinates = Coordinates(x=payload.x, y=payload.y)
    return interpret_coordinates(coordinates, config, neutral_threshold=payload.neutral_threshold)


# --- Sessions ---

@router.post(
    "/sessions",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["sessions"],
)
def create_session(
    payload: SessionCreateRequest,
    config: PhraseConfig = Depends(get_phrase_config),
    store: Dict[str, Dict[str, Any]] = Depends(get_session_store),
    settings: AppSettings = Depends(get_settings),
):
    """Generates a fresh question set and starts a session on it."""
    try:
        if payload.seed is not None:
            questions = generate_seeded_questions(config, payload.seed, count=payload.count)
        else:
            questions = generate_questions(config, count=payload.count)
    except ValueError as e:
        _raise_for_engine_error(e)

    session = AssessmentSession(questions, config)
    session.start()
    _evict_sessions(store, max(settings.max_sessions, 1))
    entry = {"session": session, "custom_code": payload.custom_code, "result": None}
    store[session.id] = entry
    return SessionResponse(**_session_fields(entry, include_questions=True))


@router.get("/sessions/{session_id}", response_model=SessionResponse, tags=["sessions"])
def get_session(session_id: str, store: Dict[str, Dict[str, Any]] = Depends(get_session_store)):
    entry = _get_session_entry(store, session_id)
    return SessionResponse(**_session_fields(entry))


@router.post(
    "/sessions/{session_id}/responses",
    response_model=SubmissionResult,
    tags=["sessions"],
)
def submit_session_response(
    session_id: str,
    submission: ResponseSubmission,
    request: Request,
    store: Dict[str, Dict[str, Any]] = Depends(get_session_store),
    settings: AppSettings = Depends(get_settings),
    db: Session = Depends(get_db),
):
    """
    Records the answer to the session's current question.
    The answer to the last question completes the session; the response then carries the result.
    """
    entry = _get_session_entry(store, session_id)
    session: AssessmentSession = entry["session"]
    try:
        assessment_score = session.submit_response(submission.value)
    except SessionStateError as e:
        logger.warning(f"Rejected submission: {e}")
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        _raise_for_engine_error(e)

    if assessment_score is not None:
        result = _build_score_response(assessment_score, session.config)
        if settings.persist_results:
            result_id = _persist_result(
                db, request, assessment_score, result.interpretation,
                custom_code=entry["custom_code"], assessment_id=session.id,
            )
            result = result.model_copy(update={"result_id": result_id})
        entry["result"] = result

    return SubmissionResult(
        **_session_fields(entry),
        submitted_value=submission.value,
        legacy_value=to_legacy_range(submission.value),
    )


# --- Stored Results ---

@router.post(
    "/results",
    response_model=ResultRecordOut,
    status_code=status.HTTP_201_CREATED,
    tags=["results"],
)
def save_result(record: ResultRecordCreate, request: Request, db: Session = Depends(get_db)):
    if record.user_agent is None or record.ip_address is None:
        record = record.model_copy(update={
            "user_agent": record.user_agent or request.headers.get("user-agent"),
            "ip_address": record.ip_address or get_client_ip(request.headers),
        })
    try:
        row = save_assessment_result(db, record)
    except StorageError as e:
        raise HTTPException(status_code=503, detail=f"Database error: {e}")
    return to_record_out(row)


@router.get("/results", response_model=List[ResultRecordOut], tags=["results"])
def list_results(
    custom_code: str = Query(..., alias="customCode", min_length=1),
    assessment_id: Optional[str] = Query(None, alias="assessmentId"),
    db: Session = Depends(get_db),
):
    try:
        rows = get_results_by_custom_code(db, custom_code, assessment_id=assessment_id)
    except StorageError as e:
        raise HTTPException(status_code=503, detail=f"Database error: {e}")
    return [to_record_out(row) for row in rows]


@router.get("/results/analytics", response_model=AnalyticsSummary, tags=["results"])
def results_analytics(
    custom_code: str = Query(..., alias="customCode", min_length=1),
    db: Session = Depends(get_db),
):
    try:
        summary = get_analytics_by_custom_code(db, custom_code)
    except StorageError as e:
        raise HTTPException(status_code=503, detail=f"Database error: {e}")
    return AnalyticsSummary(**summary)
