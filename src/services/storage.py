import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.db.models import AssessmentResult
from src.schemas.assessment import ResultRecordCreate, ResultRecordOut

logger = logging.getLogger(__name__)

_EMAIL_DOMAIN_RE = re.compile(r"@(.+)$")


class StorageError(Exception):
    """Persistence failed; wraps the underlying SQLAlchemy error."""
    pass


def to_record_out(row: AssessmentResult) -> ResultRecordOut:
    return ResultRecordOut(
        id=row.id,
        x=row.x_coordinate,
        y=row.y_coordinate,
        style_name=row.style_name,
        custom_code=row.custom_code,
        assessment_id=row.assessment_id,
        email_domain=row.email_domain,
        completed_at=row.completed_at,
        created_at=row.created_at,
    )


def save_assessment_result(db: Session, record: ResultRecordCreate) -> AssessmentResult:
    """Stores one final result. Only the coordinates and style are kept, never the answers."""
    row = AssessmentResult(
        x_coordinate=record.x,
        y_coordinate=record.y,
        style_name=record.style_name,
        custom_code=record.custom_code,
        assessment_id=record.assessment_id,
        email_domain=record.email_domain,
        user_agent=record.user_agent,
        ip_address=record.ip_address,
        completed_at=record.completed_at or datetime.now(timezone.utc),
    )
    try:
        db.add(row)
        db.commit()
        db.refresh(row)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error saving assessment result: {e}")
        raise StorageError(f"Could not save assessment result: {e}") from e

    logger.info(f"Stored assessment result {row.id} (style: {row.style_name}, code: {row.custom_code})")
    return row


def get_results_by_custom_code(
    db: Session, custom_code: str, assessment_id: Optional[str] = None
) -> List[AssessmentResult]:
    """Results sharing a correlating code, newest first; optionally narrowed to one assessment."""
    query = select(AssessmentResult).where(AssessmentResult.custom_code == custom_code)
    if assessment_id is not None:
        query = query.where(AssessmentResult.assessment_id == assessment_id)
    query = query.order_by(AssessmentResult.completed_at.desc())
    try:
        return list(db.scalars(query).all())
    except SQLAlchemyError as e:
        logger.error(f"Database error fetching results for code '{custom_code}': {e}")
        raise StorageError(f"Could not fetch results: {e}") from e


def get_analytics_by_custom_code(db: Session, custom_code: str) -> Dict[str, Any]:
    query = select(
        func.count(AssessmentResult.id),
        func.avg(AssessmentResult.x_coordinate),
        func.avg(AssessmentResult.y_coordinate),
        func.min(AssessmentResult.completed_at),
        func.max(AssessmentResult.completed_at),
    ).where(AssessmentResult.custom_code == custom_code)
    try:
        total, avg_x, avg_y, first, last = db.execute(query).one()
    except SQLAlchemyError as e:
        logger.error(f"Database error fetching analytics for code '{custom_code}': {e}")
        raise StorageError(f"Could not fetch analytics: {e}") from e

    return {
        "custom_code": custom_code,
        "total_assessments": total or 0,
        "avg_x": float(avg_x) if avg_x is not None else None,
        "avg_y": float(avg_y) if avg_y is not None else None,
        "first_assessment": first,
        "last_assessment": last,
    }


def check_connection(db: Session) -> bool:
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database connection test failed: {e}")
        return False


def extract_email_domain(email: Optional[str]) -> Optional[str]:
    """'Someone@Example.com' -> 'example.com'; None when there is no domain part."""
    if not email or not isinstance(email, str):
        return None
    match = _EMAIL_DOMAIN_RE.search(email)
    return match.group(1).lower() if match else None


def get_client_ip(headers: Mapping[str, str]) -> Optional[str]:
    """Client address from proxy headers, first hop wins."""
    forwarded_for = headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip

    vercel_forwarded_for = headers.get("x-vercel-forwarded-for")
    if vercel_forwarded_for:
        return vercel_forwarded_for.split(",")[0].strip()

    return None
