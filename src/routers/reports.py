import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import Field

from services.style_engine.models import CamelModel

router = APIRouter()
logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ("en", "es")


class PdfReportRequest(CamelModel):
    result_id: str = Field(..., min_length=1)
    lang: str = "en"


class PdfReportDescriptor(CamelModel):
    success: bool = True
    pdf_url: str
    file_name: str
    generated_at: datetime


class PdfReportStatus(CamelModel):
    success: bool = True
    message: str
    result_id: str
    lang: str


def _check_language(lang: str) -> str:
    if lang not in SUPPORTED_LANGUAGES:
        raise HTTPException(status_code=400, detail=f"Unsupported language '{lang}'. Use one of {list(SUPPORTED_LANGUAGES)}.")
    return lang


# Placeholder: no PDF is rendered yet, only the descriptor a client would download from
@router.post("/reports/pdf", response_model=PdfReportDescriptor, tags=["reports"])
def request_pdf_report(payload: PdfReportRequest):
    lang = _check_language(payload.lang)
    logger.info(f"PDF report requested for result {payload.result_id} ({lang})")
    return PdfReportDescriptor(
        pdf_url=f"/api/v1/reports/pdf?resultId={payload.result_id}&lang={lang}",
        file_name=f"assessment-results-{payload.result_id}.pdf",
        generated_at=datetime.now(timezone.utc),
    )


@router.get("/reports/pdf", response_model=PdfReportStatus, tags=["reports"])
def get_pdf_report(
    result_id: Optional[str] = Query(None, alias="resultId"),
    lang: str = Query("en"),
):
    if not result_id:
        raise HTTPException(status_code=400, detail="Result ID is required")
    lang = _check_language(lang)
    return PdfReportStatus(
        message="PDF rendering is not available yet",
        result_id=result_id,
        lang=lang,
    )
