"""Usage report upload endpoint."""

from __future__ import annotations

from fastapi import APIRouter, File, HTTPException, UploadFile

from ...core.config import settings
from ...schemas.report import AnalysisResponse
from ...services.upload import AnalysisStatus, analyze_upload

router = APIRouter()


@router.post("/analyze", response_model=AnalysisResponse)
def analyze_usage_report(usage_report: UploadFile | None = File(None)) -> AnalysisResponse:
    """Summarize an uploaded GitHub usage export.

    A request without a file is the idle state and returns ``status: empty``.
    """
    outcome = analyze_upload(usage_report, settings)
    if outcome.status == AnalysisStatus.EMPTY:
        return AnalysisResponse(status=outcome.status.value)
    if outcome.status == AnalysisStatus.ERROR:
        raise HTTPException(status_code=outcome.status_code, detail=outcome.message)
    return AnalysisResponse.from_report(outcome.report)
