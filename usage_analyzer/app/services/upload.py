"""Turn an uploaded usage export into an analysis outcome."""

from __future__ import annotations

import io
import os
from dataclasses import dataclass
from enum import StrEnum

from fastapi import UploadFile
from fastapi import status as http_status

from ..core.config import Settings, settings as default_settings
from ..core.errors import (
    NoInputError,
    UnsupportedFormatError,
    UploadTransportError,
    UsageReportError,
)
from .report import UsageReport, build_report


class AnalysisStatus(StrEnum):
    EMPTY = "empty"
    ERROR = "error"
    OK = "ok"


@dataclass(frozen=True)
class AnalysisOutcome:
    status: AnalysisStatus
    report: UsageReport | None = None
    message: str | None = None
    status_code: int = http_status.HTTP_200_OK

    @classmethod
    def empty(cls) -> AnalysisOutcome:
        return cls(status=AnalysisStatus.EMPTY)

    @classmethod
    def failed(cls, exc: UsageReportError) -> AnalysisOutcome:
        return cls(status=AnalysisStatus.ERROR, message=exc.message, status_code=exc.status_code)

    @classmethod
    def succeeded(cls, report: UsageReport) -> AnalysisOutcome:
        return cls(status=AnalysisStatus.OK, report=report)


def normalize_content_type(content_type: str) -> str:
    return content_type.split(";", 1)[0].strip().lower()


def validate_upload(upload: UploadFile | None, config: Settings) -> UploadFile:
    """Check upload metadata before any of its content is read.

    Raises:
        NoInputError: No file was supplied.
        UploadTransportError: Metadata is missing, or the file is empty or too large.
        UnsupportedFormatError: The declared content type is not CSV.
    """
    if upload is None:
        raise NoInputError("No usage report was uploaded.")

    if not upload.content_type:
        raise UploadTransportError("There was an error uploading the files.")

    allowed = {normalize_content_type(item) for item in config.allowed_content_types}
    if normalize_content_type(upload.content_type) not in allowed:
        raise UnsupportedFormatError("You must upload a file in the CSV format.")

    size = upload.size
    if size is None:
        try:
            upload.file.seek(0, os.SEEK_END)
            size = upload.file.tell()
        except (OSError, ValueError) as exc:
            raise UploadTransportError("Could not open uploaded file.") from exc

    if size == 0:
        raise UploadTransportError("The uploaded file is empty.")
    if size > config.max_upload_bytes:
        raise UploadTransportError(
            f"File too large; limit is {config.max_upload_mb}MB",
            status_code=413,
        )
    return upload


def read_upload_report(upload: UploadFile) -> UsageReport:
    try:
        upload.file.seek(0)
        handle = io.TextIOWrapper(upload.file, encoding="utf-8-sig", newline="")
    except (OSError, ValueError) as exc:
        raise UploadTransportError("Could not open uploaded file.") from exc

    with handle:
        return build_report(handle)


def analyze_upload(upload: UploadFile | None, config: Settings | None = None) -> AnalysisOutcome:
    """Analyze an optional upload.

    Recoverable problems become an error outcome. ``DataIntegrityError``
    propagates to the caller.
    """
    config = config or default_settings
    try:
        report = read_upload_report(validate_upload(upload, config))
    except NoInputError:
        return AnalysisOutcome.empty()
    except UsageReportError as exc:
        return AnalysisOutcome.failed(exc)
    return AnalysisOutcome.succeeded(report)
