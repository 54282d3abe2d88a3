from __future__ import annotations

from pydantic import BaseModel, Field

from ..services.report import UsageReport


class DateRange(BaseModel):
    start: str
    end: str


class AnalysisResponse(BaseModel):
    status: str
    row_count: int = 0
    period: DateRange | None = None
    # table name -> group key -> column -> value
    tables: dict[str, dict[str, dict[str, int | str]]] = Field(default_factory=dict)

    @classmethod
    def from_report(cls, report: UsageReport) -> AnalysisResponse:
        date_range = report.date_range
        return cls(
            status="ok",
            row_count=report.row_count,
            period=DateRange(start=date_range[0], end=date_range[1]) if date_range else None,
            tables=report.tables,
        )
