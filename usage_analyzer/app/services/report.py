"""Assemble the per-day, per-user, per-workflow and per-repository tables."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from operator import attrgetter
from typing import Callable, Iterable

from .aggregation import Bucket, group_and_sum
from .precision import pad_cost, price_decimal_places
from .usage_csv import UsageRow, parse_usage_rows

logger = logging.getLogger(__name__)

MINUTES_COLUMN = "Minutes"
COST_COLUMN = "Cost ($)"
REPOSITORIES_COLUMN = "Repositories"

PER_DAY = "Per Day"
PER_USER = "Per User"
PER_WORKFLOW = "Per Workflow"
PER_REPOSITORY = "Per Repository"

Record = dict[str, str | int]
ReportTable = dict[str, Record]


@dataclass(frozen=True)
class Grouping:
    table: str
    label_name: str
    key_fn: Callable[[UsageRow], str]
    include_repositories: bool = True


GROUPINGS: tuple[Grouping, ...] = (
    Grouping(PER_DAY, "Day", attrgetter("date")),
    Grouping(PER_USER, "Username", attrgetter("username")),
    Grouping(PER_WORKFLOW, "Workflow", attrgetter("workflow")),
    # The key already names the repository.
    Grouping(PER_REPOSITORY, "Repository", attrgetter("repository"), include_repositories=False),
)


@dataclass(frozen=True)
class UsageReport:
    tables: dict[str, ReportTable]
    row_count: int

    @property
    def date_range(self) -> tuple[str, str] | None:
        """First and last day in the order they appear in the export."""
        days = list(self.tables.get(PER_DAY, {}))
        if not days:
            return None
        return days[0], days[-1]


def finalize_bucket(bucket: Bucket, places: int, *, include_repositories: bool) -> Record:
    record: Record = {
        bucket.label_name: bucket.key,
        MINUTES_COLUMN: bucket.minutes,
        COST_COLUMN: pad_cost(bucket.cost, places),
    }
    if include_repositories:
        record[REPOSITORIES_COLUMN] = ", ".join(bucket.unique_repositories())
    return record


def assemble_report(rows: list[UsageRow]) -> UsageReport:
    places = price_decimal_places(rows)
    tables: dict[str, ReportTable] = {}
    for grouping in GROUPINGS:
        buckets = group_and_sum(rows, grouping.key_fn, grouping.label_name)
        tables[grouping.table] = {
            key: finalize_bucket(bucket, places, include_repositories=grouping.include_repositories)
            for key, bucket in buckets.items()
        }
    return UsageReport(tables=tables, row_count=len(rows))


def build_report(lines: Iterable[str]) -> UsageReport:
    """Parse CSV text and summarize its Actions usage.

    Raises:
        MalformedInputError: The document cannot be parsed.
        DataIntegrityError: A row uses an unsupported unit type.
    """
    report = assemble_report(parse_usage_rows(lines))
    logger.info(
        "Built Actions usage report",
        extra={
            "data": {
                "rows": report.row_count,
                **{name: len(table) for name, table in report.tables.items()},
            }
        },
    )
    return report
