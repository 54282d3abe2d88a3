from __future__ import annotations

from decimal import Decimal
from operator import attrgetter

from usage_analyzer.app.services.aggregation import Bucket, group_and_sum
from usage_analyzer.app.services.usage_csv import UsageRow


def _row(**overrides) -> UsageRow:
    values = dict(
        date="2024-01-01",
        product="Actions",
        product_type="Compute - UBUNTU",
        amount=10,
        unit_type="minute",
        unit_price_dollar=Decimal("0.008"),
        unit_price_multiplier=Decimal("1.0"),
        owner="acme",
        repository="r1",
        username="alice",
        workflow="ci",
    )
    values.update(overrides)
    return UsageRow(**values)


def test_group_and_sum_totals_minutes_and_cost() -> None:
    rows = [_row(), _row(amount=5, username="bob", repository="r2")]
    buckets = group_and_sum(rows, attrgetter("date"), "Day")

    assert list(buckets) == ["2024-01-01"]
    bucket = buckets["2024-01-01"]
    assert bucket.label_name == "Day"
    assert bucket.minutes == 15
    assert bucket.cost == Decimal("0.120")
    assert bucket.repositories == ["r1", "r2"]


def test_keys_follow_first_occurrence_order() -> None:
    rows = [_row(username="zoe"), _row(username="adam"), _row(username="zoe")]
    buckets = group_and_sum(rows, attrgetter("username"), "Username")
    assert list(buckets) == ["zoe", "adam"]
    assert buckets["zoe"].minutes == 20


def test_each_row_lands_in_one_bucket_per_grouping() -> None:
    rows = [
        _row(date="2024-01-01", workflow="ci"),
        _row(date="2024-01-02", workflow="ci"),
        _row(date="2024-01-02", workflow="deploy", amount=3),
    ]
    per_day = group_and_sum(rows, attrgetter("date"), "Day")
    per_workflow = group_and_sum(rows, attrgetter("workflow"), "Workflow")

    total = sum(row.amount for row in rows)
    assert sum(b.minutes for b in per_day.values()) == total
    assert sum(b.minutes for b in per_workflow.values()) == total
    assert per_workflow["deploy"].minutes == 3


def test_repositories_keep_duplicates_until_finalized() -> None:
    bucket = Bucket(label_name="Day", key="2024-01-01")
    for repository in ("r2", "r1", "r2"):
        bucket.add(_row(repository=repository))
    assert bucket.repositories == ["r2", "r1", "r2"]
    assert bucket.unique_repositories() == ["r2", "r1"]


def test_no_rows_no_buckets() -> None:
    assert group_and_sum([], attrgetter("date"), "Day") == {}
