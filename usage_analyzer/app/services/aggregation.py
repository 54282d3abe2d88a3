"""Group usage rows and sum their minutes and cost."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Iterable

from .usage_csv import UsageRow


@dataclass
class Bucket:
    label_name: str
    key: str
    minutes: int = 0
    cost: Decimal = field(default_factory=Decimal)
    repositories: list[str] = field(default_factory=list)

    def add(self, row: UsageRow) -> None:
        self.minutes += row.amount
        self.cost += row.amount * row.unit_price_dollar
        self.repositories.append(row.repository)

    def unique_repositories(self) -> list[str]:
        return list(dict.fromkeys(self.repositories))


def group_and_sum(
    rows: Iterable[UsageRow],
    key_fn: Callable[[UsageRow], str],
    label_name: str,
) -> dict[str, Bucket]:
    """Fold ``rows`` into one bucket per distinct ``key_fn(row)``.

    Buckets are ordered by the first row carrying their key.
    """
    buckets: dict[str, Bucket] = {}
    for row in rows:
        key = key_fn(row)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = Bucket(label_name=label_name, key=key)
        bucket.add(row)
    return buckets
