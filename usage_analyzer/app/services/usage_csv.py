"""Parse GitHub usage-billing CSV exports into Actions usage rows.

The export carries one line per metered charge across all GitHub products.
Columns are located by header label rather than position, so exports with
reordered or additional columns parse the same way.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Iterable, Iterator

from ..core.errors import DataIntegrityError, MalformedInputError

ACTIONS_PRODUCT = "Actions"
SUPPORTED_UNIT_TYPE = "minute"

# Header label in the export -> UsageRow field name.
FIELD_MAPPING = MappingProxyType(
    {
        "Date": "date",
        "Product": "product",
        "SKU": "product_type",
        "Quantity": "amount",
        "Unit Type": "unit_type",
        "Price Per Unit ($)": "unit_price_dollar",
        "Multiplier": "unit_price_multiplier",
        "Owner": "owner",
        "Repository Slug": "repository",
        "Username": "username",
        "Actions Workflow": "workflow",
    }
)

_INTEGER_FIELDS = frozenset({"amount"})
_DECIMAL_FIELDS = frozenset({"unit_price_dollar", "unit_price_multiplier"})


@dataclass(frozen=True)
class UsageRow:
    date: str
    product: str
    product_type: str
    amount: int
    unit_type: str
    unit_price_dollar: Decimal
    unit_price_multiplier: Decimal
    owner: str
    repository: str
    username: str
    workflow: str


def _parse_decimal(raw: str, *, label: str, line: int) -> Decimal:
    cleaned = raw.strip()
    if not cleaned:
        return Decimal(0)
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        value = None
    if value is None or not value.is_finite():
        raise MalformedInputError(
            f"Malformed CSV file, invalid {label} value {raw!r} on line {line}"
        )
    return value


def _coerce(field: str, raw: str, *, label: str, line: int) -> object:
    if field in _INTEGER_FIELDS:
        # Truncates toward zero like an integer cast of "10.0" would.
        return int(_parse_decimal(raw, label=label, line=line))
    if field in _DECIMAL_FIELDS:
        return _parse_decimal(raw, label=label, line=line)
    return raw


def build_header_lookup(header: list[str]) -> dict[str, int]:
    """Map every required header label to its column index.

    Raises:
        MalformedInputError: If any required label is absent.
    """
    lookup: dict[str, int] = {}
    for index, label in enumerate(header):
        lookup[label] = index

    missing = [label for label in FIELD_MAPPING if label not in lookup]
    if missing:
        raise MalformedInputError(
            "Malformed CSV file, missing header fields: " + ", ".join(missing)
        )
    return {label: lookup[label] for label in FIELD_MAPPING}


def iter_usage_rows(lines: Iterable[str]) -> Iterator[UsageRow]:
    """Yield Actions usage rows from CSV text in input order.

    Lines for other products and blank lines are skipped.

    Raises:
        MalformedInputError: Missing header labels, short lines, bad numbers
            or undecodable text.
        DataIntegrityError: A row is billed in a unit other than minutes.
    """
    reader = csv.reader(lines)
    try:
        header = next(reader, [])
        if header:
            header[0] = header[0].removeprefix("\ufeff")
        lookup = build_header_lookup(header)
        required_width = max(lookup.values()) + 1
        product_index = lookup["Product"]

        for data in reader:
            if len(data) <= product_index or data[product_index] != ACTIONS_PRODUCT:
                continue
            if len(data) < required_width:
                raise MalformedInputError(
                    f"Malformed CSV file, line {reader.line_num} has {len(data)} "
                    f"columns but at least {required_width} are required"
                )

            values = {
                field: _coerce(field, data[lookup[label]], label=label, line=reader.line_num)
                for label, field in FIELD_MAPPING.items()
            }
            if values["unit_type"] != SUPPORTED_UNIT_TYPE:
                raise DataIntegrityError(f"Unexpected unit type '{values['unit_type']}'")
            yield UsageRow(**values)
    except UnicodeDecodeError as exc:
        raise MalformedInputError("Malformed CSV file, the upload is not valid UTF-8 text") from exc
    except csv.Error as exc:
        raise MalformedInputError(f"Malformed CSV file, {exc}") from exc


def parse_usage_rows(lines: Iterable[str]) -> list[UsageRow]:
    return list(iter_usage_rows(lines))
