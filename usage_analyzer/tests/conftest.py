import csv
import io
import os
from typing import Callable

import pytest
from fastapi.testclient import TestClient

# Set environment BEFORE any app import
os.environ.setdefault("APP_ENV", "dev")
os.environ.setdefault("AUA_TRUSTED_HOSTS", "localhost,testserver")
os.environ.setdefault("AUA_SETTINGS_FILE", "/non/existent/analyzer.toml")

HEADER = [
    "Date",
    "Product",
    "SKU",
    "Quantity",
    "Unit Type",
    "Price Per Unit ($)",
    "Multiplier",
    "Owner",
    "Repository Slug",
    "Username",
    "Actions Workflow",
    "Notes",
]


def usage_line(
    date: str = "2024-01-01",
    quantity: str = "10",
    price: str = "0.008",
    username: str = "alice",
    repository: str = "r1",
    workflow: str = "ci",
    product: str = "Actions",
    unit_type: str = "minute",
    sku: str = "Compute - UBUNTU",
    multiplier: str = "1.0",
    owner: str = "acme",
) -> list[str]:
    return [date, product, sku, quantity, unit_type, price, multiplier, owner, repository, username, workflow, ""]


def render_csv(lines: list[list[str]], header: list[str] | None = None) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(HEADER if header is None else header)
    writer.writerows(lines)
    return buffer.getvalue()


@pytest.fixture
def make_csv() -> Callable[..., str]:
    return render_csv


@pytest.fixture
def line() -> Callable[..., list[str]]:
    return usage_line


@pytest.fixture
def example_csv() -> str:
    return render_csv(
        [
            usage_line(quantity="10", username="alice", repository="r1"),
            usage_line(quantity="5", username="bob", repository="r2"),
        ]
    )


@pytest.fixture
def client() -> TestClient:
    from usage_analyzer.main import app

    return TestClient(app, raise_server_exceptions=False)
