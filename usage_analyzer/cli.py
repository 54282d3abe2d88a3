import json
from pathlib import Path

import typer

from usage_analyzer.app.core.errors import UsageReportError
from usage_analyzer.app.schemas.report import AnalysisResponse
from usage_analyzer.app.services.report import build_report

app = typer.Typer(help="Summarize GitHub Actions minutes and cost from usage-billing exports.")


@app.command("analyze")
def analyze(
    report_file: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        help="Path to the usage report CSV downloaded from GitHub billing.",
    ),
    as_json: bool = typer.Option(
        False,
        "--json/--text",
        help="Print the report as a JSON document instead of plain tables.",
    ),
) -> None:
    """Print per-day, per-user, per-workflow and per-repository totals."""
    try:
        with report_file.open("r", encoding="utf-8-sig", newline="") as handle:
            report = build_report(handle)
    except UsageReportError as exc:
        typer.echo(exc.message, err=True)
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(AnalysisResponse.from_report(report).model_dump(), indent=2))
        return

    if report.date_range:
        typer.echo(f"{report.date_range[0]} to {report.date_range[1]}")
    for name, table in report.tables.items():
        typer.echo(f"\n{name}")
        for record in table.values():
            typer.echo("  " + " | ".join(f"{column}: {value}" for column, value in record.items()))


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind."),
    port: int = typer.Option(8000, "--port", min=1, max=65535, help="Port to listen on."),
) -> None:
    """Run the upload API."""
    import uvicorn

    uvicorn.run("usage_analyzer.main:app", host=host, port=port)  # pragma: no cover


def main() -> None:
    """Entry point for the ``usage-analyzer`` script."""
    app()  # pragma: no cover


if __name__ == "__main__":
    main()  # pragma: no cover
