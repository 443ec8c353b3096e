"""CLI for SeriesForge."""

import io
import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from seriesforge.cli.logger import configure_logging
from seriesforge.config import get_settings
from seriesforge.exceptions import PlanExecutionError, SeriesForgeError
from seriesforge.models.report import ReportDefinition, Strategy
from seriesforge.models.results import Results
from seriesforge.parser.loader import ReportRegistry
from seriesforge.planner.query_manager import get_query_manager
from seriesforge.runner import ReportRunner
from seriesforge.transport import DuckDBReportBackend, HttpReportClient, ReportTransport

app = typer.Typer(
    name="sf",
    help="SeriesForge - per-day report series from a rate-limited reporting API",
    no_args_is_help=True,
)
console = Console()

ReportsDir = Annotated[Path, typer.Option("--dir", "-d", help="Reports directory")]


def get_registry(reports_dir: Path) -> ReportRegistry:
    registry = ReportRegistry()
    registry.load_directory(reports_dir)
    return registry


def _load_report(reports_dir: Path, name: str) -> ReportDefinition:
    try:
        return get_registry(reports_dir).get_report(name)
    except KeyError as e:
        console.print(f"[red]{e.args[0]}[/red]")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[red]Error loading reports: {e}[/red]")
        raise typer.Exit(1)


@app.command("list")
def list_reports(reports_dir: ReportsDir = Path("./reports")) -> None:
    """List report definitions."""
    try:
        registry = get_registry(reports_dir)
    except Exception as e:
        console.print(f"[red]Error loading reports: {e}[/red]")
        raise typer.Exit(1)

    reports = registry.list_reports()
    if not reports:
        console.print("[yellow]No reports defined[/yellow]")
        return

    table = Table(title="Reports")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Metric", style="green")
    table.add_column("Dimension", style="yellow")
    table.add_column("Dates")
    table.add_column("Strategy")
    table.add_column("Description")

    for report in reports:
        table.add_row(
            report.name,
            report.metric,
            report.dimension,
            f"{report.start_date} - {report.end_date}",
            report.strategy.value,
            report.description or "-",
        )

    console.print(table)


@app.command()
def validate(reports_dir: ReportsDir = Path("./reports")) -> None:
    """Validate all report definitions."""
    try:
        registry = get_registry(reports_dir)
    except Exception as e:
        console.print("[red]Validation failed:[/red]")
        console.print(f"  - {e}")
        raise typer.Exit(1)

    console.print(f"[green]Validated {len(registry.reports)} reports successfully![/green]")


@app.command()
def plan(
    name: Annotated[str, typer.Argument(help="Report name")],
    values: Annotated[
        str, typer.Option("--values", help="Comma-separated dimension values to plan for")
    ],
    reports_dir: ReportsDir = Path("./reports"),
    strategy: Annotated[
        Strategy | None, typer.Option("--strategy", help="Override the report's strategy")
    ] = None,
) -> None:
    """Show the follow-up queries a run would send, without sending any."""
    report = _load_report(reports_dir, name)
    settings = get_settings()
    value_list = [v.strip() for v in values.split(",") if v.strip()]

    manager = get_query_manager(
        strategy or report.strategy,
        max_results=settings.max_results_per_request,
        max_query_len=settings.max_url_length,
        date_dimension=settings.date_dimension,
    )
    try:
        queries = manager.plan_queries(report.to_query(settings.api_base_url), value_list)
    except ValueError as e:
        console.print(f"[red]Planning error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"{len(queries)} queries for {len(value_list)} values")
    table = Table(title=f"Plan for {name}")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Filters")
    table.add_column("URL length", justify="right")

    for i, query in enumerate(queries):
        url_length = len(query.encoded_url())
        style = "red" if url_length > settings.max_url_length else "green"
        table.add_row(str(i + 1), query.filters or "-", f"[{style}]{url_length}[/{style}]")

    console.print(table)


@app.command()
def run(
    name: Annotated[str, typer.Argument(help="Report name")],
    reports_dir: ReportsDir = Path("./reports"),
    db_path: Annotated[str | None, typer.Option("--db", help="DuckDB database path")] = None,
    csv_path: Annotated[
        Path | None, typer.Option("--csv", help="CSV file to serve the report from")
    ] = None,
    table_name: Annotated[str, typer.Option("--table", help="Table to read")] = "sessions",
    api_url: Annotated[str | None, typer.Option("--api-url", help="Reporting API base url")] = None,
    strategy: Annotated[
        Strategy | None, typer.Option("--strategy", help="Override the report's strategy")
    ] = None,
    output: Annotated[
        str, typer.Option("--output", "-o", help="Output format: table, csv, json")
    ] = "table",
    out_file: Annotated[Path | None, typer.Option("--out", help="Write output to a file")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Run a report and print the per-day table."""
    if output not in ("table", "csv", "json"):
        console.print(f"[red]Unknown output format: {output}. Use: table, csv, json[/red]")
        raise typer.Exit(1)
    if output == "table" and out_file:
        console.print("[red]--out needs --output csv or json[/red]")
        raise typer.Exit(1)

    settings = get_settings()
    configure_logging(verbose, settings.log_level)
    report = _load_report(reports_dir, name)

    transport = _make_transport(db_path, csv_path, table_name, api_url)
    runner = ReportRunner(transport, strategy or report.strategy, settings)

    try:
        results = runner.run(report.to_query(api_url or settings.api_base_url))
    except PlanExecutionError as e:
        console.print(f"[red]{e}: {e.__cause__}[/red]")
        raise typer.Exit(1)
    except (SeriesForgeError, ValueError) as e:
        console.print(f"[red]Run error: {e}[/red]")
        raise typer.Exit(1)
    finally:
        transport.close()

    _output_results(results, output, out_file)


def _make_transport(
    db_path: str | None, csv_path: Path | None, table_name: str, api_url: str | None
) -> ReportTransport:
    settings = get_settings()
    if db_path or csv_path:
        if api_url:
            console.print("[red]Use either --api-url or --db/--csv, not both[/red]")
            raise typer.Exit(1)
        backend = DuckDBReportBackend(
            table_name, database_path=db_path, date_dimension=settings.date_dimension
        )
        if csv_path:
            backend.load_csv(csv_path)
        return backend
    return HttpReportClient(token=settings.api_token, timeout=settings.request_timeout)


def _output_results(results: Results, output_format: str, out_file: Path | None) -> None:
    """Print (or save) the results in the requested format."""
    if output_format == "csv":
        buf = io.StringIO()
        results.output_delimited(buf)
        text = buf.getvalue()
    elif output_format == "json":
        payload = {
            "dimension": results.dimension_name,
            "dates": results.column_dates,
            "sampled": results.is_sampled,
            "rows": results.to_records(),
        }
        text = json.dumps(payload, indent=2, default=str) + "\n"
    else:
        _print_table(results)
        return

    if out_file:
        out_file.write_text(text)
        console.print(f"[green]Wrote {len(results.rows)} rows to {out_file}[/green]")
    else:
        typer.echo(text, nl=False)


def _print_table(results: Results) -> None:
    title = f"{results.dimension_name} ({len(results.rows)} rows, {results.num_cols} days)"
    table = Table(title=title)
    table.add_column(results.dimension_name or "dimension", style="cyan")
    for day in results.column_dates:
        table.add_column(day[5:], justify="right")  # MM-DD keeps it narrow
    table.add_column("Total", style="green", justify="right")

    for i, (label, row) in enumerate(zip(results.row_labels, results.rows)):
        table.add_row(label, *(f"{v:g}" for v in row), f"{results.row_total(i):g}")

    console.print(table)
    if results.is_sampled:
        console.print("[yellow]These results are based on sampled data[/yellow]")


if __name__ == "__main__":
    app()
