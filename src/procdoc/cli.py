"""CLI interface for procdoc using Typer framework."""

import json as jsonlib
import logging
from pathlib import Path
from typing import Annotated, List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from procdoc import __description__, __version__
from procdoc.config import LogLevel, ProcdocConfig, load_config
from procdoc.exceptions import ConfigurationError, ParsingException
from procdoc.models.validation import ErrorSeverity, SchemaValidationResult
from procdoc.parser.process import ProcessParser
from procdoc.validation.batch import BatchValidator, FileValidationResult
from procdoc.validation.report import ValidationReportExporter
from procdoc.validation.service import ValidationService

app = typer.Typer(
    name="procdoc",
    help=__description__,
    add_completion=False,
    rich_markup_mode="rich"
)

console = Console()

_LOG_LEVELS = {
    LogLevel.ERROR.value: logging.ERROR,
    LogLevel.WARN.value: logging.WARNING,
    LogLevel.INFO.value: logging.INFO,
    LogLevel.DEBUG.value: logging.DEBUG,
}

_SEVERITY_COLORS = {
    ErrorSeverity.FATAL: "bold red",
    ErrorSeverity.ERROR: "red",
    ErrorSeverity.WARNING: "yellow",
    ErrorSeverity.INFO: "green",
}


def version_callback(value: bool) -> None:
    """Show version information and exit."""
    if value:
        console.print(f"procdoc version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option("--version", "-v", callback=version_callback, help="Show version and exit")
    ] = False,
) -> None:
    """procdoc - Validate and parse integration process definitions."""


def _load_settings(config: Path | None) -> ProcdocConfig:
    """Load configuration and apply its logging level."""
    try:
        settings = load_config(config)
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    logging.basicConfig(
        level=_LOG_LEVELS.get(settings.logging.level, logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
    )
    return settings


@app.command()
def validate(
    files: Annotated[
        List[Path],
        typer.Argument(help="Process-definition XML files to validate")
    ],
    json: Annotated[
        bool,
        typer.Option("--json", help="Emit results as JSON instead of tables")
    ] = False,
    no_cache: Annotated[
        bool,
        typer.Option("--no-cache", help="Bypass the validation cache")
    ] = False,
    report_dir: Annotated[
        Optional[Path],
        typer.Option("--report-dir", help="Also write text, Markdown, HTML and JSON reports here")
    ] = None,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Configuration file path (default: search for .procdoc.json)")
    ] = None,
) -> None:
    """Validate one or more process-definition files."""
    settings = _load_settings(config)
    if no_cache:
        settings = settings.model_copy(
            update={"validation": settings.validation.model_copy(update={"cache_enabled": False})}
        )

    batch = BatchValidator(ValidationService(settings)).validate_batch(files)

    if report_dir is not None:
        exporter = ValidationReportExporter(report_dir)
        for item in batch.results:
            if item.result is not None:
                exporter.export_all(item.result, name=item.file.stem)

    if json:
        payload = [_file_payload(item) for item in batch.results]
        typer.echo(jsonlib.dumps(payload, indent=2))
    else:
        for item in batch.results:
            _render_file(item)
        console.print(
            f"\n[blue]Summary:[/blue] {batch.success_count} valid, "
            f"{batch.failure_count} invalid ({batch.total_duration_ms:.0f} ms)"
        )

    raise typer.Exit(batch.exit_code)


@app.command()
def parse(
    file: Annotated[
        Path,
        typer.Argument(help="Process-definition XML file to parse")
    ],
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Configuration file path (default: search for .procdoc.json)")
    ] = None,
) -> None:
    """Parse a process-definition file and print the model as JSON."""
    settings = _load_settings(config)
    try:
        metadata = ProcessParser(settings).parse(file)
    except ParsingException as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    typer.echo(metadata.model_dump_json(indent=2, by_alias=True))


def _file_payload(item: FileValidationResult) -> dict:
    if item.result is not None:
        return item.result.to_dict()
    return {"filePath": str(item.file), "valid": False, "error": item.error}


def _render_file(item: FileValidationResult) -> None:
    result = item.result
    if result is None:
        console.print(f"[red]{escape(str(item.file))}: failed[/red] {escape(item.error or '')}")
        return

    status = "[green]VALID[/green]" if result.valid else "[red]INVALID[/red]"
    console.print(
        f"\n{status} {escape(str(item.file))} "
        f"[dim]({result.error_count} errors, {result.warning_count} warnings, "
        f"{item.duration_ms:.1f} ms)[/dim]"
    )
    if result.has_errors or result.has_warnings:
        console.print(_issues_table(result))


def _issues_table(result: SchemaValidationResult) -> Table:
    table = Table()
    table.add_column("Severity", style="white", no_wrap=True)
    table.add_column("Code", style="cyan", no_wrap=True)
    table.add_column("Message", style="white")
    table.add_column("Location", style="dim")

    for error in result.errors:
        color = _SEVERITY_COLORS[error.severity]
        location = error.xpath or ""
        if error.line_number is not None:
            location += f" line {error.line_number}"
        message = error.message
        if error.suggestion:
            message += f" ({error.suggestion})"
        table.add_row(
            f"[{color}]{error.severity.value}[/{color}]",
            error.code,
            escape(message),
            escape(location.strip()),
        )

    for warning in result.warnings:
        location = warning.xpath or ""
        if warning.line_number is not None:
            location += f" line {warning.line_number}"
        message = warning.message
        if warning.recommendation:
            message += f" ({warning.recommendation})"
        table.add_row("[yellow]WARNING[/yellow]", warning.code, escape(message), escape(location.strip()))

    return table


if __name__ == "__main__":
    app()
