"""Human and machine readable reports for a single validation result."""

import html
import json
import logging
from datetime import datetime
from enum import Enum
from pathlib import Path

from ..models.validation import SchemaValidationResult

logger = logging.getLogger(__name__)

REPORT_FILE_PREFIX = "validation-report"


class ReportFormat(str, Enum):
    """Supported report formats."""
    TEXT = "text"
    MARKDOWN = "markdown"
    HTML = "html"
    JSON = "json"

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]


_EXTENSIONS = {
    ReportFormat.TEXT: "txt",
    ReportFormat.MARKDOWN: "md",
    ReportFormat.HTML: "html",
    ReportFormat.JSON: "json",
}


def generate_report(result: SchemaValidationResult, report_format: ReportFormat) -> str:
    """Render ``result`` in the requested format."""
    logger.debug(f"Generating {report_format.value} validation report")
    renderer = {
        ReportFormat.TEXT: generate_text_report,
        ReportFormat.MARKDOWN: generate_markdown_report,
        ReportFormat.HTML: generate_html_report,
        ReportFormat.JSON: generate_json_report,
    }[report_format]
    return renderer(result)


def _status(result: SchemaValidationResult) -> str:
    return "VALID" if result.valid else "INVALID"


def _location(xpath: str | None, line: int | None) -> str:
    parts = []
    if xpath:
        parts.append(xpath)
    if line is not None:
        parts.append(f"line {line}")
    return ", ".join(parts)


def _cell(text: str) -> str:
    """Escape pipes so text stays inside one Markdown table cell."""
    return text.replace("|", "\\|")


def generate_text_report(result: SchemaValidationResult) -> str:
    """Plain text report for terminals and log files."""
    lines = [
        "=== Validation Report ===",
        f"File: {result.file_path or '-'}",
        f"Status: {_status(result)}",
        f"Schema Version: {result.schema_version}",
        f"Errors: {result.error_count}",
        f"Warnings: {result.warning_count}",
    ]

    if result.has_errors:
        lines.extend(["", "Errors:"])
        for error in result.errors:
            lines.append(f"  - {error}")

    if result.has_warnings:
        lines.extend(["", "Warnings:"])
        for warning in result.warnings:
            lines.append(f"  - {warning}")

    if result.metrics:
        metrics = result.metrics
        lines.extend([
            "",
            "Metrics:",
            f"  Duration: {metrics.validation_duration_ms:.1f} ms",
            f"  File Size: {metrics.file_size_bytes} bytes",
            f"  Elements: {metrics.element_count}",
            f"  Attributes: {metrics.attribute_count}",
        ])

    return "\n".join(lines) + "\n"


def generate_markdown_report(result: SchemaValidationResult) -> str:
    """Markdown report suitable for documentation sites and pull requests."""
    lines = [
        "# Validation Report",
        "",
        f"**File**: `{result.file_path or '-'}`",
        f"**Status**: {_status(result)}",
        f"**Schema Version**: {result.schema_version}",
        "",
        "## Summary",
        "",
        f"- **Errors**: {result.error_count}",
        f"- **Warnings**: {result.warning_count}",
    ]

    if result.metrics:
        metrics = result.metrics
        lines.extend([
            f"- **Duration**: {metrics.validation_duration_ms:.1f} ms",
            f"- **File Size**: {metrics.file_size_bytes} bytes",
            f"- **Elements**: {metrics.element_count}",
            f"- **Attributes**: {metrics.attribute_count}",
        ])

    if result.has_errors:
        lines.extend([
            "",
            "## Errors",
            "",
            "| Severity | Code | Message | Location |",
            "|----------|------|---------|----------|",
        ])
        for error in result.errors:
            message = _cell(error.message)
            if error.suggestion:
                message += f" ({_cell(error.suggestion)})"
            lines.append(
                f"| {error.severity.value} | `{error.code}` | {message} | "
                f"{_location(error.xpath, error.line_number)} |"
            )

    if result.has_warnings:
        lines.extend([
            "",
            "## Warnings",
            "",
            "| Code | Message | Recommendation |",
            "|------|---------|----------------|",
        ])
        for warning in result.warnings:
            lines.append(
                f"| `{warning.code}` | {_cell(warning.message)} | "
                f"{_cell(warning.recommendation or '')} |"
            )

    return "\n".join(lines) + "\n"


def generate_html_report(result: SchemaValidationResult) -> str:
    """Standalone HTML page."""
    e = html.escape
    status_class = "valid" if result.valid else "invalid"
    lines = [
        "<!DOCTYPE html>",
        "<html>",
        "<head>",
        '<meta charset="utf-8">',
        "<title>Validation Report</title>",
        "</head>",
        "<body>",
        "<h1>Validation Report</h1>",
        f"<p>File: <code>{e(result.file_path or '-')}</code></p>",
        f'<p>Status: <strong class="{status_class}">{_status(result)}</strong></p>',
        f"<p>Errors: {result.error_count}, Warnings: {result.warning_count}</p>",
    ]

    if result.has_errors:
        lines.extend([
            "<h2>Errors</h2>",
            "<table>",
            "<tr><th>Severity</th><th>Code</th><th>Message</th><th>Location</th></tr>",
        ])
        for error in result.errors:
            lines.append(
                f"<tr><td>{error.severity.value}</td><td>{e(error.code)}</td>"
                f"<td>{e(error.message)}</td>"
                f"<td>{e(_location(error.xpath, error.line_number))}</td></tr>"
            )
        lines.append("</table>")

    if result.has_warnings:
        lines.extend(["<h2>Warnings</h2>", "<ul>"])
        for warning in result.warnings:
            lines.append(f"<li><code>{e(warning.code)}</code> {e(warning.message)}</li>")
        lines.append("</ul>")

    lines.extend(["</body>", "</html>"])
    return "\n".join(lines) + "\n"


def generate_json_report(result: SchemaValidationResult) -> str:
    return json.dumps(result.to_dict(), indent=2)


class ValidationReportExporter:
    """Writes validation reports into an output directory."""

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)

    def export(self, result: SchemaValidationResult, report_format: ReportFormat,
               name: str = REPORT_FILE_PREFIX) -> Path:
        """Write one report and return its path.

        Files are named ``<name>_<timestamp>.<extension>``.
        """
        logger.info(f"Exporting {report_format.value} validation report to: {self.output_dir}")
        self.output_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_file = self.output_dir / f"{name}_{timestamp}.{report_format.extension}"
        output_file.write_text(generate_report(result, report_format), encoding="utf-8")
        return output_file

    def export_all(self, result: SchemaValidationResult,
                   name: str = REPORT_FILE_PREFIX) -> list[Path]:
        """Write the report in every supported format."""
        logger.info("Exporting validation reports in all formats")
        return [self.export(result, report_format, name) for report_format in ReportFormat]
