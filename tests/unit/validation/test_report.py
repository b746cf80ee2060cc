"""Tests for single-result validation reports."""

import json

import pytest

from procdoc.models.validation import (
    SchemaValidationResult,
    ValidationError,
    ValidationMetrics,
    ValidationWarning,
)
from procdoc.validation.report import (
    ReportFormat,
    ValidationReportExporter,
    generate_html_report,
    generate_json_report,
    generate_markdown_report,
    generate_report,
    generate_text_report,
)


@pytest.fixture
def invalid_result():
    result = SchemaValidationResult.assemble(
        [ValidationError.error(
            "INVALID_CONNECTION_REF",
            "Data flow target references unknown connection 'conn9'",
            xpath="/process/dataFlow[1]/target[1]/connectionRef[1]",
            line_number=14,
            suggestion="declare a connection with id 'conn9'",
        )],
        metrics=ValidationMetrics(file_size_bytes=512, element_count=20, attribute_count=7,
                                  well_formed=True, schema_valid=True),
        file_path="flows/broken-refs.xml",
    )
    result.warnings = [ValidationWarning(
        "UNUSED_CONNECTION", "Connection 'c2' is never referenced",
        recommendation="Remove the connection | or reference it",
    )]
    return result


class TestRenderers:
    """Test each report format."""

    def test_text_report(self, invalid_result):
        report = generate_text_report(invalid_result)

        assert "Status: INVALID" in report
        assert "File: flows/broken-refs.xml" in report
        assert "[ERROR] INVALID_CONNECTION_REF" in report
        assert "[WARNING] UNUSED_CONNECTION" in report
        assert "Elements: 20" in report

    def test_text_report_for_valid_result(self):
        report = generate_text_report(SchemaValidationResult.valid_result())

        assert "Status: VALID" in report
        assert "Errors:" in report
        assert "Metrics:" not in report

    def test_markdown_report(self, invalid_result):
        report = generate_markdown_report(invalid_result)

        assert report.startswith("# Validation Report")
        assert "**Status**: INVALID" in report
        assert "| ERROR | `INVALID_CONNECTION_REF` |" in report
        assert "line 14" in report
        assert "Remove the connection \\| or reference it" in report

    def test_html_report_escapes_content(self):
        result = SchemaValidationResult.assemble(
            [ValidationError.error("MISSING_ELEMENT", "Process is missing required <metadata> element")]
        )
        report = generate_html_report(result)

        assert "&lt;metadata&gt;" in report
        assert "<metadata>" not in report
        assert 'class="invalid"' in report

    def test_json_report(self, invalid_result):
        data = json.loads(generate_json_report(invalid_result))

        assert data["valid"] is False
        assert data["errors"][0]["code"] == "INVALID_CONNECTION_REF"
        assert data["metrics"]["elementCount"] == 20

    @pytest.mark.parametrize("report_format", list(ReportFormat))
    def test_generate_report_dispatch(self, invalid_result, report_format):
        assert "INVALID_CONNECTION_REF" in generate_report(invalid_result, report_format)


class TestValidationReportExporter:
    """Test writing reports to disk."""

    def test_export(self, tmp_path, invalid_result):
        output = ValidationReportExporter(tmp_path / "reports").export(
            invalid_result, ReportFormat.MARKDOWN, name="broken-refs"
        )

        assert output.parent == tmp_path / "reports"
        assert output.name.startswith("broken-refs_")
        assert output.suffix == ".md"
        assert "# Validation Report" in output.read_text(encoding="utf-8")

    def test_export_all(self, tmp_path, invalid_result):
        outputs = ValidationReportExporter(tmp_path).export_all(invalid_result)

        assert sorted(path.suffix for path in outputs) == [".html", ".json", ".md", ".txt"]
        assert all(path.name.startswith("validation-report_") for path in outputs)
        assert all(path.exists() for path in outputs)
