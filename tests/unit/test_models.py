"""Tests for domain and validation result models."""

import pytest
from pydantic import ValidationError as ModelValidationError

from procdoc.exceptions import ParsingException
from procdoc.models.domain import (
    AuthenticationType,
    Connection,
    ConnectionType,
    HttpMethod,
    ParsedMetadata,
    ProcessType,
    normalize_token,
)
from procdoc.models.validation import (
    ErrorSeverity,
    SchemaValidationResult,
    ValidationError,
    ValidationMetrics,
    ValidationWarning,
)


class TestTokenEnum:
    """Test loose enum lookup."""

    def test_normalize_token(self):
        assert normalize_token("api-key") == "APIKEY"
        assert normalize_token(" OAuth 2 ") == "OAUTH2"

    @pytest.mark.parametrize("token, expected", [
        ("REST", ConnectionType.REST),
        ("rest", ConnectionType.REST),
        ("database", ConnectionType.DATABASE),
        ("DATABASE", ConnectionType.DATABASE),
        ("oauth2", AuthenticationType.OAUTH2),
        ("api-key", AuthenticationType.API_KEY),
        ("None", AuthenticationType.NONE),
        ("delete", HttpMethod.DELETE),
    ])
    def test_from_token(self, token, expected):
        assert type(expected).from_token(token) is expected

    @pytest.mark.parametrize("token", [None, "", "Tape"])
    def test_unknown_token(self, token):
        assert ConnectionType.from_token(token) is None

    def test_tokens(self):
        assert ProcessType.tokens() == ["CAI", "CDI"]

    def test_process_type_display_name(self):
        assert ProcessType.CDI.display_name == "Cloud Data Integration"


class TestDomainModels:
    """Test pydantic domain models."""

    def test_connection_endpoint(self):
        rest = Connection(id="c1", type=ConnectionType.REST, url="https://x")
        database = Connection(id="c2", type=ConnectionType.DATABASE, host="db", database="crm")

        assert rest.endpoint == "https://x"
        assert rest.is_network is True
        assert database.endpoint == "db/crm"
        assert database.is_storage is True
        assert Connection(id="c3").endpoint is None

    def test_aliases_accepted(self):
        connection = Connection(id="c1", authenticationType="Basic")
        assert connection.authentication_type == AuthenticationType.BASIC

    def test_process_name_required(self):
        with pytest.raises(ModelValidationError):
            ParsedMetadata(process_name="", process_type=ProcessType.CAI)

    def test_defaults(self):
        metadata = ParsedMetadata(process_name="P", process_type=ProcessType.CDI)

        assert metadata.version == "1.0"
        assert metadata.connections == ()
        assert metadata.data_flow is None
        assert metadata.additional_properties == {}

    def test_mappings_are_read_only(self):
        metadata = ParsedMetadata(
            processName="P", processType="CAI", additionalProperties={"owner": "team-a"}
        )

        with pytest.raises(TypeError):
            metadata.additional_properties["owner"] = "team-b"
        assert metadata.model_dump(by_alias=True)["additionalProperties"] == {"owner": "team-a"}


class TestValidationResultModels:
    """Test validation result dataclasses."""

    def test_error_rendering(self):
        error = ValidationError.error(
            "INVALID_ENUM_VALUE", "Unknown type", xpath="/process/@type",
            line_number=1, column_number=5, suggestion="did you mean 'CAI'?",
        )
        assert str(error) == (
            "[ERROR] INVALID_ENUM_VALUE: Unknown type at /process/@type "
            "(line 1, column 5) - did you mean 'CAI'?"
        )

    def test_severity_blocking(self):
        assert ErrorSeverity.FATAL.blocking
        assert ErrorSeverity.ERROR.blocking
        assert not ErrorSeverity.WARNING.blocking
        assert not ErrorSeverity.INFO.blocking

    def test_assemble_validity(self):
        warning_only = SchemaValidationResult.assemble([ValidationError.warning("W", "w")])
        with_error = SchemaValidationResult.assemble([ValidationError.error("E", "e")])

        assert warning_only.valid is True
        assert with_error.valid is False
        assert with_error.exit_code == 1

    def test_errors_by_severity(self):
        result = SchemaValidationResult.assemble([
            ValidationError.fatal("F", "f"),
            ValidationError.error("E", "e"),
            ValidationError.error("E2", "e"),
        ])
        assert result.errors_by_severity() == {"FATAL": 1, "ERROR": 2, "WARNING": 0, "INFO": 0}

    def test_to_dict(self):
        result = SchemaValidationResult.assemble(
            [ValidationError.error("E", "broken", line_number=3)],
            warnings=[ValidationWarning("W", "advice", recommendation="fix it")],
            metrics=ValidationMetrics(file_size_bytes=10, well_formed=True),
            file_path="a.xml",
        )
        data = result.to_dict()

        assert data["valid"] is False
        assert data["filePath"] == "a.xml"
        assert data["errors"][0]["lineNumber"] == 3
        assert data["warnings"][0]["recommendation"] == "fix it"
        assert data["metrics"]["fileSizeBytes"] == 10

    def test_copy_is_independent(self):
        original = SchemaValidationResult.assemble(
            [ValidationError.error("E", "e")],
            metrics=ValidationMetrics(element_count=4),
            file_path="a.xml",
        )
        copy = original.copy(file_path="b.xml")
        copy.errors.clear()
        copy.metrics.element_count = 0

        assert copy.file_path == "b.xml"
        assert original.file_path == "a.xml"
        assert original.error_codes == ["E"]
        assert original.metrics.element_count == 4
        assert original.copy().file_path == "a.xml"

    def test_factories(self):
        assert SchemaValidationResult.valid_result().valid is True
        invalid = SchemaValidationResult.invalid([ValidationError.fatal("F", "f")])
        assert invalid.valid is False
        assert invalid.error_codes == ["F"]


class TestParsingException:
    """Test exception rendering."""

    def test_message_with_file_cause_and_errors(self):
        cause = FileNotFoundError("no such file")
        error = ParsingException("Cannot read", "a.xml", errors=["E1", "E2"], cause=cause)

        text = str(error)
        assert text.startswith("Cannot read [File: a.xml]: FileNotFoundError: no such file")
        assert text.endswith("Errors:\n - E1\n - E2")
        assert error.cause is cause

    def test_plain_message(self):
        assert str(ParsingException("Bad")) == "Bad"
