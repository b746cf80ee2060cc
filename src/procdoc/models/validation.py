"""Validation result models shared by all validation stages."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

DEFAULT_SCHEMA_VERSION = "1.0"


class ErrorSeverity(str, Enum):
    """Severity of a validation finding."""
    FATAL = "FATAL"      # Pipeline cannot continue
    ERROR = "ERROR"      # Document is invalid, checks continue
    WARNING = "WARNING"  # Non-blocking concern
    INFO = "INFO"        # Advisory only

    @property
    def blocking(self) -> bool:
        """Whether this severity makes a document invalid."""
        return self in (ErrorSeverity.FATAL, ErrorSeverity.ERROR)


@dataclass(frozen=True)
class ValidationError:
    """A single finding with a stable code and positional metadata."""
    severity: ErrorSeverity
    code: str
    message: str
    xpath: str | None = None
    line_number: int | None = None
    column_number: int | None = None
    suggestion: str | None = None

    @classmethod
    def fatal(cls, code: str, message: str, **kwargs) -> "ValidationError":
        return cls(ErrorSeverity.FATAL, code, message, **kwargs)

    @classmethod
    def error(cls, code: str, message: str, **kwargs) -> "ValidationError":
        return cls(ErrorSeverity.ERROR, code, message, **kwargs)

    @classmethod
    def warning(cls, code: str, message: str, **kwargs) -> "ValidationError":
        return cls(ErrorSeverity.WARNING, code, message, **kwargs)

    @classmethod
    def info(cls, code: str, message: str, **kwargs) -> "ValidationError":
        return cls(ErrorSeverity.INFO, code, message, **kwargs)

    @property
    def blocking(self) -> bool:
        return self.severity.blocking

    def __str__(self) -> str:
        location = ""
        if self.xpath:
            location += f" at {self.xpath}"
        if self.line_number is not None:
            location += f" (line {self.line_number}"
            if self.column_number is not None:
                location += f", column {self.column_number}"
            location += ")"
        text = f"[{self.severity.value}] {self.code}: {self.message}{location}"
        if self.suggestion:
            text += f" - {self.suggestion}"
        return text

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "xpath": self.xpath,
            "lineNumber": self.line_number,
            "columnNumber": self.column_number,
            "suggestion": self.suggestion,
        }


@dataclass(frozen=True)
class ValidationWarning:
    """A non-blocking finding with a recommendation."""
    code: str
    message: str
    xpath: str | None = None
    line_number: int | None = None
    recommendation: str | None = None

    def __str__(self) -> str:
        location = f" at {self.xpath}" if self.xpath else ""
        text = f"[WARNING] {self.code}: {self.message}{location}"
        if self.recommendation:
            text += f" - {self.recommendation}"
        return text

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "xpath": self.xpath,
            "lineNumber": self.line_number,
            "recommendation": self.recommendation,
        }


@dataclass
class ValidationMetrics:
    """Measurements gathered while validating one file."""
    validation_duration_ms: float = 0.0
    file_size_bytes: int = 0
    element_count: int = 0
    attribute_count: int = 0
    well_formed: bool = False
    schema_valid: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "validationDurationMs": self.validation_duration_ms,
            "fileSizeBytes": self.file_size_bytes,
            "elementCount": self.element_count,
            "attributeCount": self.attribute_count,
            "wellFormed": self.well_formed,
            "schemaValid": self.schema_valid,
        }


@dataclass
class SchemaValidationResult:
    """Aggregate outcome of validating one file."""
    valid: bool
    schema_version: str = DEFAULT_SCHEMA_VERSION
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationWarning] = field(default_factory=list)
    metrics: ValidationMetrics | None = None
    file_path: str | None = None

    @classmethod
    def valid_result(cls, schema_version: str = DEFAULT_SCHEMA_VERSION) -> "SchemaValidationResult":
        return cls(valid=True, schema_version=schema_version)

    @classmethod
    def invalid(cls, errors: list[ValidationError],
                schema_version: str = DEFAULT_SCHEMA_VERSION) -> "SchemaValidationResult":
        return cls(valid=False, schema_version=schema_version, errors=list(errors))

    @classmethod
    def assemble(cls, errors: list[ValidationError],
                 warnings: list[ValidationWarning] | None = None,
                 metrics: ValidationMetrics | None = None,
                 schema_version: str = DEFAULT_SCHEMA_VERSION,
                 file_path: str | None = None) -> "SchemaValidationResult":
        """Build a result whose validity is derived from the error severities."""
        return cls(
            valid=not any(error.blocking for error in errors),
            schema_version=schema_version,
            errors=list(errors),
            warnings=list(warnings or []),
            metrics=metrics,
            file_path=file_path,
        )

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    @property
    def error_codes(self) -> list[str]:
        """Error codes in report order."""
        return [error.code for error in self.errors]

    @property
    def exit_code(self) -> int:
        """Exit code for CI: 0 = valid, 1 = invalid."""
        return 0 if self.valid else 1

    def copy(self, file_path: str | None = None) -> "SchemaValidationResult":
        """Independent copy, optionally labelled with another file path."""
        return replace(
            self,
            errors=list(self.errors),
            warnings=list(self.warnings),
            metrics=replace(self.metrics) if self.metrics else None,
            file_path=file_path if file_path is not None else self.file_path,
        )

    def errors_by_severity(self) -> dict[str, int]:
        """Count errors per severity level."""
        counts = {severity.value: 0 for severity in ErrorSeverity}
        for error in self.errors:
            counts[error.severity.value] += 1
        return counts

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "valid": self.valid,
            "schemaVersion": self.schema_version,
            "filePath": self.file_path,
            "errorCount": self.error_count,
            "warningCount": self.warning_count,
            "errors": [error.to_dict() for error in self.errors],
            "warnings": [warning.to_dict() for warning in self.warnings],
            "metrics": self.metrics.to_dict() if self.metrics else None,
        }
