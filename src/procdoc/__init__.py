"""procdoc - Validation and parsing engine for integration process definitions.

procdoc checks XML process-definition files (connections, transformations,
API endpoints, data flow) for well-formedness, schema conformance and business
rules, and converts sound files into an immutable domain model for
documentation tooling.
"""

__version__ = "0.1.0"
__description__ = "Validation and parsing engine for integration process definitions"

from pathlib import Path

from procdoc.config import ProcdocConfig
from procdoc.exceptions import ConfigurationError, ParsingException
from procdoc.models.domain import ParsedMetadata
from procdoc.models.validation import SchemaValidationResult
from procdoc.parser.process import ProcessParser
from procdoc.validation.service import ValidationService

__all__ = [
    "__version__",
    "__description__",
    "ProcdocConfig",
    "ConfigurationError",
    "ParsingException",
    "ParsedMetadata",
    "SchemaValidationResult",
    "ProcessParser",
    "ValidationService",
    "validate_file",
    "parse_file",
]


def validate_file(file_path, config: ProcdocConfig | None = None) -> SchemaValidationResult:
    """Convenience function to run the complete validation pipeline on one file.

    A fresh service (and therefore a fresh cache) is created per call; keep a
    ValidationService around to benefit from caching.

    Args:
        file_path: Path to the process-definition file (string or Path)
        config: Optional configuration

    Returns:
        SchemaValidationResult for the file
    """
    return ValidationService(config).validate_complete(Path(file_path))


def parse_file(file_path, config: ProcdocConfig | None = None) -> ParsedMetadata:
    """Convenience function to parse a file into the domain model.

    Raises:
        ParsingException: If the file cannot be read or parsed
    """
    return ProcessParser(config).parse(Path(file_path))
