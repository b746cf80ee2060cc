"""Data models for parsed process definitions and validation results."""

from procdoc.models.domain import (
    AuthenticationType,
    Connection,
    ConnectionType,
    DataFlow,
    DataSource,
    DataTarget,
    Field,
    HttpMethod,
    OpenAPIEndpoint,
    Parameter,
    ParameterLocation,
    ParsedMetadata,
    ProcessType,
    Response,
    Transformation,
    TransformationType,
)
from procdoc.models.validation import (
    ErrorSeverity,
    SchemaValidationResult,
    ValidationError,
    ValidationMetrics,
    ValidationWarning,
)

__all__ = [
    "ParsedMetadata",
    "ProcessType",
    "Connection",
    "ConnectionType",
    "AuthenticationType",
    "Transformation",
    "TransformationType",
    "Field",
    "DataFlow",
    "DataSource",
    "DataTarget",
    "OpenAPIEndpoint",
    "HttpMethod",
    "Parameter",
    "ParameterLocation",
    "Response",
    "ErrorSeverity",
    "SchemaValidationResult",
    "ValidationError",
    "ValidationMetrics",
    "ValidationWarning",
]
