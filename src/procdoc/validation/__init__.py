"""Validation pipeline for process-definition files.

Three stages run in order: well-formedness (FATAL on failure, short-circuits),
schema conformance and business rules. Results are cached per file
fingerprint by the orchestrating ValidationService.
"""

from .batch import BatchValidationResult, BatchValidator, FileValidationResult, generate_batch_report
from .cache import CacheStats, Fingerprint, ValidationCache
from .report import ReportFormat, ValidationReportExporter, generate_report
from .rules import (
    BusinessRule,
    BusinessRuleValidator,
    ConnectionReferenceRule,
    DataFlowCompletenessRule,
    IdNamespace,
    ProcessNameRule,
    RuleContext,
    RuleOutcome,
    TransformationDescriptionRule,
    TransformationReferenceRule,
    UniqueEndpointRule,
    UniqueIdRule,
    UnusedConnectionRule,
)
from .schema import SchemaValidator
from .service import ValidationService
from .wellformed import WellFormednessChecker, WellFormednessOutcome

__all__ = [
    "ValidationService",
    "WellFormednessChecker",
    "WellFormednessOutcome",
    "SchemaValidator",
    "BusinessRuleValidator",
    "BusinessRule",
    "RuleContext",
    "RuleOutcome",
    "IdNamespace",
    "UniqueIdRule",
    "ConnectionReferenceRule",
    "TransformationReferenceRule",
    "ProcessNameRule",
    "UniqueEndpointRule",
    "TransformationDescriptionRule",
    "DataFlowCompletenessRule",
    "UnusedConnectionRule",
    "ValidationCache",
    "Fingerprint",
    "CacheStats",
    "BatchValidator",
    "BatchValidationResult",
    "FileValidationResult",
    "generate_batch_report",
    "ReportFormat",
    "ValidationReportExporter",
    "generate_report",
]
