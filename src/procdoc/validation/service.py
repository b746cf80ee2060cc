"""Validation orchestrator: well-formedness, schema and business rules.

``ValidationService.validate_complete`` is the main entry point. It reads the
file once, consults the cache and on a miss runs the three stages in order,
short-circuiting when the document is not well-formed. Content problems are
always returned as data inside ``SchemaValidationResult``; nothing is raised
for them.
"""

import logging
import time
from pathlib import Path

from ..config import ProcdocConfig, create_default_config
from ..models.domain import ProcessType
from ..models.validation import (
    SchemaValidationResult,
    ValidationError,
    ValidationMetrics,
    ValidationWarning,
)
from .cache import CacheStats, Fingerprint, ValidationCache
from .rules import BusinessRuleValidator
from .schema import SchemaValidator
from .wellformed import WellFormednessChecker

logger = logging.getLogger(__name__)

FILE_NOT_FOUND = "FILE_NOT_FOUND"


class ValidationService:
    """Sequences the validation stages and caches their outcome per file."""

    def __init__(
        self,
        config: ProcdocConfig | None = None,
        cache: ValidationCache | None = None,
        checker: WellFormednessChecker | None = None,
        schema_validator: SchemaValidator | None = None,
        rule_validator: BusinessRuleValidator | None = None,
    ):
        self.config = config or create_default_config()
        validation = self.config.validation
        self.cache = cache or ValidationCache(
            max_entries=validation.cache_max_entries,
            ttl_seconds=validation.cache_ttl_seconds,
        )
        self.checker = checker or WellFormednessChecker(forbid_dtd=validation.forbid_dtd)
        self.schema_validator = schema_validator or SchemaValidator()
        self.rule_validator = rule_validator or BusinessRuleValidator()

    @property
    def schema_version(self) -> str:
        return self.config.validation.schema_version

    def validate_complete(self, xml_file: Path) -> SchemaValidationResult:
        """Run the complete pipeline, using the cache when enabled.

        Args:
            xml_file: Path to the process-definition file

        Returns:
            SchemaValidationResult owned by the caller and labelled with
            ``xml_file``; a missing or unreadable file yields a single FATAL
            FILE_NOT_FOUND error
        """
        xml_file = Path(xml_file)
        start_time = time.perf_counter()
        data = self._read(xml_file)
        if isinstance(data, SchemaValidationResult):
            return data

        if not self.config.validation.cache_enabled:
            return self._run_pipeline(xml_file, data, start_time)

        fingerprint = Fingerprint.of(xml_file, data, self.config.validation.fingerprint_mode)
        cached = self.cache.get_or_compute(
            fingerprint, lambda: self._run_pipeline(xml_file, data, start_time)
        )
        # Content-only keys are shared between paths; the caller's path wins
        return cached.copy(file_path=str(xml_file))

    def validate_complete_no_cache(self, xml_file: Path) -> SchemaValidationResult:
        """Run the complete pipeline without reading or populating the cache."""
        xml_file = Path(xml_file)
        start_time = time.perf_counter()
        data = self._read(xml_file)
        if isinstance(data, SchemaValidationResult):
            return data
        return self._run_pipeline(xml_file, data, start_time)

    def validate_content(self, data: bytes, source: str = "<bytes>") -> SchemaValidationResult:
        """Run the complete pipeline over in-memory content (uncached)."""
        return self._run_pipeline(Path(source), data, time.perf_counter(), source=source)

    def validate_quick(self, xml_file: Path) -> SchemaValidationResult:
        """Well-formedness and schema stages only, uncached."""
        return self._run_partial(Path(xml_file), schema=True, rules=False)

    def validate_business_rules(self, xml_file: Path) -> SchemaValidationResult:
        """Well-formedness and business-rule stages only, uncached."""
        return self._run_partial(Path(xml_file), schema=False, rules=True)

    def cache_stats(self) -> CacheStats:
        return self.cache.stats

    def clear_cache(self) -> None:
        self.cache.clear()

    def clear_expired_cache(self) -> int:
        return self.cache.clear_expired()

    def _read(self, xml_file: Path) -> bytes | SchemaValidationResult:
        try:
            return xml_file.read_bytes()
        except OSError as e:
            logger.error(f"Cannot read {xml_file}: {e}")
            error = ValidationError.fatal(
                FILE_NOT_FOUND,
                f"XML file does not exist or is not readable: {xml_file} ({e.strerror or e})",
            )
            return SchemaValidationResult.assemble(
                [error],
                metrics=ValidationMetrics(),
                schema_version=self.schema_version,
                file_path=str(xml_file),
            )

    def _run_pipeline(self, xml_file: Path, data: bytes, start_time: float,
                      source: str | None = None) -> SchemaValidationResult:
        return self._run_stages(xml_file, data, start_time, source, schema=True, rules=True)

    def _run_partial(self, xml_file: Path, schema: bool, rules: bool) -> SchemaValidationResult:
        start_time = time.perf_counter()
        data = self._read(xml_file)
        if isinstance(data, SchemaValidationResult):
            return data
        return self._run_stages(xml_file, data, start_time, None, schema=schema, rules=rules)

    def _run_stages(self, xml_file: Path, data: bytes, start_time: float,
                    source: str | None, schema: bool, rules: bool) -> SchemaValidationResult:
        file_path = source or str(xml_file)
        logger.info(f"Starting validation for: {xml_file.name}")

        outcome = self.checker.check(data)
        if not outcome.well_formed:
            logger.error("XML is not well-formed, skipping further validation")
            metrics = ValidationMetrics(
                validation_duration_ms=_elapsed_ms(start_time),
                file_size_bytes=len(data),
                well_formed=False,
                schema_valid=False,
            )
            return SchemaValidationResult.assemble(
                outcome.errors,
                metrics=metrics,
                schema_version=self.schema_version,
                file_path=file_path,
            )

        document = outcome.document
        errors: list[ValidationError] = []
        warnings: list[ValidationWarning] = []

        schema_errors: list[ValidationError] = []
        if schema:
            declared_type = ProcessType.from_token(document.root.get("type"))
            schema_errors = self.schema_validator.validate(document, declared_type)
            if any(error.blocking for error in schema_errors):
                logger.warning(f"Schema validation failed with {len(schema_errors)} errors")
            errors.extend(schema_errors)

        if rules:
            rule_outcome = self.rule_validator.evaluate(document)
            errors.extend(rule_outcome.errors)
            warnings.extend(rule_outcome.warnings)

        metrics = ValidationMetrics(
            file_size_bytes=len(data),
            element_count=document.element_count,
            attribute_count=document.attribute_count,
            well_formed=True,
            schema_valid=schema and not any(error.blocking for error in schema_errors),
        )
        result = SchemaValidationResult.assemble(
            errors,
            metrics=metrics,
            schema_version=self.schema_version,
            file_path=file_path,
        )
        # Warnings are attached once the result is assembled
        result.warnings = warnings
        metrics.validation_duration_ms = _elapsed_ms(start_time)

        logger.info(
            f"Validation finished in {metrics.validation_duration_ms:.1f} ms. "
            f"Valid: {result.valid}, Errors: {result.error_count}, "
            f"Warnings: {result.warning_count}"
        )
        return result


def _elapsed_ms(start_time: float) -> float:
    return max(0.0, (time.perf_counter() - start_time) * 1000)
