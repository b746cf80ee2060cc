"""Parallel validation of many files and a Markdown summary report."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from ..models.validation import SchemaValidationResult
from .service import ValidationService

logger = logging.getLogger(__name__)


@dataclass
class FileValidationResult:
    """Outcome for one file of a batch."""
    file: Path
    result: SchemaValidationResult | None
    duration_ms: float
    success: bool
    error: str | None = None


@dataclass
class BatchValidationResult:
    """Outcome of a batch, in input order."""
    results: list[FileValidationResult] = field(default_factory=list)
    total_duration_ms: float = 0.0

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failure_count(self) -> int:
        return len(self.results) - self.success_count

    @property
    def exit_code(self) -> int:
        """Exit code for CI: 0 = every file valid, 1 otherwise."""
        return 0 if self.failure_count == 0 else 1


class BatchValidator:
    """Validates files concurrently through a shared ValidationService."""

    def __init__(self, service: ValidationService | None = None, max_workers: int | None = None):
        self.service = service or ValidationService()
        self.max_workers = max_workers or self.service.config.batch.max_workers

    def validate_batch(self, files: list[Path]) -> BatchValidationResult:
        """Validate every file, one ``validate_complete`` call per file.

        Args:
            files: Files to validate

        Returns:
            BatchValidationResult preserving the order of ``files``
        """
        logger.info(f"Starting batch validation for {len(files)} files")
        start_time = time.perf_counter()

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            results = list(executor.map(self._validate_file, [Path(f) for f in files]))

        batch = BatchValidationResult(
            results=results,
            total_duration_ms=(time.perf_counter() - start_time) * 1000,
        )
        logger.info(
            f"Batch validation completed: {batch.success_count} succeeded, "
            f"{batch.failure_count} failed in {batch.total_duration_ms:.1f} ms"
        )
        return batch

    def _validate_file(self, file: Path) -> FileValidationResult:
        start_time = time.perf_counter()
        try:
            result = self.service.validate_complete(file)
        except Exception as e:
            logger.error(f"Error validating file {file}: {e}")
            return FileValidationResult(
                file=file,
                result=None,
                duration_ms=(time.perf_counter() - start_time) * 1000,
                success=False,
                error=str(e),
            )
        return FileValidationResult(
            file=file,
            result=result,
            duration_ms=(time.perf_counter() - start_time) * 1000,
            success=result.valid,
        )


def generate_batch_report(batch: BatchValidationResult) -> str:
    """Render a Markdown summary of a batch."""
    total = len(batch.results)
    average = batch.total_duration_ms / total if total else 0.0

    lines = [
        "# Batch Validation Report",
        "",
        "## Summary",
        "",
        f"- **Total Files**: {total}",
        f"- **Successful**: {batch.success_count}",
        f"- **Failed**: {batch.failure_count}",
        f"- **Total Duration**: {batch.total_duration_ms:.0f} ms",
        f"- **Average Duration**: {average:.2f} ms/file",
        "",
        "## Results",
        "",
        "| File | Status | Duration | Errors | Warnings |",
        "|------|--------|----------|--------|----------|",
    ]
    for item in batch.results:
        status = "Valid" if item.success else "Invalid"
        result = item.result
        errors = result.error_count if result else 0
        warnings = result.warning_count if result else 0
        lines.append(
            f"| {item.file.name} | {status} | {item.duration_ms:.0f} ms | {errors} | {warnings} |"
        )
    return "\n".join(lines) + "\n"
