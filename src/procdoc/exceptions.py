"""Exceptions raised by procdoc."""

from collections.abc import Sequence


class ConfigurationError(ValueError):
    """Raised when a configuration file cannot be loaded or is invalid."""


class ParsingException(Exception):
    """Raised when a process-definition file cannot be turned into a domain model.

    The rendered message always carries the source file and the root cause's
    message so batch tooling can log it without walking the cause chain.
    """

    def __init__(
        self,
        message: str,
        file_path: str | None = None,
        errors: Sequence[str] = (),
        cause: BaseException | None = None,
    ):
        self.message = message
        self.file_path = file_path
        self.errors = list(errors)
        self.cause = cause
        super().__init__(self._render())

    def _render(self) -> str:
        text = self.message
        if self.file_path:
            text += f" [File: {self.file_path}]"
        if self.cause is not None:
            text += f": {type(self.cause).__name__}: {self.cause}"
        if self.errors:
            text += "\nErrors:\n" + "\n".join(f" - {error}" for error in self.errors)
        return text
