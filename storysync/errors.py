"""Error taxonomy shared by the storysync pipeline stages."""

from __future__ import annotations

from typing import List, Optional, Sequence


class StorySyncError(RuntimeError):
    """Base error carrying a machine-readable code and the offending file."""

    def __init__(self, message: str, *, code: str, file: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code
        self.file = file


class ParseError(StorySyncError):
    """Raised when a story file cannot be read or has no default-export meta."""

    def __init__(self, message: str, *, code: str = "PARSE_ERROR", file: Optional[str] = None) -> None:
        super().__init__(message, code=code, file=file)


class DependencyAnalysisError(StorySyncError):
    """Raised when a file's imports cannot be collected."""

    def __init__(self, message: str, *, file: Optional[str] = None) -> None:
        super().__init__(message, code="DEPENDENCY_ANALYSIS_ERROR", file=file)


class RegistryValidationError(StorySyncError):
    """Raised when an assembled document violates the registry schema."""

    def __init__(
        self,
        message: str,
        issues: Sequence[str] = (),
        *,
        code: str = "REGISTRY_VALIDATION_ERROR",
        file: Optional[str] = None,
    ) -> None:
        super().__init__(message, code=code, file=file)
        self.issues: List[str] = list(issues)


class BatchFailedError(StorySyncError):
    """Raised when every item of a non-empty batch failed."""

    def __init__(self, message: str, errors: Sequence[Exception], *, code: str) -> None:
        super().__init__(message, code=code)
        self.errors = list(errors)


__all__ = [
    "BatchFailedError",
    "DependencyAnalysisError",
    "ParseError",
    "RegistryValidationError",
    "StorySyncError",
]
