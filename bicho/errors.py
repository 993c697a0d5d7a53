"""Custom exceptions for centralized error handling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class AppError(Exception):
    """Base application error."""

    code: str
    message: str
    status_code: int
    details: Any | None = None


class NotFoundError(AppError):
    """Resource not found."""

    def __init__(self, message: str = "Not found", details: Any | None = None) -> None:
        super().__init__(code="not_found", message=message, status_code=404, details=details)


class ValidationError(AppError):
    """Input validation error."""

    def __init__(self, message: str = "Validation error", details: Any | None = None) -> None:
        super().__init__(code="validation_error", message=message, status_code=400, details=details)


class StoreUnavailableError(AppError):
    """The Draw Store could not be read or written."""

    def __init__(self, message: str = "Draw store unavailable", details: Any | None = None) -> None:
        super().__init__(code="store_unavailable", message=message, status_code=503, details=details)


class NormalizationRejected(AppError):
    """A candidate set reached the normalizer with no usable prize positions."""

    def __init__(self, message: str = "No prize positions to normalize", details: Any | None = None) -> None:
        super().__init__(code="normalization_rejected", message=message, status_code=422, details=details)
