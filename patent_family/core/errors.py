"""Error taxonomy shared by the acquisition and enrichment pipeline."""

from __future__ import annotations

from typing import Optional


class PatentFamilyError(Exception):
    """Base class for all pipeline errors."""


class InvalidIdentifier(PatentFamilyError):
    """Raised when user input cannot be normalized into a patent number."""

    def __init__(self, raw: Optional[str]) -> None:
        self.raw = raw
        super().__init__(f"Invalid patent number: {raw!r}")


class NotFound(PatentFamilyError):
    """Raised when the registry has no record for a well-formed identifier."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(
            f"Patent {identifier} not found. Note: only granted US patents are available."
        )


class UpstreamError(PatentFamilyError):
    """Transport failure or unexpected status from an external source."""

    def __init__(self, source: str, status: Optional[int] = None, message: str = "") -> None:
        self.source = source
        self.status = status
        self.message = message
        detail = f"{source} error"
        if status is not None:
            detail += f": {status}"
        if message:
            detail += f" ({message})"
        super().__init__(detail)


class ParseFailure(PatentFamilyError):
    """A JSON-producing analysis call returned content that could not be parsed."""

    def __init__(self, message: str, raw: str = "") -> None:
        self.raw = raw
        super().__init__(message)


class AnalysisUnavailable(PatentFamilyError):
    """Raised when no analysis model is configured."""


class InvalidTransition(PatentFamilyError):
    """Raised when a record in a terminal stage is asked to advance."""
