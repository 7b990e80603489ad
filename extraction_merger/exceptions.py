"""
Errors raised at the edges of the extraction merger.

The merge functions themselves never raise on malformed trees. These errors
cover the inputs a caller hands in from outside: configuration files, batch
files and LLM conflict-resolution responses.
"""

from typing import Any, Dict, Optional


class ExtractionMergeError(Exception):
    """Base error with details."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details or {}


class ConfigurationError(ExtractionMergeError):
    """Placeholder configuration could not be loaded."""


class ResolutionResponseError(ExtractionMergeError):
    """Conflict-resolution response does not match the expected schema."""


class BatchInputError(ExtractionMergeError):
    """A batch response is not a JSON object."""
