"""Exception hierarchy for the tagging engine."""

from __future__ import annotations


class PerlTagsError(RuntimeError):
    """Base class for every error raised by perltags."""


class ConfigurationError(PerlTagsError):
    """Raised when a required argument or setting is missing or invalid."""


class AbstractCapabilityError(PerlTagsError):
    """Raised when the engine is driven without a concrete extractor."""


class StateConsistencyError(PerlTagsError):
    """Raised when bookkeeping is touched before any file was processed."""


class TagsWriteError(PerlTagsError, OSError):
    """Raised when the tags file cannot be opened, written or replaced."""
