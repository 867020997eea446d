"""perltags - recursive, incremental ctags generation for Perl source."""

from __future__ import annotations

__version__ = "0.32.0"

from .crawler import Crawler
from .errors import (
    AbstractCapabilityError,
    ConfigurationError,
    PerlTagsError,
    StateConsistencyError,
    TagsWriteError,
)
from .extractor import Extractor, HybridExtractor, MooseExtractor, NaiveExtractor, build_extractor
from .models import ProcessingContext, RecurseRequest, Tag, TagKind

__all__ = [
    "__version__",
    "AbstractCapabilityError",
    "ConfigurationError",
    "Crawler",
    "Extractor",
    "HybridExtractor",
    "MooseExtractor",
    "NaiveExtractor",
    "PerlTagsError",
    "ProcessingContext",
    "RecurseRequest",
    "StateConsistencyError",
    "Tag",
    "TagKind",
    "TagsWriteError",
    "build_extractor",
]
