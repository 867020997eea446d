"""Recursive, incremental tag registration engine.

The :class:`Crawler` is meant to live as long as an editor session: every
``process`` call adds to the same index, and ``refresh=True`` re-scans files
that were already seen instead of skipping them.  Files discovered through
``use``/``require`` are followed depth-first, up to ``max_level``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from .errors import AbstractCapabilityError, ConfigurationError, StateConsistencyError
from .models import ExtractionResult, ProcessingContext, RecurseRequest, Tag, TagKind, WorkItem
from .serializer import Serializer, write_atomic
from .store import OrderTracker, SeenSet, TagStore

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def normalize_path(file: PathLike) -> Path:
    """Absolute, canonical form of *file* so aliases index once."""
    return Path(file).expanduser().resolve()


class Crawler:
    """Drives an extractor over a work queue and keeps the tag index.

    Args:
        extractor: Object implementing ``get_tags_for_file(path, context)``.
        max_level: Levels of ``use`` statements to descend into.  Entry files
            are level 1.
        do_variables: Passed to the extractor through the processing context.
        exts: Default for tags that don't say whether to render exuberant
            extension fields.
    """

    def __init__(
        self,
        extractor,
        max_level: int = 2,
        do_variables: bool = True,
        exts: bool = False,
    ) -> None:
        if extractor is None or not callable(getattr(extractor, "get_tags_for_file", None)):
            raise AbstractCapabilityError(
                "Crawler needs an extractor implementing get_tags_for_file"
            )
        self.extractor = extractor
        self.max_level = max_level
        self.do_variables = do_variables
        self.exts = exts

        self.store: Optional[TagStore] = None
        self.order = OrderTracker()
        self.seen = SeenSet()
        self.current: Optional[ProcessingContext] = None
        self.is_dirty = False
        self._queue: List[WorkItem] = []

    @classmethod
    def from_settings(cls, settings) -> "Crawler":
        """Build a crawler and its extractor from :class:`TaggerSettings`."""
        from .extractor import build_extractor

        return cls(
            build_extractor(settings.tagger, inc=settings.inc),
            max_level=settings.max_level,
            do_variables=settings.do_variables,
            exts=settings.exts,
        )

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def process(self, files: Union[PathLike, Sequence[PathLike]], refresh: bool = False) -> bool:
        """Scan one or more Perl files, following their dependencies."""
        if isinstance(files, (str, Path)):
            files = [files] if str(files) else []
        files = list(files)
        if not files:
            raise ConfigurationError("No file passed to process")

        # Seed in reverse so the first file is popped, and fully expanded, first.
        self.queue(*(WorkItem(file=Path(f), level=1, refresh=refresh) for f in reversed(files)))

        try:
            while self._queue:
                self.process_item(self.pop_queue())
        finally:
            # an extractor error aborts the whole run
            self._queue.clear()
        return True

    def queue(self, *items: WorkItem) -> None:
        for item in items:
            if item.level <= self.max_level:
                self._queue.append(item)

    def pop_queue(self) -> WorkItem:
        return self._queue.pop()

    def process_item(self, item: WorkItem) -> None:
        file = normalize_path(item.file)
        key = str(file)

        if key in self.seen:
            if not item.refresh:
                return
            self.clean_file(key)
        else:
            self.order.assign(key)

        if self.store is None:
            self.store = TagStore()
        self.seen.add(key)
        self.is_dirty = True

        self.current = ProcessingContext(
            file=file,
            level=item.level,
            do_variables=self.do_variables,
        )
        logger.debug("Processing %s (level %d)", file, item.level)
        self.process_file(file)

    def process_file(self, file: Path) -> None:
        results = self.extractor.get_tags_for_file(file, self.current)
        self.register(str(file), results)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, file: str, results: Iterable[ExtractionResult]) -> None:
        """Store declarations and schedule recursion requests for *file*."""
        if self.store is None:
            self.store = TagStore()
        context = self.current
        level = context.level if context is not None else 1

        for result in results:
            if isinstance(result, RecurseRequest):
                self.queue(WorkItem(file=result.target, level=level + 1))
                continue
            if not isinstance(result, Tag):
                raise TypeError(f"Extractor returned {type(result).__name__}, expected Tag or RecurseRequest")

            if context is not None:
                if result.kind is TagKind.PACKAGE:
                    context.package_name = result.name
                if not result.pkg:
                    result.pkg = context.package_name
            if not result.file:
                result.file = file
            if result.exts is None:
                result.exts = self.exts
            self.store.add(file, result)

    def clean_file(self, file: PathLike) -> None:
        """Delete the tags of *file* but keep its place in the file order.

        If the tags are recreated, they stay near the top of the
        "interestingness" ranking.
        """
        if self.store is None:
            raise StateConsistencyError(f"Trying to clean '{file}', but there's no tags")
        key = str(normalize_path(file))
        removed = self.store.remove_file(key)
        self.seen.discard(key)
        logger.debug("Cleaned %d tags from %s", removed, key)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def to_string(self) -> str:
        if self.store is None:
            return ""
        return Serializer(self.store, self.order).to_string()

    def output(self, outfile: Optional[PathLike] = None) -> bool:
        """Save the tags file if the index changed or the file is missing.

        Returns True when the file was written.
        """
        if not outfile:
            raise ConfigurationError("No file to write to")
        if not self.is_dirty and Path(outfile).exists():
            return False

        write_atomic(outfile, self.to_string())
        self.is_dirty = False
        return True

    def __len__(self) -> int:
        return len(self.store) if self.store is not None else 0
