"""In-memory bookkeeping for the tag index.

Three structures cooperate here:

- :class:`TagStore` holds the registered tags as ``name -> file -> [Tag]``.
  Only the per-file lists are ordered; names and files are sorted when the
  store is serialized.
- :class:`OrderTracker` remembers the order in which files were first
  discovered.  Entries are never re-assigned or removed, so a file keeps its
  rank even while its tags are being regenerated.
- :class:`SeenSet` gates re-processing of files already handled by an engine.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Set, Tuple

from .models import Tag

logger = logging.getLogger(__name__)


class TagStore:
    """Tags grouped by name, then by the absolute path of their file."""

    def __init__(self) -> None:
        self._tags: Dict[str, Dict[str, List[Tag]]] = {}

    def add(self, file: str, tag: Tag) -> None:
        self._tags.setdefault(tag.name, {}).setdefault(file, []).append(tag)

    def remove_file(self, file: str) -> int:
        """Drop every tag contributed by *file*; return how many were removed."""
        removed = 0
        for name in list(self._tags):
            files = self._tags[name]
            removed += len(files.pop(file, ()))
            if not files:
                del self._tags[name]
        return removed

    def names(self) -> List[str]:
        return sorted(self._tags)

    def files_for(self, name: str) -> Dict[str, List[Tag]]:
        return self._tags.get(name, {})

    def tags_for_file(self, file: str) -> List[Tag]:
        """Return the tags of *file*, grouped by tag name.

        Names come in the order the store first saw them; within a name,
        tags keep their extraction order.
        """
        found: List[Tag] = []
        for files in self._tags.values():
            found.extend(files.get(file, ()))
        return found

    def __contains__(self, name: object) -> bool:
        return name in self._tags

    def __len__(self) -> int:
        return sum(len(tags) for files in self._tags.values() for tags in files.values())


class OrderTracker:
    """Dense, first-seen numbering of files."""

    def __init__(self) -> None:
        self._order: Dict[str, int] = {}

    def assign(self, file: str) -> int:
        """Give *file* the next number unless it already has one."""
        if file not in self._order:
            self._order[file] = len(self._order)
            logger.debug("Assigned order %d to %s", self._order[file], file)
        return self._order[file]

    def get(self, file: str) -> int:
        return self._order[file]

    def files(self) -> List[str]:
        """Every file ever processed, in first-seen order."""
        return sorted(self._order, key=self._order.__getitem__)

    def sort_key(self, file: str) -> Tuple[int, str]:
        # Files registered without being processed sort last, by path.
        return (self._order.get(file, len(self._order)), file)

    def __contains__(self, file: object) -> bool:
        return file in self._order

    def __len__(self) -> int:
        return len(self._order)


class SeenSet:
    """Absolute paths processed during the lifetime of one engine."""

    def __init__(self) -> None:
        self._seen: Set[str] = set()

    def add(self, file: str) -> None:
        self._seen.add(file)

    def discard(self, file: str) -> None:
        self._seen.discard(file)

    def __contains__(self, file: object) -> bool:
        return file in self._seen

    def __len__(self) -> int:
        return len(self._seen)
