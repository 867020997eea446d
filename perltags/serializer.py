"""Rendering of the tag index and the guarded write of the tags file."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Iterator, Union

from .errors import TagsWriteError
from .store import OrderTracker, TagStore

logger = logging.getLogger(__name__)


class Serializer:
    """Turns a :class:`TagStore` into sorted ctags text.

    Names are sorted lexicographically.  Within a name, files come in
    ascending first-seen order so tags from the files included first (the
    ones most likely to be wanted) are found first.  Within a file, tags keep
    their extraction order.
    """

    def __init__(self, store: TagStore, order: OrderTracker) -> None:
        self.store = store
        self.order = order

    def lines(self) -> Iterator[str]:
        for name in self.store.names():
            files = self.store.files_for(name)
            for file in sorted(files, key=self.order.sort_key):
                for tag in files[file]:
                    yield tag.to_line()

    def to_string(self) -> str:
        return "\n".join(self.lines())


def write_atomic(outfile: Union[str, Path], text: str) -> None:
    """Write *text* to *outfile* without ever exposing a partial file.

    The content goes to a temporary file next to the target, which then
    replaces the target in one step.  Any failure removes the temporary file
    and raises :class:`TagsWriteError`.
    """
    target = Path(outfile)
    directory = target.parent if str(target.parent) else Path(".")
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", dir=str(directory))
    except OSError as exc:
        raise TagsWriteError(f"Couldn't open {target} for write: {exc}") from exc

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_name, target)
    except OSError as exc:
        Path(tmp_name).unlink(missing_ok=True)
        raise TagsWriteError(f"Couldn't write {target}: {exc}") from exc

    logger.debug("Wrote %d bytes to %s", len(text.encode("utf-8")), target)
