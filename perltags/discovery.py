"""Expand directories into the Perl source files they contain."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, Set

PERL_EXTENSIONS: Set[str] = {".pm", ".pl", ".t"}

SKIP_DIRS: Set[str] = {
    ".git", ".svn", ".hg", "blib", "_build", ".build", "local",
    "node_modules", "cover_db", "nytprof", ".perltags",
}


def iter_perl_files(root: Path, prune: Iterable[str] = ()) -> Iterator[Path]:
    """Yield Perl files below *root* in sorted order.

    Directories named in :data:`SKIP_DIRS` or *prune* are not descended into.
    """
    skip = SKIP_DIRS | set(prune)
    for file_path in sorted(root.rglob("*")):
        if file_path.suffix not in PERL_EXTENSIONS or not file_path.is_file():
            continue
        if any(part in skip for part in file_path.relative_to(root).parts[:-1]):
            continue
        yield file_path
