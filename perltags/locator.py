"""Resolve Perl module names and required files to paths on disk."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional, Union

logger = logging.getLogger(__name__)


def module_to_relpath(module: str) -> str:
    """``Foo::Bar`` -> ``Foo/Bar.pm`` (also accepts the old ``Foo'Bar`` separator)."""
    return module.replace("'", "::").replace("::", "/") + ".pm"


def perl5lib_paths() -> List[Path]:
    raw = os.environ.get("PERL5LIB", "")
    return [Path(p) for p in raw.split(os.pathsep) if p]


class ModuleLocator:
    """Search path for ``use``/``require`` targets.

    Lookup order is: directories added with :meth:`add_lib` (most recent
    first, like ``use lib``), the configured include paths, then ``PERL5LIB``.

    Lib directories are global for the locator's lifetime, as ``@INC`` is
    for a perl process: a ``use lib`` in one file applies to every file
    scanned after it, and cleaning or refreshing that file keeps it.
    """

    def __init__(self, inc: Iterable[Union[str, Path]] = (), use_perl5lib: bool = True) -> None:
        self.inc = [Path(p).expanduser() for p in inc]
        self.use_perl5lib = use_perl5lib
        self._libs: List[Path] = []

    def add_lib(self, directory: Union[str, Path]) -> None:
        path = Path(directory).expanduser()
        if path in self._libs:
            self._libs.remove(path)
        self._libs.insert(0, path)
        logger.debug("Added lib path %s", path)

    @property
    def search_path(self) -> List[Path]:
        paths = self._libs + self.inc
        if self.use_perl5lib:
            paths = paths + perl5lib_paths()
        return paths

    def locate(self, module: str) -> Optional[Path]:
        """Find the ``.pm`` file for *module*, or None."""
        relpath = module_to_relpath(module)
        for directory in self.search_path:
            candidate = directory / relpath
            if candidate.is_file():
                return candidate.resolve()
        return None

    def locate_file(self, name: str, relative_to: Optional[Path] = None) -> Optional[Path]:
        """Find a file given to ``require "name"``.

        Absolute names are taken as is; relative names are tried next to the
        requiring file first, then along the search path.
        """
        path = Path(name).expanduser()
        if path.is_absolute():
            return path.resolve() if path.is_file() else None

        candidates = []
        if relative_to is not None:
            candidates.append(relative_to.parent / path)
        candidates.extend(directory / path for directory in self.search_path)
        for candidate in candidates:
            if candidate.is_file():
                return candidate.resolve()
        return None
