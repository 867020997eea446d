"""Core data models shared by the extractors, the crawler and the serializer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union


class TagKind(str, Enum):
    """Exuberant ctags kind letters for Perl declarations."""

    PACKAGE = "p"
    SUB = "s"
    VARIABLE = "v"
    CONSTANT = "c"
    LABEL = "l"
    ATTRIBUTE = "a"


@dataclass
class Tag:
    name: str
    kind: TagKind
    file: str = ""
    line: str = ""
    linenum: int = 0
    pkg: str = ""
    is_static: bool = False
    exts: Optional[bool] = None

    def to_line(self) -> str:
        """Render this tag as a single ctags line."""
        pattern = self.line.rstrip("\r\n").replace("\\", "\\\\").replace("/", "\\/")
        text = f"{self.name}\t{self.file}\t/{pattern}/"
        if not self.exts:
            return text

        text += f';"\t{self.kind.value}'
        if self.linenum:
            text += f"\tline:{self.linenum}"
        if self.is_static:
            text += "\tfile:"
        if self.pkg:
            text += f"\tclass:{self.pkg}"
        return text


@dataclass(frozen=True)
class RecurseRequest:
    """Ask the crawler to process *target* one level deeper; never stored."""

    target: Path
    linenum: int = 0


ExtractionResult = Union[Tag, RecurseRequest]


@dataclass
class ProcessingContext:
    """Per-file state, reset every time a file is (re-)processed."""

    file: Path
    level: int
    do_variables: bool = True
    package_name: str = ""
    var_continues: bool = False


@dataclass(frozen=True)
class WorkItem:
    file: Path
    level: int
    refresh: bool = False
