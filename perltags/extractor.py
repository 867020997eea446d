"""Tag extraction strategies for Perl source files.

Every strategy implements :class:`Extractor`: given an absolute path and the
per-file :class:`~perltags.models.ProcessingContext`, return the declarations
found in the file plus :class:`~perltags.models.RecurseRequest` markers for
the modules it pulls in.

- :class:`NaiveExtractor` makes pragmatic assumptions about what Perl code
  usually looks like and scans it line by line.  It doesn't actually parse
  anything, which keeps it fast and is often good enough.
- :class:`MooseExtractor` adds Moose/Moo ``has``, ``extends`` and ``with``.
- :class:`HybridExtractor` runs several strategies and merges their results.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .errors import AbstractCapabilityError, ConfigurationError
from .locator import ModuleLocator
from .models import ExtractionResult, ProcessingContext, RecurseRequest, Tag, TagKind

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Line patterns
# ---------------------------------------------------------------------------
POD_START = re.compile(r"^=[A-Za-z]")
POD_END = re.compile(r"^=cut\b")
END_OF_CODE = re.compile(r"^__(?:END|DATA)__\s*$")

PACKAGE_RE = re.compile(r"^\s*package\s+([A-Za-z_][\w:']*)\s*(?:[\w.]+\s*)?[;{]")
SUB_RE = re.compile(r"^\s*(?:(?:my|our|state)\s+)?sub\s+([A-Za-z_][\w:']*)")
VAR_DECL_RE = re.compile(r"^\s*(my|our|local|state)\b\s*(.*)$")
VAR_NAME_RE = re.compile(r"[$@%]([A-Za-z_]\w*(?:::\w+)*)")
CONSTANT_RE = re.compile(r"^\s*use\s+constant\s+([A-Za-z_]\w*)\s*(?:=>|,)")
CONSTANT_HASH_RE = re.compile(r"^\s*use\s+constant\s*\{(.*)")
HASH_KEY_RE = re.compile(r"([A-Za-z_]\w*)\s*=>")
LABEL_RE = re.compile(r"^\s*([A-Z_][A-Z0-9_]*)\s*:(?!:)\s*(?:for|foreach|while|until|do\b|\{|$)")
USE_RE = re.compile(r"^\s*(use|require)\s+([A-Za-z_][\w:']*)(.*)$")
REQUIRE_FILE_RE = re.compile(r"""^\s*require\s+(['"])([^'"]+)\1""")
TEST_MORE_RE = re.compile(r"""\b(?:use|require)_ok\s*\(?\s*(['"])([\w:']+)\1""")
QUOTED_RE = re.compile(r"""(['"])(.*?)\1""")
QW_RE = re.compile(r"\bqw\s*[(\[{/<|!]([^)\]}/>|!]*)")
MOOSE_HAS_RE = re.compile(r"""^\s*has\s+(['"]?)\+?([A-Za-z_]\w*)\1\s*(?:=>|,|;|$)""")
MOOSE_HAS_LIST_RE = re.compile(r"^\s*has\s+\[(.*?)\]")
MOOSE_PARENT_RE = re.compile(r"^\s*(?:extends|with)\b(.*)$")
FINDBIN_RE = re.compile(r"\$(?:FindBin::)?(?:Real)?Bin\b")

# Pragmas whose arguments name parent classes.
INHERITANCE_PRAGMAS = {"base", "parent"}


def _quoted_words(text: str) -> List[str]:
    """Words from ``qw(...)`` lists and quoted strings, in order of appearance."""
    found: List[Tuple[int, str]] = []
    qw_spans: List[Tuple[int, int]] = []
    for match in QW_RE.finditer(text):
        qw_spans.append(match.span())
        found.extend((match.start(), word) for word in match.group(1).split())
    for match in QUOTED_RE.finditer(text):
        if any(start <= match.start() < end for start, end in qw_spans):
            continue
        found.append((match.start(), match.group(2)))
    found.sort(key=lambda item: item[0])
    return [word for _, word in found if word]


def _is_pragma(module: str) -> bool:
    return "::" not in module and module.islower()


# ===================================================================
# Abstract Extractor Interface
# ===================================================================

class Extractor(ABC):
    """Strategy that turns one file into tags and recursion requests."""

    @abstractmethod
    def get_tags_for_file(
        self,
        file: Path,
        context: ProcessingContext,
    ) -> Sequence[ExtractionResult]:
        """Return the tags of *file*; called once per (re-)processing."""
        raise AbstractCapabilityError(
            f"{type(self).__name__} must override get_tags_for_file"
        )


# ===================================================================
# Naive line-by-line extractor
# ===================================================================

class NaiveExtractor(Extractor):
    """Line-oriented Perl tagger in the tradition of ``pltags``."""

    def __init__(
        self,
        inc: Iterable[Union[str, Path]] = (),
        locator: Optional[ModuleLocator] = None,
    ) -> None:
        self.locator = locator or ModuleLocator(inc)
        self._var_scope = ""

    @property
    def line_parsers(self):
        return [
            self.parse_package,
            self.parse_sub,
            self.parse_constant,
            self.parse_label,
            self.parse_variable,
            self.parse_use,
        ]

    def get_tags_for_file(self, file: Path, context: ProcessingContext) -> List[ExtractionResult]:
        source = file.read_text(encoding="utf-8", errors="replace")
        context.var_continues = False
        self._var_scope = ""

        results: List[ExtractionResult] = []
        in_pod = False
        parsers = self.line_parsers
        for linenum, line in enumerate(source.splitlines(), start=1):
            if in_pod:
                in_pod = not POD_END.match(line)
                continue
            if POD_START.match(line):
                in_pod = not POD_END.match(line)
                continue
            if END_OF_CODE.match(line):
                break
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            for parser in parsers:
                results.extend(parser(line, linenum, context))

        logger.debug("Extracted %d results from %s", len(results), file)
        return results

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def parse_package(self, line: str, linenum: int, context: ProcessingContext) -> List[ExtractionResult]:
        match = PACKAGE_RE.match(line)
        if not match:
            return []
        name = match.group(1).replace("'", "::")
        return [Tag(name=name, kind=TagKind.PACKAGE, line=line, linenum=linenum)]

    def parse_sub(self, line: str, linenum: int, context: ProcessingContext) -> List[ExtractionResult]:
        match = SUB_RE.match(line)
        if not match:
            return []
        qualified = match.group(1).replace("'", "::")
        pkg, _, name = qualified.rpartition("::")
        return [Tag(name=name, kind=TagKind.SUB, line=line, linenum=linenum, pkg=pkg)]

    def parse_constant(self, line: str, linenum: int, context: ProcessingContext) -> List[ExtractionResult]:
        match = CONSTANT_RE.match(line)
        if match:
            names = [match.group(1)]
        else:
            match = CONSTANT_HASH_RE.match(line)
            if not match:
                return []
            names = HASH_KEY_RE.findall(match.group(1))
        return [Tag(name=name, kind=TagKind.CONSTANT, line=line, linenum=linenum) for name in names]

    def parse_label(self, line: str, linenum: int, context: ProcessingContext) -> List[ExtractionResult]:
        match = LABEL_RE.match(line)
        if not match:
            return []
        return [Tag(name=match.group(1), kind=TagKind.LABEL, line=line, linenum=linenum, is_static=True)]

    def parse_variable(self, line: str, linenum: int, context: ProcessingContext) -> List[ExtractionResult]:
        if not context.do_variables:
            return []

        match = VAR_DECL_RE.match(line)
        if match:
            self._var_scope = match.group(1)
            declared = match.group(2).lstrip()
            if declared.startswith("("):
                declared = declared[1:]
                in_list = True
            else:
                in_list = False
        elif context.var_continues:
            declared = line
            in_list = True
        else:
            return []

        # Only the part before an initialiser or the end of the statement names variables.
        cut = re.split(r"[=;]", declared, maxsplit=1)
        head = cut[0]
        if in_list:
            closed = ")" in head or len(cut) > 1
            head = head.split(")", 1)[0]
            context.var_continues = not closed
            names = [name for name in VAR_NAME_RE.findall(head) if name != "_"]
        else:
            context.var_continues = False
            first = VAR_NAME_RE.match(head.strip())
            names = [first.group(1)] if first and first.group(1) != "_" else []

        is_static = self._var_scope != "our"
        return [
            Tag(name=name, kind=TagKind.VARIABLE, line=line, linenum=linenum, is_static=is_static)
            for name in names
        ]

    # ------------------------------------------------------------------
    # Module inclusion
    # ------------------------------------------------------------------

    def parse_use(self, line: str, linenum: int, context: ProcessingContext) -> List[ExtractionResult]:
        match = REQUIRE_FILE_RE.match(line)
        if match:
            return self._recurse_to_file(match.group(2), linenum, context)

        match = TEST_MORE_RE.search(line)
        if match:
            return self._recurse_to_modules([match.group(2)], linenum)

        match = USE_RE.match(line)
        if not match:
            return []
        keyword, module, rest = match.groups()
        module = module.replace("'", "::")

        if keyword == "use" and module == "lib":
            self._add_libs(rest, context)
            return []
        if keyword == "use" and module in INHERITANCE_PRAGMAS:
            if "-norequire" in rest:
                return []
            return self._recurse_to_modules(_quoted_words(rest), linenum)
        if _is_pragma(module):
            return []
        return self._recurse_to_modules([module], linenum)

    def _add_libs(self, rest: str, context: ProcessingContext) -> None:
        base = str(context.file.parent)
        for word in _quoted_words(rest):
            self.locator.add_lib(FINDBIN_RE.sub(lambda _: base, word))

    def _recurse_to_modules(self, modules: Iterable[str], linenum: int) -> List[ExtractionResult]:
        requests: List[ExtractionResult] = []
        for module in modules:
            path = self.locator.locate(module)
            if path is None:
                logger.debug("Could not locate module %s", module)
                continue
            requests.append(RecurseRequest(target=path, linenum=linenum))
        return requests

    def _recurse_to_file(self, name: str, linenum: int, context: ProcessingContext) -> List[ExtractionResult]:
        path = self.locator.locate_file(name, relative_to=context.file)
        if path is None:
            logger.debug("Could not locate required file %s", name)
            return []
        return [RecurseRequest(target=path, linenum=linenum)]


# ===================================================================
# Moose / Moo declarations
# ===================================================================

class MooseExtractor(NaiveExtractor):
    """Naive tagger that also knows Moose attribute and role syntax."""

    @property
    def line_parsers(self):
        return super().line_parsers + [self.parse_has, self.parse_extends]

    def parse_has(self, line: str, linenum: int, context: ProcessingContext) -> List[ExtractionResult]:
        match = MOOSE_HAS_RE.match(line)
        if match:
            names = [match.group(2)]
        else:
            match = MOOSE_HAS_LIST_RE.match(line)
            if not match:
                return []
            names = _quoted_words(match.group(1))
        return [Tag(name=name, kind=TagKind.ATTRIBUTE, line=line, linenum=linenum) for name in names]

    def parse_extends(self, line: str, linenum: int, context: ProcessingContext) -> List[ExtractionResult]:
        match = MOOSE_PARENT_RE.match(line)
        if not match:
            return []
        return self._recurse_to_modules(_quoted_words(match.group(1)), linenum)


# ===================================================================
# Hybrid: combine several strategies
# ===================================================================

class HybridExtractor(Extractor):
    """Run several extractors over a file and merge what they find.

    Merged results are ordered by source line, so package defaults still
    apply to the declarations that follow them.  Results on the same line
    keep extractor order.  Later duplicates (same kind, name and line, or
    same recursion target) are dropped.
    """

    def __init__(self, extractors: Sequence[Extractor]) -> None:
        if not extractors:
            raise ConfigurationError("HybridExtractor needs at least one extractor")
        self.extractors = list(extractors)

    def get_tags_for_file(self, file: Path, context: ProcessingContext) -> List[ExtractionResult]:
        merged: Dict[tuple, Tuple[Tuple[int, int, int], ExtractionResult]] = {}
        for index, extractor in enumerate(self.extractors):
            for seq, result in enumerate(extractor.get_tags_for_file(file, context)):
                if isinstance(result, RecurseRequest):
                    key: tuple = ("recurse", str(result.target))
                else:
                    key = (result.kind, result.name, result.linenum)
                merged.setdefault(key, ((result.linenum, index, seq), result))
        return [result for _, result in sorted(merged.values(), key=lambda entry: entry[0])]


TAGGERS = ("naive", "moose", "hybrid")


def build_extractor(name: str = "naive", inc: Iterable[Union[str, Path]] = ()) -> Extractor:
    """Create the extractor registered under *name*."""
    locator = ModuleLocator(inc)
    if name == "naive":
        return NaiveExtractor(locator=locator)
    if name == "moose":
        return MooseExtractor(locator=locator)
    if name == "hybrid":
        return HybridExtractor([NaiveExtractor(locator=locator), MooseExtractor(locator=locator)])
    raise ConfigurationError(f"Unknown tagger '{name}' (expected one of: {', '.join(TAGGERS)})")
