"""Pytest configuration and fixtures for perltags tests."""

import dataclasses
import shutil
import tempfile
from pathlib import Path
from typing import Dict, Generator, List

import pytest

from perltags.extractor import Extractor
from perltags.models import ExtractionResult, ProcessingContext, RecurseRequest, Tag, TagKind


class ScriptedExtractor(Extractor):
    """Extractor returning canned results per file, recording every call."""

    def __init__(self, script: Dict[Path, List[ExtractionResult]]) -> None:
        self.script = script
        self.calls: List[tuple] = []

    def get_tags_for_file(self, file: Path, context: ProcessingContext) -> List[ExtractionResult]:
        self.calls.append((file, context.level))
        # Registration fills in blanks on the tags, so hand out fresh copies.
        return [
            dataclasses.replace(result) if isinstance(result, Tag) else result
            for result in self.script.get(file, [])
        ]

    @property
    def processed(self) -> List[Path]:
        return [file for file, _ in self.calls]


def sub(name: str, linenum: int = 1, **kwargs) -> Tag:
    return Tag(name=name, kind=TagKind.SUB, line=f"sub {name} {{", linenum=linenum, **kwargs)


def recurse(target: Path) -> RecurseRequest:
    return RecurseRequest(target=target)


@pytest.fixture(autouse=True)
def _isolate_environment(temp_dir: Path, monkeypatch):
    """Keep the user's config file and PERL5LIB out of every test."""
    monkeypatch.setattr("perltags.config.CONFIG_FILE", temp_dir / "home" / "config.toml")
    monkeypatch.delenv("PERL5LIB", raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp()).resolve()
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_project_path() -> Path:
    """Get path to the sample Perl project."""
    return (Path(__file__).parent / "fixtures" / "sample_project").resolve()


@pytest.fixture
def sample_lib(sample_project_path: Path) -> Path:
    return sample_project_path / "lib"


@pytest.fixture
def perl_file(temp_dir: Path):
    """Factory writing Perl source into the temp directory."""

    def _write(name: str, source: str) -> Path:
        path = temp_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def files(temp_dir: Path) -> Dict[str, Path]:
    """Absolute paths for the scripted extractor (the files need not exist)."""
    return {name: temp_dir / f"{name}.pm" for name in ("A", "B", "C", "D", "X", "Y", "Z")}
