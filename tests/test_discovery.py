"""Tests for directory expansion."""

from pathlib import Path

from perltags.discovery import iter_perl_files


def test_finds_perl_files(sample_project_path: Path):
    names = [p.relative_to(sample_project_path).as_posix() for p in iter_perl_files(sample_project_path)]
    assert names == [
        "bin/app.pl",
        "bin/helpers.pl",
        "lib/My/App.pm",
        "lib/My/Base.pm",
        "lib/My/Deep.pm",
        "lib/My/Model.pm",
        "lib/My/Util.pm",
        "t/basic.t",
    ]


def test_skips_build_dirs_and_pruned(temp_dir: Path):
    for rel in ("lib/A.pm", "blib/lib/A.pm", ".git/hook.pl", "xt/author.t", "README.md", "local/lib/B.pm"):
        path = temp_dir / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("1;\n")

    found = [p.relative_to(temp_dir).as_posix() for p in iter_perl_files(temp_dir, prune=["xt"])]
    assert found == ["lib/A.pm"]
