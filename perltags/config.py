"""Tagger settings persisted in ``~/.perltags/config.toml``."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import toml

from .errors import ConfigurationError

BASE_DIR = Path(os.environ.get("PERLTAGS_HOME", str(Path.home() / ".perltags"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"
SECTION = "tagger"


@dataclass
class TaggerSettings:
    """Options consumed by :meth:`perltags.crawler.Crawler.from_settings`."""

    max_level: int = 2
    do_variables: bool = True
    exts: bool = True
    tagger: str = "naive"
    outfile: str = "perltags"
    inc: List[str] = field(default_factory=list)

    def merged(self, **overrides: Any) -> "TaggerSettings":
        """Copy with every override that is not None applied."""
        values = asdict(self)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return TaggerSettings(**values)


_FIELD_TYPES = {f.name: f.type for f in fields(TaggerSettings)}


def _coerce(key: str, value: Any) -> Any:
    """Convert *value* (possibly a CLI string) to the type of setting *key*."""
    if key not in _FIELD_TYPES:
        raise ConfigurationError(f"Unknown setting '{key}'")
    kind = _FIELD_TYPES[key]

    if kind == "bool":
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in ("1", "true", "yes", "on"):
            return True
        if text in ("0", "false", "no", "off"):
            return False
        raise ConfigurationError(f"Setting '{key}' expects a boolean, got {value!r}")

    if kind == "int":
        if isinstance(value, bool):
            raise ConfigurationError(f"Setting '{key}' expects an integer, got {value!r}")
        try:
            number = int(value)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Setting '{key}' expects an integer, got {value!r}") from exc
        if number < 1:
            raise ConfigurationError(f"Setting '{key}' must be at least 1")
        return number

    if kind.startswith("List"):
        if isinstance(value, str):
            return [p for p in value.split(os.pathsep) if p]
        if isinstance(value, list):
            return [str(p) for p in value]
        raise ConfigurationError(f"Setting '{key}' expects a list, got {value!r}")

    return str(value)


def load_full_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the entire TOML config (all sections)."""
    path = path or CONFIG_FILE
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            return toml.load(f)
    except toml.TomlDecodeError as exc:
        raise ConfigurationError(f"Invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigurationError(f"Couldn't read {path}: {exc}") from exc


def load_settings(path: Optional[Path] = None) -> TaggerSettings:
    """Read the ``[tagger]`` section, falling back to defaults.

    Returns:
        Settings with every key found in the file applied over the defaults.
    """
    section = load_full_config(path).get(SECTION, {})
    if not isinstance(section, dict):
        raise ConfigurationError(f"[{SECTION}] must be a table")
    values = {key: _coerce(key, value) for key, value in section.items()}
    return TaggerSettings(**values)


def save_setting(key: str, value: Any, path: Optional[Path] = None) -> TaggerSettings:
    """Persist one setting, preserving the other keys and sections of the file."""
    path = path or CONFIG_FILE
    coerced = _coerce(key, value)
    config = load_full_config(path)
    config.setdefault(SECTION, {})[key] = coerced

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        toml.dump(config, f)
    return load_settings(path)
