"""Immutable configuration assembled from the rescue config files."""

from __future__ import annotations

import re
import shlex
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional

from .executil import log
from .paths import config_paths

_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

DEFAULT_RECOVERY_TOOL = "rear"
DEFAULT_DEBUG_SHELL_TTY = "/dev/tty9"


@dataclass(frozen=True)
class RescueConfig:
    values: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    sources: tuple[str, ...] = ()

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.values.get(key, default)

    @property
    def integrity_exclude(self) -> str:
        return self.get("EXCLUDE_MD5SUM_VERIFICATION", "") or ""

    @property
    def recovery_tool(self) -> str:
        return self.get("RECOVERY_TOOL") or DEFAULT_RECOVERY_TOOL

    @property
    def debug_shell_tty(self) -> str:
        return self.get("DEBUG_SHELL_TTY") or DEFAULT_DEBUG_SHELL_TTY


def _parse_value(raw: str) -> str:
    raw = raw.strip()
    # bash array assignment: KEY=( a b c )
    if raw.startswith("(") and raw.endswith(")"):
        raw = raw[1:-1]
    return " ".join(shlex.split(raw, comments=True))


def parse_config_text(text: str, source: str = "<text>") -> Dict[str, str]:
    values: Dict[str, str] = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if stripped.startswith("export "):
            stripped = stripped[len("export "):].lstrip()
        key, sep, raw = stripped.partition("=")
        key = key.strip()
        if not sep or not _KEY_RE.match(key):
            log("WARN", "config.skip_line", source=source, line=lineno)
            continue
        try:
            values[key] = _parse_value(raw)
        except ValueError as exc:
            log("WARN", "config.bad_value", source=source, line=lineno, key=key, error=str(exc))
    return values


def load_config(paths: Iterable[str] | None = None) -> RescueConfig:
    """Load the config files in order; later files override earlier ones.

    Missing files are not an error. An unreadable file is logged and skipped.
    """

    merged: Dict[str, str] = {}
    loaded: list[str] = []
    for path in paths if paths is not None else config_paths():
        try:
            with open(path, "r", encoding="utf-8") as f:
                text = f.read()
        except FileNotFoundError:
            continue
        except OSError as exc:
            log("WARN", "config.unreadable", path=path, error=str(exc))
            continue
        merged.update(parse_config_text(text, source=path))
        loaded.append(path)
    log("INFO", "config.loaded", sources=loaded, keys=sorted(merged))
    return RescueConfig(MappingProxyType(merged), tuple(loaded))
