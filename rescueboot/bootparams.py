"""Kernel boot parameter classification."""

from __future__ import annotations

from typing import Iterable

from .executil import log
from .model import BootParameters, ModeDecision
from .paths import cmdline_path


def read_boot_parameters(path: str | None = None) -> BootParameters:
    """Read the kernel command line once and return its token set.

    A missing or unreadable command line yields an empty set, which
    classifies as a plain manual boot.
    """

    src = path or cmdline_path()
    try:
        with open(src, "r", encoding="utf-8", errors="ignore") as f:
            text = f.read()
    except OSError as exc:
        log("WARN", "bootparams.unreadable", path=src, error=str(exc))
        text = ""
    tokens = frozenset(text.split())
    log("INFO", "bootparams.read", path=src, tokens=sorted(tokens))
    return BootParameters(tokens)


def classify(tokens: Iterable[str] | BootParameters) -> ModeDecision:
    params = tokens if isinstance(tokens, BootParameters) else BootParameters(frozenset(tokens))
    return ModeDecision(
        debug=params.debug,
        unattended=params.unattended,
        automatic=params.automatic,
    )
