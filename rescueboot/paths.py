from __future__ import annotations

import os
from pathlib import Path

_DEFAULT_ROOT = "/"

CMDLINE_PATH = "proc/cmdline"
CONFIG_DIR = "etc/rescue"
CONFIG_FILES = ("local.conf", "site.conf", "rescue.conf")
MANIFEST_PATH = "md5sums.txt"
SETUP_DIR = "etc/scripts/system-setup.d"
SETUP_SUFFIX = ".sh"
LOG_DIR = "var/log/rescue"
BANNER_FILES = ("etc/issue", "etc/motd")


def _expand(path: str) -> str:
    candidate = Path(path).expanduser()
    try:
        return str(candidate.resolve())
    except FileNotFoundError:
        return str(candidate)


def rescue_root() -> str:
    """Return the root directory all well-known rescue paths live under.

    The location can be overridden via the ``RESCUE_ROOT`` environment
    variable, e.g. to run against a rescue image mounted elsewhere.
    """

    override = os.environ.get("RESCUE_ROOT")
    if override:
        return _expand(override)
    return _DEFAULT_ROOT


def under_root(rel: str, root: str | None = None) -> str:
    base = root if root is not None else rescue_root()
    return str(Path(base) / rel.lstrip("/"))


def cmdline_path(root: str | None = None) -> str:
    return under_root(CMDLINE_PATH, root)


def config_paths(config_dir: str | None = None, root: str | None = None) -> list[str]:
    base = config_dir or under_root(CONFIG_DIR, root)
    return [str(Path(base) / name) for name in CONFIG_FILES]


def manifest_path(root: str | None = None) -> str:
    return under_root(MANIFEST_PATH, root)


def setup_dir(root: str | None = None) -> str:
    return under_root(SETUP_DIR, root)


def logs_dir(root: str | None = None) -> str:
    return under_root(LOG_DIR, root)


def banner_paths(root: str | None = None) -> list[str]:
    return [under_root(rel, root) for rel in BANNER_FILES]
