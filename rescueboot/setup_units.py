"""Discover and source the system-setup units."""

from __future__ import annotations

import os
import tempfile
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from . import console
from .executil import log, run, tracing, tracing_enabled
from .model import UnitResult
from .paths import SETUP_SUFFIX, setup_dir

# $1 unit, $2 env dump target, $3 "1" to trace the unit with set -x.
# Positional parameters are cleared so the unit cannot see or shift them.
_SOURCE_SCRIPT = (
    '__setup_unit=$1 __setup_dump=$2 __setup_trace=$3\n'
    'set --\n'
    'if [ "$__setup_trace" = 1 ]; then set -x; fi\n'
    '. "$__setup_unit"\n'
    '__setup_rc=$?\n'
    'set +x\n'
    'env -0 > "$__setup_dump"\n'
    'exit $__setup_rc\n'
)

# Maintained by the shell itself; never copied back.
_SHELL_OWNED = frozenset({"_", "SHLVL", "PWD", "OLDPWD"})


def discover_units(directory: Optional[str] = None, suffix: str = SETUP_SUFFIX) -> List[str]:
    base = directory or setup_dir()
    try:
        names = sorted(os.listdir(base))
    except OSError:
        return []
    units = []
    for name in names:
        path = os.path.join(base, name)
        if not name.endswith(suffix) or not os.path.isfile(path):
            continue
        if not os.access(path, os.X_OK):
            continue
        units.append(path)
    return units


def _read_environment(path: str) -> Dict[str, str]:
    with open(path, "rb") as f:
        raw = f.read()
    env: Dict[str, str] = {}
    for item in raw.split(b"\0"):
        if not item or b"=" not in item:
            continue
        key, _, value = item.partition(b"=")
        env[os.fsdecode(key)] = os.fsdecode(value)
    return env


def _import_environment(env: Dict[str, str]) -> None:
    if not env:
        return
    for key in list(os.environ):
        if key not in env and key not in _SHELL_OWNED:
            del os.environ[key]
    for key, value in env.items():
        if key in _SHELL_OWNED:
            continue
        if os.environ.get(key) != value:
            os.environ[key] = value


def source_unit(unit: str, defaults: Optional[Mapping[str, str]] = None) -> UnitResult:
    """Source ``unit`` in a shell sharing the orchestrator's environment.

    ``defaults`` (the rescue configuration) is visible to the unit for every
    key the environment does not already define, so a value exported by an
    earlier unit wins over the configured one.

    Whatever the unit exports is copied back into ``os.environ`` so later
    units and the recovery tool see it. A unit that calls ``exit`` ends its
    shell before the environment is dumped; its changes are lost.
    """

    name = os.path.basename(unit)
    fd, env_dump = tempfile.mkstemp(prefix="system-setup-env.")
    os.close(fd)
    try:
        cmd = ["bash", "-c", _SOURCE_SCRIPT, "system-setup", unit, env_dump, "1" if tracing_enabled() else "0"]
        try:
            res = run(cmd, env={**(defaults or {}), **os.environ})
        except OSError as exc:
            log("WARN", "setup.unit_error", unit=name, error=str(exc))
            return UnitResult(name, unit, 127, error=str(exc))
        _import_environment(_read_environment(env_dump))
    finally:
        try:
            os.unlink(env_dump)
        except OSError:
            pass
    return UnitResult(name, unit, res.rc)


def run_units(
    units: Sequence[str],
    debug: bool = False,
    confirm: Callable[[str], str] = console.read_key,
    config=None,
) -> List[UnitResult]:
    defaults = dict(config.values) if config is not None else {}
    results: List[UnitResult] = []
    for unit in units:
        name = os.path.basename(unit)
        if debug:
            confirm(f"Press any key to run {name} ... ")
            console.info(f"Running {name} (traced)")
            with tracing():
                result = source_unit(unit, defaults)
        else:
            console.info(f"Running {name}")
            result = source_unit(unit, defaults)
        log("INFO" if result.ok else "WARN", "setup.unit_done", unit=name, rc=result.rc)
        if not result.ok:
            console.warn(f"{name} failed (rc={result.rc}), continuing")
        results.append(result)
    return results
