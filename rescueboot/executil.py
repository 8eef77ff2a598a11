from __future__ import annotations

"""Subprocess wrapper plus the JSONL event log shared by every stage."""

import contextlib
import datetime as _dt
import json
import os
import subprocess
import time
from typing import Iterator, Sequence

from .paths import logs_dir


LOG_DIRS: list[str] | None = None
LOG_PATH: str | None = None
LOG_NAME = "system-setup.jsonl"


def _log_dirs() -> list[str]:
    if LOG_DIRS:
        return list(LOG_DIRS)
    return [
        logs_dir(),
        "/tmp/rescue-logs",
    ]


def _ensure_logger() -> str | None:
    global LOG_PATH
    if LOG_PATH:
        return LOG_PATH
    for d in _log_dirs():
        d_expanded = os.path.expanduser(d)
        try:
            os.makedirs(d_expanded, exist_ok=True)
            LOG_PATH = os.path.join(d_expanded, LOG_NAME)
            return LOG_PATH
        except Exception:
            continue
    LOG_PATH = None
    return None


def resolve_log_path() -> str | None:
    """Return the active log path, creating directories when possible."""

    return _ensure_logger()


class Result:
    def __init__(self, rc: int, duration: float):
        self.rc, self.duration = rc, duration

    @property
    def ok(self) -> bool:
        return self.rc == 0


# --- event log ---
LEVELS = {"TRACE": 10, "INFO": 20, "WARN": 30, "ERROR": 40, "NONE": 100}
LOG_LEVEL = os.environ.get("RESCUE_LOG_LEVEL", "INFO").upper()

# Set only inside ``tracing()``; lets TRACE events through regardless of LOG_LEVEL.
_TRACING = False


def append_jsonl(path: str, obj: dict):
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(obj, ensure_ascii=False) + "\n")
    except Exception:
        pass


def _write_jsonl(obj: dict):
    path = _ensure_logger()
    if path:
        append_jsonl(path, obj)


def log(level: str, event: str, **fields):
    lvl = LEVELS.get(level.upper(), 100)
    cur = LEVELS.get(LOG_LEVEL, 100)
    if lvl < cur and not (_TRACING and lvl == LEVELS["TRACE"]):
        return
    ts = _dt.datetime.now(_dt.timezone.utc).isoformat()
    rec = {"ts": ts, "level": level.upper(), "event": event}
    rec.update(fields)
    _write_jsonl(rec)


def trace(event: str, **fields):
    log("TRACE", event, **fields)


def tracing_enabled() -> bool:
    return _TRACING


@contextlib.contextmanager
def tracing() -> Iterator[None]:
    """Enable verbose tracing for the duration of the ``with`` block.

    The previous state is restored on every exit path, including when the
    body raises, so tracing never outlives the unit it was enabled for.
    """

    global _TRACING
    previous = _TRACING
    _TRACING = True
    trace("trace.on")
    try:
        yield
    finally:
        trace("trace.off")
        _TRACING = previous


# --- end event log ---

def run(
    cmd: Sequence[str],
    check: bool = False,
    env: dict | None = None,
) -> Result:
    """Run ``cmd`` attached to the console and block until it exits.

    Output is not captured: setup units, the recovery tool and the pager all
    talk to the operator directly.
    """

    log("INFO", "exec.start", cmd=list(cmd))
    started = time.time()
    proc = subprocess.run(list(cmd), env=env)
    dur = time.time() - started
    log("INFO", "exec.done", cmd=list(cmd), rc=proc.returncode, dur=dur)
    if check and proc.returncode != 0:
        raise subprocess.CalledProcessError(proc.returncode, cmd)
    return Result(proc.returncode, dur)
