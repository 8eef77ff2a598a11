"""Operator console: coloured status lines and blocking prompts."""

from __future__ import annotations

import os
import sys
from typing import Optional, TextIO

GREEN = "\033[0;32m"; YELLOW = "\033[0;33m"; RED = "\033[0;31m"; CLR = "\033[0m"


def _emit(prefix: str, msg: str) -> None:
    print(f"{prefix} {msg}", flush=True)


def info(msg: str) -> None:  _emit("[INFO]", msg)
def ok(msg: str) -> None:    _emit(f"{GREEN}[OK]{CLR}", msg)
def warn(msg: str) -> None:  _emit(f"{YELLOW}[WARN]{CLR}", msg)
def fail(msg: str) -> None:  _emit(f"{RED}[FAIL]{CLR}", msg)


def sync_output() -> None:
    """Push everything written so far to the console and the disks.

    Called before every prompt: early boot output must be visible before
    the orchestrator blocks on the operator.
    """

    for stream in (sys.stdout, sys.stderr):
        try:
            stream.flush()
        except (OSError, ValueError):
            pass
    os.sync()


def _tty_fd(stream: TextIO) -> Optional[int]:
    try:
        fd = stream.fileno()
    except (AttributeError, OSError, ValueError):
        return None
    return fd if os.isatty(fd) else None


def read_key(prompt: str, stream: Optional[TextIO] = None) -> str:
    """Block until a single key is pressed and return it.

    There is no timeout. When the input is not a terminal a whole line is
    consumed and its first character returned.
    """

    src = stream if stream is not None else sys.stdin
    sync_output()
    sys.stdout.write(prompt)
    sys.stdout.flush()
    fd = _tty_fd(src)
    if fd is None:
        return src.readline()[:1]

    import termios
    import tty

    saved = termios.tcgetattr(fd)
    try:
        # cbreak keeps ISIG so Ctrl-C still aborts
        tty.setcbreak(fd)
        key = os.read(fd, 1).decode("utf-8", errors="ignore")
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)
    sys.stdout.write("\n")
    sys.stdout.flush()
    return key


def read_line(prompt: str, stream: Optional[TextIO] = None) -> Optional[str]:
    """Read one line of input; ``None`` means the input is gone (EOF)."""

    src = stream if stream is not None else sys.stdin
    sync_output()
    sys.stdout.write(prompt)
    sys.stdout.flush()
    line = src.readline()
    if not line:
        return None
    return line.strip()
