"""Detached debug shell on a spare virtual terminal."""

from __future__ import annotations

import os
import subprocess

from . import console
from .executil import log


def spawn_debug_shell(tty: str, shell: str = "/bin/bash") -> bool:
    """Start an interactive shell on ``tty`` and forget about it.

    The process runs in its own session and is never waited for; no handle
    is kept. Returns whether the shell was started.
    """

    try:
        fd = os.open(tty, os.O_RDWR | os.O_NOCTTY)
    except OSError as exc:
        log("WARN", "debug_shell.no_tty", tty=tty, error=str(exc))
        console.warn(f"debug shell not started: cannot open {tty} ({exc})")
        return False
    try:
        subprocess.Popen(
            # setsid -c makes the tty the controlling terminal of the new session
            ["setsid", "-c", shell, "-i"],
            stdin=fd,
            stdout=fd,
            stderr=fd,
            close_fds=True,
        )
    except OSError as exc:
        log("WARN", "debug_shell.spawn_failed", tty=tty, error=str(exc))
        console.warn(f"debug shell not started: {exc}")
        return False
    finally:
        os.close(fd)
    log("INFO", "debug_shell.started", tty=tty, shell=shell)
    console.info(f"debug shell available on {tty}")
    return True
