"""Post-recovery menu and the unattended reboot countdown."""

from __future__ import annotations

import os
import shutil
import time
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from . import console
from .executil import log, run
from .model import MenuChoice, ModeDecision, RecoveryOutcome
from .paths import banner_paths, logs_dir

VIEW_LOGS = "logs"
GO_TO_SHELL = "shell"
REBOOT = "reboot"
END_OF_INPUT = "eof"

COUNTDOWN_SECONDS = 30


def build_choices(outcome: RecoveryOutcome, mode: ModeDecision) -> List[MenuChoice]:
    choices = [
        MenuChoice(VIEW_LOGS, "View log files"),
        MenuChoice(GO_TO_SHELL, "Go to shell", terminal=True),
    ]
    # unattended boots never get here on success, and must not offer reboot on failure
    if outcome is RecoveryOutcome.SUCCESS and mode.automatic:
        choices.append(MenuChoice(REBOOT, "Reboot", terminal=True))
    return choices


def render_menu(choices: Sequence[MenuChoice], headline: str = "") -> str:
    lines = [headline, ""] if headline else []
    for idx, choice in enumerate(choices, start=1):
        lines.append(f"  {idx}) {choice.label}")
    return "\n".join(lines)


def select(choices: Sequence[MenuChoice], answer: str) -> Optional[MenuChoice]:
    answer = answer.strip()
    if answer.isdigit():
        idx = int(answer)
        if 1 <= idx <= len(choices):
            return choices[idx - 1]
        return None
    for choice in choices:
        if answer.lower() == choice.key:
            return choice
    return None


def _log_files(directory: str) -> List[str]:
    found: List[str] = []
    for base, _dirs, files in os.walk(directory):
        for name in files:
            found.append(os.path.join(base, name))
    return sorted(found)


def view_logs(directory: Optional[str] = None) -> int:
    files = _log_files(directory or logs_dir())
    if not files:
        console.info("no log files found")
        return 0
    pager = shutil.which("less")
    if pager:
        run([pager, *files])
        return len(files)
    for path in files:
        print(f"===== {path} =====")
        try:
            with open(path, "r", encoding="utf-8", errors="replace") as f:
                print(f.read(), flush=True)
        except OSError as exc:
            console.warn(f"cannot read {path}: {exc}")
    return len(files)


def go_to_shell(banners: Optional[Sequence[str]] = None) -> None:
    """Blank the login banners so the shell prompt is not buried under them."""

    for path in banners if banners is not None else banner_paths():
        try:
            with open(path, "w", encoding="utf-8"):
                pass
        except OSError as exc:
            log("WARN", "menu.banner_clear_failed", path=path, error=str(exc))


def reboot_system() -> None:
    log("INFO", "menu.reboot")
    console.sync_output()
    os.execvp("reboot", ["reboot"])


def reboot_countdown(
    seconds: int = COUNTDOWN_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
    reboot: Callable[[], None] = reboot_system,
) -> None:
    """Count down visibly, then reboot. Ctrl-C aborts the whole orchestrator."""

    console.info(f"Rebooting in {seconds} seconds, press Ctrl-C to abort")
    for remaining in range(seconds, 0, -1):
        print(f"\r{remaining:3d} ", end="", flush=True)
        sleep(1)
    print(flush=True)
    reboot()


def default_actions(root: Optional[str] = None) -> Dict[str, Callable[[], object]]:
    """Menu handlers bound to the logs and banners under ``root``."""

    return {
        VIEW_LOGS: lambda: view_logs(logs_dir(root)),
        GO_TO_SHELL: lambda: go_to_shell(banner_paths(root)),
        REBOOT: reboot_system,
    }


def run_menu(
    outcome: RecoveryOutcome,
    mode: ModeDecision,
    read: Callable[[str], Optional[str]] = console.read_line,
    actions: Optional[Mapping[str, Callable[[], object]]] = None,
) -> str:
    """Loop over the menu until a terminal action runs; return its key."""

    choices = build_choices(outcome, mode)
    handlers = dict(default_actions())
    if actions:
        handlers.update(actions)
    if outcome is RecoveryOutcome.SUCCESS:
        headline = "Recovery finished successfully."
    else:
        headline = "Recovery failed. Check the log files before retrying."
    log("INFO", "menu.shown", outcome=outcome.value, choices=[c.key for c in choices])
    while True:
        print(render_menu(choices, headline), flush=True)
        answer = read("Select an action: ")
        if answer is None:
            log("WARN", "menu.end_of_input")
            return END_OF_INPUT
        choice = select(choices, answer)
        if choice is None:
            continue
        log("INFO", "menu.choice", choice=choice.key)
        handlers[choice.key]()
        if choice.terminal:
            return choice.key
