from __future__ import annotations

# Launch of the external recovery workflow
from typing import List

from .config import RescueConfig
from .errors import RecoveryNotRequestedError
from .executil import log, run
from .model import ModeDecision, RecoveryOutcome

RECOVER_SUBCOMMAND = "recover"
DEBUG_TRACE_OPTIONS = ("-d", "-D")


def build_recover_command(mode: ModeDecision, config: RescueConfig) -> List[str]:
    cmd = [config.recovery_tool, "-v"]
    if mode.debug:
        cmd += list(DEBUG_TRACE_OPTIONS)
    cmd.append(RECOVER_SUBCOMMAND)
    return cmd


def launch(mode: ModeDecision, config: RescueConfig) -> RecoveryOutcome:
    """Run the recovery workflow once and classify its exit status.

    This rewrites the target machine's disks, so it refuses to run unless
    the boot asked for automatic or unattended recovery. A missing recovery
    executable is not handled here.
    """

    if not mode.recovery_requested:
        raise RecoveryNotRequestedError(f"recovery not requested for {mode.label} boot")
    cmd = build_recover_command(mode, config)
    log("INFO", "recovery.start", cmd=cmd, mode=mode.label)
    res = run(cmd)
    outcome = RecoveryOutcome.SUCCESS if res.rc == 0 else RecoveryOutcome.FAILURE
    log("INFO", "recovery.done", rc=res.rc, outcome=outcome.value, dur=res.duration)
    return outcome
