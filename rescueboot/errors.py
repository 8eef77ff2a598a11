"""Exceptions raised by the system-setup orchestrator."""


class RescueError(RuntimeError):
    pass


class RecoveryNotRequestedError(RescueError):
    """The recovery workflow was asked for on a boot that did not request it."""
