from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import FrozenSet, Tuple


@dataclass(frozen=True)
class BootParameters:
    tokens: FrozenSet[str] = frozenset()

    # Derived flags are evaluated on every access; nothing is cached.
    @property
    def debug(self) -> bool:
        return "debug" in self.tokens

    @property
    def unattended(self) -> bool:
        return "unattended" in self.tokens

    @property
    def automatic(self) -> bool:
        if self.unattended:
            return False
        return "auto_recover" in self.tokens or "automatic" in self.tokens


@dataclass(frozen=True)
class ModeDecision:
    debug: bool = False
    unattended: bool = False
    automatic: bool = False

    @property
    def recovery_requested(self) -> bool:
        return self.automatic or self.unattended

    @property
    def label(self) -> str:
        if self.unattended:
            base = "unattended"
        elif self.automatic:
            base = "automatic"
        else:
            base = "manual"
        return base + (" (debug)" if self.debug else "")


@dataclass(frozen=True)
class ManifestEntry:
    path: str
    checksum: str


class Verdict(enum.Enum):
    SKIPPED = "skipped"
    PASSED = "passed"
    FAILED = "failed"


@dataclass(frozen=True)
class VerificationVerdict:
    status: Verdict
    failed: Tuple[str, ...] = ()
    checked: int = 0
    excluded: int = 0

    @property
    def ok(self) -> bool:
        return self.status is not Verdict.FAILED


@dataclass(frozen=True)
class UnitResult:
    name: str
    path: str
    rc: int
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.rc == 0 and self.error is None


class RecoveryOutcome(enum.Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class MenuChoice:
    key: str
    label: str
    terminal: bool = False
