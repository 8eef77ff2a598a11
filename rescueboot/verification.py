"""Checksum-manifest verification of the rescue filesystem.

The manifest holds one ``<checksum>  <path>`` line per file, the format
written by ``md5sum`` and friends. Verification is advisory: whatever goes
wrong here is reported in the verdict and never raised.
"""

from __future__ import annotations

import hashlib
import os
import re
from typing import List, Optional

from .executil import log, trace
from .model import ManifestEntry, Verdict, VerificationVerdict
from .paths import rescue_root

# Rewritten by the getty/issue generator before verification runs.
ALWAYS_EXCLUDED = "/etc/issue"

_ALGORITHMS = {32: "md5", 40: "sha1", 64: "sha256", 128: "sha512"}
_LINE_RE = re.compile(r"^([0-9A-Fa-f]+) [ *](.+)$")
_CHUNK = 1024 * 1024


def build_exclusion_pattern(user_pattern: Optional[str] = None) -> str:
    if user_pattern:
        return f"{ALWAYS_EXCLUDED}|{user_pattern}"
    return ALWAYS_EXCLUDED


def load_manifest(path: str) -> List[ManifestEntry]:
    entries: List[ManifestEntry] = []
    with open(path, "r", encoding="utf-8", errors="surrogateescape") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.rstrip("\n")
            if not line.strip():
                continue
            m = _LINE_RE.match(line)
            if not m or len(m.group(1)) not in _ALGORITHMS:
                log("WARN", "verify.bad_line", manifest=path, line=lineno)
                continue
            entries.append(ManifestEntry(path=m.group(2), checksum=m.group(1).lower()))
    return entries


def _anchored(path: str) -> str:
    return "/" + path.lstrip("/")


def file_checksum(path: str, algorithm: str) -> str:
    h = hashlib.new(algorithm)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK), b""):
            h.update(chunk)
    return h.hexdigest()


def _matches(entry: ManifestEntry, root: str) -> bool:
    target = os.path.join(root, entry.path.lstrip("/"))
    algorithm = _ALGORITHMS[len(entry.checksum)]
    try:
        actual = file_checksum(target, algorithm)
    except OSError as exc:
        trace("verify.unreadable", path=entry.path, error=str(exc))
        return False
    return actual == entry.checksum


def verify(
    manifest_path: str,
    exclusion_pattern: Optional[str] = None,
    root: Optional[str] = None,
) -> VerificationVerdict:
    """Compare the files under ``root`` against the manifest.

    A missing or empty manifest skips verification. ``exclusion_pattern`` is
    a regular expression searched in each ``/``-anchored manifest path; the
    always-excluded banner file is folded in even when the caller passes a
    pattern that lacks it.
    """

    try:
        size = os.path.getsize(manifest_path)
    except OSError:
        size = 0
    if size == 0:
        log("INFO", "verify.skipped", manifest=manifest_path)
        return VerificationVerdict(Verdict.SKIPPED)

    pattern = exclusion_pattern or ALWAYS_EXCLUDED
    if ALWAYS_EXCLUDED not in pattern.split("|"):
        pattern = build_exclusion_pattern(pattern)
    try:
        excluder = re.compile(pattern)
    except re.error as exc:
        log("WARN", "verify.bad_pattern", pattern=pattern, error=str(exc))
        excluder = re.compile(re.escape(ALWAYS_EXCLUDED))

    try:
        entries = load_manifest(manifest_path)
    except OSError as exc:
        log("WARN", "verify.manifest_unreadable", manifest=manifest_path, error=str(exc))
        return VerificationVerdict(Verdict.SKIPPED)

    base = root if root is not None else rescue_root()
    checked = 0
    excluded = 0
    failed: List[str] = []
    for entry in entries:
        if excluder.search(_anchored(entry.path)):
            excluded += 1
            continue
        checked += 1
        if not _matches(entry, base):
            failed.append(entry.path)

    status = Verdict.FAILED if failed else Verdict.PASSED
    log(
        "WARN" if failed else "INFO",
        "verify.done",
        manifest=manifest_path,
        status=status.value,
        checked=checked,
        excluded=excluded,
        failed=failed,
    )
    return VerificationVerdict(status, tuple(failed), checked, excluded)
