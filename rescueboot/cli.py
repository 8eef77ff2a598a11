"""Boot-time entrypoint of the rescue system setup."""

from __future__ import annotations

import argparse
import json
import os
import sys
import time
from typing import Any, Callable, Dict, Mapping, Optional

from . import console, menu, recovery
from .bootparams import classify, read_boot_parameters
from .config import RescueConfig, load_config
from .executil import append_jsonl, resolve_log_path
from .model import BootParameters, ModeDecision, RecoveryOutcome, Verdict, VerificationVerdict
from .paths import cmdline_path, config_paths, manifest_path, setup_dir
from .setup_units import discover_units, run_units
from .shell import spawn_debug_shell
from .verification import build_exclusion_pattern, verify

RESULT_CODES: Dict[str, int] = {
    "SETUP_DONE": 0,
    "FAIL_UNHANDLED": 1,
}

INTEGRITY_DELAY_SECONDS = 10
JSON_OUTPUT_ENABLED = True


def _record_result(kind: str, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"result": kind, "ts": int(time.time())}
    if extra:
        payload.update(extra)
    path = resolve_log_path()
    if path:
        append_jsonl(path, payload)
    return payload


def _emit_result(kind: str, extra: Optional[Dict[str, Any]] = None) -> int:
    payload = _record_result(kind, extra)
    log_path = resolve_log_path()
    if log_path:
        payload.setdefault("log_path", log_path)
    if JSON_OUTPUT_ENABLED:
        print(json.dumps(payload, sort_keys=True, separators=(",", ":")), flush=True)
    return RESULT_CODES.get(kind, 1)


def _mode_payload(mode: ModeDecision) -> Dict[str, Any]:
    return {
        "debug": mode.debug,
        "unattended": mode.unattended,
        "automatic": mode.automatic,
        "label": mode.label,
    }


def _surface_integrity(
    verdict: VerificationVerdict,
    mode: ModeDecision,
    confirm: Callable[[str], str],
    sleep: Callable[[float], None],
) -> None:
    if verdict.status is Verdict.SKIPPED:
        console.info("no checksum manifest, integrity check skipped")
        return
    if verdict.status is Verdict.PASSED:
        console.ok(f"rescue system integrity verified ({verdict.checked} files)")
        return
    console.fail("possibly corrupted rescue system, checksum mismatch for:")
    for path in verdict.failed:
        print(f"    {path}", flush=True)
    if mode.unattended:
        console.warn(f"continuing anyway in {INTEGRITY_DELAY_SECONDS} seconds")
        sleep(INTEGRITY_DELAY_SECONDS)
    else:
        confirm("Press any key to continue with the possibly corrupted rescue system ... ")


def run_system_setup(
    params: BootParameters,
    config: RescueConfig,
    *,
    manifest: Optional[str] = None,
    units_dir: Optional[str] = None,
    root: Optional[str] = None,
    confirm: Callable[[str], str] = console.read_key,
    read: Callable[[str], Optional[str]] = console.read_line,
    sleep: Callable[[float], None] = time.sleep,
    actions: Optional[Mapping[str, Callable[[], object]]] = None,
    spawn_shell: Callable[[str], bool] = spawn_debug_shell,
) -> Dict[str, Any]:
    """Classify, verify, set up and, when asked for, recover. Single pass."""

    mode = classify(params)
    summary: Dict[str, Any] = {"mode": _mode_payload(mode)}
    _record_result("MODE", summary["mode"])
    console.info(f"boot mode: {mode.label}")

    if mode.debug:
        summary["debug_shell"] = spawn_shell(config.debug_shell_tty)

    # before any unit runs: units may rewrite files listed in the manifest
    verdict = verify(
        manifest or manifest_path(root),
        build_exclusion_pattern(config.integrity_exclude),
        root=root,
    )
    summary["verification"] = {
        "status": verdict.status.value,
        "checked": verdict.checked,
        "excluded": verdict.excluded,
        "failed": list(verdict.failed),
    }
    _record_result("VERIFY", summary["verification"])
    _surface_integrity(verdict, mode, confirm, sleep)

    results = run_units(
        discover_units(units_dir or setup_dir(root)), debug=mode.debug, confirm=confirm, config=config
    )
    summary["units"] = [{"name": r.name, "rc": r.rc} for r in results]
    failed_units = [r.name for r in results if not r.ok]
    _record_result("SETUP", {"units": summary["units"], "failed": failed_units})
    if failed_units:
        console.warn(f"{len(failed_units)} setup unit(s) failed: {', '.join(failed_units)}")
    console.ok("rescue system is ready")

    summary["recovery"] = None
    summary["menu"] = None
    if not mode.recovery_requested:
        return summary

    outcome = recovery.launch(mode, config)
    summary["recovery"] = outcome.value
    _record_result("RECOVERY", {"outcome": outcome.value})

    handlers = menu.default_actions(root)
    handlers.update(actions or {})

    if mode.unattended and outcome is RecoveryOutcome.SUCCESS:
        summary["menu"] = "countdown"
        menu.reboot_countdown(sleep=sleep, reboot=handlers[menu.REBOOT])
        return summary

    summary["menu"] = menu.run_menu(outcome, mode, read=read, actions=handlers)
    return summary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rescueboot", add_help=True)
    parser.add_argument("--root", default=None, help="rescue root (default: / or $RESCUE_ROOT)")
    parser.add_argument("--cmdline-file", default=None)
    parser.add_argument("--config-dir", default=None)
    parser.add_argument("--json", dest="json", action="store_true", default=True)
    parser.add_argument("--no-json", dest="json", action="store_false")
    return parser


def _main_impl(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    global JSON_OUTPUT_ENABLED
    JSON_OUTPUT_ENABLED = bool(args.json)
    if args.root:
        os.environ["RESCUE_ROOT"] = args.root

    params = read_boot_parameters(args.cmdline_file or cmdline_path())
    config = load_config(config_paths(args.config_dir))
    summary = run_system_setup(params, config)
    return _emit_result("SETUP_DONE", summary)


def main(argv: Optional[list[str]] = None) -> int:
    try:
        return _main_impl(argv)
    except SystemExit:
        raise
    except Exception as exc:  # noqa: BLE001
        return _emit_result("FAIL_UNHANDLED", extra={"error": str(exc), "type": type(exc).__name__})


if __name__ == "__main__":
    sys.exit(main())
