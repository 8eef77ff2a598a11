from types import SimpleNamespace

import pytest

from rescueboot import menu
from rescueboot.model import ModeDecision, RecoveryOutcome

AUTOMATIC = ModeDecision(automatic=True)
UNATTENDED = ModeDecision(unattended=True)


def _keys(choices):
    return [c.key for c in choices]


def test_choices_automatic_success_offers_reboot():
    assert _keys(menu.build_choices(RecoveryOutcome.SUCCESS, AUTOMATIC)) == ["logs", "shell", "reboot"]


@pytest.mark.parametrize(
    "outcome, mode",
    [
        (RecoveryOutcome.FAILURE, AUTOMATIC),
        (RecoveryOutcome.FAILURE, UNATTENDED),
        (RecoveryOutcome.SUCCESS, UNATTENDED),
    ],
)
def test_choices_without_reboot(outcome, mode):
    assert _keys(menu.build_choices(outcome, mode)) == ["logs", "shell"]


def test_render_and_select():
    choices = menu.build_choices(RecoveryOutcome.SUCCESS, AUTOMATIC)
    text = menu.render_menu(choices, "Done.")
    assert "  1) View log files" in text
    assert "  3) Reboot" in text
    assert menu.select(choices, " 2 ").key == "shell"
    assert menu.select(choices, "REBOOT").key == "reboot"
    assert menu.select(choices, "4") is None
    assert menu.select(choices, "0") is None
    assert menu.select(choices, "bogus") is None


def _scripted(answers):
    answers = list(answers)
    prompts = []

    def read(prompt):
        prompts.append(prompt)
        return answers.pop(0) if answers else None

    return read, prompts


def test_run_menu_loops_until_terminal_choice():
    calls = []
    actions = {
        "logs": lambda: calls.append("logs"),
        "shell": lambda: calls.append("shell"),
        "reboot": lambda: calls.append("reboot"),
    }
    read, prompts = _scripted(["1", "junk", "9", "1", "2"])

    result = menu.run_menu(RecoveryOutcome.FAILURE, AUTOMATIC, read=read, actions=actions)

    assert result == "shell"
    assert calls == ["logs", "logs", "shell"]
    assert len(prompts) == 5


def test_run_menu_reboot_is_terminal():
    calls = []
    actions = {"reboot": lambda: calls.append("reboot")}
    read, _ = _scripted(["3", "1"])
    assert menu.run_menu(RecoveryOutcome.SUCCESS, AUTOMATIC, read=read, actions=actions) == "reboot"
    assert calls == ["reboot"]


def test_run_menu_unattended_failure_has_no_reboot_entry(capsys):
    read, _ = _scripted(["3", "reboot", "2"])
    actions = {"shell": lambda: None, "reboot": lambda: pytest.fail("reboot not offered")}
    assert menu.run_menu(RecoveryOutcome.FAILURE, UNATTENDED, read=read, actions=actions) == "shell"
    assert "Reboot" not in capsys.readouterr().out


def test_run_menu_end_of_input():
    read, _ = _scripted([])
    actions = {"shell": lambda: pytest.fail("no banner clearing on EOF")}
    assert menu.run_menu(RecoveryOutcome.FAILURE, AUTOMATIC, read=read, actions=actions) == menu.END_OF_INPUT


def test_go_to_shell_clears_banners(tmp_path):
    issue = tmp_path / "issue"
    motd = tmp_path / "motd"
    issue.write_text("Welcome\n", encoding="utf-8")
    motd.write_text("Read this\n", encoding="utf-8")

    menu.go_to_shell([str(issue), str(motd), str(tmp_path / "missing-dir" / "x")])

    assert issue.read_text(encoding="utf-8") == ""
    assert motd.read_text(encoding="utf-8") == ""


def test_go_to_shell_defaults_under_rescue_root(_isolated_rescue_root):
    etc = _isolated_rescue_root / "etc"
    etc.mkdir()
    (etc / "issue").write_text("banner", encoding="utf-8")
    menu.go_to_shell()
    assert (etc / "issue").read_text(encoding="utf-8") == ""
    assert (etc / "motd").read_text(encoding="utf-8") == ""


def test_view_logs_uses_pager(tmp_path, monkeypatch):
    log_dir = tmp_path / "logdir"
    log_dir.mkdir()
    (log_dir / "rear.log").write_text("log", encoding="utf-8")
    (log_dir / "sub").mkdir()
    (log_dir / "sub" / "a.log").write_text("a", encoding="utf-8")
    calls = []
    monkeypatch.setattr(menu.shutil, "which", lambda name: "/usr/bin/less")
    monkeypatch.setattr(menu, "run", lambda cmd, check=False, env=None: calls.append(cmd) or SimpleNamespace(rc=0))

    assert menu.view_logs(str(log_dir)) == 2
    assert calls == [["/usr/bin/less", str(log_dir / "rear.log"), str(log_dir / "sub" / "a.log")]]


def test_view_logs_prints_without_pager(tmp_path, monkeypatch, capsys):
    log_dir = tmp_path / "logdir"
    log_dir.mkdir()
    (log_dir / "rear.log").write_text("recovery finished", encoding="utf-8")
    monkeypatch.setattr(menu.shutil, "which", lambda name: None)
    assert menu.view_logs(str(log_dir)) == 1
    out = capsys.readouterr().out
    assert "rear.log" in out
    assert "recovery finished" in out


def test_view_logs_empty_directory(tmp_path, capsys):
    assert menu.view_logs(str(tmp_path / "none")) == 0
    assert "no log files" in capsys.readouterr().out


def test_reboot_countdown_waits_then_reboots(capsys):
    sleeps = []
    reboots = []
    menu.reboot_countdown(seconds=3, sleep=sleeps.append, reboot=lambda: reboots.append(True))
    assert sleeps == [1, 1, 1]
    assert reboots == [True]
    out = capsys.readouterr().out
    assert "Rebooting in 3 seconds" in out
    assert "Ctrl-C" in out


def test_reboot_countdown_interrupt_aborts():
    def interrupted(_):
        raise KeyboardInterrupt

    with pytest.raises(KeyboardInterrupt):
        menu.reboot_countdown(sleep=interrupted, reboot=lambda: pytest.fail("must not reboot"))


def test_reboot_system_execs_reboot(monkeypatch):
    calls = []
    monkeypatch.setattr(menu.os, "execvp", lambda file, args: calls.append((file, args)))
    menu.reboot_system()
    assert calls == [("reboot", ["reboot"])]
