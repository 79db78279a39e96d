"""Step runner against real shell commands."""

from __future__ import annotations

import pytest

from qiimepipe.core.journal import Journal, StepStatus
from qiimepipe.core.runner import StepRunner
from qiimepipe.exceptions import StepFailedError
from qiimepipe.external import ShellCommand

pytestmark = pytest.mark.integration


def test_successful_command_is_journaled(tmp_path) -> None:
    journal = Journal(tmp_path / "run.log")
    journal.initialize("qiime-pipe test")
    target = tmp_path / "hello.txt"

    runner = StepRunner(journal, ShellCommand())
    runner.run(f"echo hello > {target}")

    assert target.read_text() == "hello\n"
    assert [e.status for e in journal.entries()] == [StepStatus.INIT, StepStatus.OK]


def test_failing_command(tmp_path) -> None:
    journal = Journal(tmp_path / "run.log")
    journal.initialize("qiime-pipe test")

    with pytest.raises(StepFailedError) as excinfo:
        StepRunner(journal, ShellCommand()).run("false")
    assert excinfo.value.returncode == 1
    assert [e.status for e in journal.entries()] == [StepStatus.INIT, StepStatus.FAIL]


def test_exit_status_is_passed_through(tmp_path) -> None:
    assert ShellCommand().run("exit 7") == 7
    assert ShellCommand(cwd=tmp_path).run("test -d .") == 0


def test_missing_tool_fails_with_shell_status(tmp_path) -> None:
    assert ShellCommand().run("qiime-pipe-no-such-tool --help 2>/dev/null") == 127


def test_skip_across_processes(tmp_path) -> None:
    journal = Journal(tmp_path / "run.log")
    journal.initialize("qiime-pipe test")
    counter = tmp_path / "count"

    StepRunner(journal, ShellCommand()).run(f"echo x >> {counter}")
    StepRunner(journal, ShellCommand()).run(f"echo x >> {counter}")
    assert counter.read_text() == "x\n"
