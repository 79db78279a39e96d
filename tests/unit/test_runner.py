"""Tests for the idempotent step runner and its status index."""

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from qiimepipe.core.identity import IdentityResolver
from qiimepipe.core.journal import Journal, JournalEntry, StepStatus
from qiimepipe.core.overlay import ParameterOverlay
from qiimepipe.core.runner import StatusIndex, StepRunner
from qiimepipe.exceptions import StepFailedError


@pytest.fixture(autouse=True)
def in_tmp_dir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def journal(tmp_path):
    journal = Journal(tmp_path / "run.log")
    journal.initialize("qiime-pipe sff")
    return journal


def _statuses(journal):
    return [(e.command, e.status) for e in journal.entries()]


class TestStatusIndex:
    def test_latest_entry_wins(self):
        entries = [
            JournalEntry("t1", "mkdir out", StepStatus.INIT),
            JournalEntry("t2", "mkdir out", StepStatus.FAIL),
            JournalEntry("t3", "mkdir out", StepStatus.INIT),
            JournalEntry("t4", "mkdir out", StepStatus.OK),
        ]
        index = StatusIndex.build(entries, IdentityResolver())
        assert index.status_of_identity("mkdir") is StepStatus.OK
        assert len(index) == 1

    def test_absent_identity_is_not_run(self):
        index = StatusIndex.build([], IdentityResolver())
        assert index.status_of_identity("mkdir") is StepStatus.NOT_RUN

    def test_exact_identity_matching(self):
        # A recorded "sffinfo -s x" must not satisfy the identity "sffinfo x"
        entries = [JournalEntry("t", "sffinfo -s run.sff > run.fna", StepStatus.OK)]
        index = StatusIndex.build(entries, IdentityResolver())
        assert index.status_of_identity("sffinfo run.sff > run.sff.txt") is StepStatus.NOT_RUN
        assert index.status_of_identity("sffinfo -s run.sff > run.fna") is StepStatus.OK


class TestStepRunner:
    def test_first_run_executes_and_journals(self, journal, make_executor):
        executor = make_executor()
        runner = StepRunner(journal, executor)

        assert runner.run("mkdir out") is StepStatus.OK
        assert executor.commands == ["mkdir out"]
        assert _statuses(journal) == [("mkdir out", StepStatus.INIT), ("mkdir out", StepStatus.OK)]

    def test_completed_step_is_skipped(self, journal, make_executor):
        StepRunner(journal, make_executor()).run("check_id_map.py -m a.map")
        lines_before = list(journal.read_all())

        executor = make_executor()
        # A fresh runner sees the journal written by the previous invocation
        runner = StepRunner(journal, executor)
        assert runner.run("check_id_map.py -m other.map") is StepStatus.OK
        assert executor.commands == []
        assert list(journal.read_all()) == lines_before

    def test_interrupted_step_runs_again(self, journal, make_executor):
        journal.append("split_libraries.py -b 10", StepStatus.INIT)
        executor = make_executor()

        StepRunner(journal, executor).run("split_libraries.py -b 10")
        assert executor.commands == ["split_libraries.py -b 10"]
        assert [s for _, s in _statuses(journal)] == [
            StepStatus.INIT,
            StepStatus.INIT,
            StepStatus.OK,
        ]

    def test_failed_step_raises_and_journals_fail(self, journal, make_executor):
        executor = make_executor(returncodes={"split_libraries.py": 3})
        runner = StepRunner(journal, executor)

        with pytest.raises(StepFailedError) as excinfo:
            runner.run("split_libraries.py -b 10")
        assert excinfo.value.returncode == 3
        assert excinfo.value.command == "split_libraries.py -b 10"
        assert _statuses(journal)[-1] == ("split_libraries.py -b 10", StepStatus.FAIL)
        assert runner.status_of("split_libraries.py") is StepStatus.FAIL

    def test_failed_step_is_retried_on_next_invocation(self, journal, make_executor):
        with pytest.raises(StepFailedError):
            StepRunner(journal, make_executor(returncodes={"mkdir": 1})).run("mkdir out")

        executor = make_executor()
        StepRunner(journal, executor).run("mkdir out")
        assert executor.commands == ["mkdir out"]
        assert _statuses(journal)[-1] == ("mkdir out", StepStatus.OK)

    def test_force_runs_completed_step(self, journal, make_executor):
        executor = make_executor()
        runner = StepRunner(journal, executor)
        runner.run("denoiser.py -i a")
        runner.run("denoiser.py -i a", force=True)
        assert executor.commands == ["denoiser.py -i a", "denoiser.py -i a"]

    def test_override_family_commands_are_independent(self, journal, make_executor):
        executor = make_executor()
        runner = StepRunner(journal, executor)
        runner.run("sffinfo run.sff > run.sff.txt")
        runner.run("sffinfo -s run.sff > run.fna")
        runner.run("sffinfo -q run.sff > run.qual")
        assert len(executor.commands) == 3

    def test_overlay_is_applied_before_journaling(self, journal, make_executor, tmp_path):
        params = tmp_path / "params.txt"
        params.write_text("pick_otus_through_otu_table:similarity 0.97\n")
        executor = make_executor()
        runner = StepRunner(journal, executor, overlay=ParameterOverlay.load(params))

        runner.run("pick_otus_through_otu_table.py -i a.fna -o otus")
        expected = "pick_otus_through_otu_table.py -i a.fna -o otus --similarity 0.97"
        assert executor.commands == [expected]
        assert _statuses(journal)[-1] == (expected, StepStatus.OK)

    def test_mark_complete(self, journal, make_executor):
        executor = make_executor()
        runner = StepRunner(journal, executor)
        runner.mark_complete("denoise_wrapper.py -i a")
        assert runner.status_of("denoise_wrapper.py -i b") is StepStatus.OK
        assert executor.commands == []
