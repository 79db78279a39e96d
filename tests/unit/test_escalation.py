"""Tests for one-shot failure escalation."""

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from qiimepipe.config import WORKFLOW_ILLUMINA, WORKFLOW_MERGE, WORKFLOW_SFF
from qiimepipe.core.escalation import FailureEscalation, failure_subject, finished_subject
from qiimepipe.core.journal import Journal, StepStatus
from qiimepipe.core.pipeline_types import RunState
from qiimepipe.exceptions import NotificationError


@pytest.fixture
def journal(tmp_path):
    journal = Journal(tmp_path / "run.log")
    journal.initialize("qiime-pipe sff -s run1.sff")
    journal.append("mkdir out", StepStatus.OK)
    return journal


class TestFailureEscalation:
    def test_sends_journal_and_disarms(self, journal, make_sender):
        sender = make_sender()
        escalation = FailureEscalation(journal, sender)
        state = RunState(operator_email="ops@example.org")

        new_state = escalation.escalate(state, "Fail: run1.sff")
        assert sender.sent == [("ops@example.org", "Fail: run1.sff", journal.text())]
        assert new_state.operator_email is None
        assert not new_state.armed
        # The input state is unchanged
        assert state.armed

    def test_second_escalation_is_suppressed(self, journal, make_sender):
        sender = make_sender()
        escalation = FailureEscalation(journal, sender)

        state = escalation.escalate(RunState(operator_email="ops@example.org"), "Fail: a")
        state = escalation.escalate(state, "Fail: b")
        assert [subject for _, subject, _ in sender.sent] == ["Fail: a"]

    def test_no_address_no_mail(self, journal, make_sender):
        sender = make_sender()
        state = FailureEscalation(journal, sender).escalate(RunState(), "Fail: a")
        assert sender.sent == []
        assert state == RunState()

    def test_notification_error_propagates(self, journal, make_sender):
        sender = make_sender(error=NotificationError("mail exited 1"))
        escalation = FailureEscalation(journal, sender)
        with pytest.raises(NotificationError, match="mail exited 1"):
            escalation.escalate(RunState(operator_email="ops@example.org"), "Fail: a")

    def test_other_sender_errors_are_wrapped(self, journal, make_sender):
        sender = make_sender(error=RuntimeError("boom"))
        escalation = FailureEscalation(journal, sender)
        with pytest.raises(NotificationError, match="boom"):
            escalation.notify("ops@example.org", "Fail: a")


class TestFailureSubject:
    def test_with_label(self):
        assert failure_subject("run1.sff") == "Fail: run1.sff"

    def test_without_label(self):
        assert failure_subject(None) == "Fail"


class TestFinishedSubject:
    def test_named_after_the_run(self):
        assert finished_subject(WORKFLOW_SFF, "run1.sff") == "Finished: run1.sff"
        assert finished_subject(WORKFLOW_ILLUMINA, "miseq_out") == "Finished: miseq_out"

    def test_merge(self):
        assert finished_subject(WORKFLOW_MERGE, "merged") == "Finished merging datasets"
