"""Out-of-band operator notification on fatal failures.

The whole journal is sent as evidence. Once a notification has gone out the
operator address is cleared from the run state, so a single run never sends
two mails for related failures.
"""

from __future__ import annotations

from typing import Optional, Protocol

from qiimepipe.config import WORKFLOW_MERGE
from qiimepipe.core.journal import Journal
from qiimepipe.core.pipeline_types import RunState
from qiimepipe.exceptions import NotificationError
from qiimepipe.utils.logging import get_logger


class MailSender(Protocol):
    def send(self, address: str, subject: str, body: str) -> None: ...


class FailureEscalation:
    """Sends the journal to the operator and disarms itself afterwards."""

    def __init__(self, journal: Journal, sender: MailSender):
        self.journal = journal
        self.sender = sender
        self.logger = get_logger("escalation")

    def notify(self, address: str, subject: str) -> None:
        """Dispatch one notification. Failures are fatal and never re-escalated."""
        body = self.journal.text()
        try:
            self.sender.send(address, subject, body)
        except NotificationError:
            self.logger.error(f"Notification '{subject}' to {address} failed")
            raise
        except Exception as exc:
            self.logger.error(f"Notification '{subject}' to {address} failed")
            raise NotificationError(f"Could not send '{subject}' to {address}: {exc}") from exc
        self.logger.info(f"Notified {address}: {subject}")

    def escalate(self, state: RunState, subject: str) -> RunState:
        """Notify if still armed; return the state with the address cleared."""
        if not state.armed:
            self.logger.debug(f"Escalation '{subject}' suppressed (no operator address)")
            return state
        self.notify(state.operator_email, subject)
        return state.update(operator_email=None)


def failure_subject(label: Optional[str]) -> str:
    return f"Fail: {label}" if label else "Fail"


def finished_subject(workflow: str, label: Optional[str]) -> str:
    if workflow == WORKFLOW_MERGE:
        # A merge has no single input to name
        return "Finished merging datasets"
    return f"Finished: {label}" if label else "Finished"
