"""Idempotent step runner.

For every command the runner looks up the latest journal status of the
command's identity: ``OK`` means the step is skipped without a new entry,
anything else (``NOT_RUN``, ``INIT``, ``FAIL``) means the command is run again
from scratch. Each attempt is journaled as ``INIT`` followed by ``OK`` or
``FAIL``. There is no retry: a failed step stops the run.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional, Protocol

from qiimepipe.core.identity import IdentityResolver
from qiimepipe.core.journal import Journal, JournalEntry, StepStatus
from qiimepipe.core.overlay import ParameterOverlay
from qiimepipe.exceptions import StepFailedError
from qiimepipe.utils.logging import LogTemplates, get_logger


class CommandExecutor(Protocol):
    def run(self, command: str) -> int: ...


class StatusIndex:
    """Latest recorded status per step identity.

    Built with one forward pass over the journal; later entries overwrite
    earlier ones, so the most recent attempt of an identity always wins.
    """

    def __init__(self, resolver: IdentityResolver):
        self.resolver = resolver
        self._latest: Dict[str, StepStatus] = {}

    @classmethod
    def build(cls, entries: Iterable[JournalEntry], resolver: IdentityResolver) -> "StatusIndex":
        index = cls(resolver)
        for entry in entries:
            index.record(entry)
        return index

    def record(self, entry: JournalEntry) -> None:
        self._latest[self.resolver.identity_of(entry.command)] = entry.status

    def status_of_identity(self, identity: str) -> StepStatus:
        return self._latest.get(identity, StepStatus.NOT_RUN)

    def items(self):
        return self._latest.items()

    def __len__(self) -> int:
        return len(self._latest)


class StepRunner:
    """Execute-or-skip decision procedure on top of the journal."""

    def __init__(
        self,
        journal: Journal,
        executor: CommandExecutor,
        resolver: Optional[IdentityResolver] = None,
        overlay: Optional[ParameterOverlay] = None,
    ):
        self.journal = journal
        self.executor = executor
        self.resolver = resolver or IdentityResolver()
        self.overlay = overlay or ParameterOverlay.empty()
        self.logger = get_logger("runner")
        self.index = StatusIndex.build(journal.entries(), self.resolver)
        self.logger.debug(f"Indexed {len(self.index)} step identities from {journal.path}")

    def finalize(self, command: str) -> str:
        """Apply the parameter overlay; the result is what gets journaled."""
        return self.overlay.apply(command)

    def identity_of(self, command: str) -> str:
        return self.resolver.identity_of(self.finalize(command))

    def status_of(self, command: str) -> StepStatus:
        return self.index.status_of_identity(self.identity_of(command))

    def _log(self, command: str, status: StepStatus) -> None:
        self.index.record(self.journal.append(command, status))

    def run(self, command: str, force: bool = False) -> StepStatus:
        """Run a step unless its identity is already recorded as OK.

        Args:
            command: Rendered command line (before overlay expansion)
            force: Execute even if the identity is recorded as OK

        Returns:
            StepStatus.OK when the step was skipped or succeeded

        Raises:
            StepFailedError: The command exited with a non-zero status
        """
        final = self.finalize(command)
        status = self.index.status_of_identity(self.resolver.identity_of(final))

        if status is StepStatus.OK and not force:
            self.logger.info(LogTemplates.COMMAND_SKIPPED.format(command=final))
            return StepStatus.OK

        if status.interrupted:
            self.logger.info(f"Previous attempt ended as {status.value}; running again")

        self._log(final, StepStatus.INIT)
        self.logger.info(LogTemplates.COMMAND_RUNNING.format(command=final))
        returncode = self.executor.run(final)

        if returncode == 0:
            self._log(final, StepStatus.OK)
            self.logger.info(LogTemplates.COMMAND_OK.format(command=final))
            return StepStatus.OK

        self._log(final, StepStatus.FAIL)
        self.logger.error(LogTemplates.COMMAND_FAIL.format(command=final, returncode=returncode))
        raise StepFailedError(
            f"Step failed with exit status {returncode}: {final}",
            command=final,
            returncode=returncode,
        )

    def mark_complete(self, command: str) -> None:
        """Record OK for a step whose work was done by other journaled commands."""
        final = self.finalize(command)
        self._log(final, StepStatus.OK)
        self.logger.debug(f"Marked complete: {final}")
