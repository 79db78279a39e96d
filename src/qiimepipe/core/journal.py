"""Append-only execution journal for one pipeline run.

The journal lives next to the output directory (``<dir_out>.log``). Line 1 is a
comment holding the original invocation; every other line records one step
attempt or outcome::

    #qiime-pipe sff -s run1.sff -m run1.map -o run1
    2013-05-14 10:22:33 +0200<TAB>mkdir run1<TAB>INIT
    2013-05-14 10:22:33 +0200<TAB>mkdir run1<TAB>OK

Operators read this file to follow progress, so its format is part of the
external contract. Lines are only ever appended.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional, Union

from qiimepipe.constants import (
    JOURNAL_COMMENT,
    JOURNAL_SEPARATOR,
    JOURNAL_SUFFIX,
    JOURNAL_TIME_FORMAT,
)
from qiimepipe.utils.logging import get_logger


class StepStatus(str, Enum):
    """Status of a step identity as recorded in (or derived from) the journal."""

    NOT_RUN = "NOT_RUN"  # derived only, never written
    INIT = "INIT"
    OK = "OK"
    FAIL = "FAIL"

    @property
    def interrupted(self) -> bool:
        """True when the last attempt started but did not succeed."""
        return self in (StepStatus.INIT, StepStatus.FAIL)


WRITABLE_STATUSES = (StepStatus.INIT, StepStatus.OK, StepStatus.FAIL)


@dataclass(frozen=True)
class JournalEntry:
    """One step line of the journal."""

    timestamp: str
    command: str
    status: StepStatus

    def to_line(self) -> str:
        return JOURNAL_SEPARATOR.join([self.timestamp, self.command, self.status.value])

    @classmethod
    def from_line(cls, line: str) -> "JournalEntry":
        """Parse a step line; the command itself may contain tabs."""
        timestamp, sep, rest = line.partition(JOURNAL_SEPARATOR)
        command, sep2, status = rest.rpartition(JOURNAL_SEPARATOR)
        if not sep or not sep2 or not command:
            raise ValueError(f"Not a journal entry: {line!r}")
        parsed = StepStatus(status.strip())
        if parsed not in WRITABLE_STATUSES:
            raise ValueError(f"Unexpected status in journal entry: {status!r}")
        return cls(timestamp=timestamp, command=command, status=parsed)


class Journal:
    """Write-once, append-only record of every step attempted for one run."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.logger = get_logger("journal")

    @classmethod
    def for_output_dir(cls, dir_out: Union[str, Path]) -> "Journal":
        """Return the journal belonging to an output directory."""
        return cls(Path(str(Path(dir_out)) + JOURNAL_SUFFIX))

    def exists(self) -> bool:
        return self.path.is_file()

    def initialize(self, invocation: str) -> bool:
        """Create the journal with its header line.

        Returns True if the file was created, False if it already existed
        (re-invoking a run never touches an existing journal).
        """
        if self.path.exists():
            self.logger.debug(f"Journal already present: {self.path}")
            return False
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "x", encoding="utf-8") as handle:
            handle.write(f"{JOURNAL_COMMENT}{invocation}\n")
        self.logger.info(f"Created journal: {self.path}")
        return True

    def delete(self) -> None:
        """Remove the journal (explicit forced restart only)."""
        if self.path.is_file():
            self.path.unlink()
            self.logger.info(f"Deleted journal: {self.path}")

    def append(self, command: str, status: StepStatus) -> JournalEntry:
        """Append one entry stamped with the current local time."""
        if status not in WRITABLE_STATUSES:
            raise ValueError(f"Status {status} cannot be written to the journal")
        entry = JournalEntry(
            timestamp=datetime.now().astimezone().strftime(JOURNAL_TIME_FORMAT),
            command=command,
            status=status,
        )
        with open(self.path, "a", encoding="utf-8") as handle:
            handle.write(entry.to_line() + "\n")
            handle.flush()
        return entry

    def read_all(self) -> Iterator[str]:
        """Yield raw lines in write order; re-opens the file on every call."""
        if not self.path.is_file():
            return
        with open(self.path, "r", encoding="utf-8") as handle:
            for line in handle:
                yield line.rstrip("\n")

    def entries(self) -> Iterator[JournalEntry]:
        """Yield parsed step entries, skipping comment and malformed lines."""
        for lineno, line in enumerate(self.read_all(), 1):
            if not line or line.startswith(JOURNAL_COMMENT):
                continue
            try:
                yield JournalEntry.from_line(line)
            except ValueError as exc:
                self.logger.warning(f"{self.path}:{lineno}: ignoring line ({exc})")

    def header(self) -> Optional[str]:
        """Return the original invocation recorded on line 1, if any."""
        for line in self.read_all():
            if line.startswith(JOURNAL_COMMENT):
                return line[len(JOURNAL_COMMENT):]
            return None
        return None

    def text(self) -> str:
        """Full journal content, used as evidence in notifications."""
        if not self.path.is_file():
            return ""
        return self.path.read_text(encoding="utf-8")
