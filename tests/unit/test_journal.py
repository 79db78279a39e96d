"""Tests for the execution journal."""

import logging
import re
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from qiimepipe.core.journal import Journal, JournalEntry, StepStatus

TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} [+-]\d{4}$")


class TestJournalLocation:
    def test_journal_is_sibling_of_output_dir(self, tmp_path):
        journal = Journal.for_output_dir(tmp_path / "run1")
        assert journal.path == tmp_path / "run1.log"

    def test_trailing_slash_is_ignored(self, tmp_path):
        journal = Journal.for_output_dir(f"{tmp_path}/run1/")
        assert journal.path == tmp_path / "run1.log"


class TestJournalInitialize:
    def test_initialize_writes_header(self, tmp_path):
        journal = Journal(tmp_path / "run.log")
        assert journal.initialize("qiime-pipe sff -s a.sff") is True
        assert journal.path.read_text() == "#qiime-pipe sff -s a.sff\n"
        assert journal.header() == "qiime-pipe sff -s a.sff"

    def test_initialize_existing_journal_is_noop(self, tmp_path):
        journal = Journal(tmp_path / "run.log")
        journal.initialize("first")
        journal.append("mkdir out", StepStatus.OK)
        before = journal.path.read_text()

        assert journal.initialize("second") is False
        assert journal.path.read_text() == before
        assert journal.header() == "first"

    def test_missing_journal(self, tmp_path):
        journal = Journal(tmp_path / "missing.log")
        assert not journal.exists()
        assert journal.header() is None
        assert journal.text() == ""
        assert list(journal.read_all()) == []
        assert list(journal.entries()) == []


class TestJournalAppend:
    def test_round_trip_keeps_order_and_content(self, tmp_path):
        journal = Journal(tmp_path / "run.log")
        journal.initialize("qiime-pipe merge")
        commands = [
            ("mkdir out", StepStatus.INIT),
            ("mkdir out", StepStatus.OK),
            ("print_qiime_config.py -t > out/log 2>&1", StepStatus.INIT),
            ("print_qiime_config.py -t > out/log 2>&1", StepStatus.FAIL),
        ]
        for command, status in commands:
            journal.append(command, status)

        lines = list(journal.read_all())
        assert len(lines) == len(commands) + 1
        assert lines[0] == "#qiime-pipe merge"
        parsed = [(e.command, e.status) for e in journal.entries()]
        assert parsed == commands

    def test_entry_line_format(self, tmp_path):
        journal = Journal(tmp_path / "run.log")
        journal.initialize("x")
        entry = journal.append("check_id_map.py -m a.map", StepStatus.OK)

        timestamp, command, status = journal.path.read_text().splitlines()[1].split("\t")
        assert TIMESTAMP_RE.match(timestamp)
        assert timestamp == entry.timestamp
        assert command == "check_id_map.py -m a.map"
        assert status == "OK"

    def test_appending_never_rewrites(self, tmp_path):
        journal = Journal(tmp_path / "run.log")
        journal.initialize("x")
        journal.append("a", StepStatus.INIT)
        first = journal.path.read_text()
        journal.append("a", StepStatus.OK)
        assert journal.path.read_text().startswith(first)

    def test_not_run_cannot_be_written(self, tmp_path):
        journal = Journal(tmp_path / "run.log")
        journal.initialize("x")
        with pytest.raises(ValueError):
            journal.append("a", StepStatus.NOT_RUN)

    def test_read_all_reopens_file(self, tmp_path):
        journal = Journal(tmp_path / "run.log")
        journal.initialize("x")
        assert len(list(journal.read_all())) == 1
        journal.append("a", StepStatus.OK)
        assert len(list(journal.read_all())) == 2


class TestJournalEntryParsing:
    def test_command_with_tab(self):
        entry = JournalEntry.from_line("2024-01-01 10:00:00 +0000\tawk -F '\t' x\tOK")
        assert entry.command == "awk -F '\t' x"
        assert entry.status is StepStatus.OK

    @pytest.mark.parametrize(
        "line",
        ["garbage", "2024-01-01 10:00:00 +0000\tmkdir out", "ts\tcmd\tDONE", "ts\tcmd\tNOT_RUN"],
    )
    def test_malformed_lines_raise(self, line):
        with pytest.raises(ValueError):
            JournalEntry.from_line(line)

    def test_malformed_lines_are_skipped_with_warning(self, tmp_path, caplog):
        path = tmp_path / "run.log"
        path.write_text(
            "#qiime-pipe sff\n"
            "2024-01-01 10:00:00 +0000\tmkdir out\tOK\n"
            "half a line\n"
            "\n"
            "2024-01-01 10:00:01 +0000\tcheck_id_map.py\tINIT\n"
        )
        journal = Journal(path)
        with caplog.at_level(logging.WARNING):
            entries = list(journal.entries())
        assert [e.command for e in entries] == ["mkdir out", "check_id_map.py"]
        assert "ignoring line" in caplog.text


class TestJournalDelete:
    def test_delete(self, tmp_path):
        journal = Journal(tmp_path / "run.log")
        journal.initialize("x")
        journal.delete()
        assert not journal.exists()
        # Deleting twice is harmless
        journal.delete()


class TestStepStatus:
    def test_interrupted_statuses(self):
        assert StepStatus.INIT.interrupted
        assert StepStatus.FAIL.interrupted
        assert not StepStatus.OK.interrupted
        assert not StepStatus.NOT_RUN.interrupted
