"""Pytest configuration for qiime-pipe tests."""

import logging
import shlex
import sys
from pathlib import Path

import pytest

# Add src directory to Python path
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


class FakeExecutor:
    """Records commands instead of running them.

    ``returncodes`` maps a tool name to the exit status it reports;
    ``side_effects`` maps a tool name to a callable run with the command.
    ``mkdir`` really creates its directory so later steps can write files.
    """

    def __init__(self, returncodes=None, side_effects=None):
        self.commands = []
        self.returncodes = dict(returncodes or {})
        self.side_effects = dict(side_effects or {})

    def run(self, command):
        self.commands.append(command)
        tool = command.split(None, 1)[0]
        if tool == "mkdir":
            Path(shlex.split(command)[1]).mkdir(parents=True, exist_ok=True)
        if tool in self.side_effects:
            self.side_effects[tool](command)
        return self.returncodes.get(tool, 0)

    def tools(self):
        return [c.split(None, 1)[0] for c in self.commands]


class FakeSender:
    """Collects notifications as (address, subject, body) tuples."""

    def __init__(self, error=None):
        self.sent = []
        self.error = error

    def send(self, address, subject, body):
        if self.error is not None:
            raise self.error
        self.sent.append((address, subject, body))


def write_min_samples(value):
    """Side effect for per_library_stats.py writing a stats report."""

    def _write(command):
        target = shlex.split(command)[-1]
        Path(target).parent.mkdir(parents=True, exist_ok=True)
        Path(target).write_text(
            f"Num samples: 4\n\nSeqs/sample summary:\n Min: {value}\n Max: 900\n",
            encoding="utf-8",
        )

    return _write


@pytest.fixture
def fake_executor():
    return FakeExecutor(side_effects={"per_library_stats.py": write_min_samples(120)})


@pytest.fixture
def fake_sender():
    return FakeSender()


@pytest.fixture
def sff_inputs(tmp_path):
    """An SFF file and a mapping file on disk."""
    sff = tmp_path / "run1.sff"
    sff.write_bytes(b".sff")
    mapping = tmp_path / "run1.map"
    mapping.write_text("#SampleID\tBarcodeSequence\n", encoding="utf-8")
    return sff, mapping


@pytest.fixture(autouse=True)
def reset_logging_after_test():
    """Reset qiimepipe logger state after each test.

    This prevents test pollution from tests that call setup_logging(),
    which sets propagate=False and breaks caplog in subsequent tests.
    """
    yield
    # Restore logger to clean state after each test
    app_logger = logging.getLogger("qiimepipe")
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
    app_logger.setLevel(logging.NOTSET)
    app_logger.propagate = True


@pytest.fixture
def make_executor():
    return FakeExecutor


@pytest.fixture
def make_sender():
    return FakeSender


@pytest.fixture
def stats_writer():
    return write_min_samples
