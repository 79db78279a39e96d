"""Execution of rendered step commands."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional

from qiimepipe.constants import SPAWN_FAILURE_STATUS
from qiimepipe.utils.logging import get_logger


class ShellCommand:
    """Runs a fully rendered command line through the shell.

    Commands carry their own redirections (``> file 2>&1``), so stdout and
    stderr are inherited; only the exit status is reported back.
    """

    # Bioinformatics tools can run for hours/days on large datasets
    DEFAULT_TIMEOUT: Optional[int] = None

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        cwd: Optional[Path] = None,
        shell: str = "/bin/sh",
    ):
        self.logger = logger or get_logger("external.shell")
        self.cwd = cwd
        self.shell = shell

    def run(self, command: str) -> int:
        """Execute the command and wait for it; return its exit status."""
        self.logger.debug(f"Spawning: {command}")
        try:
            result = subprocess.run(
                command,
                shell=True,
                executable=self.shell,
                cwd=self.cwd,
                check=False,
                timeout=self.DEFAULT_TIMEOUT,
            )
        except OSError as e:
            self.logger.error(f"OS error running command: {command}")
            self.logger.error(f"Error: {e}")
            return SPAWN_FAILURE_STATUS

        if result.returncode:
            self.logger.debug(f"Exit status {result.returncode}: {command}")
        return result.returncode
