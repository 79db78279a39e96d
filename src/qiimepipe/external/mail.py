"""Mail dispatch through the system ``mail`` command."""

from __future__ import annotations

import logging
import subprocess
from typing import Optional

from qiimepipe.exceptions import NotificationError
from qiimepipe.utils.logging import get_logger


class MailCommandSender:
    """Equivalent of ``cat <journal> | mail -s "<subject>" <address>``."""

    tool_name = "mail"

    def __init__(self, logger: Optional[logging.Logger] = None, timeout: Optional[int] = 60):
        self.logger = logger or get_logger(f"external.{self.tool_name}")
        self.timeout = timeout

    def send(self, address: str, subject: str, body: str) -> None:
        cmd = [self.tool_name, "-s", subject, address]
        self.logger.info(f"Sending notification '{subject}' to {address}")
        try:
            result = subprocess.run(
                cmd,
                input=body,
                capture_output=True,
                text=True,
                check=False,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise NotificationError(f"Command: {' '.join(cmd)} timed out.") from e
        except OSError as e:
            raise NotificationError(f"Command: {' '.join(cmd)} failed: {e}") from e

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise NotificationError(
                f"Command: {' '.join(cmd)} failed with exit status {result.returncode}"
                + (f": {stderr[:500]}" if stderr else ".")
            )
