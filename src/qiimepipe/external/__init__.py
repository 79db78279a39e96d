"""External process boundary (qiime-pipe).

- ShellCommand: runs one rendered step command and reports its exit status
- MailCommandSender: hands notifications to the system ``mail`` command
"""

from qiimepipe.external.base import ShellCommand
from qiimepipe.external.mail import MailCommandSender

__all__ = ["ShellCommand", "MailCommandSender"]
