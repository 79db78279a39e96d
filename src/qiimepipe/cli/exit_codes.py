"""Standard exit codes for the qiime-pipe CLI.

Following shell conventions:
- 0: Success
- 1: Configuration, step or notification error
- 2: Command line usage error
- 130: Terminated by SIGINT (128 + 2)
- 143: Terminated by SIGTERM (128 + 15)
"""

import signal

EXIT_SUCCESS = 0
EXIT_ERROR = 1  # Any QiimePipeError
EXIT_USAGE = 2  # Command line usage error
EXIT_SIGINT = 130  # 128 + SIGINT(2)
EXIT_SIGTERM = 143  # 128 + SIGTERM(15)

_SIGNAL_EXIT_CODES = {
    signal.SIGINT: EXIT_SIGINT,
    signal.SIGTERM: EXIT_SIGTERM,
}


class SignalInterrupt(KeyboardInterrupt):
    """Raised by the signal handlers; remembers which signal stopped the run."""

    def __init__(self, signum: int):
        super().__init__(f"{signal.Signals(signum).name} received")
        self.signum = signum


def interrupt_exit_code(exc: BaseException) -> int:
    """Exit status for an interrupt: 143 after SIGTERM, 130 otherwise."""
    signum = getattr(exc, "signum", signal.SIGINT)
    return _SIGNAL_EXIT_CODES.get(signum, EXIT_SIGINT)
