"""Custom exceptions for qiime-pipe."""


class QiimePipeError(Exception):
    """Base exception for all qiime-pipe errors."""

    pass


class ConfigurationError(QiimePipeError):
    """Raised when options are invalid or required inputs are missing."""

    pass


class PipelineError(QiimePipeError):
    """Raised when a workflow cannot be assembled or driven."""

    pass


class StepFailedError(PipelineError):
    """Raised when an external step exits with a non-zero status."""

    def __init__(self, message="", command=None, returncode=None):
        """Initialize StepFailedError with the failing command.

        Args:
            message: Error message
            command: Fully rendered command string that was executed
            returncode: Exit status of the command
        """
        super().__init__(message)
        self.command = command
        self.returncode = returncode


class DerivedValueError(PipelineError):
    """Raised when a value parsed from a previous step's output is unusable."""

    pass


class CheckpointError(PipelineError):
    """Raised when resume bookkeeping around checkpoints fails."""

    pass


class NotificationError(QiimePipeError):
    """Raised when the operator notification itself cannot be dispatched."""

    pass
