"""qiime-pipe: resumable driver for QIIME amplicon analysis workflows.

Each step of a workflow is an external command. Attempts and outcomes are kept
in an append-only journal next to the output directory, so an interrupted run
can be re-invoked without repeating finished work.
"""

from qiimepipe.__version__ import (
    __version__,
    __author__,
    __license__,
    __description__,
)

__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "__description__",
]
