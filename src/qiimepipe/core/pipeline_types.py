"""Shared pipeline types.

This module intentionally contains only lightweight dataclasses so it can be
imported by step definitions without pulling in the orchestrator.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class PipelineStep:
    """Represents a pipeline step."""

    name: str
    description: str
    display_name: Optional[str] = None
    # Name of a boolean PipelineOptions field that must be set for the step to run
    run_condition: Optional[str] = None

    @property
    def label(self) -> str:
        return self.display_name or self.name


@dataclass(frozen=True)
class RunState:
    """Values that only become known while a run progresses.

    Options stay immutable; whatever a step learns is returned as a new
    RunState and threaded into the next step.
    """

    # Mapping file used downstream (the merged one for dataset merges)
    file_map: Optional[Path] = None
    # Sequences fed to OTU picking when produced by a merge/assembly step
    fasta_input: Optional[Path] = None
    # Smallest library size, parsed from the OTU table statistics
    min_samples: Optional[int] = None
    # Cleared once a notification has been sent
    operator_email: Optional[str] = None

    def update(self, **changes) -> "RunState":
        return replace(self, **changes)

    @property
    def armed(self) -> bool:
        """True while an operator notification may still be sent."""
        return bool(self.operator_email)
