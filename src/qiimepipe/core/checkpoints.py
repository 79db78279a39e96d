"""Checkpoint discovery and directory rotation for the resumable denoiser stage.

``denoiser.py`` periodically writes ``checkpoints/checkpoint<N>.pickle`` into its
working directory. When the stage was interrupted, the run picks the highest
checkpoint and continues from it instead of starting over. Working
directories are never overwritten or deleted: whatever is in the way is
renamed with a timestamp suffix.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from qiimepipe.constants import CHECKPOINT_SUBDIR, RESUMED_SUFFIX, ROTATION_TIME_FORMAT
from qiimepipe.exceptions import CheckpointError
from qiimepipe.utils.logging import get_logger

ORDINAL_RE = re.compile(r"\d+")

MODE_RESUME_SECONDARY = "resume_secondary"
MODE_RESUME_PRIMARY = "resume_primary"
MODE_FRESH = "fresh"


@dataclass(frozen=True)
class Checkpoint:
    path: Path
    ordinal: int


@dataclass(frozen=True)
class ResumePlan:
    """What the resolver decided for an interrupted stage."""

    mode: str
    checkpoint: Optional[Checkpoint] = None
    # Where the resumed tool writes its output
    output_dir: Optional[Path] = None
    # Directory holding the preprocessed data the checkpoint belongs to
    preprocess_dir: Optional[Path] = None

    @property
    def resumes(self) -> bool:
        return self.mode != MODE_FRESH


def checkpoint_ordinal(path: Path) -> Optional[int]:
    """Numeric ordinal embedded in a checkpoint file name (not the path)."""
    match = ORDINAL_RE.search(path.name)
    return int(match.group(0)) if match else None


def list_checkpoints(directory: Path) -> List[Checkpoint]:
    """Checkpoints under ``directory/checkpoints`` ordered by ordinal."""
    checkpoint_dir = Path(directory) / CHECKPOINT_SUBDIR
    if not checkpoint_dir.is_dir():
        return []
    found = []
    for path in checkpoint_dir.iterdir():
        if not path.is_file():
            continue
        ordinal = checkpoint_ordinal(path)
        if ordinal is not None:
            found.append(Checkpoint(path=path, ordinal=ordinal))
    # Names are not zero-padded; order numerically
    return sorted(found, key=lambda c: (c.ordinal, c.path.name))


def find_checkpoint(directory: Path) -> Optional[Checkpoint]:
    """Return the highest-ordinal checkpoint, or None."""
    checkpoints = list_checkpoints(directory)
    return checkpoints[-1] if checkpoints else None


class CheckpointResolver:
    """Decides how to resume the denoiser stage and rotates its directories."""

    def __init__(
        self,
        primary_dir: Path,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.primary_dir = Path(primary_dir)
        self.secondary_dir = Path(str(self.primary_dir) + RESUMED_SUFFIX)
        self.clock = clock
        self.logger = get_logger("checkpoints")

    def plan(self) -> ResumePlan:
        """Choose between resuming from the secondary or primary directory, or starting fresh."""
        checkpoint = find_checkpoint(self.secondary_dir)
        if checkpoint is not None:
            self.logger.info(f"Resuming from checkpoint {checkpoint.path} (previous resume)")
            return ResumePlan(
                mode=MODE_RESUME_SECONDARY,
                checkpoint=checkpoint,
                output_dir=self.primary_dir,
                preprocess_dir=self.secondary_dir,
            )

        checkpoint = find_checkpoint(self.primary_dir)
        if checkpoint is not None:
            self.logger.info(f"Resuming from checkpoint {checkpoint.path}")
            return ResumePlan(
                mode=MODE_RESUME_PRIMARY,
                checkpoint=checkpoint,
                output_dir=self.secondary_dir,
                preprocess_dir=self.primary_dir,
            )

        self.logger.info(f"No checkpoints under {self.primary_dir}; starting over")
        return ResumePlan(mode=MODE_FRESH)

    def rotate(self, directory: Path) -> Optional[Path]:
        """Rename a directory out of the way with a timestamp suffix."""
        directory = Path(directory)
        if not directory.exists():
            return None

        stamp = self.clock().strftime(ROTATION_TIME_FORMAT)
        target = Path(f"{directory}_{stamp}")
        counter = 1
        while target.exists():
            target = Path(f"{directory}_{stamp}_{counter}")
            counter += 1

        try:
            directory.rename(target)
        except OSError as exc:
            raise CheckpointError(f"Could not rotate {directory} to {target}: {exc}") from exc
        self.logger.info(f"Rotated {directory} -> {target}")
        return target

    def prepare(self, plan: ResumePlan) -> None:
        """Clear the way for the resumed tool's output directory."""
        if plan.mode == MODE_RESUME_SECONDARY:
            self.rotate(self.primary_dir)
        elif plan.mode == MODE_RESUME_PRIMARY:
            self.rotate(self.secondary_dir)

    def finish(self, plan: ResumePlan) -> None:
        """After a successful resume from the primary directory, promote the output."""
        if plan.mode != MODE_RESUME_PRIMARY:
            return
        self.rotate(self.primary_dir)
        try:
            self.secondary_dir.rename(self.primary_dir)
        except OSError as exc:
            raise CheckpointError(
                f"Could not promote {self.secondary_dir} to {self.primary_dir}: {exc}"
            ) from exc
        self.logger.info(f"Promoted {self.secondary_dir} -> {self.primary_dir}")
