"""Core pipeline functionality (qiime-pipe)."""

from qiimepipe.core.pipeline import Pipeline
from qiimepipe.core.pipeline_types import PipelineStep, RunState

__all__ = ["Pipeline", "PipelineStep", "RunState"]
