"""Main pipeline orchestrator for qiime-pipe."""

from __future__ import annotations

import atexit
import shutil
import time
from pathlib import Path
from typing import List, Optional

from qiimepipe.config import PipelineOptions
from qiimepipe.core.escalation import (
    FailureEscalation,
    MailSender,
    failure_subject,
    finished_subject,
)
from qiimepipe.core.identity import IdentityResolver
from qiimepipe.core.journal import Journal, StepStatus
from qiimepipe.core.overlay import ParameterOverlay
from qiimepipe.core.pipeline_types import PipelineStep, RunState
from qiimepipe.core.runner import CommandExecutor, StepRunner
from qiimepipe.core.steps.definitions import steps_for
from qiimepipe.exceptions import (
    DerivedValueError,
    NotificationError,
    PipelineError,
    StepFailedError,
)
from qiimepipe.utils.logging import LogTemplates, get_logger
from qiimepipe.utils.progress import iter_progress

# Step execution lives in `qiimepipe.core.steps.*` and is imported lazily by
# wrapper methods on `Pipeline` to keep imports light.


class Pipeline:
    """Drives one workflow run over an output directory and its journal."""

    runner: Optional[StepRunner]

    def __init__(
        self,
        options: PipelineOptions,
        executor: Optional[CommandExecutor] = None,
        sender: Optional[MailSender] = None,
        resolver: Optional[IdentityResolver] = None,
    ):
        self.options = options
        self.logger = get_logger(self.__class__.__name__)
        if options.dir_out is None:
            raise PipelineError("Output directory is required")
        self.dir_out = Path(options.dir_out)
        self.journal = Journal.for_output_dir(self.dir_out)

        if executor is None:
            from qiimepipe.external.base import ShellCommand

            executor = ShellCommand()
        if sender is None:
            from qiimepipe.external.mail import MailCommandSender

            sender = MailCommandSender()

        self.executor = executor
        self.resolver = resolver or IdentityResolver()
        # Parsed once; immutable for the rest of the run
        self.overlay = (
            ParameterOverlay.load(options.parameter_file)
            if options.parameter_file
            else ParameterOverlay.empty()
        )
        self.escalation = FailureEscalation(self.journal, sender)
        self.state = RunState(file_map=options.file_map, operator_email=options.email)
        self.steps: List[PipelineStep] = steps_for(options)
        self.runner = None
        self._exit_handler_installed = False

    # ------------------------------------------------------------------ helpers

    def path(self, *parts: str) -> Path:
        """Path inside the output directory."""
        return self.dir_out.joinpath(*parts)

    def run_command(self, command: str, force: bool = False) -> StepStatus:
        if self.runner is None:
            raise PipelineError("Pipeline not started; call start() first")
        return self.runner.run(command, force=force)

    def escalate(self, subject: str) -> None:
        self.state = self.escalation.escalate(self.state, subject)

    # ---------------------------------------------------------------- lifecycle

    def restart(self) -> None:
        """Forced restart: drop the journal and the output directory."""
        self.journal.delete()
        if self.dir_out.is_dir():
            self.logger.info(f"Removing output directory: {self.dir_out}")
            shutil.rmtree(self.dir_out)

    def start(self) -> None:
        """Prepare the journal and build the runner's status index."""
        if self.options.force:
            self.restart()
        self.journal.initialize(self.options.invocation)
        self.runner = StepRunner(self.journal, self.executor, self.resolver, self.overlay)

    def install_exit_handler(self) -> None:
        """Notify the operator if the process ends while still armed."""
        if not self._exit_handler_installed:
            atexit.register(self.on_exit)
            self._exit_handler_installed = True

    def on_exit(self) -> None:
        if not self.state.armed:
            return
        self.logger.warning("Run ended before completion; notifying operator")
        try:
            self.escalate("Interrupted")
        except NotificationError as exc:
            # Nothing left to propagate to at interpreter exit
            self.logger.error(f"Interrupt notification failed: {exc}")

    def run(self) -> RunState:
        """Run every step in order; stop at the first failure."""
        self.start()
        total = len(self.steps)
        iterator = iter_progress(
            self.steps,
            total=total,
            desc="Process",
            enabled=self.options.runtime.enable_progress,
            label=lambda step: step.name,
        )

        for step_number, step in enumerate(iterator, 1):
            self.logger.info(
                LogTemplates.STEP_START.format(
                    step_name=step.label, step_number=step_number, total=total
                )
            )
            step_start_time = time.time()
            try:
                result = self._execute_step(step)
            except StepFailedError as e:
                self.logger.error(LogTemplates.STEP_FAILURE.format(step_name=step.label, error=e))
                self.escalate(failure_subject(self.options.label))
                raise
            except DerivedValueError as e:
                self.logger.error(LogTemplates.STEP_FAILURE.format(step_name=step.label, error=e))
                self.escalate(failure_subject(str(e)))
                raise

            if result is not None:
                self.state = result
            self.logger.info(
                LogTemplates.STEP_SUCCESS.format(
                    step_name=step.label, duration=time.time() - step_start_time
                )
            )

        self.logger.info("Pipeline completed successfully")
        self.escalate(finished_subject(self.options.workflow, self.options.label))
        return self.state

    def _execute_step(self, step: PipelineStep) -> Optional[RunState]:
        """Execute a pipeline step and return the updated run state, if any."""
        method_name = f"_step_{step.name}"
        if not hasattr(self, method_name):
            raise PipelineError(f"Step implementation not found: {method_name}")
        result = getattr(self, method_name)()
        if isinstance(result, RunState):
            return result
        return None

    # ===================== STEP IMPLEMENTATIONS =====================

    def _step_make_output_dir(self) -> None:
        from qiimepipe.core.steps.preprocess import make_output_dir

        make_output_dir(self)

    def _step_print_qiime_config(self) -> None:
        from qiimepipe.core.steps.preprocess import print_qiime_config

        print_qiime_config(self)

    def _step_check_id_map(self) -> None:
        from qiimepipe.core.steps.preprocess import check_id_map

        check_id_map(self)

    def _step_process_sff(self) -> None:
        from qiimepipe.core.steps.preprocess import process_sff

        process_sff(self)

    def _step_split_libraries(self) -> None:
        from qiimepipe.core.steps.preprocess import split_libraries

        split_libraries(self)

    def _step_merge_id_maps(self) -> RunState:
        from qiimepipe.core.steps.preprocess import merge_id_maps

        return merge_id_maps(self)

    def _step_merge_fasta_files(self) -> RunState:
        from qiimepipe.core.steps.preprocess import merge_fasta_files

        return merge_fasta_files(self)

    def _step_assemble_pairs(self) -> RunState:
        from qiimepipe.core.steps.preprocess import assemble_pairs

        return assemble_pairs(self)

    def _step_dereplicate(self) -> RunState:
        from qiimepipe.core.steps.preprocess import dereplicate

        return dereplicate(self)

    def _step_denoise_wrapper(self) -> None:
        """Resumable: continues from the latest denoiser checkpoint when interrupted."""
        from qiimepipe.core.steps.denoise import denoise_wrapper

        denoise_wrapper(self)

    def _step_inflate_denoiser_output(self) -> None:
        from qiimepipe.core.steps.denoise import inflate_denoiser_output

        inflate_denoiser_output(self)

    def _step_chimera_check(self) -> None:
        from qiimepipe.core.steps.denoise import chimera_check

        chimera_check(self)

    def _step_pick_otus_through_otu_table(self) -> None:
        from qiimepipe.core.steps.otus import pick_otus_through_otu_table

        pick_otus_through_otu_table(self)

    def _step_per_library_stats(self) -> RunState:
        from qiimepipe.core.steps.otus import per_library_stats

        return per_library_stats(self)

    def _step_make_otu_heatmap_html(self) -> None:
        from qiimepipe.core.steps.diversity import make_otu_heatmap_html

        make_otu_heatmap_html(self)

    def _step_make_otu_network(self) -> None:
        from qiimepipe.core.steps.diversity import make_otu_network

        make_otu_network(self)

    def _step_wf_taxa_summary(self) -> None:
        from qiimepipe.core.steps.diversity import wf_taxa_summary

        wf_taxa_summary(self)

    def _step_alpha_diversity(self) -> None:
        from qiimepipe.core.steps.diversity import alpha_diversity

        alpha_diversity(self)

    def _step_beta_diversity_through_plots(self) -> None:
        from qiimepipe.core.steps.diversity import beta_diversity_through_plots

        beta_diversity_through_plots(self)

    def _step_jackknifed_beta_diversity(self) -> None:
        from qiimepipe.core.steps.diversity import jackknifed_beta_diversity

        jackknifed_beta_diversity(self)

    def _step_make_bootstrapped_tree(self) -> None:
        from qiimepipe.core.steps.diversity import make_bootstrapped_tree

        make_bootstrapped_tree(self)

    def _step_make_3d_plots(self) -> None:
        from qiimepipe.core.steps.diversity import make_3d_plots

        make_3d_plots(self)
