"""Denoising and chimera removal.

``denoise_wrapper`` is the only stage that can continue mid-way after an
interruption; see :mod:`qiimepipe.core.checkpoints`.
"""

from __future__ import annotations

from shlex import quote
from typing import TYPE_CHECKING

from qiimepipe.config import WORKFLOW_ILLUMINA
from qiimepipe.core.checkpoints import CheckpointResolver, ResumePlan
from qiimepipe.core.steps.preprocess import sff_base

if TYPE_CHECKING:
    from qiimepipe.core.pipeline import Pipeline


def _denoiser_inputs(pipeline: "Pipeline"):
    sff_txt = pipeline.path(f"{sff_base(pipeline)}.sff.txt")
    fasta = pipeline.path("split_library_output", "seqs.fna")
    return sff_txt, fasta


def _resume_command(pipeline: "Pipeline", plan: ResumePlan) -> str:
    sff_txt, fasta = _denoiser_inputs(pipeline)
    return (
        f"denoiser.py --titanium -i {quote(str(sff_txt))} -f {quote(str(fasta))}"
        f" -o {quote(str(plan.output_dir))} -p {quote(str(plan.preprocess_dir))}"
        f" --checkpoint {quote(str(plan.checkpoint.path))} -n {pipeline.options.cpus}"
    )


def denoise_wrapper(pipeline: "Pipeline") -> None:
    """Denoise flowgrams, resuming from the latest checkpoint after an interruption."""
    sff_txt, fasta = _denoiser_inputs(pipeline)
    dir_out = pipeline.path("denoised")
    cmd = (
        f"denoise_wrapper.py --titanium -i {quote(str(sff_txt))} -f {quote(str(fasta))}"
        f" -o {quote(str(dir_out))} -m {quote(str(pipeline.state.file_map))}"
        f" -n {pipeline.options.cpus}"
    )

    status = pipeline.runner.status_of(cmd)
    if not status.interrupted:
        # OK is skipped by the runner, NOT_RUN starts normally
        pipeline.run_command(cmd)
        return

    resolver = CheckpointResolver(dir_out)
    plan = resolver.plan()
    if not plan.resumes:
        pipeline.run_command(f"{cmd} --force_overwrite")
        return

    pipeline.logger.info(
        f"denoise_wrapper was left as {status.value}; resuming at checkpoint {plan.checkpoint.ordinal}"
    )
    resolver.prepare(plan)
    # Each resume starts from a different checkpoint and must never be skipped
    pipeline.run_command(_resume_command(pipeline, plan), force=True)
    resolver.finish(plan)
    pipeline.runner.mark_complete(cmd)


def inflate_denoiser_output(pipeline: "Pipeline") -> None:
    denoised = pipeline.path("denoised")
    fasta = pipeline.path("split_library_output", "seqs.fna")
    pipeline.run_command(
        f"inflate_denoiser_output.py -c {quote(str(denoised / 'centroids.fasta'))}"
        f" -s {quote(str(denoised / 'singletons.fasta'))} -f {quote(str(fasta))}"
        f" -d {quote(str(denoised / 'denoiser_mapping.txt'))}"
        f" -o {quote(str(denoised / 'inflated.fna'))}"
    )


def chimera_input(pipeline: "Pipeline"):
    """Sequences to screen for chimeras, depending on what ran before."""
    if pipeline.options.workflow == WORKFLOW_ILLUMINA:
        return pipeline.state.fasta_input or pipeline.path("dereplicated.fasta")
    if pipeline.options.denoise:
        return pipeline.path("denoised", "inflated.fna")
    return pipeline.path("split_library_output", "seqs.fna")


def chimera_check(pipeline: "Pipeline") -> None:
    chimera_dir = pipeline.path("chimera")
    chimera_dir.mkdir(parents=True, exist_ok=True)

    pipeline.run_command(
        f"usearch -quiet -uchime {quote(str(chimera_input(pipeline)))}"
        f" -db {quote(str(pipeline.options.chimera_db))}"
        f" -chimeras {quote(str(chimera_dir / 'chimeras.fasta'))}"
        f" -nonchimeras {quote(str(chimera_dir / 'nonchimeras.fasta'))}"
    )
