"""Canonical step ordering per workflow."""

from __future__ import annotations

from typing import Dict, List

from qiimepipe.config import WORKFLOW_ILLUMINA, WORKFLOW_MERGE, WORKFLOW_SFF, PipelineOptions
from qiimepipe.core.pipeline_types import PipelineStep
from qiimepipe.exceptions import PipelineError


# Steps shared by every workflow once an OTU table exists.
DOWNSTREAM_STEPS: List[PipelineStep] = [
    PipelineStep("pick_otus_through_otu_table", "Pick OTUs and build the OTU table"),
    PipelineStep("per_library_stats", "Summarize OTU table and derive sampling depth"),
    PipelineStep("make_otu_heatmap_html", "Render OTU heatmap"),
    PipelineStep("make_otu_network", "Render OTU network"),
    PipelineStep("wf_taxa_summary", "Summarize taxa through plots"),
    PipelineStep("alpha_diversity", "Alpha rarefaction"),
    PipelineStep("beta_diversity_through_plots", "Beta diversity at even depth"),
    PipelineStep("jackknifed_beta_diversity", "Jackknifed beta diversity"),
    PipelineStep("make_bootstrapped_tree", "Bootstrapped UPGMA tree"),
    PipelineStep("make_3d_plots", "3D biplots"),
]

# 454 input: SFF file plus mapping file.
SFF_STEPS: List[PipelineStep] = [
    PipelineStep("make_output_dir", "Create output directory"),
    PipelineStep("print_qiime_config", "Record QIIME configuration"),
    PipelineStep("check_id_map", "Validate mapping file"),
    PipelineStep("process_sff", "Extract sequences from SFF"),
    PipelineStep("split_libraries", "Demultiplex and quality filter"),
    PipelineStep("denoise_wrapper", "Denoise flowgrams (resumable)", run_condition="denoise"),
    PipelineStep("inflate_denoiser_output", "Inflate denoised sequences", run_condition="denoise"),
    PipelineStep("chimera_check", "Remove chimeric sequences", run_condition="chimera"),
    *DOWNSTREAM_STEPS,
]

# Illumina input: directories of paired-end FASTQ files.
ILLUMINA_STEPS: List[PipelineStep] = [
    PipelineStep("make_output_dir", "Create output directory"),
    PipelineStep("print_qiime_config", "Record QIIME configuration"),
    PipelineStep("check_id_map", "Validate mapping file"),
    PipelineStep("assemble_pairs", "Trim and assemble read pairs"),
    PipelineStep("dereplicate", "Dereplicate assembled sequences"),
    PipelineStep("chimera_check", "Remove chimeric sequences", run_condition="chimera"),
    *DOWNSTREAM_STEPS,
]

# Previously processed datasets merged into one analysis.
MERGE_STEPS: List[PipelineStep] = [
    PipelineStep("make_output_dir", "Create output directory"),
    PipelineStep("print_qiime_config", "Record QIIME configuration"),
    PipelineStep("merge_id_maps", "Merge mapping files"),
    PipelineStep("merge_fasta_files", "Merge FASTA files"),
    *DOWNSTREAM_STEPS,
]

WORKFLOW_STEPS: Dict[str, List[PipelineStep]] = {
    WORKFLOW_SFF: SFF_STEPS,
    WORKFLOW_ILLUMINA: ILLUMINA_STEPS,
    WORKFLOW_MERGE: MERGE_STEPS,
}


def steps_for(options: PipelineOptions) -> List[PipelineStep]:
    """Ordered steps for the options' workflow, with feature-gated steps filtered."""
    try:
        steps = WORKFLOW_STEPS[options.workflow]
    except KeyError:
        raise PipelineError(f"Unknown workflow: {options.workflow}") from None
    return [
        step
        for step in steps
        if step.run_condition is None or getattr(options, step.run_condition, False)
    ]
