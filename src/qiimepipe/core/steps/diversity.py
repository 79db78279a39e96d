"""Visualisation and diversity steps run on the OTU table."""

from __future__ import annotations

from shlex import quote
from typing import TYPE_CHECKING

from qiimepipe.constants import ALPHA_METRICS, JACKKNIFE_FRACTION
from qiimepipe.core.steps.otus import MIN_SAMPLES_ERROR
from qiimepipe.exceptions import DerivedValueError

if TYPE_CHECKING:
    from qiimepipe.core.pipeline import Pipeline


def _q(path) -> str:
    return quote(str(path))


def _biom(pipeline: "Pipeline") -> str:
    return _q(pipeline.path("otus", "otu_table.biom"))


def _tree(pipeline: "Pipeline") -> str:
    return _q(pipeline.path("otus", "rep_set.tre"))


def _map(pipeline: "Pipeline") -> str:
    return _q(pipeline.state.file_map)


def _min_samples(pipeline: "Pipeline") -> int:
    if not pipeline.state.min_samples:
        raise DerivedValueError(MIN_SAMPLES_ERROR)
    return pipeline.state.min_samples


def make_otu_heatmap_html(pipeline: "Pipeline") -> None:
    dir_out = pipeline.path("otus", "OTU_Heatmap")
    pipeline.run_command(f"make_otu_heatmap_html.py -i {_biom(pipeline)} -o {_q(dir_out)}")


def make_otu_network(pipeline: "Pipeline") -> None:
    dir_out = pipeline.path("otus", "OTU_Network")
    pipeline.run_command(
        f"make_otu_network.py -m {_map(pipeline)} -i {_biom(pipeline)} -o {_q(dir_out)}"
    )


def wf_taxa_summary(pipeline: "Pipeline") -> None:
    dir_out = pipeline.path("wf_taxa_summary")
    cmd = (
        f"summarize_taxa_through_plots.py -i {_biom(pipeline)} -o {_q(dir_out)}"
        f" -m {_map(pipeline)}"
    )
    if pipeline.options.category:
        cmd += f" -c {quote(pipeline.options.category)}"
    pipeline.run_command(cmd + " -f")


def alpha_diversity(pipeline: "Pipeline") -> None:
    file_params = pipeline.path("alpha_params.txt")
    dir_out = pipeline.path("wf_arare")
    file_params.write_text(f"alpha_diversity:metrics {ALPHA_METRICS}\n", encoding="utf-8")

    pipeline.run_command(
        f"alpha_rarefaction.py -i {_biom(pipeline)} -m {_map(pipeline)} -o {_q(dir_out)}"
        f" -p {_q(file_params)} -t {_tree(pipeline)} -a -f"
    )


def beta_diversity_through_plots(pipeline: "Pipeline") -> None:
    dir_out = pipeline.path("wf_bdiv_even")
    pipeline.run_command(
        f"beta_diversity_through_plots.py -i {_biom(pipeline)} -m {_map(pipeline)}"
        f" -o {_q(dir_out)} -t {_tree(pipeline)} -e {_min_samples(pipeline)} -a -f"
    )


def jackknifed_beta_diversity(pipeline: "Pipeline") -> None:
    dir_out = pipeline.path("wf_jack")
    depth = int(_min_samples(pipeline) * JACKKNIFE_FRACTION)
    pipeline.run_command(
        f"jackknifed_beta_diversity.py -i {_biom(pipeline)} -t {_tree(pipeline)}"
        f" -m {_map(pipeline)} -o {_q(dir_out)} -e {depth} -a -f"
    )


def make_bootstrapped_tree(pipeline: "Pipeline") -> None:
    upgma = pipeline.path("wf_jack", "unweighted_unifrac", "upgma_cmp")
    pipeline.run_command(
        f"make_bootstrapped_tree.py -m {_q(upgma / 'master_tree.tre')}"
        f" -s {_q(upgma / 'jackknife_support.txt')}"
        f" -o {_q(upgma / 'jackknife_named_nodes.pdf')}"
    )


def make_3d_plots(pipeline: "Pipeline") -> None:
    file_weight = pipeline.path("wf_bdiv_even", "unweighted_unifrac_pc.txt")
    dir_out = pipeline.path("3d_biplot")
    category = pipeline.options.category
    table_name = f"{category}_otu_table_L3.txt" if category else "otu_table_L3.txt"
    file_table = pipeline.path("wf_taxa_summary", table_name)

    pipeline.run_command(
        f"make_3d_plots.py -i {_q(file_weight)} -m {_map(pipeline)} -t {_q(file_table)}"
        f" --n_taxa_keep 5 -o {_q(dir_out)}"
    )
