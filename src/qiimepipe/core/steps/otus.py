"""OTU picking and OTU table statistics."""

from __future__ import annotations

import re
from pathlib import Path
from shlex import quote
from typing import TYPE_CHECKING

from qiimepipe.config import WORKFLOW_MERGE
from qiimepipe.core.pipeline_types import RunState
from qiimepipe.exceptions import DerivedValueError

if TYPE_CHECKING:
    from qiimepipe.core.pipeline import Pipeline

MIN_SAMPLES_RE = re.compile(r"Min: (\d+)")

MIN_SAMPLES_ERROR = "Failed to parse min samples."


def otu_input(pipeline: "Pipeline") -> Path:
    """Sequences to cluster: non-chimeras, merged/assembled reads, denoised or split reads."""
    opts = pipeline.options
    if opts.chimera and opts.workflow != WORKFLOW_MERGE:
        return pipeline.path("chimera", "nonchimeras.fasta")
    if pipeline.state.fasta_input is not None:
        return pipeline.state.fasta_input
    if opts.denoise:
        return pipeline.path("denoised", "inflated.fna")
    return pipeline.path("split_library_output", "seqs.fna")


def pick_otus_through_otu_table(pipeline: "Pipeline") -> None:
    dir_out = pipeline.path("otus")
    pipeline.run_command(
        f"pick_otus_through_otu_table.py -i {quote(str(otu_input(pipeline)))}"
        f" -o {quote(str(dir_out))} -a -O {pipeline.options.cpus} -f"
    )


def parse_min_samples(stats_file: Path) -> int:
    """Return the smallest library size from a per_library_stats report.

    Raises:
        DerivedValueError: The report is missing or has no positive ``Min:`` value
    """
    try:
        with open(stats_file, "r", encoding="utf-8") as handle:
            for line in handle:
                match = MIN_SAMPLES_RE.search(line)
                if match:
                    value = int(match.group(1))
                    if value > 0:
                        return value
                    break
    except OSError as exc:
        raise DerivedValueError(MIN_SAMPLES_ERROR) from exc
    raise DerivedValueError(MIN_SAMPLES_ERROR)


def per_library_stats(pipeline: "Pipeline") -> RunState:
    """Summarize the OTU table; the minimum library size sets rarefaction depth."""
    file_biom = pipeline.path("otus", "otu_table.biom")
    file_stats = Path(f"{file_biom}.stats")
    pipeline.run_command(
        f"per_library_stats.py -i {quote(str(file_biom))} > {quote(str(file_stats))}"
    )
    # Parsed on every invocation, also when the step itself was skipped
    min_samples = parse_min_samples(file_stats)
    pipeline.logger.info(f"Minimum library size: {min_samples}")
    return pipeline.state.update(min_samples=min_samples)
