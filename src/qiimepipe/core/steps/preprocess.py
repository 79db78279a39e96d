"""Input preparation steps: output directory, mapping checks, sequence extraction."""

from __future__ import annotations

from pathlib import Path
from shlex import quote
from typing import TYPE_CHECKING, Optional

from qiimepipe.core.pipeline_types import RunState

if TYPE_CHECKING:
    from qiimepipe.core.pipeline import Pipeline


def sff_base(pipeline: "Pipeline") -> str:
    name = Path(pipeline.options.file_sff).name
    return name[: -len(".sff")] if name.endswith(".sff") else name


def make_output_dir(pipeline: "Pipeline") -> None:
    """Create the output directory (fails if it exists but was never journaled)."""
    pipeline.run_command(f"mkdir {quote(str(pipeline.dir_out))}")


def print_qiime_config(pipeline: "Pipeline") -> None:
    log = pipeline.path("print_qiime_config.log")
    pipeline.run_command(f"print_qiime_config.py -t > {quote(str(log))} 2>&1")


def check_id_map(pipeline: "Pipeline") -> None:
    dir_out = pipeline.path("mapping_output")
    file_map = pipeline.state.file_map
    pipeline.run_command(
        f"check_id_map.py -m {quote(str(file_map))} -o {quote(str(dir_out))} > /dev/null"
    )


def process_sff(pipeline: "Pipeline") -> None:
    """Extract flowgrams, sequences and qualities from the SFF file.

    The denoiser needs the flowgram text dump, so with denoising enabled
    sffinfo is run three times (one per output stream) instead of process_sff.py.
    """
    opts = pipeline.options
    sff = quote(str(opts.file_sff))
    base = sff_base(pipeline)

    if opts.denoise:
        sff_txt = quote(str(pipeline.path(f"{base}.sff.txt")))
        fasta = quote(str(pipeline.path(f"{base}.fna")))
        qual = quote(str(pipeline.path(f"{base}.qual")))
        pipeline.run_command(f"sffinfo {sff} > {sff_txt}")
        pipeline.run_command(f"sffinfo -s {sff} > {fasta}")
        pipeline.run_command(f"sffinfo -q {sff} > {qual}")
    else:
        pipeline.run_command(f"process_sff.py -i {sff} -o {quote(str(pipeline.dir_out))}")


def split_libraries(pipeline: "Pipeline") -> None:
    base = sff_base(pipeline)
    dir_out = pipeline.path("split_library_output")
    fasta = pipeline.path(f"{base}.fna")
    qual = pipeline.path(f"{base}.qual")
    pipeline.run_command(
        f"split_libraries.py -b {pipeline.options.barcode_size}"
        f" -m {quote(str(pipeline.state.file_map))}"
        f" -f {quote(str(fasta))} -q {quote(str(qual))} -o {quote(str(dir_out))}"
    )


def merge_id_maps(pipeline: "Pipeline") -> RunState:
    """Merge mapping files; the merged map replaces the input map downstream."""
    mapping_files = ",".join(str(p) for p in pipeline.options.mapping_files)
    output_file = pipeline.path("merged.map")
    pipeline.run_command(
        f"qiime_merge_mapping_files.rb -m {quote(mapping_files)} -o {quote(str(output_file))}"
    )
    return pipeline.state.update(file_map=output_file)


def merge_fasta_files(pipeline: "Pipeline") -> RunState:
    fasta_files = ",".join(str(p) for p in pipeline.options.fasta_files)
    output_file = pipeline.path("merged.fasta")
    pipeline.run_command(
        f"qiime_merge_fasta_files.rb -f {quote(fasta_files)} -o {quote(str(output_file))}"
    )
    return pipeline.state.update(fasta_input=output_file)


def assemble_pairs(pipeline: "Pipeline") -> RunState:
    """Quality trim and assemble paired-end reads with the external assembler."""
    opts = pipeline.options
    input_dirs = ",".join(str(p) for p in opts.input_dirs)
    dir_out = pipeline.path("assembled")
    pipeline.run_command(
        f"process_illumina.rb -i {quote(input_dirs)} -m {quote(str(pipeline.state.file_map))}"
        f" -o {quote(str(dir_out))} -C {opts.cpus} -f"
    )
    return pipeline.state.update(fasta_input=dir_out / "seqs.fna")


def dereplicate(pipeline: "Pipeline") -> RunState:
    """Drop duplicate sequences, keeping the first record and its header as is."""
    assembled: Optional[Path] = pipeline.state.fasta_input or pipeline.path("assembled", "seqs.fna")
    output_file = pipeline.path("dereplicated.fasta")
    pipeline.run_command(
        f"qiime_dereplicate.rb -i {quote(str(assembled))} -o {quote(str(output_file))} -f"
    )
    return pipeline.state.update(fasta_input=output_file)
