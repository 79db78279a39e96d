"""Click application entrypoint for qiime-pipe."""

from __future__ import annotations

import signal
import sys
from pathlib import Path
from types import FrameType
from typing import List, Optional

import click

from qiimepipe import __version__
from qiimepipe.cli.exit_codes import (
    EXIT_ERROR,
    EXIT_SUCCESS,
    SignalInterrupt,
    interrupt_exit_code,
)
from qiimepipe.config import WORKFLOW_ILLUMINA, WORKFLOW_MERGE, WORKFLOW_SFF

from .commands.config import init_config
from .commands.journal import restart, show_journal
from .common_options import (
    barcode_size_option,
    chimera_db_option,
    chimera_option,
    common_workflow_options,
    file_map_option,
    force_option,
)
from .pipeline import execute_workflow


def _handle_signal(signum: int, frame: Optional[FrameType]) -> None:
    """Handle interrupt signals for graceful shutdown."""
    interrupt = SignalInterrupt(signum)
    click.echo(f"\n{interrupt}, stopping", err=True)
    # The running step keeps its INIT line; the next run sees it as interrupted
    raise interrupt


def _print_version(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    if value and not ctx.resilient_parsing:
        click.echo(f"qiime-pipe {__version__}")
        ctx.exit()


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
# Version option (use -V to avoid conflict with -v/--verbose)
@click.option(
    "-V",
    "--version",
    is_flag=True,
    is_eager=True,
    expose_value=False,
    callback=_print_version,
    help="Show the version and exit.",
)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """qiime-pipe: resumable QIIME amplicon analysis workflows.

    Every command run is journaled next to the output directory. Re-running
    the same command skips steps that already completed.
    """
    ctx.ensure_object(dict)


@cli.command(name="sff")
@click.option(
    "-s",
    "--file-sff",
    type=click.Path(path_type=Path),
    default=None,
    help="SFF file from 454 sequencing",
)
@file_map_option
@click.option("-d", "--denoise", is_flag=True, help="Denoise flowgrams (resumable)")
@chimera_option
@chimera_db_option
@barcode_size_option
@force_option()
@common_workflow_options
@click.pass_context
def sff(ctx: click.Context, config, verbose, log_file, show_steps, **values) -> None:
    """Analyse one 454 run from an SFF file and a mapping file."""
    execute_workflow(ctx, WORKFLOW_SFF, config, verbose, log_file, show_steps, **values)


@cli.command(name="illumina")
@click.option(
    "-i",
    "--input-dirs",
    default=None,
    help="Comma separated directories with paired-end reads",
)
@file_map_option
@chimera_option
@chimera_db_option
@force_option()
@common_workflow_options
@click.pass_context
def illumina(ctx: click.Context, config, verbose, log_file, show_steps, **values) -> None:
    """Assemble, dereplicate and analyse paired-end Illumina reads."""
    execute_workflow(ctx, WORKFLOW_ILLUMINA, config, verbose, log_file, show_steps, **values)


@cli.command(name="merge")
@click.option(
    "-m",
    "--mapping-files",
    default=None,
    help="Comma separated mapping files of processed datasets",
)
@click.option(
    "-f",
    "--fasta-files",
    default=None,
    help="Comma separated FASTA files, same order as the mapping files",
)
@force_option(short=False)
@common_workflow_options
@click.pass_context
def merge(ctx: click.Context, config, verbose, log_file, show_steps, **values) -> None:
    """Merge previously processed datasets and analyse them together."""
    execute_workflow(ctx, WORKFLOW_MERGE, config, verbose, log_file, show_steps, **values)


cli.add_command(restart)
cli.add_command(show_journal)
cli.add_command(init_config)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point with signal handling."""
    # Set up signal handlers for graceful shutdown
    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    if argv is None:
        argv = sys.argv[1:]

    try:
        cli.main(args=argv, prog_name="qiime-pipe", obj={"argv": list(argv)})
        return EXIT_SUCCESS
    except KeyboardInterrupt as exc:
        return interrupt_exit_code(exc)
    except SystemExit as exc:
        # Preserve explicit exit codes from cli()
        if exc.code is None:
            return EXIT_SUCCESS
        return exc.code if isinstance(exc.code, int) else EXIT_ERROR
    except Exception as exc:
        click.echo(f"Error: {exc}", err=True)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
