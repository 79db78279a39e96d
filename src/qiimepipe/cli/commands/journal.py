"""Subcommands that read the journal of an existing run."""

from __future__ import annotations

import shlex
import sys
from pathlib import Path
from typing import List

import click

from qiimepipe.cli.exit_codes import EXIT_ERROR
from qiimepipe.config import WORKFLOWS
from qiimepipe.core.identity import IdentityResolver
from qiimepipe.core.journal import Journal
from qiimepipe.core.runner import StatusIndex


def _open_journal(dir_out: Path) -> Journal:
    journal = Journal.for_output_dir(dir_out)
    if not journal.exists():
        click.echo(f"Error: No journal found at {journal.path}", err=True)
        sys.exit(EXIT_ERROR)
    return journal


def replay_arguments(header: str) -> List[str]:
    """Arguments to re-run the invocation recorded in a journal header.

    Only the program name is dropped. Forced restart is switched off by
    ``execute_workflow`` once the options are resolved, whatever form the
    flag took on the recorded command line or in a config file.
    """
    args = shlex.split(header)
    if args and not args[0].startswith("-") and args[0] not in WORKFLOWS:
        args = args[1:]
    return args


@click.command(name="show-journal")
@click.argument("dir_out", type=click.Path(file_okay=False, path_type=Path))
def show_journal(dir_out: Path) -> None:
    """Show the latest status of every step of a run."""
    journal = _open_journal(dir_out)
    index = StatusIndex.build(journal.entries(), IdentityResolver())

    header = journal.header()
    if header:
        click.echo(f"Invocation: {header}")
    click.echo("-" * 40)
    for identity, status in index.items():
        click.echo(f"  {status.value:<5} {identity}")
    click.echo("-" * 40)
    click.echo(f"Total: {len(index)} steps")


@click.command(name="restart")
@click.argument("dir_out", type=click.Path(file_okay=False, path_type=Path))
@click.pass_context
def restart(ctx: click.Context, dir_out: Path) -> None:
    """Re-run the invocation recorded in the journal of DIR_OUT."""
    journal = _open_journal(dir_out)
    header = journal.header()
    args = replay_arguments(header or "")
    if not args:
        click.echo(f"Error: No invocation recorded in {journal.path}", err=True)
        sys.exit(EXIT_ERROR)

    click.echo(f"Restarting: {shlex.join(args)}", err=True)
    root = ctx.find_root().command
    root.main(
        args=args,
        prog_name="qiime-pipe",
        standalone_mode=False,
        obj={"argv": args, "resume": True},
    )
