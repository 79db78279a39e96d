"""Shared workflow execution helpers for the CLI."""

from __future__ import annotations

import shlex
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, List, Optional, Sequence

import click

from qiimepipe.cli.exit_codes import EXIT_ERROR, interrupt_exit_code
from qiimepipe.config import PipelineOptions, build_options
from qiimepipe.exceptions import ConfigurationError, QiimePipeError
from qiimepipe.utils.logging import get_logger, level_from_name, level_from_verbosity, setup_logging

PROG_NAME = "qiime-pipe"


def invocation_string(argv: Optional[Sequence[str]]) -> str:
    """Command line recorded as the journal header."""
    if argv is None:
        argv = sys.argv[1:]
    return " ".join([PROG_NAME, shlex.join(list(argv))]).strip()


def current_argv(ctx: click.Context) -> List[str]:
    """Arguments of the running invocation as handed to ``main``."""
    obj = ctx.find_root().obj or {}
    argv = obj.get("argv")
    return list(argv) if argv is not None else sys.argv[1:]


def is_resume(ctx: click.Context) -> bool:
    """True when the invocation was replayed from a journal by ``restart``."""
    obj = ctx.find_root().obj or {}
    return bool(obj.get("resume"))


def show_workflow_steps(workflow: str, **flags: Any) -> None:
    """Show the step list of a workflow without touching the filesystem."""
    from qiimepipe.core.steps.definitions import steps_for

    steps = steps_for(PipelineOptions(workflow=workflow, **flags))
    click.echo(f"\nqiime-pipe {workflow} steps:")
    click.echo("-" * 40)
    for i, step in enumerate(steps, 1):
        click.echo(f"  {i:2d}. {step.label:<30} - {step.description}")
    click.echo("-" * 40)
    click.echo(f"Total: {len(steps)} steps\n")


def execute_workflow(
    ctx: click.Context,
    workflow: str,
    config: Optional[Path],
    verbose: int,
    log_file: Optional[Path],
    show_steps: bool,
    **cli_values: Any,
) -> None:
    """Resolve options, then run one workflow to completion.

    Configuration problems are reported on the terminal only; they never
    reach the journal or the operator's mailbox.
    """
    if show_steps:
        show_workflow_steps(
            workflow,
            denoise=bool(cli_values.get("denoise")),
            chimera=bool(cli_values.get("chimera")),
        )
        return

    setup_logging(level=level_from_verbosity(verbose), log_file=log_file)
    logger = get_logger("cli")

    try:
        opts = build_options(
            workflow,
            config_path=config,
            invocation=invocation_string(current_argv(ctx)),
            runtime_overrides={"log_file": log_file},
            **cli_values,
        )
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_ERROR)

    # A replayed run resumes; it must never wipe the work it resumes
    if opts.force and is_resume(ctx):
        logger.warning("Ignoring forced restart while resuming from the journal")
        opts = replace(opts, force=False)

    # -v on the command line wins over runtime.log_level from the config file
    if not verbose:
        setup_logging(level=level_from_name(opts.runtime.log_level), log_file=opts.runtime.log_file)

    from qiimepipe.core.pipeline import Pipeline

    try:
        pipeline = Pipeline(opts)
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_ERROR)

    pipeline.install_exit_handler()
    try:
        pipeline.run()
    except KeyboardInterrupt as exc:
        logger.info(f"Pipeline interrupted: {exc}")
        sys.exit(interrupt_exit_code(exc))
    except QiimePipeError as exc:
        logger.error(f"Pipeline error: {exc}")
        sys.exit(EXIT_ERROR)
    except Exception as exc:
        logger.exception(f"Unexpected error: {exc}")
        sys.exit(EXIT_ERROR)
