"""Shared Click options for the qiime-pipe workflow commands.

The ``sff``, ``illumina`` and ``merge`` commands share most of their options;
defining them once keeps short flags consistent between workflows.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, TypeVar

import click

from qiimepipe.constants import DEFAULT_BARCODE_SIZE, DEFAULT_CHIMERA_DB, DEFAULT_CPUS

F = TypeVar("F", bound=Callable[..., None])


def output_option(func: F) -> F:
    """Output directory option; the journal is written next to it."""
    return click.option(
        "-o",
        "--dir-out",
        type=click.Path(file_okay=False, path_type=Path),
        default=None,
        help="Output directory (journal: <dir-out>.log)",
    )(func)


def file_map_option(func: F) -> F:
    return click.option(
        "-m",
        "--file-map",
        type=click.Path(path_type=Path),
        default=None,
        help="Mapping file",
    )(func)


def chimera_option(func: F) -> F:
    return click.option(
        "-c",
        "--chimera",
        is_flag=True,
        help="Remove chimeric sequences before OTU picking",
    )(func)


def chimera_db_option(func: F) -> F:
    return click.option(
        "-D",
        "--chimera-db",
        type=click.Path(path_type=Path),
        default=None,
        help=f"Reference database for chimera checking [default: {DEFAULT_CHIMERA_DB}]",
    )(func)


def force_option(short: bool = True) -> Callable[[F], F]:
    """Forced restart option (``-f`` is taken by ``merge``)."""
    names = ("-f", "--force") if short else ("--force",)

    def decorator(func: F) -> F:
        return click.option(
            *names,
            is_flag=True,
            help="Delete the journal and output directory and start over",
        )(func)

    return decorator


def cpus_option(func: F) -> F:
    return click.option(
        "-C",
        "--cpus",
        type=int,
        default=None,
        help=f"CPUs handed to tools that support it [default: {DEFAULT_CPUS}]",
    )(func)


def category_option(func: F) -> F:
    return click.option(
        "-M",
        "--category",
        default=None,
        help="Mapping file column for taxa summaries and 3D plots",
    )(func)


def email_option(func: F) -> F:
    return click.option(
        "-e",
        "--email",
        default=None,
        help="Send the journal to this address on failure or completion",
    )(func)


def parameter_file_option(func: F) -> F:
    return click.option(
        "-p",
        "--parameter-file",
        type=click.Path(path_type=Path),
        default=None,
        help="File with extra tool options, one 'tool:option value' per line",
    )(func)


def config_option(func: F) -> F:
    """Configuration file option."""
    return click.option(
        "--config",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        help="Configuration file (YAML)",
    )(func)


def verbose_option(func: F) -> F:
    """Verbosity option (unified: use -v/--verbose everywhere)."""
    return click.option(
        "-v",
        "--verbose",
        count=True,
        help="Increase log verbosity (-v for INFO, -vv for DEBUG)",
    )(func)


def log_file_option(func: F) -> F:
    return click.option(
        "--log-file",
        type=click.Path(dir_okay=False, path_type=Path),
        help="Path for log file output",
    )(func)


def show_steps_option(func: F) -> F:
    return click.option(
        "--show-steps",
        is_flag=True,
        help="Show the workflow steps and exit",
    )(func)


def barcode_size_option(func: F) -> F:
    return click.option(
        "-b",
        "--barcode-size",
        type=int,
        default=None,
        help=f"Barcode length [default: {DEFAULT_BARCODE_SIZE}]",
    )(func)


def common_workflow_options(func: F) -> F:
    """Apply the options every workflow command accepts.

    Usage:
        @click.command()
        @common_workflow_options
        def my_workflow(dir_out, cpus, category, ...):
            pass
    """
    # Click applies decorators bottom-up
    decorators = [
        output_option,
        cpus_option,
        category_option,
        email_option,
        parameter_file_option,
        config_option,
        verbose_option,
        log_file_option,
        show_steps_option,
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func
