"""``init-config``: write a YAML template for ``--config``."""

from __future__ import annotations

from pathlib import Path

import click

from qiimepipe.cli.exit_codes import EXIT_ERROR


@click.command(name="init-config")
@click.option(
    "--output-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path("qiime-pipe.yaml"),
    show_default=True,
    help="Where to write the template",
)
@click.option("--stdout", is_flag=True, help="Print the template instead of writing a file")
@click.option("--overwrite", is_flag=True, help="Replace an existing file")
def init_config(output_file: Path, stdout: bool, overwrite: bool) -> None:
    """Generate a template configuration file."""
    from qiimepipe.resources import get_default_config

    template = get_default_config()
    if stdout:
        click.echo(template, nl=False)
        return

    if output_file.exists() and not overwrite:
        click.echo(f"Error: {output_file} already exists (use --overwrite)", err=True)
        raise SystemExit(EXIT_ERROR)

    output_file.write_text(template, encoding="utf-8")
    click.echo(f"Wrote {output_file}; pass it to a workflow with --config.")
