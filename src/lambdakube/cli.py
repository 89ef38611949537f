"""Root CLI group for lambdakube with global flags and command registration."""

from __future__ import annotations

from pathlib import Path

import click

from lambdakube import __version__
from lambdakube.commands import register_commands
from lambdakube.commands._context import AppContext
from lambdakube.config.settings import LkSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="lambdakube")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option(
    "-m",
    "--module",
    "module_refs",
    multiple=True,
    help="Extra module to install, as package.module:function (repeatable).",
)
@click.option(
    "--values",
    "values_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML file merged over the [values] table.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    module_refs: tuple[str, ...],
    values_file: Path | None,
) -> None:
    """lambdakube — declarative Kubernetes system assembly."""
    ctx.ensure_object(dict)
    settings = LkSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
        module_refs=list(module_refs),
        values_file=values_file,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
