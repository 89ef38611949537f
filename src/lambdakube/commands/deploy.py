"""Commands: render, plan, and apply the resolved system."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from lambdakube.commands._base import LkCommand
from lambdakube.services.deploy import DeployService

if TYPE_CHECKING:
    from lambdakube.commands._context import AppContext


@click.command(
    cls=LkCommand,
    examples="""\
  lambdakube render
  lambdakube render | kubectl apply -f -
  lambdakube --values prod.yaml render --output manifests/prod.yaml
  lambdakube -m myapp.system:module --json render""",
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write manifests to a file instead of stdout.",
)
@click.pass_obj
def render(app: AppContext, output: Path | None) -> None:
    """Resolve the system and print its Kubernetes manifests as YAML."""
    values = app.values
    if output is None:
        app.run("render", lambda inj: DeployService(inj, app.settings).render(values))
    else:
        app.run("write", lambda inj: DeployService(inj, app.settings).write(values, output))


@click.command(
    cls=LkCommand,
    examples="""\
  lambdakube plan
  lambdakube --values staging.yaml plan
  lambdakube --json plan""",
)
@click.pass_obj
def plan(app: AppContext) -> None:
    """Show which rules fire, in evaluation order, and what they emit."""
    values = app.values
    app.run("plan", lambda inj: DeployService(inj, app.settings).plan(values))


@click.command(
    cls=LkCommand,
    examples="""\
  lambdakube apply
  lambdakube --values prod.yaml apply --file .lambdakube/prod.yaml""",
)
@click.option(
    "--file",
    "path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Manifest file to write and apply (default: [deploy] output_dir/file_name).",
)
@click.pass_obj
def apply(app: AppContext, path: Path | None) -> None:
    """Render the system and kubectl-apply it when the manifests changed."""
    values = app.values
    app.run("apply", lambda inj: DeployService(inj, app.settings).apply(values, path=path))
