"""Subcommand modules for lambdakube.

Provides register_commands() which uses deferred imports to keep
``lambdakube --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group."""
    # --- Groups ---
    from lambdakube.commands.testing import test

    cli.add_command(test)

    # --- Standalone commands ---
    from lambdakube.commands.deploy import apply, plan, render

    cli.add_command(render)
    cli.add_command(plan)
    cli.add_command(apply)
