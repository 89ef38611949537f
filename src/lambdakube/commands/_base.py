"""Click command classes shared by lambdakube commands.

``--help`` stays short; ``--examples`` prints ready-to-paste invocations
(module refs, values files, JSON output) and exits.
"""

from __future__ import annotations

from typing import Any

import click


class _ExamplesMixin:
    """Adds an eager ``--examples`` flag when an ``examples`` text is given."""

    examples: str | None

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(  # type: ignore[attr-defined]
                click.Option(
                    ["--examples"],
                    is_flag=True,
                    expose_value=False,
                    is_eager=True,
                    callback=self._print_examples,
                    help="Show usage examples.",
                )
            )

    def _print_examples(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if value:
            click.echo(f"Examples for '{ctx.command_path}':\n\n{self.examples}")
            ctx.exit(0)


class LkCommand(_ExamplesMixin, click.Command):
    """A lambdakube command."""


class LkGroup(_ExamplesMixin, click.Group):
    """A lambdakube command group; subcommands default to :class:`LkCommand`."""

    command_class = LkCommand
