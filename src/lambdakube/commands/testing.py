"""Command group: declared integration tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from lambdakube.commands._base import LkGroup
from lambdakube.services.testing import TestService

if TYPE_CHECKING:
    from lambdakube.commands._context import AppContext

_TEST_EXAMPLES = """\
  lambdakube test list
  lambdakube test run
  lambdakube test run backend-smoke
  lambdakube --json test run backend-smoke frontend-smoke"""


@click.group(cls=LkGroup, examples=_TEST_EXAMPLES)
@click.pass_obj
def test(app: AppContext) -> None:
    """List and run integration tests on a live cluster."""


@test.command(
    name="list",
    examples="""\
  lambdakube test list
  lambdakube --json test list""",
)
@click.pass_obj
def list_tests(app: AppContext) -> None:
    """List declared tests and their configurations."""
    app.run("list_tests", lambda inj: TestService(inj, app.settings).list_tests())


@test.command(
    examples="""\
  lambdakube test run
  lambdakube test run backend-smoke""",
)
@click.argument("names", nargs=-1)
@click.pass_obj
def run(app: AppContext, names: tuple[str, ...]) -> None:
    """Run the named tests, or all of them when no name is given."""
    if len(names) == 1:
        app.run("run_test", lambda inj: TestService(inj, app.settings).run_test(names[0]))
        return

    app.run(
        "run_tests",
        lambda inj: TestService(inj, app.settings).run_tests(names=names or None),
    )
