"""Tests for the root CLI group: global flags, help, and examples."""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from lambdakube import __version__
from lambdakube.cli import cli


class TestRootGroup:
    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_no_command_shows_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "Usage:" in result.output
        for name in ("render", "plan", "apply", "test"):
            assert name in result.output

    def test_help_lists_global_flags(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--help"])
        for flag in ("--json", "--quiet", "--verbose", "--log-json", "--config", "--module"):
            assert flag in result.output

    def test_values_file_must_exist(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--values", "/nonexistent/values.yaml", "plan"])
        assert result.exit_code == 2


class TestExamples:
    @pytest.mark.parametrize(
        "args",
        [
            ["render"],
            ["plan"],
            ["apply"],
            ["test"],
            ["test", "list"],
            ["test", "run"],
        ],
    )
    def test_examples_flag(self, cli_runner: CliRunner, args: list[str]) -> None:
        result = cli_runner.invoke(cli, [*args, "--examples"])
        assert result.exit_code == 0
        assert "Examples for" in result.output
        assert "lambdakube" in result.output


@pytest.mark.usefixtures("project")
class TestModuleFlag:
    def test_module_ref_is_installed(self, cli_runner: CliRunner, project: Path) -> None:
        (project / "extra_mod.py").write_text(
            "def module(inj):\n"
            "    inj.rule('extra', ['frontend'], lambda f: {'kind': 'ConfigMap'})\n"
        )
        with pytest.MonkeyPatch.context() as mp:
            mp.syspath_prepend(str(project))
            result = cli_runner.invoke(cli, ["-m", "extra_mod:module", "render"])
        assert result.exit_code == 0, result.output
        assert result.stdout.rstrip().endswith("kind: ConfigMap")
