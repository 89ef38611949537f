"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Provides lazy injector assembly and centralized
result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import click

from lambdakube.domain.errors import LambdaKubeError
from lambdakube.output.formatters import OutputSettings, format_result
from lambdakube.services.result import ServiceResult

if TYPE_CHECKING:
    from lambdakube.config.settings import LkSettings
    from lambdakube.domain.injector import Injector

LOCAL_MODULES_DIR = ".lambdakube/modules"


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The injector is assembled lazily on first use so ``--help`` and
    ``--version`` never import user modules.
    """

    def __init__(self, settings: LkSettings) -> None:
        self.settings = settings
        self._injector: Injector | None = None

        from lambdakube.config.logging import configure_logging

        configure_logging(
            verbose=settings.verbose,
            quiet=settings.quiet or settings.json_output,
            log_json=settings.log_json,
        )

    @property
    def injector(self) -> Injector:
        """The injector built from all discovered and referenced modules.

        Raises:
            ModuleLoadError: An explicit module reference failed to load.
        """
        if self._injector is None:
            from lambdakube.plugins.manager import PluginManager

            pm = PluginManager()
            pm.discover_and_load(local_dir=self.settings.project_root / LOCAL_MODULES_DIR)
            for ref in [*self.settings.modules.refs, *self.settings.module_refs]:
                pm.load_ref(ref)
            self._injector = pm.build_injector(
                standard=self.settings.modules.standard_describers
            )
        return self._injector

    @property
    def values(self) -> dict[str, Any]:
        """Initial resolution configuration (``[values]`` + ``--values``)."""
        try:
            return self.settings.resolution_values()
        except (OSError, ValueError) as exc:
            raise click.ClickException(f"Cannot read values: {exc}") from exc

    def run(self, op: str, func: Callable[[Injector], ServiceResult]) -> None:
        """Assemble the injector, run *func* on it, and emit the result."""
        try:
            injector = self.injector
        except LambdaKubeError as exc:
            result = ServiceResult.failure(op, exc)
        else:
            result = func(injector)
        self.emit(result)

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings go to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
