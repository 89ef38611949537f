"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``LAMBDAKUBE_*`` prefix
  3. TOML file    — ``lambdakube.toml`` discovered via walk-up
  4. Code defaults — baked into the section models

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource` that
reuses the ``find_config`` walk-up discovery from
:mod:`lambdakube.config.discovery`.
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any, ClassVar

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from lambdakube.config.discovery import find_config, load_values
from lambdakube.config.models import DeployConfig, ModulesConfig, ProjectConfig, TestingConfig


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``lambdakube.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                import click

                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        """Return the full TOML data dict for Pydantic to merge."""
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class LkSettings(BaseSettings):
    """Unified settings for the lambdakube CLI.

    Stored on the Click context object at the CLI root level.

    Attributes:
        project_root: Directory holding ``lambdakube.toml`` (or CWD if none
            was found). Relative output paths resolve against it.
        config_path: The TOML file in use, or None.
        module_refs: Extra ``module:function`` references from ``--module``.
        values_file: YAML file merged over the ``[values]`` table.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "LAMBDAKUBE_",
        "env_nested_delimiter": "__",
    }

    # --- Resolved path (not in TOML — derived from config location) ---
    project_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    module_refs: list[str] = Field(default_factory=list)
    values_file: Path | None = None

    # --- TOML sections ---
    project: ProjectConfig = Field(default_factory=ProjectConfig)
    modules: ModulesConfig = Field(default_factory=ModulesConfig)
    deploy: DeployConfig = Field(default_factory=DeployConfig)
    testing: TestingConfig = Field(default_factory=TestingConfig)
    values: dict[str, Any] = Field(default_factory=dict)

    # Retained for type-checker visibility; not used at runtime.
    _toml_path: ClassVar[Path | None] = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        project_root: Path | None = None,
        **cli_flags: Any,
    ) -> LkSettings:
        """Construct settings from CLI invocation.

        Discovers ``lambdakube.toml`` via walk-up (or explicit *config_path*),
        resolves *project_root* from the config file's parent directory,
        and merges CLI flags as highest-priority overrides.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(project_root)

        resolved_root = project_root
        if resolved_root is None:
            resolved_root = toml_path.parent if toml_path else Path.cwd()

        _tls.toml_path = toml_path
        try:
            return cls(
                project_root=resolved_root,
                config_path=toml_path,
                **cli_flags,
            )
        finally:
            _tls.toml_path = None

    def resolution_values(self) -> dict[str, Any]:
        """The initial resolution configuration.

        ``[values]`` from TOML, overlaid with the ``--values`` file if given.
        """
        merged = dict(self.values)
        if self.values_file is not None:
            merged.update(load_values(self.values_file))
        return merged

    @property
    def output_dir(self) -> Path:
        """Directory for rendered manifests, relative to the project root."""
        return self.project_root / self.deploy.output_dir
