"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, lambdakube.toml only contains
overrides. A project needs at most ``[modules] refs`` and a ``[values]``
table.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# --- lambdakube.toml sections ---


class ProjectConfig(BaseModel):
    """[project] section."""

    model_config = {"frozen": True}

    name: str = "lambdakube"


class ModulesConfig(BaseModel):
    """[modules] section.

    ``refs`` are ``"package.module:function"`` references to system modules.
    """

    model_config = {"frozen": True}

    refs: list[str] = Field(default_factory=list)
    standard_describers: bool = True


class DeployConfig(BaseModel):
    """[deploy] section."""

    model_config = {"frozen": True}

    output_dir: str = ".lambdakube"
    file_name: str = "deploy.yaml"
    kubectl: str = "kubectl"
    namespace: str | None = None


class TestingConfig(BaseModel):
    """[testing] section."""

    model_config = {"frozen": True}

    prefix: str = "lk-test"
    poll_interval: float = 1.0
    timeout: float = 600.0
    keep_failed_namespaces: bool = True
