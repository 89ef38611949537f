"""Config file discovery and values-file loading.

Walk-up finder locates lambdakube.toml, similar to how git finds .git/.
Supports the LAMBDAKUBE_CONFIG env var and --config CLI flag overrides.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

CONFIG_FILENAME = "lambdakube.toml"
CONFIG_ENV_VAR = "LAMBDAKUBE_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for lambdakube.toml.

    Returns the path to the config file, or None if not found.
    Checks LAMBDAKUBE_CONFIG env var first.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        if p.is_file():
            return p
        return None

    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def load_values(path: Path) -> dict[str, Any]:
    """Load a YAML values file to merge over the ``[values]`` table.

    An empty file yields an empty mapping. The top level must be a mapping.
    """
    from ruamel.yaml import YAML

    data = YAML(typ="safe").load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Values file {path} must contain a mapping, got {type(data).__name__}"
        raise ValueError(msg)
    return data
