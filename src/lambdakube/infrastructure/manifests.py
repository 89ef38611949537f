"""YAML manifest emission for resolved API objects.

One block-style document per object, separated by ``---``, in emission
order, ready for ``kubectl apply -f``.
"""

from __future__ import annotations

from collections.abc import Iterable
from io import StringIO
from typing import Any

from ruamel.yaml import YAML


def _new_yaml() -> YAML:
    """Create a fresh YAML emitter.

    ruamel.yaml's YAML object is stateful; a new instance per call keeps a
    failed dump from leaking emitter state into the next one.
    """
    y = YAML()
    y.default_flow_style = False
    y.indent(mapping=2, sequence=2, offset=0)
    return y


def to_yaml(objects: Iterable[Any]) -> str:
    """Render *objects* as a multi-document YAML string."""
    docs: list[str] = []
    for obj in objects:
        buf = StringIO()
        _new_yaml().dump(obj, buf)
        docs.append(buf.getvalue())
    return "---\n".join(docs)
