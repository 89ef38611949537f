"""Describers — summarize emitted objects for the rules that depend on them.

A describer looks at one API object and returns a partial description, or
``None`` when the object is not its concern. Every registered describer runs
on every object a rule emits (the primary object and each additional one);
the results are merged left to right, later values winning.

Describer errors are not caught: describers must be total over any shape.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from lambdakube.domain.types import ApiObject, Describer, Description

if TYPE_CHECKING:
    from lambdakube.domain.injector import Injector


def describe_single(obj: ApiObject, describers: Sequence[Describer]) -> Description:
    """Merge the non-``None`` results of all *describers* on one object."""
    description: Description = {}
    for describer in describers:
        part = describer(obj)
        if part is not None:
            description.update(part)
    return description


def describe(objects: Iterable[ApiObject], describers: Sequence[Describer]) -> Description:
    """Merge the descriptions of several objects into one."""
    description: Description = {}
    for obj in objects:
        description.update(describe_single(obj, describers))
    return description


# ---------------------------------------------------------------------------
# Standard describers
# ---------------------------------------------------------------------------


def describe_annotations(obj: ApiObject) -> Description | None:
    """Expose ``metadata.annotations`` when present."""
    metadata = obj.get("metadata")
    if isinstance(metadata, dict) and "annotations" in metadata:
        return {"annotations": metadata["annotations"]}
    return None


def describe_service(obj: ApiObject) -> Description | None:
    """Expose a Service's hostname and its ports by name."""
    if obj.get("kind") != "Service":
        return None
    ports: dict[Any, Any] = {}
    for entry in (obj.get("spec") or {}).get("ports") or []:
        if isinstance(entry, dict):
            ports[entry.get("name")] = entry.get("port")
    return {"hostname": (obj.get("metadata") or {}).get("name"), "ports": ports}


STANDARD_DESCRIBERS: tuple[Describer, ...] = (describe_annotations, describe_service)


def standard_descs(injector: Injector) -> Injector:
    """Register the standard describers on *injector*."""
    for describer in STANDARD_DESCRIBERS:
        injector.desc(describer)
    return injector
