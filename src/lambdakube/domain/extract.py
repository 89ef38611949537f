"""Flatten attached ``$additional`` objects out of an API object graph.

Builders attach sibling objects (a Service next to a Deployment, a ConfigMap
next to a Pod) under the reserved :data:`~lambdakube.domain.types.ADDITIONAL`
key, at any depth. Extraction returns the cleaned primary object together
with every attached object, pulled up to a single ordered list.

INVARIANT: extraction is pure. The input is never mutated and re-extracting
a cleaned object yields the same object and no additional objects.
"""

from __future__ import annotations

from typing import Any

from lambdakube.domain.types import ADDITIONAL, ApiObject


def extract_additional(obj: Any) -> tuple[Any, list[ApiObject]]:
    """Split *obj* into ``(primary, additional)``.

    For a dict, the additional list holds, in order: the dict's own attached
    objects (cleaned), the objects those attached objects carry themselves,
    then everything surfaced from the dict's fields in field order.
    Lists and tuples concatenate the additional objects of their elements.
    Scalars pass through unchanged.
    """
    if isinstance(obj, dict):
        return _extract_mapping(obj)
    if isinstance(obj, (list, tuple)):
        return _extract_sequence(obj)
    return obj, []


def _extract_mapping(obj: dict[str, Any]) -> tuple[dict[str, Any], list[ApiObject]]:
    cleaned: dict[str, Any] = {}
    from_fields: list[ApiObject] = []
    for key, value in obj.items():
        if key == ADDITIONAL:
            continue
        cleaned[key], found = extract_additional(value)
        from_fields.extend(found)

    explicit, nested = _extract_sequence(obj.get(ADDITIONAL) or [])
    return cleaned, [*explicit, *nested, *from_fields]


def _extract_sequence(items: list[Any] | tuple[Any, ...]) -> tuple[list[Any], list[ApiObject]]:
    cleaned: list[Any] = []
    additional: list[ApiObject] = []
    for item in items:
        primary, found = extract_additional(item)
        cleaned.append(primary)
        additional.extend(found)
    return cleaned, additional
