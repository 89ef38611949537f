"""Shared type aliases for API objects, resources, and describers.

API objects are schema-free: nested dicts and lists of scalars, exactly as
they will appear in the rendered manifest. The only structural convention the
engine relies on is the reserved :data:`ADDITIONAL` key.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Mapping
from typing import Any

# Reserved key carrying sibling objects to be emitted alongside the owner.
ADDITIONAL = "$additional"

type ApiObject = dict[str, Any]
type ResourceName = Hashable
type Description = dict[str, Any]
type Describer = Callable[[ApiObject], Mapping[str, Any] | None]
type BuildFunc = Callable[..., ApiObject | list[ApiObject]]
