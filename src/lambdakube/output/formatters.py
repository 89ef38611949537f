"""Output mode selection for ServiceResult.

The CLI renders ServiceResult for humans (Rich tables and colors) or
machines (--json). ``render`` results are the exception: in human mode the
YAML manifest is written verbatim so it can be piped into kubectl.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lambdakube.services.result import ServiceResult


@dataclass(frozen=True)
class OutputSettings:
    """Output flags relevant to formatting."""

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    """Format a ServiceResult for display."""
    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2)
    if result.ok and result.op == "render":
        return str(result.data.get("yaml", "")).rstrip("\n")

    from lambdakube.output.renderers import render_quiet, render_result

    if settings.quiet:
        return render_quiet(result)
    return render_result(result, verbose=settings.verbose)
