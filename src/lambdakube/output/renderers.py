"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from lambdakube.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from lambdakube.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    objects = result.data.get("objects")
    if isinstance(objects, list):
        return "\n".join(str(o) for o in objects)
    items = result.data.get("items")
    if isinstance(items, list):
        return "\n".join(str(i.get("name", "")) for i in items if isinstance(i, dict))
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="lk.ok")
    op = Text(f"  {result.op}", style="lk.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    k = Text(f"  {key}: ", style="lk.key")
    v = Text(str(value), style="lk.path" if key == "path" else "")
    console.print(k, v, end="")
    console.print()


def _object_list(console: Console, objects: list[str]) -> None:
    for ref in objects:
        console.print(Text(f"    {ref}", style="lk.resource"))


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="lk.error")
    op = Text(f"  {result.op}", style="lk.op")
    console.print(label, op, Text(" — "), msg)

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Operation renderers ───────────────────────────────────────────────


def _render_plan(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Rule-by-rule table in evaluation order."""
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Resource", style="lk.resource", no_wrap=True)
    table.add_column("Depends on")
    table.add_column("Status")
    table.add_column("Objects", justify="right")

    for i, rule in enumerate(result.data.get("rules", []), start=1):
        if rule["fired"]:
            status = Text("fired", style="lk.fired")
        else:
            status = Text(f"skipped (missing {', '.join(rule['missing'])})", style="lk.skipped")
        table.add_row(str(i), rule["name"], ", ".join(rule["deps"]), status, str(rule["emitted"]))

    console.print(table)
    d = result.data
    console.print(
        f"\n{d.get('fired', 0)} fired, {d.get('skipped', 0)} skipped, "
        f"{d.get('count', 0)} objects"
    )


def _render_apply(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    _field(console, "path", result.data.get("path", ""))
    _field(console, "applied", "yes" if result.data.get("applied") else "unchanged")
    _field(console, "count", result.data.get("count", 0))
    if verbose:
        _object_list(console, result.data.get("objects", []))


def _render_write(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    _field(console, "path", result.data.get("path", ""))
    _field(console, "count", result.data.get("count", 0))
    if verbose:
        _object_list(console, result.data.get("objects", []))


def _render_list_tests(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Test", style="lk.resource", no_wrap=True)
    table.add_column("Config")
    for item in result.data.get("items", []):
        config = ", ".join(f"{k}={v}" for k, v in item["config"].items())
        table.add_row(item["name"], config)
    console.print(table)
    console.print(f"\n{result.data.get('count', 0)} tests")


def _test_status(status: str) -> Text:
    return Text(status.upper(), style="lk.pass" if status == "pass" else "lk.fail")


def _render_run_test(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    console.print(_test_status(d.get("status", "fail")), Text(f"  {d.get('namespace', '')}"))
    if verbose or d.get("status") != "pass":
        console.print(d.get("log", ""), markup=False)


def _render_run_tests(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    for name, outcome in result.data.get("results", {}).items():
        console.print(_test_status(outcome["status"]), Text(f"  {name}"))
        if verbose:
            console.print(outcome.get("log", ""), markup=False)
    console.print(f"\n{result.data.get('count', 0)} tests run")


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


_OP_RENDERERS: dict[str, Any] = {
    "plan": _render_plan,
    "apply": _render_apply,
    "write": _render_write,
    "list_tests": _render_list_tests,
    "run_test": _render_run_test,
    "run_tests": _render_run_tests,
}
