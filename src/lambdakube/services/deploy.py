"""DeployService — render, plan, and apply a resolved system."""

from __future__ import annotations

import logging
from collections.abc import Hashable, Mapping
from pathlib import Path
from typing import Any

from lambdakube.domain.errors import LambdaKubeError
from lambdakube.infrastructure.manifests import to_yaml
from lambdakube.services.base import BaseService
from lambdakube.services.resolve import resolve_plan
from lambdakube.services.result import ServiceResult

logger = logging.getLogger(__name__)


def _object_ref(obj: Mapping[str, Any]) -> str:
    """``Kind/name`` label for an emitted object."""
    name = obj.get("metadata", {}).get("name", "?")
    return f"{obj.get('kind', '?')}/{name}"


class DeployService(BaseService):
    """Resolves the injector and turns the result into manifests."""

    def render(self, values: Mapping[Hashable, Any]) -> ServiceResult:
        """Resolve and render all objects as multi-document YAML."""
        try:
            plan = resolve_plan(self._injector, values)
        except LambdaKubeError as exc:
            return ServiceResult.failure("render", exc)

        return ServiceResult(
            ok=True,
            op="render",
            data={
                "count": len(plan.objects),
                "objects": [_object_ref(o) for o in plan.objects],
                "yaml": to_yaml(plan.objects),
            },
        )

    def write(self, values: Mapping[Hashable, Any], path: Path) -> ServiceResult:
        """Render and write the manifests to *path*."""
        rendered = self.render(values)
        if not rendered.ok:
            return rendered.model_copy(update={"op": "write"})

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(rendered.data["yaml"], encoding="utf-8")
        return ServiceResult(
            ok=True,
            op="write",
            data={
                "path": str(path),
                "count": rendered.data["count"],
                "objects": rendered.data["objects"],
            },
        )

    def plan(self, values: Mapping[Hashable, Any]) -> ServiceResult:
        """Resolve and report, per rule, whether it fired or was skipped."""
        try:
            plan = resolve_plan(self._injector, values)
        except LambdaKubeError as exc:
            return ServiceResult.failure("plan", exc)

        rules: list[dict[str, Any]] = []
        for outcome in plan.outcomes:
            rules.append(
                {
                    "name": str(outcome.rule.name),
                    "deps": [str(d) for d in outcome.rule.deps],
                    "fired": outcome.fired,
                    "missing": [str(m) for m in outcome.missing],
                    "emitted": outcome.emitted,
                }
            )

        warnings: list[str] = []
        if not plan.objects:
            warnings.append("No rule fired; nothing to deploy")

        return ServiceResult(
            ok=True,
            op="plan",
            data={
                "fired": len(plan.fired),
                "skipped": len(plan.skipped),
                "count": len(plan.objects),
                "rules": rules,
            },
            warnings=warnings,
        )

    def apply(self, values: Mapping[Hashable, Any], *, path: Path | None = None) -> ServiceResult:
        """Render and ``kubectl apply`` the manifests if they changed."""
        rendered = self.render(values)
        if not rendered.ok:
            return rendered.model_copy(update={"op": "apply"})

        target = path or self._settings.output_dir / self._settings.deploy.file_name
        try:
            applied = self._kubectl.kube_apply(
                rendered.data["yaml"], target, namespace=self._settings.deploy.namespace
            )
        except LambdaKubeError as exc:
            return ServiceResult.failure("apply", exc, path=str(target))

        logger.debug("Apply %s: %s", target, "applied" if applied else "unchanged")
        return ServiceResult(
            ok=True,
            op="apply",
            data={
                "path": str(target),
                "applied": applied,
                "count": rendered.data["count"],
                "objects": rendered.data["objects"],
            },
        )
