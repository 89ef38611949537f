"""Kubernetes API object builders and modifiers.

Base builders (``pod``, ``deployment``, ``job``, ``stateful_set``,
``config_map``) return fresh dicts. Modifiers take an object as their first
argument and return an updated copy, so they chain naturally::

    depl = deployment(add_container(pod("web", {"app": "web"}), "nginx", "nginx:1.25"), 3)

INVARIANT: no function in this module mutates its arguments. Copies are
shallow along the modified path; untouched branches are shared.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any

from lambdakube.domain.types import ADDITIONAL, ApiObject, Description

# ---------------------------------------------------------------------------
# Generic helpers
# ---------------------------------------------------------------------------


def field_conj(obj: Mapping[str, Any], key: str, value: Any) -> dict[str, Any]:
    """Return a copy of *obj* with *value* appended to the list at *key*.

    Creates the list when *key* is absent.
    """
    return {**obj, key: [*obj.get(key, []), value]}


def update_in(
    obj: Mapping[str, Any],
    path: Sequence[str],
    func: Callable[..., Any],
    *args: Any,
) -> dict[str, Any]:
    """Return a copy of *obj* with ``func(obj[path...], *args)`` at *path*.

    Missing intermediate keys are created as empty dicts.
    """
    head, *rest = path
    current = obj.get(head)
    if rest:
        new = update_in(current or {}, rest, func, *args)
    else:
        new = func(current, *args)
    return {**obj, head: new}


def _merge_under(fixed: Mapping[str, Any], extra: Mapping[str, Any] | None) -> dict[str, Any]:
    """*fixed* keys first and winning on collision, then the rest of *extra*."""
    merged = dict(fixed)
    for key, value in (extra or {}).items():
        if key not in merged:
            merged[key] = value
    return merged


def _template_of(pod: ApiObject) -> ApiObject:
    """Strip a pod down to a controller template (no kind, no name)."""
    metadata = {k: v for k, v in pod.get("metadata", {}).items() if k != "name"}
    template = {k: v for k, v in pod.items() if k not in ("apiVersion", "kind")}
    template["metadata"] = metadata
    return template


# ---------------------------------------------------------------------------
# Base objects
# ---------------------------------------------------------------------------


def pod(name: str, labels: Mapping[str, Any], options: Mapping[str, Any] | None = None) -> ApiObject:
    """A Pod with no containers. *options* seed the pod spec."""
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {"name": name, "labels": dict(labels)},
        "spec": dict(options or {}),
    }


def deployment(pod: ApiObject, replicas: int) -> ApiObject:
    """Wrap *pod* as the template of a Deployment named after the pod."""
    name = pod["metadata"]["name"]
    labels = pod["metadata"].get("labels", {})
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": name, "labels": labels},
        "spec": {
            "replicas": replicas,
            "selector": {"matchLabels": labels},
            "template": _template_of(pod),
        },
    }


def job(
    pod: ApiObject,
    restart_policy: str,
    attrs: Mapping[str, Any] | None = None,
) -> ApiObject:
    """Wrap *pod* as the template of a Job. *attrs* extend the job spec."""
    template = _template_of(pod)
    template["spec"] = {**template.get("spec", {}), "restartPolicy": restart_policy}
    return {
        "apiVersion": "batch/v1",
        "kind": "Job",
        "metadata": {
            "name": pod["metadata"]["name"],
            "labels": pod["metadata"].get("labels", {}),
        },
        "spec": {"template": template, **(attrs or {})},
    }


def stateful_set(
    pod: ApiObject,
    replicas: int,
    options: Mapping[str, Any] | None = None,
) -> ApiObject:
    """Wrap *pod* as the template of a StatefulSet.

    The governing service name defaults to the pod name. Volume claim
    templates start empty; see :func:`add_volume_claim_template`.
    """
    name = pod["metadata"]["name"]
    labels = pod["metadata"].get("labels", {})
    spec = _merge_under(
        {
            "replicas": replicas,
            "selector": {"matchLabels": labels},
            "serviceName": name,
            "template": _template_of(pod),
            "volumeClaimTemplates": [],
        },
        options,
    )
    return {
        "apiVersion": "apps/v1",
        "kind": "StatefulSet",
        "metadata": {"name": name, "labels": labels},
        "spec": spec,
    }


def config_map(name: str, data: Mapping[str, Any]) -> ApiObject:
    """A ConfigMap holding *data*."""
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": {"name": name},
        "data": dict(data),
    }


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------


def add_container(
    pod: ApiObject,
    name: str,
    image: str,
    options: Mapping[str, Any] | None = None,
) -> ApiObject:
    """Append a container to the pod spec."""
    container = _merge_under({"name": name, "image": image}, options)
    return update_in(pod, ["spec"], lambda spec: field_conj(spec or {}, "containers", container))


def add_init_container(
    pod: ApiObject,
    name: str,
    image: str,
    options: Mapping[str, Any] | None = None,
) -> ApiObject:
    """Append an init container to the pod spec."""
    container = _merge_under({"name": name, "image": image}, options)
    return update_in(
        pod, ["spec"], lambda spec: field_conj(spec or {}, "initContainers", container)
    )


def add_env(container: Mapping[str, Any], envs: Mapping[str, Any]) -> dict[str, Any]:
    """Append ``{name, value}`` environment entries to a container."""
    entries = [{"name": name, "value": value} for name, value in envs.items()]
    return {**container, "env": [*container.get("env", []), *entries]}


def update_container(
    pod: ApiObject,
    container_name: str,
    func: Callable[..., Mapping[str, Any]],
    *args: Any,
) -> ApiObject:
    """Apply ``func(container, *args)`` to the container named *container_name*.

    Other containers are left as they are. A missing container is a no-op.
    """

    def _update(containers: list[Mapping[str, Any]] | None) -> list[Any]:
        return [
            func(c, *args) if c.get("name") == container_name else c for c in containers or []
        ]

    return update_in(pod, ["spec", "containers"], _update)


def update_template(ctrl: ApiObject, func: Callable[..., ApiObject], *args: Any) -> ApiObject:
    """Apply a pod modifier to the template of a controller."""
    return update_in(ctrl, ["spec", "template"], func, *args)


# ---------------------------------------------------------------------------
# Volumes and files
# ---------------------------------------------------------------------------


def _mount(pod: ApiObject, volume: str, mounts: Mapping[str, str]) -> ApiObject:
    for container, path in mounts.items():
        pod = update_container(
            pod, container, field_conj, "volumeMounts", {"name": volume, "mountPath": path}
        )
    return pod


def add_volume(
    pod: ApiObject,
    name: str,
    spec: Mapping[str, Any],
    mounts: Mapping[str, str],
) -> ApiObject:
    """Add a volume to the pod and mount it into containers.

    *mounts* maps container name to mount path.
    """
    volume = {"name": name, **spec}
    pod = update_in(pod, ["spec"], lambda s: field_conj(s or {}, "volumes", volume))
    return _mount(pod, name, mounts)


def add_files_to_container(
    pod: ApiObject,
    container: str,
    unique: str,
    base_path: str,
    files: Mapping[str, str],
) -> ApiObject:
    """Mount literal *files* (relative path -> content) under *base_path*.

    The contents travel in a ConfigMap named *unique*, attached to the pod
    as an additional object so it is emitted next to whatever owns the pod.
    """
    data: dict[str, str] = {}
    items: list[dict[str, str]] = []
    for i, (path, content) in enumerate(files.items()):
        key = f"c{i}"
        data[key] = content
        items.append({"key": key, "path": path})

    pod = field_conj(pod, ADDITIONAL, config_map(unique, data))
    return add_volume(
        pod,
        unique,
        {"configMap": {"name": unique, "items": items}},
        {container: base_path},
    )


def add_volume_claim_template(
    sset: ApiObject,
    name: str,
    spec: Mapping[str, Any],
    mounts: Mapping[str, str],
) -> ApiObject:
    """Add a volume claim template to a StatefulSet and mount it."""
    claim = {"metadata": {"name": name}, "spec": dict(spec)}
    sset = update_in(sset, ["spec"], lambda s: field_conj(s or {}, "volumeClaimTemplates", claim))
    return update_template(sset, _mount, name, mounts)


# ---------------------------------------------------------------------------
# Metadata and startup ordering
# ---------------------------------------------------------------------------


def add_annotation(obj: ApiObject, key: str, value: Any) -> ApiObject:
    """Set a metadata annotation."""
    return update_in(obj, ["metadata", "annotations"], lambda a: {**(a or {}), key: value})


def wait_for_service_port(pod: ApiObject, dep: Description, port_name: str) -> ApiObject:
    """Delay pod startup until a service port accepts connections.

    *dep* is a service description (``hostname`` and ``ports``) as produced
    by the standard describers.

    Raises:
        ValueError: *dep* has no hostname or no port named *port_name*.
    """
    hostname = dep.get("hostname")
    if hostname is None:
        msg = f"Cannot wait for port {port_name!r}: dependency is not a described service"
        raise ValueError(msg)
    port_number = (dep.get("ports") or {}).get(port_name)
    if port_number is None:
        msg = f"Service {hostname!r} has no port named {port_name!r}"
        raise ValueError(msg)
    return add_init_container(
        pod,
        f"wait-for-{hostname}-{port_name}",
        "busybox",
        {
            "command": [
                "sh",
                "-c",
                f"while ! nc -z {hostname} {port_number}; do sleep 1; done",
            ]
        },
    )
