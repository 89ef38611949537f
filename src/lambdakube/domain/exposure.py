"""Expose controllers through Services.

Exposure is a small pipeline over an :class:`Exposure` accumulator holding
the controller's template pod, the Service under construction, and the
service-type-specific port editor. Each :func:`port` step adds a container
port to the pod and the matching entry to the Service::

    expose_cluster_ip(
        depl,
        "web",
        [port("nginx", "http", 80), port("nginx", "metrics", 9113)],
    )

The finished Service is attached to the controller as an additional object.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any

from lambdakube.domain.objects import field_conj, update_container, update_in
from lambdakube.domain.types import ADDITIONAL, ApiObject

type PortEditor = Callable[[ApiObject, str, int, int | None], ApiObject]


@dataclass(frozen=True)
class Exposure:
    """Accumulator threaded through the port pipeline."""

    pod: ApiObject
    service: ApiObject
    edit: PortEditor


type PortStep = Callable[[Exposure], Exposure]


def port(
    container: str,
    port_name: str,
    pod_port: int,
    service_port: int | None = None,
) -> PortStep:
    """A pipeline step exposing *pod_port* of *container* as *port_name*.

    *service_port* is interpreted by the service type: the service port for
    ClusterIP, the node port for NodePort.
    """

    def step(exposure: Exposure) -> Exposure:
        pod = update_container(
            exposure.pod,
            container,
            field_conj,
            "ports",
            {"containerPort": pod_port, "name": port_name},
        )
        service = exposure.edit(exposure.service, port_name, pod_port, service_port)
        return replace(exposure, pod=pod, service=service)

    return step


def _steps(ports: PortStep | Iterable[PortStep]) -> list[PortStep]:
    if callable(ports):
        return [ports]
    return list(ports)


def expose(
    ctrl: ApiObject,
    name: str,
    ports: PortStep | Iterable[PortStep],
    attrs: Mapping[str, Any],
    edit: PortEditor,
) -> ApiObject:
    """Attach a Service named *name* selecting the controller's pods.

    *attrs* seed the service spec; the selector always comes from the
    template's labels.
    """
    pod = ctrl["spec"]["template"]
    service: ApiObject = {
        "kind": "Service",
        "apiVersion": "v1",
        "metadata": {"name": name},
        "spec": {**attrs, "selector": pod.get("metadata", {}).get("labels", {})},
    }
    exposure = Exposure(pod=pod, service=service, edit=edit)
    for step in _steps(ports):
        exposure = step(exposure)

    ctrl = field_conj(ctrl, ADDITIONAL, exposure.service)
    return update_in(ctrl, ["spec", "template"], lambda _: exposure.pod)


def _cluster_ip_port(
    service: ApiObject, port_name: str, pod_port: int, service_port: int | None
) -> ApiObject:
    entry = {
        "port": service_port if service_port is not None else pod_port,
        "name": port_name,
        "targetPort": port_name,
    }
    return update_in(service, ["spec"], lambda spec: field_conj(spec, "ports", entry))


def _node_port(
    service: ApiObject, port_name: str, pod_port: int, service_port: int | None
) -> ApiObject:
    entry: dict[str, Any] = {"targetPort": port_name, "name": port_name, "port": pod_port}
    if service_port is not None:
        entry["nodePort"] = service_port
    return update_in(service, ["spec"], lambda spec: field_conj(spec, "ports", entry))


def expose_cluster_ip(
    ctrl: ApiObject,
    name: str,
    ports: PortStep | Iterable[PortStep],
    attrs: Mapping[str, Any] | None = None,
) -> ApiObject:
    """Expose through a ClusterIP service."""
    return expose(ctrl, name, ports, {**(attrs or {}), "type": "ClusterIP"}, _cluster_ip_port)


def expose_headless(
    ctrl: ApiObject,
    name: str,
    ports: PortStep | Iterable[PortStep],
    attrs: Mapping[str, Any] | None = None,
) -> ApiObject:
    """Expose through a headless service (``clusterIP: None``)."""
    return expose_cluster_ip(ctrl, name, ports, {**(attrs or {}), "clusterIP": "None"})


def expose_node_port(
    ctrl: ApiObject,
    name: str,
    ports: PortStep | Iterable[PortStep],
) -> ApiObject:
    """Expose through a NodePort service."""
    return expose(ctrl, name, ports, {"type": "NodePort"}, _node_port)
