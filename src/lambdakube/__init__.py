"""lambdakube — declarative Kubernetes object graphs with dependency injection."""

from lambdakube.domain.describers import standard_descs
from lambdakube.domain.errors import ConflictError, CycleError, KubectlError, LambdaKubeError
from lambdakube.domain.exposure import (
    expose,
    expose_cluster_ip,
    expose_headless,
    expose_node_port,
    port,
)
from lambdakube.domain.extract import extract_additional
from lambdakube.domain.injector import Injector, Rule, injector
from lambdakube.domain.objects import (
    add_annotation,
    add_container,
    add_env,
    add_files_to_container,
    add_init_container,
    add_volume,
    add_volume_claim_template,
    config_map,
    deployment,
    job,
    pod,
    stateful_set,
    update_container,
    update_template,
    wait_for_service_port,
)
from lambdakube.services.resolve import get_deployable, resolve

__version__ = "0.6.0"

__all__ = [
    "ConflictError",
    "CycleError",
    "Injector",
    "KubectlError",
    "LambdaKubeError",
    "Rule",
    "__version__",
    "add_annotation",
    "add_container",
    "add_env",
    "add_files_to_container",
    "add_init_container",
    "add_volume",
    "add_volume_claim_template",
    "config_map",
    "deployment",
    "expose",
    "expose_cluster_ip",
    "expose_headless",
    "expose_node_port",
    "extract_additional",
    "get_deployable",
    "injector",
    "job",
    "pod",
    "port",
    "resolve",
    "stateful_set",
    "standard_descs",
    "update_container",
    "update_template",
    "wait_for_service_port",
]
