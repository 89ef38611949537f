"""Exception hierarchy for resolution and deployment failures.

Missing dependencies are deliberately absent here: a rule whose
dependencies are not in the configuration is skipped, never reported.
"""

from __future__ import annotations

from collections.abc import Hashable, Sequence


class LambdaKubeError(Exception):
    """Base class for all lambdakube errors."""

    code = "ERROR"


class CycleError(LambdaKubeError):
    """The rule/resource graph contains a cycle."""

    code = "CYCLE"

    def __init__(self, cycle: Sequence[Hashable]) -> None:
        self.cycle = list(cycle)
        path = " -> ".join(str(v) for v in self.cycle)
        super().__init__(f"Circular dependency between resources: {path}")


class ConflictError(LambdaKubeError):
    """Two rules resolved the same resource in one run."""

    code = "CONFLICT"

    def __init__(self, resource: Hashable) -> None:
        self.resource = resource
        super().__init__(f"Conflicting prerequisites for resource {resource}")


class KubectlError(LambdaKubeError):
    """The external kubectl process exited with a non-zero status."""

    code = "KUBECTL_FAILED"

    def __init__(self, command: Sequence[str], stderr: str) -> None:
        self.command = list(command)
        self.stderr = stderr
        super().__init__(f"Error status from command: {' '.join(self.command)}\n{stderr}")


class ModuleLoadError(LambdaKubeError):
    """An explicitly referenced system module could not be loaded."""

    code = "MODULE_LOAD_FAILED"

    def __init__(self, ref: str, reason: str) -> None:
        self.ref = ref
        super().__init__(f"Cannot load module {ref!r}: {reason}")
