"""ServiceResult and ServiceError — the contract between services and the CLI.

INVARIANT: service methods return ServiceResult for expected failures
(cycles, conflicts, kubectl errors). Exceptions raised by user build
functions and describers are not converted and propagate as-is.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from lambdakube.domain.errors import LambdaKubeError


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Return type for all service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"render"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None

    @classmethod
    def failure(cls, op: str, exc: LambdaKubeError, **detail: Any) -> ServiceResult:
        """Build a failed result from a lambdakube error."""
        return cls(
            ok=False,
            op=op,
            error=ServiceError(code=exc.code, message=str(exc), detail=detail),
        )
