"""ServiceResult and ServiceError: what the CLI and reports consume.

Harness services raise typed exceptions so tests can assert on them
directly. At the outer surfaces (CLI commands, plugin reports) outcomes
are folded into these frozen models instead.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from empower_e2e.errors import HarnessError


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Outcome of one harness operation.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"compose_genesis"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (timing, counts, etc.).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(cls, op: str, exc: HarnessError) -> ServiceResult:
        """Fold a harness exception into a failed result (code = class name)."""
        return cls(
            ok=False,
            op=op,
            error=ServiceError(
                code=type(exc).__name__,
                message=str(exc),
                detail=exc.detail(),
            ),
        )
