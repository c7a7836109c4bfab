"""ServiceResult and ServiceError: what CheckService hands to the CLI.

The CLI renders a ServiceResult as rich text, a quiet one-liner, or JSON
(``model_dump_json``), and maps ``ok`` to the exit code.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from cdl.domain.errors import CdlError


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult.

    ``code`` is the stage that failed (``LOAD_FAILED``, ``COMPILE_FAILED``,
    ``VALIDATION_FAILED``); the CdlError kind, when there is one, lives in
    ``detail["kind"]``.
    """

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_cdl_error(cls, code: str, err: CdlError) -> ServiceError:
        detail = err.to_dict()
        detail["breadcrumb"] = err.breadcrumb
        return cls(code=code, message=str(err), detail=detail)


class ServiceResult(BaseModel):
    """Outcome of a compile or check operation.

    Attributes:
        ok: Whether the operation succeeded.
        op: ``"compile"`` or ``"check"``.
        data: Operation-specific payload on success.
        error: Structured error if ``ok`` is False.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    error: ServiceError | None = None
