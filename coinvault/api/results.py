"""
coinvault.api.results — ActionResult → HTTP response
=====================================================

Status codes per error kind::

    authentication → 401    authorization → 403    not_found → 404
    validation     → 400    internal      → 500

Error body: ``{"error": {"kind": ..., "message": ...}}``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from fastapi.responses import JSONResponse

from coinvault.errors import ActionResult

STATUS_BY_KIND: dict[str, int] = {
    "authentication": 401,
    "authorization": 403,
    "not_found": 404,
    "validation": 400,
    "internal": 500,
}


def to_response(
    result: ActionResult,
    serialize: Callable[[Any], Any] | None = None,
    *,
    success_status: int = 200,
) -> JSONResponse:
    if result.error is not None:
        return JSONResponse(
            status_code=STATUS_BY_KIND.get(result.error.kind, 500),
            content={"error": result.error.to_dict()},
        )
    data = serialize(result.data) if serialize else result.data
    return JSONResponse(status_code=success_status, content={"data": data})
