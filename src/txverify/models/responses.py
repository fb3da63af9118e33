"""Response envelope shared by every verifier route and error handler.

Shape: ``{"success": bool, "data": ..., "error": str | None, "meta": dict | None}``.
A lookup that ran but produced a negative answer (wrong token, no transfer
to the wallet, RPC unreachable on /health) still uses this envelope with
``success=False`` and a populated ``data``.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool
    data: T | None = None
    error: str | None = None
    meta: dict | None = None

    @classmethod
    def ok(cls, data: Any = None, *, success: bool = True) -> ApiResponse:
        return cls(success=success, data=data)

    @classmethod
    def fail(cls, error: str, *, data: Any = None, meta: dict | None = None) -> ApiResponse:
        return cls(success=False, data=data, error=error, meta=meta)

    def body(self) -> dict:
        """JSON-safe dict for returning from a route or a JSONResponse."""
        return self.model_dump(mode="json")
