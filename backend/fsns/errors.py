from __future__ import annotations

from typing import Any, Optional


class NamespaceError(RuntimeError):
    """
    Base class for every failure surfaced by the namespace core.

    `code` is a stable machine-readable string; `payload()` returns the structured
    form that the HTTP layer serializes.
    """

    code = "namespace_error"

    def __init__(self, message: str = "", **detail: Any):
        self.message = message or self.code
        self.detail = {k: v for k, v in detail.items() if v is not None}
        super().__init__(self.message)

    def payload(self) -> dict[str, Any]:
        out: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.detail:
            out["detail"] = dict(self.detail)
        return {"error": out}


class InvalidArgument(NamespaceError):
    code = "invalid_argument"

    def __init__(self, message: str = "", *, consumed: Optional[int] = None, **detail: Any):
        self.consumed = consumed
        super().__init__(message, consumed=consumed, **detail)


class NotFound(NamespaceError):
    code = "not_found"


class AccessDenied(NamespaceError):
    code = "access_denied"


class OutOfMemory(NamespaceError):
    code = "out_of_memory"


class NotImplementedOperation(NamespaceError):
    code = "not_implemented"


class OperationFailed(NamespaceError):
    code = "operation_failed"

    @classmethod
    def from_os_error(cls, message: str, exc: OSError, **detail: Any) -> "OperationFailed":
        return cls(
            message,
            errno=exc.errno,
            reason=exc.strerror or str(exc),
            **detail,
        )

    @property
    def errno(self) -> Optional[int]:
        return self.detail.get("errno")

    @property
    def reason(self) -> Optional[str]:
        return self.detail.get("reason")
