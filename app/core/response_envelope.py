from __future__ import annotations

from http import HTTPStatus
from typing import Any


def _success_code(status_code: int) -> str:
    mapping = {
        200: "ok",
        201: "created",
        202: "accepted",
    }
    return mapping.get(status_code, "ok")


def _success_message(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Success"


def success_envelope(
    data: Any,
    *,
    status_code: int = 200,
    message: str | None = None,
) -> dict[str, Any]:
    """Wrap a payload in the ``{code, message, data, details}`` shape used by error responses."""
    return {
        "code": _success_code(status_code),
        "message": message or _success_message(status_code),
        "data": data,
        "details": {},
    }
