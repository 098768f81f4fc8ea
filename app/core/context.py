import contextvars

_request_id: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="-")
_reviewer_id: contextvars.ContextVar[str] = contextvars.ContextVar("reviewer_id", default="-")


def set_request_id(request_id: str) -> None:
    _request_id.set(request_id)


def get_request_id() -> str:
    return _request_id.get()


def set_reviewer_id(reviewer_id: str) -> None:
    _reviewer_id.set(reviewer_id)


def get_reviewer_id() -> str:
    return _reviewer_id.get()


def clear_context() -> None:
    _request_id.set("-")
    _reviewer_id.set("-")
