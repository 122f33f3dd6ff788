from contextvars import ContextVar
from typing import Optional

_request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
_analysis_id_ctx: ContextVar[Optional[str]] = ContextVar("analysis_id", default=None)


def set_request_id(request_id: str):
    return _request_id_ctx.set(request_id)


def reset_request_id(token) -> None:
    _request_id_ctx.reset(token)


def get_request_id() -> Optional[str]:
    return _request_id_ctx.get()


def set_analysis_id(analysis_id: str):
    return _analysis_id_ctx.set(analysis_id)


def reset_analysis_id(token) -> None:
    _analysis_id_ctx.reset(token)


def get_analysis_id() -> Optional[str]:
    return _analysis_id_ctx.get()
