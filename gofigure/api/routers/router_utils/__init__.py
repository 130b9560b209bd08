"""Shared helpers for API routers."""

from .errors import to_http_exception
from .session_cookie import resolve_session_id, set_session_cookie

__all__ = ["resolve_session_id", "set_session_cookie", "to_http_exception"]
