"""
Anonymous session cookie helpers.

Visitors without an account are identified by a long-lived session cookie;
their jobs can later be claimed by a user.

Dependencies: fastapi, gofigure.configs
System role: Session identity for anonymous visitors
"""

import uuid

from fastapi import Request, Response

from gofigure.configs import Settings


def resolve_session_id(
    request: Request,
    settings: Settings,
    explicit: str | None = None,
    create: bool = False,
) -> str | None:
    """
    Session ID from the explicit value, falling back to the cookie.

    Args:
        request: Incoming request
        settings: Application settings (cookie name)
        explicit: Session ID passed in the body or query
        create: Mint a new session ID when none is found

    Returns:
        str | None: Session ID, or None when absent and not created
    """
    session_id = explicit or request.cookies.get(settings.orchestration.session_cookie_name)
    if not session_id and create:
        session_id = str(uuid.uuid4())
    return session_id


def set_session_cookie(response: Response, settings: Settings, session_id: str) -> None:
    """Persist the session ID on the client."""
    response.set_cookie(
        key=settings.orchestration.session_cookie_name,
        value=session_id,
        max_age=settings.orchestration.session_cookie_max_age,
        path="/",
        samesite="lax",
        httponly=False,
        secure=settings.is_production,
    )
