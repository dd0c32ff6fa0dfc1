# Overview: Request and screen-access decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .permissions import can_access
from .session import USER_HEADER, resolve_session


def _is_authenticated() -> bool:
    return hasattr(g, 'session_context')


def require_session(f):
    """
    Resolve the acting user and establish the session context.

    Sets:
    - g.session_context: SessionContext(user, role)
    - g.current_user: the User row

    Returns 401 when the identity header is missing or names no active user.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        context = resolve_session(request.headers.get(USER_HEADER))
        if context is None:
            return jsonify({"error": "Authentication required"}), 401

        g.session_context = context
        g.current_user = context.user

        return f(*args, **kwargs)

    return decorated_function


def require_screen(screen: str):
    """
    Require that the session's role may open a screen.

    Must be stacked below @require_session.
    """
    # Fail at import time for a typo, not at request time
    can_access(None, screen)

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            role = g.session_context.role
            if not can_access(role, screen):
                return jsonify({
                    "error": "Access denied",
                    "screen": screen,
                    "role": role,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
