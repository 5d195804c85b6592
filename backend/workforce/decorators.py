# Overview: Request decorators and error translation for API routes.

from functools import wraps
from flask import request, jsonify, g

from .errors import DomainError, ForbiddenError
from .extensions import db
from .services import session_service, authorization_service


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user')


def _log_denial(reason: str, action: str | None = None) -> None:
    user = getattr(g, "current_user", None)
    authorization_service.log_security_event(
        user_id=user.id if user else None,
        event_type="PERMISSION_DENIED",
        success=False,
        resource=request.path,
        action=action or request.method,
        reason=reason,
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )


def require_auth(f):
    """
    Require a valid bearer token.

    Sets:
    - g.current_user: the authenticated User
    - g.session_context: the SessionContext (user + session row)

    Returns 401 when the header is missing, the token is unknown, expired,
    idle too long or revoked, or the user was deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required", "kind": "unauthenticated"}), 401

        token = auth_header.split(" ", 1)[1].strip()

        context = session_service.validate_session(token)

        if not context:
            return jsonify({"error": "Invalid or expired token", "kind": "unauthenticated"}), 401

        g.current_user = context.user
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """
    Gate a route on the caller's role. Must be stacked under @require_auth.

    Denials are recorded as PERMISSION_DENIED security events.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required", "kind": "unauthenticated"}), 401

            user = g.current_user
            if user.role not in roles:
                _log_denial(f"Requires role: {', '.join(roles)}", action=f"ROLE:{','.join(roles)}")
                return jsonify({
                    "error": "Permission denied",
                    "kind": "forbidden",
                    "required_roles": list(roles),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def error_response(e: DomainError):
    """
    Translate a DomainError raised by a service into a JSON response.

    The session is rolled back first so a failed operation leaves nothing
    pending; ownership and role denials are then written to the audit log.
    """
    db.session.rollback()
    if isinstance(e, ForbiddenError):
        _log_denial(e.message)
    return jsonify(e.to_dict()), e.status_code


def client_ip() -> str | None:
    """First X-Forwarded-For hop when present, else the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        return forwarded.split(",")[0].strip()[:45] or None
    return request.remote_addr
