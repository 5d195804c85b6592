# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- Login issues an opaque bearer token (hashed server-side)
- Failed logins are written to the security event log
- Self-registration is off unless ALLOW_SELF_REGISTRATION is set, and only
  ever creates employee accounts
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, error_response, client_ip
from ..errors import DomainError
from ..services import auth_service, session_service, employee_service
from ..services.authorization_service import log_security_event


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_payload(user, session, token: str) -> dict:
    employee = user.employee
    return {
        "user": user.to_dict(),
        "employee": employee.to_dict(include_user=False) if employee else None,
        "token": token,
        "session": session.to_dict(),
    }


@auth_bp.post("/register")
def register_route():
    if not current_app.config.get("ALLOW_SELF_REGISTRATION"):
        return jsonify({
            "error": "Self-registration is disabled. Contact an administrator to create an account.",
            "kind": "forbidden",
        }), 403

    data = request.get_json(silent=True) or {}
    try:
        employee = employee_service.register_employee(data)
        session, token = session_service.create_session(
            user_id=employee.user_id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=client_ip(),
        )
        return jsonify({**_session_payload(employee.user, session, token), "message": "Registration successful"}), 201
    except DomainError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    """
    Authenticate by email and password and create a session token.

    The token goes in the Authorization header (Bearer) of later requests.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not email or not password:
            return jsonify({"error": "email and password required", "kind": "validation_failed"}), 400

        user_agent = request.headers.get("User-Agent")
        ip_address = client_ip()

        user = auth_service.authenticate(email, password)

        if not user:
            log_security_event(
                user_id=None,
                event_type="LOGIN_FAILED",
                success=False,
                resource=request.path,
                action="LOGIN",
                reason=f"Invalid credentials for {str(email)[:200]}",
                ip_address=ip_address,
                user_agent=user_agent,
            )
            return jsonify({"error": "Invalid credentials", "kind": "unauthenticated"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=user_agent,
            ip_address=ip_address
        )

        return jsonify({**_session_payload(user, session, token), "message": "Login successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    token = request.headers.get("Authorization", "").split(" ", 1)[1].strip()
    session_service.revoke_session(token, "User logout")
    return jsonify({"message": "Logged out"})


@auth_bp.get("/me")
@require_auth
def me_route():
    user = g.current_user
    employee = user.employee
    return jsonify({
        "user": user.to_dict(),
        "employee": employee.to_dict(include_user=False) if employee else None,
    })
