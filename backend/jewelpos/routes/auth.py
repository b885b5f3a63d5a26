# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

Users are created by administrators through the CLI (`flask users create`);
there is no self-registration endpoint.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..services import permission_service
from ..decorators import require_auth
from ..validation import ServiceError
from .helpers import json_error, optional_json_body


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in Authorization header for protected routes.
    """
    try:
        data = optional_json_body()
        username = data.get("username") or data.get("email")
        password = data.get("password")

        if not all([username, password]):
            return jsonify({"error": "username/email and password required", "kind": "validation"}), 400

        user = auth_service.authenticate(username, password)

        if not user:
            current_app.logger.warning("Failed login for %s from %s", username, request.remote_addr)
            return jsonify({"error": "Invalid credentials", "kind": "unauthorized"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr
        )
        permissions = sorted(permission_service.get_user_permissions(user.id))

        return jsonify({
            "data": {
                "user": user.to_dict(),
                "permissions": permissions,
                "token": token,
                "session": session.to_dict(),
            },
            "message": "Login successful"
        }), 200

    except ServiceError as e:
        return json_error(e)
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke the session token used for this request."""
    token = request.headers.get("Authorization", "").split(" ", 1)[1]
    session_service.revoke_session(token, reason="User logout")
    return jsonify({"message": "Logged out"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current user with role and effective permissions."""
    user = g.current_user
    return jsonify({
        "data": {
            "user": user.to_dict(),
            "roles": permission_service.get_user_role_names(user.id),
            "permissions": sorted(permission_service.get_user_permissions(user.id)),
        }
    }), 200
