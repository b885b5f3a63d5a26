# Overview: Flask API routes for members and loyalty maintenance.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_any_permission
from ..models import MemberType
from ..services import loyalty_service, member_service
from ..validation import ServiceError, coerce_bool, coerce_int
from .helpers import enum_arg, json_body, json_error, optional_json_body, page_args


members_bp = Blueprint("members", __name__, url_prefix="/api/members")


@members_bp.get("")
@require_auth
@require_any_permission("members.view", "pos.view-members")
def list_members_route():
    """Filters: search (name, phone, member code), type, is_active."""
    try:
        limit, offset = page_args()
        is_active = request.args.get("is_active")
        members = member_service.list_members(
            search=request.args.get("search"),
            member_type=enum_arg(MemberType, "type"),
            is_active=coerce_bool(is_active, "is_active") if is_active is not None else None,
            limit=limit,
            offset=offset,
        )
        return jsonify({"data": [m.to_dict() for m in members], "limit": limit, "offset": offset})
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to list members")
        return json_error(e)


@members_bp.post("")
@require_auth
@require_any_permission("members.create", "pos.create-members")
def create_member_route():
    try:
        member = member_service.create_member(json_body(), user_id=g.current_user.id)
        return jsonify({"data": member.to_dict()}), 201
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to create member")
        return json_error(e)


@members_bp.get("/<int:member_id>")
@require_auth
@require_any_permission("members.view", "pos.view-members")
def get_member_route(member_id: int):
    try:
        return jsonify({"data": member_service.get_member(member_id).to_dict()})
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to get member")
        return json_error(e)


@members_bp.get("/code/<code>")
@require_auth
@require_any_permission("members.view", "pos.view-members")
def get_member_by_code_route(code: str):
    try:
        return jsonify({"data": member_service.get_member_by_code(code).to_dict()})
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to get member by code")
        return json_error(e)


@members_bp.put("/<int:member_id>")
@require_auth
@require_any_permission("members.update", "pos.update-members")
def update_member_route(member_id: int):
    try:
        member = member_service.update_member(member_id, json_body())
        return jsonify({"data": member.to_dict()})
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to update member")
        return json_error(e)


@members_bp.delete("/<int:member_id>")
@require_auth
@require_any_permission("members.delete", "pos.delete-members")
def delete_member_route(member_id: int):
    try:
        member_service.delete_member(member_id, user_id=g.current_user.id)
        return jsonify({"message": "Member deleted"})
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to delete member")
        return json_error(e)


@members_bp.post("/<int:member_id>/points")
@require_auth
@require_any_permission("members.update", "pos.update-members")
def add_points_route(member_id: int):
    """Body: amount (spend the bonus is computed from)"""
    try:
        data = json_body()
        member = member_service.add_member_points(member_id, data.get("amount"), user_id=g.current_user.id)
        return jsonify({"data": member.to_dict()})
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to add member points")
        return json_error(e)


@members_bp.post("/recalculate-stats")
@require_auth
@require_any_permission("members.update", "pos.update-members")
def recalculate_stats_route():
    """Body (optional): member_id. Without it every member is recalculated."""
    try:
        data = optional_json_body()
        member_id = coerce_int(data.get("member_id"), "member_id", required=False, minimum=1)
        if member_id is not None:
            member_service.get_member(member_id)
        updated = loyalty_service.recalculate_member_stats(member_id)
        return jsonify({"data": {"updated": updated}})
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to recalculate member stats")
        return json_error(e)
