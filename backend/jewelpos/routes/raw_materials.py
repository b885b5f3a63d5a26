# Overview: Flask API routes for raw material (scrap gold) records.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_permission
from ..models import RawMaterialCondition, RawMaterialStatus
from ..services import raw_material_service
from ..validation import ServiceError
from .helpers import enum_arg, json_body, json_error, page_args


raw_materials_bp = Blueprint("raw_materials", __name__, url_prefix="/api/raw-materials")


@raw_materials_bp.get("")
@require_auth
@require_permission("raw-materials.view")
def list_raw_materials_route():
    try:
        limit, offset = page_args()
        rows, total = raw_material_service.list_raw_materials(
            location_id=request.args.get("location_id", type=int),
            gold_category_id=request.args.get("gold_category_id", type=int),
            status=enum_arg(RawMaterialStatus, "status"),
            condition=enum_arg(RawMaterialCondition, "condition"),
            search=request.args.get("search"),
            limit=limit,
            offset=offset,
        )
        return jsonify({
            "data": [r.to_dict() for r in rows],
            "meta": {"total": total, "limit": limit, "offset": offset},
        })
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to list raw materials")
        return json_error(e)


@raw_materials_bp.post("")
@require_auth
@require_permission("raw-materials.create")
def create_raw_material_route():
    try:
        material = raw_material_service.create_raw_material(json_body(), user_id=g.current_user.id)
        return jsonify({"data": material.to_dict()}), 201
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to create raw material")
        return json_error(e)


@raw_materials_bp.get("/<int:raw_material_id>")
@require_auth
@require_permission("raw-materials.view")
def get_raw_material_route(raw_material_id: int):
    try:
        return jsonify({"data": raw_material_service.get_raw_material(raw_material_id).to_dict()})
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to get raw material")
        return json_error(e)


@raw_materials_bp.put("/<int:raw_material_id>")
@require_auth
@require_permission("raw-materials.update")
def update_raw_material_route(raw_material_id: int):
    try:
        material = raw_material_service.update_raw_material(
            raw_material_id, json_body(), user_id=g.current_user.id,
        )
        return jsonify({"data": material.to_dict()})
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to update raw material")
        return json_error(e)


@raw_materials_bp.delete("/<int:raw_material_id>")
@require_auth
@require_permission("raw-materials.delete")
def delete_raw_material_route(raw_material_id: int):
    try:
        raw_material_service.delete_raw_material(raw_material_id, user_id=g.current_user.id)
        return jsonify({"message": "Raw material deleted"})
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to delete raw material")
        return json_error(e)
