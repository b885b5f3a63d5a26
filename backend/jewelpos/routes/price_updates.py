# Overview: Flask API routes for gold price revisions and the daily update check.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_any_permission
from ..services import price_service
from ..validation import ServiceError
from .helpers import date_arg, json_body, json_error, page_args


price_updates_bp = Blueprint("price_updates", __name__, url_prefix="/api/price-update")


@price_updates_bp.get("/check")
@require_auth
@require_any_permission("gold-categories.view", "pos.view-gold-categories")
def check_route():
    """
    Have today's prices been entered? `?tz=` overrides PRICE_UPDATE_TIMEZONE.
    """
    try:
        return jsonify({"data": price_service.check_price_update_needed(tz=request.args.get("tz"))})
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to check price update")
        return json_error(e)


@price_updates_bp.post("/bulk")
@require_auth
@require_any_permission("gold-categories.update", "pos.update-gold-prices")
def bulk_update_route():
    """Body: prices[{gold_category_id, buy_price, sell_price}], notes?"""
    try:
        data = json_body()
        log = price_service.bulk_update_prices(
            data.get("prices"),
            notes=data.get("notes"),
            user_id=g.current_user.id,
        )
        return jsonify({"data": log.to_dict()}), 201
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to update gold prices")
        return json_error(e)


@price_updates_bp.get("/logs")
@require_auth
@require_any_permission("gold-categories.view", "pos.view-gold-categories")
def list_logs_route():
    try:
        limit, _ = page_args(default_limit=50)
        logs = price_service.list_price_update_logs(
            start=date_arg("start_date"),
            end=date_arg("end_date"),
            limit=limit,
        )
        return jsonify({"data": [log.to_dict(include_details=False) for log in logs], "count": len(logs)})
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to list price update logs")
        return json_error(e)


@price_updates_bp.get("/logs/<int:log_id>")
@require_auth
@require_any_permission("gold-categories.view", "pos.view-gold-categories")
def get_log_route(log_id: int):
    try:
        return jsonify({"data": price_service.get_price_update_log(log_id).to_dict()})
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to get price update log")
        return json_error(e)
