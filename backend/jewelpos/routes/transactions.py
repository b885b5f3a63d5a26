# Overview: Flask API routes for sales, purchases and cancellations.

"""Transaction API routes with permission enforcement"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_permission
from ..models import TransactionStatus, TransactionType
from ..services import transaction_service
from ..validation import ServiceError
from .helpers import date_arg, enum_arg, json_body, json_error, optional_json_body, page_args


transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


@transactions_bp.get("")
@require_auth
@require_permission("transactions.view")
def list_transactions_route():
    try:
        limit, offset = page_args()
        rows = transaction_service.list_transactions(
            type=enum_arg(TransactionType, "type"),
            status=enum_arg(TransactionStatus, "status"),
            location_id=request.args.get("location_id", type=int),
            member_id=request.args.get("member_id", type=int),
            start=date_arg("start_date"),
            end=date_arg("end_date"),
            limit=limit,
            offset=offset,
        )
        return jsonify({
            "data": [tx.to_dict(include_items=False) for tx in rows],
            "limit": limit,
            "offset": offset,
        })
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to list transactions")
        return json_error(e)


@transactions_bp.get("/<int:transaction_id>")
@require_auth
@require_permission("transactions.view")
def get_transaction_route(transaction_id: int):
    try:
        tx = transaction_service.get_transaction(transaction_id)
        return jsonify({"data": tx.to_dict()})
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to get transaction")
        return json_error(e)


@transactions_bp.get("/code/<code>")
@require_auth
@require_permission("transactions.view")
def get_transaction_by_code_route(code: str):
    try:
        tx = transaction_service.get_transaction_by_code(code)
        return jsonify({"data": tx.to_dict()})
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to get transaction by code")
        return json_error(e)


@transactions_bp.post("/sale")
@require_auth
@require_permission("transactions.sale")
def create_sale_route():
    """
    Sell stock items.

    Body: location_id, items[{stock_id, discount?, notes?}], payment_method,
    paid_amount, member_id?, customer_name?, customer_phone?, discount?,
    discount_percent?, tax?, notes?
    """
    try:
        tx = transaction_service.create_sale(json_body(), cashier_id=g.current_user.id)
        return jsonify({"data": tx.to_dict()}), 201
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to create sale")
        return json_error(e)


@transactions_bp.post("/purchase")
@require_auth
@require_permission("transactions.purchase")
def create_purchase_route():
    """
    Buy gold back from a customer.

    Body: location_id, items[{gold_category_id?, purity?, weight,
    weight_gross?, shrinkage_percent?, price_per_gram, condition?, notes?}],
    payment_method, member_id?, customer_name?, save_as_raw_material?, notes?
    """
    try:
        tx = transaction_service.create_purchase(json_body(), cashier_id=g.current_user.id)
        return jsonify({"data": tx.to_dict()}), 201
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to create purchase")
        return json_error(e)


@transactions_bp.put("/<int:transaction_id>/cancel")
@require_auth
@require_permission("transactions.cancel")
def cancel_transaction_route(transaction_id: int):
    """Body (optional): reason"""
    try:
        data = optional_json_body()
        tx = transaction_service.cancel_transaction(
            transaction_id,
            user_id=g.current_user.id,
            reason=data.get("reason"),
        )
        return jsonify({"data": tx.to_dict()})
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to cancel transaction")
        return json_error(e)
