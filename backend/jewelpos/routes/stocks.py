# Overview: Flask API routes for stock items; intake, lookup, transfers, label printing.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_permission, require_any_permission
from ..models import StockStatus
from ..services import stock_service
from ..validation import ServiceError, coerce_int
from .helpers import date_arg, enum_arg, json_body, json_error, page_args


stocks_bp = Blueprint("stocks", __name__, url_prefix="/api")


@stocks_bp.get("/stocks")
@require_auth
@require_any_permission("stocks.view", "pos.view-stocks")
def list_stocks_route():
    try:
        limit, offset = page_args()
        items = stock_service.list_stocks(
            location_id=request.args.get("location_id", type=int),
            storage_box_id=request.args.get("storage_box_id", type=int),
            status=enum_arg(StockStatus, "status"),
            product_id=request.args.get("product_id", type=int),
            limit=limit,
            offset=offset,
        )
        return jsonify({"data": [stock_service.serialize_stock(s) for s in items], "limit": limit, "offset": offset})
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to list stocks")
        return json_error(e)


@stocks_bp.get("/stocks/<int:stock_id>")
@require_auth
@require_any_permission("stocks.view", "pos.view-stocks")
def get_stock_route(stock_id: int):
    try:
        stock = stock_service.get_stock(stock_id)
        return jsonify({"data": stock_service.serialize_stock(stock)})
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to get stock")
        return json_error(e)


@stocks_bp.get("/stocks/serial/<serial>")
@require_auth
@require_any_permission("stocks.view", "pos.view-stocks")
def get_stock_by_serial_route(serial: str):
    """Barcode scan lookup."""
    try:
        stock = stock_service.get_stock_by_serial(serial)
        return jsonify({"data": stock_service.serialize_stock(stock)})
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to look up stock by serial")
        return json_error(e)


@stocks_bp.get("/stocks/box/<int:box_id>/items")
@require_auth
@require_any_permission("stocks.view", "pos.view-stocks")
def list_box_items_route(box_id: int):
    """Items in a storage box (available ones unless ?status= is given)."""
    try:
        items = stock_service.list_box_items(box_id, status=enum_arg(StockStatus, "status"))
        return jsonify({"data": [stock_service.serialize_stock(s) for s in items], "count": len(items)})
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to list box items")
        return json_error(e)


@stocks_bp.post("/stocks")
@require_auth
@require_permission("stocks.create")
def receive_stock_route():
    """
    Receive new serialized stock.

    Body: product_id, location_id, storage_box_id, quantity, supplier_name?, notes?
    """
    try:
        data = json_body()
        items = stock_service.receive_stock(
            product_id=coerce_int(data.get("product_id"), "product_id", minimum=1),
            location_id=coerce_int(data.get("location_id"), "location_id", minimum=1),
            storage_box_id=coerce_int(data.get("storage_box_id"), "storage_box_id", minimum=1),
            quantity=data.get("quantity", 1),
            supplier_name=data.get("supplier_name"),
            notes=data.get("notes"),
            user_id=g.current_user.id,
        )
        return jsonify({"data": [s.to_dict() for s in items], "count": len(items)}), 201
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to receive stock")
        return json_error(e)


@stocks_bp.post("/stocks/transfer")
@require_auth
@require_permission("stocks.transfer")
def transfer_stock_route():
    """Body: stock_id, to_location_id, to_box_id, notes?"""
    try:
        data = json_body()
        transfer = stock_service.transfer_stock(
            stock_id=coerce_int(data.get("stock_id"), "stock_id", minimum=1),
            to_location_id=coerce_int(data.get("to_location_id"), "to_location_id", minimum=1),
            to_box_id=coerce_int(data.get("to_box_id"), "to_box_id", minimum=1),
            user_id=g.current_user.id,
            notes=data.get("notes"),
        )
        return jsonify({"data": transfer.to_dict()}), 201
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to transfer stock")
        return json_error(e)


@stocks_bp.get("/stock-transfers")
@require_auth
@require_permission("stocks.view")
def list_transfers_route():
    try:
        limit, _ = page_args()
        transfers = stock_service.list_transfers(
            stock_id=request.args.get("stock_id", type=int),
            location_id=request.args.get("location_id", type=int),
            start=date_arg("start_date"),
            end=date_arg("end_date"),
            limit=limit,
        )
        return jsonify({"data": [t.to_dict() for t in transfers], "count": len(transfers)})
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to list stock transfers")
        return json_error(e)


@stocks_bp.post("/stocks/mark-printed")
@require_auth
@require_any_permission("stocks.update", "pos.update-stocks")
def mark_printed_route():
    """Body: stock_ids: [int, ...]"""
    try:
        data = json_body()
        updated = stock_service.mark_barcodes_printed(data.get("stock_ids"))
        return jsonify({"data": {"updated": updated}})
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to mark barcodes printed")
        return json_error(e)


@stocks_bp.delete("/stocks/<int:stock_id>")
@require_auth
@require_permission("stocks.delete")
def delete_stock_route(stock_id: int):
    try:
        stock_service.delete_stock(stock_id, user_id=g.current_user.id)
        return jsonify({"message": "Stock deleted"})
    except ServiceError as e:
        return json_error(e)
    except Exception as e:
        current_app.logger.exception("Failed to delete stock")
        return json_error(e)
