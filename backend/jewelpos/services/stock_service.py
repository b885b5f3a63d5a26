# Overview: Stock ledger: receiving, transfers, compare-and-set status changes and live pricing.

"""
Stock Ledger

Every status change is a compare-and-set UPDATE: the WHERE clause names the
state the caller believes the row is in, and the affected-row count tells
whether that belief was still true at write time. A count of zero means a
concurrent writer got there first and surfaces as ConflictError, which
rolls back the enclosing unit of work.

Prices are never stored on the stock row; they are derived from the
product weight and the gold category's current prices on every read.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable

from sqlalchemy import update
from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import Product, StockItem, StockStatus, StockTransfer, TransferStatus
from ..time_utils import utcnow
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    coerce_int,
    coerce_str,
    quantize_money,
)
from . import catalog_service, document_service
from .concurrency import begin_write, lock_for_update, run_with_retry
from .ledger_service import append_ledger_event

logger = logging.getLogger(__name__)

SERIAL_BASE_LENGTH = 7
SERIAL_INDEX_LENGTH = 3
# 36**3 - 1: the largest 1-based index that fits in three base-36 digits
MAX_BATCH_QUANTITY = 36 ** SERIAL_INDEX_LENGTH - 1

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def to_base36(value: int, width: int) -> str:
    """Lower-case base-36, left-padded with zeros; keeps the last `width` digits."""
    if value < 0:
        raise ValueError("value must be non-negative")
    digits = []
    while True:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
        if value == 0:
            break
    encoded = "".join(reversed(digits))
    return encoded[-width:].rjust(width, "0")


def serial_base(timestamp: int) -> str:
    return to_base36(timestamp, SERIAL_BASE_LENGTH)


def make_serial(base: str, index: int) -> str:
    """Serial for the `index`-th (0-based) item of a batch."""
    return base + to_base36(index + 1, SERIAL_INDEX_LENGTH)


def _serial_base_taken(base: str) -> bool:
    # Soft-deleted rows count: a serial is never handed out twice
    return db.session.query(StockItem.id).filter(
        StockItem.serial_number.like(f"{base}%")
    ).first() is not None


# -- pricing --

def compute_sell_price(stock: StockItem) -> Decimal:
    product = stock.product
    return quantize_money(Decimal(product.weight) * Decimal(product.gold_category.sell_price))


def compute_buy_price(stock: StockItem) -> Decimal:
    product = stock.product
    return quantize_money(Decimal(product.weight) * Decimal(product.gold_category.buy_price))


def serialize_stock(stock: StockItem) -> dict:
    """Stock row plus product and live prices, as the API returns it."""
    data = stock.to_dict(include_product=True)
    data["sell_price"] = float(compute_sell_price(stock))
    data["buy_price"] = float(compute_buy_price(stock))
    data["gold_category"] = stock.product.gold_category.to_dict()
    return data


# -- reads --

def _stock_query():
    return db.session.query(StockItem).options(
        joinedload(StockItem.product).joinedload(Product.gold_category),
    ).filter(StockItem.deleted_at.is_(None))


def get_stock(stock_id: int) -> StockItem:
    stock = _stock_query().filter(StockItem.id == stock_id).first()
    if not stock:
        raise NotFoundError(f"Stock {stock_id} not found")
    return stock


def get_stock_by_serial(serial_number: str) -> StockItem:
    stock = _stock_query().filter(StockItem.serial_number == serial_number).first()
    if not stock:
        raise NotFoundError(f"Stock with serial {serial_number} not found")
    return stock


def list_stocks(
    *,
    location_id: int | None = None,
    storage_box_id: int | None = None,
    status: StockStatus | None = None,
    product_id: int | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[StockItem]:
    query = _stock_query()
    if location_id is not None:
        query = query.filter(StockItem.location_id == location_id)
    if storage_box_id is not None:
        query = query.filter(StockItem.storage_box_id == storage_box_id)
    if status is not None:
        query = query.filter(StockItem.status == status)
    if product_id is not None:
        query = query.filter(StockItem.product_id == product_id)
    return query.order_by(StockItem.id.desc()).offset(offset).limit(limit).all()


def list_box_items(storage_box_id: int, status: StockStatus | None = None) -> list[StockItem]:
    """Items in one box, available ones unless another status is asked for."""
    catalog_service.get_storage_box(storage_box_id)
    return (
        _stock_query()
        .filter(
            StockItem.storage_box_id == storage_box_id,
            StockItem.status == (status or StockStatus.AVAILABLE),
        )
        .order_by(StockItem.serial_number.asc())
        .all()
    )


def list_transfers(
    *,
    stock_id: int | None = None,
    location_id: int | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int = 100,
) -> list[StockTransfer]:
    """Transfer history; `location_id` matches either end of the move."""
    query = db.session.query(StockTransfer)
    if stock_id is not None:
        query = query.filter(StockTransfer.stock_id == stock_id)
    if location_id is not None:
        query = query.filter(db.or_(
            StockTransfer.from_location_id == location_id,
            StockTransfer.to_location_id == location_id,
        ))
    if start is not None:
        query = query.filter(StockTransfer.transferred_at >= start)
    if end is not None:
        query = query.filter(StockTransfer.transferred_at < end)
    return query.order_by(StockTransfer.id.desc()).limit(limit).all()


# -- writes --

def receive_stock(
    *,
    product_id: int,
    location_id: int,
    storage_box_id: int,
    quantity,
    supplier_name: str | None = None,
    notes: str | None = None,
    user_id: int | None = None,
    now: datetime | None = None,
) -> list[StockItem]:
    """
    Receive `quantity` pieces of one product into a box.

    Serial = 7 base-36 chars of the batch's Unix seconds + 3 base-36 chars of
    the 1-based item index. If the base is already used by any stock row
    (soft-deleted included), it is advanced one second at a time.
    """
    quantity = coerce_int(quantity, "quantity", minimum=1)
    if quantity > MAX_BATCH_QUANTITY:
        raise ValidationError(f"quantity must be <= {MAX_BATCH_QUANTITY}")
    supplier_name = coerce_str(supplier_name, "supplier_name", max_length=100)
    notes = coerce_str(notes, "notes", max_length=500)

    received_at = now or utcnow()

    def _op() -> list[StockItem]:
        begin_write()
        catalog_service.get_product(product_id)
        catalog_service.get_location(location_id)
        catalog_service.get_box_in_location(storage_box_id, location_id)

        timestamp = int(received_at.replace(tzinfo=timezone.utc).timestamp())
        base = serial_base(timestamp)
        while _serial_base_taken(base):
            timestamp += 1
            base = serial_base(timestamp)

        items = [
            StockItem(
                product_id=product_id,
                location_id=location_id,
                storage_box_id=storage_box_id,
                serial_number=make_serial(base, i),
                status=StockStatus.AVAILABLE,
                supplier_name=supplier_name,
                notes=notes,
                received_at=received_at,
                received_by_id=user_id,
            )
            for i in range(quantity)
        ]
        db.session.add_all(items)
        db.session.flush()

        append_ledger_event(
            event_type="STOCK_RECEIVED",
            event_category="stock",
            entity_type="product",
            entity_id=product_id,
            actor_user_id=user_id,
            location_id=location_id,
            payload={
                "quantity": quantity,
                "storage_box_id": storage_box_id,
                "first_serial": items[0].serial_number,
                "last_serial": items[-1].serial_number,
            },
        )
        db.session.commit()
        return items

    items = run_with_retry(_op)
    logger.info("Received %d stock items of product %s into box %s", len(items), product_id, storage_box_id)
    return items


def transfer_stock(
    *,
    stock_id: int,
    to_location_id: int,
    to_box_id: int,
    user_id: int | None = None,
    notes: str | None = None,
) -> StockTransfer:
    """
    Move one available stock item to another location/box.

    Moving an item into the box it already sits in is allowed and recorded
    like any other move.
    """
    notes = coerce_str(notes, "notes", max_length=500)

    def _op() -> StockTransfer:
        begin_write()
        stock = lock_for_update(
            db.session.query(StockItem).filter(
                StockItem.id == stock_id,
                StockItem.deleted_at.is_(None),
            )
        ).first()
        if not stock:
            raise NotFoundError(f"Stock {stock_id} not found")

        if stock.status != StockStatus.AVAILABLE:
            raise ConflictError(
                f"Stock {stock.serial_number} is not available",
                details={"stock_id": stock_id, "status": stock.status.value},
            )

        catalog_service.get_location(to_location_id)
        catalog_service.get_box_in_location(to_box_id, to_location_id)

        from_location_id = stock.location_id
        from_box_id = stock.storage_box_id
        transfer_number = document_service.next_document_number(document_service.TRANSFER)

        result = db.session.execute(
            update(StockItem)
            .where(
                StockItem.id == stock_id,
                StockItem.status == StockStatus.AVAILABLE,
                StockItem.deleted_at.is_(None),
            )
            .values(location_id=to_location_id, storage_box_id=to_box_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning("Lost race transferring stock %s", stock_id)
            raise ConflictError(f"Stock {stock_id} changed concurrently", details={"stock_id": stock_id})

        transfer = StockTransfer(
            transfer_number=transfer_number,
            stock_id=stock_id,
            from_location_id=from_location_id,
            from_box_id=from_box_id,
            to_location_id=to_location_id,
            to_box_id=to_box_id,
            transferred_by_id=user_id,
            transferred_at=utcnow(),
            notes=notes,
            status=TransferStatus.COMPLETED,
        )
        db.session.add(transfer)
        db.session.flush()

        append_ledger_event(
            event_type="STOCK_TRANSFERRED",
            event_category="stock",
            entity_type="stock",
            entity_id=stock_id,
            actor_user_id=user_id,
            location_id=to_location_id,
            note=transfer_number,
            payload={"from_location_id": from_location_id, "from_box_id": from_box_id, "to_box_id": to_box_id},
        )
        db.session.commit()
        return transfer

    transfer = run_with_retry(_op)
    logger.info("Transfer %s moved stock %s to location %s", transfer.transfer_number, stock_id, to_location_id)
    return transfer


def mark_sold(stock_id: int, *, transaction_id: int, location_id: int, sold_at: datetime) -> None:
    """
    available -> sold, guarded on location. Runs inside the caller's unit of
    work; never commits.
    """
    result = db.session.execute(
        update(StockItem)
        .where(
            StockItem.id == stock_id,
            StockItem.status == StockStatus.AVAILABLE,
            StockItem.location_id == location_id,
            StockItem.deleted_at.is_(None),
        )
        .values(status=StockStatus.SOLD, sold_at=sold_at, transaction_id=transaction_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.warning("Lost race selling stock %s", stock_id)
        raise ConflictError(f"Stock {stock_id} is no longer available", details={"stock_id": stock_id})


def mark_available(stock_id: int, *, transaction_id: int) -> None:
    """
    sold -> available, only for the transaction that sold it. Used by
    transaction cancellation; never commits.
    """
    result = db.session.execute(
        update(StockItem)
        .where(
            StockItem.id == stock_id,
            StockItem.status == StockStatus.SOLD,
            StockItem.transaction_id == transaction_id,
        )
        .values(status=StockStatus.AVAILABLE, sold_at=None, transaction_id=None)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.warning("Stock %s is not sold by transaction %s", stock_id, transaction_id)
        raise ConflictError(
            f"Stock {stock_id} is not sold by this transaction",
            details={"stock_id": stock_id, "transaction_id": transaction_id},
        )


def delete_stock(stock_id: int, *, user_id: int | None = None) -> None:
    """Soft delete; only available stock can be removed."""
    def _op() -> None:
        begin_write()
        stock = db.session.query(StockItem).filter(
            StockItem.id == stock_id,
            StockItem.deleted_at.is_(None),
        ).first()
        if not stock:
            raise NotFoundError(f"Stock {stock_id} not found")

        result = db.session.execute(
            update(StockItem)
            .where(
                StockItem.id == stock_id,
                StockItem.status == StockStatus.AVAILABLE,
                StockItem.deleted_at.is_(None),
            )
            .values(deleted_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConflictError(
                "Only available stock can be deleted",
                details={"stock_id": stock_id, "status": stock.status.value},
            )

        append_ledger_event(
            event_type="STOCK_DELETED",
            event_category="stock",
            entity_type="stock",
            entity_id=stock_id,
            actor_user_id=user_id,
            location_id=stock.location_id,
        )
        db.session.commit()

    run_with_retry(_op)


def mark_barcodes_printed(stock_ids: Iterable) -> int:
    """Flag labels as printed; returns how many rows were updated."""
    if not isinstance(stock_ids, (list, tuple)) or not stock_ids:
        raise ValidationError("stock_ids must be a non-empty list")
    ids = [coerce_int(s, "stock_ids", minimum=1) for s in stock_ids]

    def _op() -> int:
        result = db.session.execute(
            update(StockItem)
            .where(StockItem.id.in_(ids), StockItem.deleted_at.is_(None))
            .values(barcode_printed=True, barcode_printed_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        db.session.commit()
        return result.rowcount

    return run_with_retry(_op)
