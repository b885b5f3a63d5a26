# Overview: Transaction engine: sales, purchases ("setor") and cancellation as single units of work.

"""
Transaction Engine

Every public write here is one all-or-nothing unit of work:

    begin_write()                      writer lock (SQLite) up front
    load + lock every row the decision depends on
    validate and compute totals        nothing written yet
    allocate code, insert documents
    compare-and-set stock rows         lost race -> ConflictError
    member accrual, ledger events
    commit

Any exception after begin_write() rolls back every step, stock status
changes included (see concurrency.run_with_retry).

Input payloads are parsed and bounded before the unit starts; checks that
need the database (existence, status, location) happen inside it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import (
    Member,
    PaymentMethod,
    RawMaterialCondition,
    StockItem,
    StockStatus,
    Transaction,
    TransactionItem,
    TransactionStatus,
    TransactionType,
)
from ..time_utils import utcnow
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    coerce_bool,
    coerce_decimal,
    coerce_int,
    coerce_str,
    parse_enum,
    quantize_money,
    quantize_weight,
    require_fields,
)
from . import catalog_service, document_service, loyalty_service, raw_material_service, stock_service
from .concurrency import begin_write, lock_for_update, run_with_retry
from .ledger_service import append_ledger_event

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
ZERO = Decimal("0")


@dataclass
class SaleLine:
    stock_id: int
    discount: Decimal
    notes: Optional[str]


@dataclass
class PurchaseLine:
    gold_category_id: Optional[int]
    purity: Optional[str]
    weight_gross: Decimal
    shrinkage_percent: Decimal
    weight: Decimal
    price_per_gram: Decimal
    condition: Optional[RawMaterialCondition]
    notes: Optional[str]


# =============================================================================
# INPUT PARSING
# =============================================================================

def _parse_items(payload: dict) -> list[dict]:
    items = payload.get("items")
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{idx}] must be an object")
    return items


def _parse_sale_lines(payload: dict) -> list[SaleLine]:
    lines = []
    seen: set[int] = set()
    for idx, item in enumerate(_parse_items(payload)):
        stock_id = coerce_int(item.get("stock_id"), f"items[{idx}].stock_id", minimum=1)
        if stock_id in seen:
            raise ValidationError(
                "Duplicate stock in sale",
                details={"stock_id": stock_id},
            )
        seen.add(stock_id)
        lines.append(SaleLine(
            stock_id=stock_id,
            discount=quantize_money(coerce_decimal(
                item.get("discount"), f"items[{idx}].discount", default=ZERO, minimum=ZERO,
            )),
            notes=coerce_str(item.get("notes"), f"items[{idx}].notes", max_length=500),
        ))
    return lines


def _parse_purchase_lines(payload: dict) -> list[PurchaseLine]:
    lines = []
    for idx, item in enumerate(_parse_items(payload)):
        prefix = f"items[{idx}]"
        condition = item.get("condition")
        line = PurchaseLine(
            gold_category_id=coerce_int(item.get("gold_category_id"), f"{prefix}.gold_category_id", required=False, minimum=1),
            purity=coerce_str(item.get("purity"), f"{prefix}.purity", max_length=20) or None,
            weight_gross=quantize_weight(coerce_decimal(
                item.get("weight_gross"), f"{prefix}.weight_gross", default=ZERO, minimum=ZERO,
            )),
            shrinkage_percent=coerce_decimal(
                item.get("shrinkage_percent"), f"{prefix}.shrinkage_percent",
                default=ZERO, minimum=ZERO, maximum=HUNDRED,
            ),
            weight=quantize_weight(coerce_decimal(
                item.get("weight"), f"{prefix}.weight", minimum=ZERO, exclusive_minimum=True,
            )),
            price_per_gram=quantize_money(coerce_decimal(
                item.get("price_per_gram"), f"{prefix}.price_per_gram", minimum=ZERO,
            )),
            condition=parse_enum(RawMaterialCondition, condition, f"{prefix}.condition") if condition else None,
            notes=coerce_str(item.get("notes"), f"{prefix}.notes", max_length=500) or None,
        )
        if line.weight_gross and line.weight_gross < line.weight:
            raise ValidationError(
                f"{prefix}.weight_gross must be >= weight",
                details={"weight_gross": str(line.weight_gross), "weight": str(line.weight)},
            )
        lines.append(line)
    return lines


def _parse_header(payload: dict) -> dict:
    return {
        "location_id": coerce_int(payload.get("location_id"), "location_id", minimum=1),
        "member_id": coerce_int(payload.get("member_id"), "member_id", required=False, minimum=1),
        "customer_name": coerce_str(payload.get("customer_name"), "customer_name", max_length=100) or None,
        "customer_phone": coerce_str(payload.get("customer_phone"), "customer_phone", max_length=20) or None,
        "notes": coerce_str(payload.get("notes"), "notes", max_length=500) or None,
        "payment_method": parse_enum(PaymentMethod, payload.get("payment_method"), "payment_method"),
    }


def parse_purity(value: Optional[str]) -> Optional[Decimal]:
    """
    Leading number of a free-text purity ("75%", "24K", "99.9") or None.

    Values above 100 (e.g. millesimal "999.9") are not a percentage and give
    None; the original text still lands in the item notes.
    """
    if not value:
        return None
    match = re.match(r"\s*(\d+(?:\.\d+)?)", value)
    if not match:
        return None
    purity = Decimal(match.group(1))
    if purity > HUNDRED:
        return None
    return purity


def compute_totals(sub_total: Decimal, *, discount: Decimal, discount_percent: Decimal, tax: Decimal) -> tuple[Decimal, Decimal]:
    """
    Returns (discount, grand_total). A positive percent wins over the
    literal discount amount.
    """
    if discount_percent > 0:
        discount = quantize_money(sub_total * discount_percent / HUNDRED)
    discount = quantize_money(discount)
    grand_total = quantize_money(sub_total - discount + tax)
    return discount, grand_total


# =============================================================================
# READS
# =============================================================================

def get_transaction(transaction_id: int) -> Transaction:
    tx = db.session.query(Transaction).options(
        joinedload(Transaction.items),
    ).filter(Transaction.id == transaction_id).first()
    if not tx:
        raise NotFoundError(f"Transaction {transaction_id} not found")
    return tx


def get_transaction_by_code(code: str) -> Transaction:
    tx = db.session.query(Transaction).options(
        joinedload(Transaction.items),
    ).filter(Transaction.transaction_code == code).first()
    if not tx:
        raise NotFoundError(f"Transaction {code} not found")
    return tx


def list_transactions(
    *,
    type: TransactionType | None = None,
    status: TransactionStatus | None = None,
    location_id: int | None = None,
    member_id: int | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[Transaction]:
    query = db.session.query(Transaction)
    if type is not None:
        query = query.filter(Transaction.type == type)
    if status is not None:
        query = query.filter(Transaction.status == status)
    if location_id is not None:
        query = query.filter(Transaction.location_id == location_id)
    if member_id is not None:
        query = query.filter(Transaction.member_id == member_id)
    if start is not None:
        query = query.filter(Transaction.transaction_date >= start)
    if end is not None:
        query = query.filter(Transaction.transaction_date < end)
    return query.order_by(Transaction.id.desc()).offset(offset).limit(limit).all()


def _locked_member(member_id: int | None) -> Member | None:
    if member_id is None:
        return None
    member = lock_for_update(
        db.session.query(Member).filter(Member.id == member_id, Member.deleted_at.is_(None))
    ).first()
    if not member:
        raise NotFoundError(f"Member {member_id} not found")
    return member


# =============================================================================
# SALE
# =============================================================================

def create_sale(payload: dict, *, cashier_id: int) -> Transaction:
    """
    Sell serialized stock items to a customer.

    Line price = live sell price of the stock (weight x category sell price)
    minus the line discount. Header discount is percent-based when
    discount_percent > 0, else the literal amount.
    """
    payload = require_fields(payload, ["location_id", "items", "payment_method", "paid_amount"])
    header = _parse_header(payload)
    lines = _parse_sale_lines(payload)
    discount_in = coerce_decimal(payload.get("discount"), "discount", default=ZERO, minimum=ZERO)
    discount_percent = coerce_decimal(
        payload.get("discount_percent"), "discount_percent", default=ZERO, minimum=ZERO, maximum=HUNDRED,
    )
    tax = quantize_money(coerce_decimal(payload.get("tax"), "tax", default=ZERO, minimum=ZERO))
    paid_amount = quantize_money(coerce_decimal(payload.get("paid_amount"), "paid_amount", minimum=ZERO))
    location_id = header["location_id"]

    def _op() -> Transaction:
        begin_write()
        catalog_service.get_location(location_id)
        member = _locked_member(header["member_id"])

        priced = []
        for line in lines:
            stock = lock_for_update(
                db.session.query(StockItem)
                .filter(StockItem.id == line.stock_id, StockItem.deleted_at.is_(None))
            ).first()
            if not stock:
                raise ValidationError(f"Stock ID {line.stock_id} not found", details={"stock_id": line.stock_id})
            if stock.status != StockStatus.AVAILABLE:
                raise ConflictError(
                    f"Stock {stock.serial_number} is not available",
                    details={"stock_id": stock.id, "status": stock.status.value},
                )
            if stock.location_id != location_id:
                raise ValidationError(
                    f"Stock {stock.serial_number} is not in this location",
                    details={"stock_id": stock.id, "location_id": stock.location_id},
                )
            price = stock_service.compute_sell_price(stock)
            if line.discount > price:
                raise ValidationError(
                    f"Discount for stock {stock.serial_number} exceeds its price",
                    details={"stock_id": stock.id, "price": str(price)},
                )
            priced.append((line, stock, price, price - line.discount))

        sub_total = quantize_money(sum((p[3] for p in priced), ZERO))
        discount, grand_total = compute_totals(
            sub_total, discount=discount_in, discount_percent=discount_percent, tax=tax,
        )
        if discount > sub_total:
            raise ValidationError("discount exceeds sub_total", details={"sub_total": str(sub_total)})
        change_amount = paid_amount - grand_total
        if change_amount < 0:
            raise ValidationError(
                "Paid amount is less than grand total",
                details={"grand_total": str(grand_total), "paid_amount": str(paid_amount)},
            )

        now = utcnow()
        tx = Transaction(
            transaction_code=document_service.next_document_number(document_service.SALE, now=now),
            type=TransactionType.SALE,
            member_id=member.id if member else None,
            location_id=location_id,
            cashier_id=cashier_id,
            sub_total=sub_total,
            discount=discount,
            discount_percent=discount_percent,
            tax=tax,
            grand_total=grand_total,
            payment_method=header["payment_method"],
            paid_amount=paid_amount,
            change_amount=quantize_money(change_amount),
            customer_name=header["customer_name"],
            customer_phone=header["customer_phone"],
            notes=header["notes"],
            status=TransactionStatus.COMPLETED,
            transaction_date=now,
        )
        db.session.add(tx)
        db.session.flush()

        for line, stock, price, line_total in priced:
            product = stock.product
            db.session.add(TransactionItem(
                transaction_id=tx.id,
                stock_id=stock.id,
                product_id=product.id,
                item_name=product.name,
                barcode=product.barcode,
                weight=product.weight,
                price_per_gram=product.gold_category.sell_price,
                unit_price=price,
                quantity=1,
                discount=line.discount,
                sub_total=line_total,
                notes=line.notes,
            ))
            stock_service.mark_sold(stock.id, transaction_id=tx.id, location_id=location_id, sold_at=now)
            append_ledger_event(
                event_type="STOCK_SOLD",
                event_category="stock",
                entity_type="stock",
                entity_id=stock.id,
                actor_user_id=cashier_id,
                location_id=location_id,
                transaction_id=tx.id,
            )

        if member is not None:
            loyalty_service.apply_sale(member, grand_total)

        append_ledger_event(
            event_type="SALE_COMPLETED",
            event_category="transactions",
            entity_type="transaction",
            entity_id=tx.id,
            actor_user_id=cashier_id,
            location_id=location_id,
            transaction_id=tx.id,
            note=tx.transaction_code,
            payload={"grand_total": str(grand_total), "items": len(priced)},
        )
        db.session.commit()
        return tx

    tx = run_with_retry(_op)
    logger.info("Sale %s completed: %d item(s), grand total %s", tx.transaction_code, len(lines), tx.grand_total)
    return tx


# =============================================================================
# PURCHASE ("setor")
# =============================================================================

def _purchase_item_name(category_name: Optional[str], purity: Optional[str]) -> str:
    if category_name:
        label = category_name
    elif purity:
        label = f"Gold {purity}"
    else:
        label = "Uncategorized"
    return f"Gold deposit {label}"


def _purchase_item_notes(line: PurchaseLine) -> Optional[str]:
    parts = []
    if line.condition:
        parts.append(f"Condition: {line.condition.value}.")
    if line.purity:
        parts.append(f"Purity: {line.purity}.")
    if line.notes:
        parts.append(line.notes)
    return " ".join(parts) or None


def create_purchase(payload: dict, *, cashier_id: int) -> Transaction:
    """
    Buy gold from a customer.

    grand_total = sum(weight x price_per_gram); no discount or tax, paid in
    full, no change. With save_as_raw_material every line also becomes a
    RawMaterial in the same unit of work.
    """
    payload = require_fields(payload, ["location_id", "items", "payment_method"])
    header = _parse_header(payload)
    lines = _parse_purchase_lines(payload)
    save_as_raw_material = coerce_bool(payload.get("save_as_raw_material"), "save_as_raw_material")
    location_id = header["location_id"]

    def _op() -> Transaction:
        begin_write()
        catalog_service.get_location(location_id)
        member = _locked_member(header["member_id"])

        priced = []
        for line in lines:
            category = None
            if line.gold_category_id is not None:
                category = catalog_service.get_gold_category(line.gold_category_id)
            line_total = quantize_money(line.weight * line.price_per_gram)
            priced.append((line, category, line_total))

        grand_total = quantize_money(sum((p[2] for p in priced), ZERO))

        now = utcnow()
        tx = Transaction(
            transaction_code=document_service.next_document_number(document_service.PURCHASE, now=now),
            type=TransactionType.PURCHASE,
            member_id=member.id if member else None,
            location_id=location_id,
            cashier_id=cashier_id,
            sub_total=grand_total,
            discount=ZERO,
            discount_percent=ZERO,
            tax=ZERO,
            grand_total=grand_total,
            payment_method=header["payment_method"],
            paid_amount=grand_total,
            change_amount=ZERO,
            customer_name=header["customer_name"],
            customer_phone=header["customer_phone"],
            notes=header["notes"],
            status=TransactionStatus.COMPLETED,
            transaction_date=now,
        )
        db.session.add(tx)
        db.session.flush()

        for line, category, line_total in priced:
            db.session.add(TransactionItem(
                transaction_id=tx.id,
                gold_category_id=category.id if category else None,
                item_name=_purchase_item_name(category.name if category else None, line.purity),
                weight=line.weight,
                price_per_gram=line.price_per_gram,
                unit_price=line_total,
                quantity=1,
                discount=ZERO,
                sub_total=line_total,
                notes=_purchase_item_notes(line),
            ))

        if member is not None:
            loyalty_service.apply_purchase(member, grand_total)

        if save_as_raw_material:
            for line, category, line_total in priced:
                raw_material_service.add_raw_material(
                    gold_category_id=category.id if category else None,
                    location_id=location_id,
                    weight_grams=line.weight,
                    weight_gross=line.weight_gross,
                    shrinkage_percent=line.shrinkage_percent,
                    purity=parse_purity(line.purity),
                    buy_price_per_gram=line.price_per_gram,
                    condition=line.condition,
                    member_id=member.id if member else None,
                    transaction_id=tx.id,
                    received_by_id=cashier_id,
                    received_at=now,
                    notes=line.notes,
                )

        append_ledger_event(
            event_type="PURCHASE_COMPLETED",
            event_category="transactions",
            entity_type="transaction",
            entity_id=tx.id,
            actor_user_id=cashier_id,
            location_id=location_id,
            transaction_id=tx.id,
            note=tx.transaction_code,
            payload={"grand_total": str(grand_total), "items": len(priced), "raw_materials": save_as_raw_material},
        )
        db.session.commit()
        return tx

    tx = run_with_retry(_op)
    logger.info("Purchase %s completed: %d item(s), grand total %s", tx.transaction_code, len(lines), tx.grand_total)
    return tx


# =============================================================================
# CANCELLATION
# =============================================================================

def cancel_transaction(transaction_id: int, *, user_id: int, reason: str | None = None) -> Transaction:
    """
    completed -> cancelled, once.

    For a sale every sold stock line goes back to available. Member totals,
    points and raw materials created by a purchase are left as they are.
    """
    reason = coerce_str(reason, "reason", max_length=255) or None

    def _op() -> Transaction:
        begin_write()
        tx = lock_for_update(
            db.session.query(Transaction).filter(Transaction.id == transaction_id)
        ).first()
        if not tx:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        if tx.status != TransactionStatus.COMPLETED:
            raise ConflictError(
                "Transaction is not completed",
                details={"transaction_id": tx.id, "status": tx.status.value},
            )

        now = utcnow()
        tx.status = TransactionStatus.CANCELLED
        tx.cancelled_at = now
        tx.cancelled_by_id = user_id
        tx.cancel_reason = reason

        restored = 0
        if tx.type == TransactionType.SALE:
            for item in tx.items:
                if item.stock_id is None:
                    continue
                stock_service.mark_available(item.stock_id, transaction_id=tx.id)
                append_ledger_event(
                    event_type="STOCK_RESTORED",
                    event_category="stock",
                    entity_type="stock",
                    entity_id=item.stock_id,
                    actor_user_id=user_id,
                    location_id=tx.location_id,
                    transaction_id=tx.id,
                )
                restored += 1

        append_ledger_event(
            event_type="TRANSACTION_CANCELLED",
            event_category="transactions",
            entity_type="transaction",
            entity_id=tx.id,
            actor_user_id=user_id,
            location_id=tx.location_id,
            transaction_id=tx.id,
            note=reason,
            payload={"restored_stock": restored},
        )
        db.session.commit()
        return tx

    tx = run_with_retry(_op)
    logger.info("Transaction %s cancelled by user %s", tx.transaction_code, user_id)
    return tx
