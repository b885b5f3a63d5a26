# Overview: Raw material (scrap gold) intake, status lifecycle and soft delete.

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from ..extensions import db
from ..models import RawMaterial, RawMaterialCondition, RawMaterialStatus
from ..time_utils import utcnow
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    coerce_decimal,
    coerce_int,
    coerce_str,
    parse_enum,
    quantize_money,
    quantize_weight,
    require_fields,
)
from . import catalog_service, document_service, member_service
from .concurrency import begin_write, lock_for_update, run_with_retry
from .ledger_service import append_ledger_event

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# from-status -> statuses it may move to
ALLOWED_TRANSITIONS = {
    RawMaterialStatus.AVAILABLE: {RawMaterialStatus.PROCESSED, RawMaterialStatus.SOLD},
    RawMaterialStatus.PROCESSED: {RawMaterialStatus.SOLD},
    RawMaterialStatus.SOLD: set(),
}


def add_raw_material(
    *,
    location_id: int,
    weight_grams: Decimal,
    buy_price_per_gram: Decimal,
    gold_category_id: int | None = None,
    weight_gross: Decimal | None = None,
    shrinkage_percent: Decimal = ZERO,
    purity: Decimal | None = None,
    condition: RawMaterialCondition | None = None,
    supplier_name: str | None = None,
    member_id: int | None = None,
    transaction_id: int | None = None,
    received_by_id: int | None = None,
    received_at: datetime | None = None,
    notes: str | None = None,
) -> RawMaterial:
    """
    Insert one raw material inside the caller's unit of work (no commit).

    Gross weight defaults to the net weight; condition defaults to like_new.
    """
    material = RawMaterial(
        code=document_service.next_document_number(document_service.RAW_MATERIAL),
        gold_category_id=gold_category_id,
        location_id=location_id,
        weight_gross=weight_gross if weight_gross else weight_grams,
        shrinkage_percent=shrinkage_percent or ZERO,
        weight_grams=weight_grams,
        purity=purity,
        buy_price_per_gram=buy_price_per_gram,
        total_buy_price=quantize_money(weight_grams * buy_price_per_gram),
        condition=condition or RawMaterialCondition.LIKE_NEW,
        status=RawMaterialStatus.AVAILABLE,
        supplier_name=supplier_name,
        member_id=member_id,
        transaction_id=transaction_id,
        received_by_id=received_by_id,
        received_at=received_at or utcnow(),
        notes=notes,
    )
    db.session.add(material)
    db.session.flush()
    append_ledger_event(
        event_type="RAW_MATERIAL_RECEIVED",
        event_category="raw_materials",
        entity_type="raw_material",
        entity_id=material.id,
        actor_user_id=received_by_id,
        location_id=location_id,
        transaction_id=transaction_id,
        note=material.code,
    )
    return material


def get_raw_material(raw_material_id: int) -> RawMaterial:
    material = db.session.query(RawMaterial).filter(
        RawMaterial.id == raw_material_id,
        RawMaterial.deleted_at.is_(None),
    ).first()
    if not material:
        raise NotFoundError(f"Raw material {raw_material_id} not found")
    return material


def list_raw_materials(
    *,
    location_id: int | None = None,
    gold_category_id: int | None = None,
    status: RawMaterialStatus | None = None,
    condition: RawMaterialCondition | None = None,
    search: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[RawMaterial], int]:
    """Returns (page, total matching rows)."""
    query = db.session.query(RawMaterial).filter(RawMaterial.deleted_at.is_(None))
    if location_id is not None:
        query = query.filter(RawMaterial.location_id == location_id)
    if gold_category_id is not None:
        query = query.filter(RawMaterial.gold_category_id == gold_category_id)
    if status is not None:
        query = query.filter(RawMaterial.status == status)
    if condition is not None:
        query = query.filter(RawMaterial.condition == condition)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.filter(db.or_(
            db.func.lower(RawMaterial.code).like(pattern),
            db.func.lower(RawMaterial.supplier_name).like(pattern),
            db.func.lower(RawMaterial.notes).like(pattern),
        ))
    total = query.count()
    rows = query.order_by(RawMaterial.id.desc()).offset(offset).limit(limit).all()
    return rows, total


def create_raw_material(payload: dict, *, user_id: int | None = None) -> RawMaterial:
    """Standalone intake (not tied to a purchase transaction)."""
    payload = require_fields(payload, ["location_id", "weight_grams", "buy_price_per_gram"])
    location_id = coerce_int(payload.get("location_id"), "location_id", minimum=1)
    gold_category_id = coerce_int(payload.get("gold_category_id"), "gold_category_id", required=False, minimum=1)
    member_id = coerce_int(payload.get("member_id"), "member_id", required=False, minimum=1)
    weight_grams = quantize_weight(coerce_decimal(
        payload.get("weight_grams"), "weight_grams", minimum=ZERO, exclusive_minimum=True,
    ))
    weight_gross = quantize_weight(coerce_decimal(payload.get("weight_gross"), "weight_gross", default=ZERO, minimum=ZERO))
    shrinkage = coerce_decimal(
        payload.get("shrinkage_percent"), "shrinkage_percent", default=ZERO, minimum=ZERO, maximum=HUNDRED,
    )
    purity = coerce_decimal(payload.get("purity"), "purity", required=False, minimum=ZERO, maximum=HUNDRED)
    price = quantize_money(coerce_decimal(payload.get("buy_price_per_gram"), "buy_price_per_gram", minimum=ZERO))
    condition = parse_enum(
        RawMaterialCondition, payload.get("condition"), "condition", default=RawMaterialCondition.LIKE_NEW,
    )
    supplier_name = coerce_str(payload.get("supplier_name"), "supplier_name", max_length=100) or None
    notes = coerce_str(payload.get("notes"), "notes", max_length=500) or None

    def _op() -> RawMaterial:
        begin_write()
        catalog_service.get_location(location_id)
        if gold_category_id is not None:
            catalog_service.get_gold_category(gold_category_id)
        if member_id is not None:
            member_service.get_member(member_id)
        material = add_raw_material(
            location_id=location_id,
            gold_category_id=gold_category_id,
            weight_grams=weight_grams,
            weight_gross=weight_gross,
            shrinkage_percent=shrinkage,
            purity=purity,
            buy_price_per_gram=price,
            condition=condition,
            supplier_name=supplier_name,
            member_id=member_id,
            received_by_id=user_id,
            notes=notes,
        )
        db.session.commit()
        return material

    material = run_with_retry(_op)
    logger.info("Raw material %s received (%s g)", material.code, material.weight_grams)
    return material


def update_raw_material(raw_material_id: int, payload: dict, *, user_id: int | None = None) -> RawMaterial:
    """
    Partial update. total_buy_price is recomputed from the resulting weight
    and price; moving to `processed` stamps processed_at.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    new_status = None
    if payload.get("status"):
        new_status = parse_enum(RawMaterialStatus, payload.get("status"), "status")

    def _op() -> RawMaterial:
        begin_write()
        material = lock_for_update(
            db.session.query(RawMaterial).filter(
                RawMaterial.id == raw_material_id,
                RawMaterial.deleted_at.is_(None),
            )
        ).first()
        if not material:
            raise NotFoundError(f"Raw material {raw_material_id} not found")

        if "gold_category_id" in payload:
            category_id = coerce_int(payload.get("gold_category_id"), "gold_category_id", required=False, minimum=1)
            if category_id is not None:
                catalog_service.get_gold_category(category_id)
            material.gold_category_id = category_id
        if payload.get("location_id") is not None:
            location_id = coerce_int(payload.get("location_id"), "location_id", minimum=1)
            catalog_service.get_location(location_id)
            material.location_id = location_id
        if payload.get("weight_gross") is not None:
            material.weight_gross = quantize_weight(coerce_decimal(payload.get("weight_gross"), "weight_gross", minimum=ZERO))
        if payload.get("shrinkage_percent") is not None:
            material.shrinkage_percent = coerce_decimal(
                payload.get("shrinkage_percent"), "shrinkage_percent", minimum=ZERO, maximum=HUNDRED,
            )
        if payload.get("weight_grams") is not None:
            material.weight_grams = quantize_weight(coerce_decimal(
                payload.get("weight_grams"), "weight_grams", minimum=ZERO, exclusive_minimum=True,
            ))
        if payload.get("purity") is not None:
            material.purity = coerce_decimal(payload.get("purity"), "purity", minimum=ZERO, maximum=HUNDRED)
        if payload.get("buy_price_per_gram") is not None:
            material.buy_price_per_gram = quantize_money(coerce_decimal(
                payload.get("buy_price_per_gram"), "buy_price_per_gram", minimum=ZERO,
            ))
        if payload.get("condition"):
            material.condition = parse_enum(RawMaterialCondition, payload.get("condition"), "condition")
        if "supplier_name" in payload:
            material.supplier_name = coerce_str(payload.get("supplier_name"), "supplier_name", max_length=100) or None
        if "member_id" in payload:
            member_id = coerce_int(payload.get("member_id"), "member_id", required=False, minimum=1)
            if member_id is not None:
                member_service.get_member(member_id)
            material.member_id = member_id
        if "notes" in payload:
            material.notes = coerce_str(payload.get("notes"), "notes", max_length=500) or None

        if new_status is not None and new_status != material.status:
            if new_status not in ALLOWED_TRANSITIONS[material.status]:
                raise ConflictError(
                    f"Cannot move raw material from {material.status.value} to {new_status.value}",
                    details={"raw_material_id": material.id},
                )
            old_status = material.status
            material.status = new_status
            if new_status == RawMaterialStatus.PROCESSED:
                material.processed_at = utcnow()
            append_ledger_event(
                event_type="RAW_MATERIAL_STATUS_CHANGED",
                event_category="raw_materials",
                entity_type="raw_material",
                entity_id=material.id,
                actor_user_id=user_id,
                location_id=material.location_id,
                payload={"from": old_status.value, "to": new_status.value},
            )

        material.total_buy_price = quantize_money(
            Decimal(material.weight_grams) * Decimal(material.buy_price_per_gram)
        )
        db.session.commit()
        return material

    return run_with_retry(_op)


def delete_raw_material(raw_material_id: int, *, user_id: int | None = None) -> None:
    """Soft delete; processed or sold material is kept."""
    def _op() -> None:
        begin_write()
        material = get_raw_material(raw_material_id)
        if material.status != RawMaterialStatus.AVAILABLE:
            raise ConflictError(
                "Cannot delete processed or sold raw material",
                details={"raw_material_id": material.id, "status": material.status.value},
            )
        material.deleted_at = utcnow()
        append_ledger_event(
            event_type="RAW_MATERIAL_DELETED",
            event_category="raw_materials",
            entity_type="raw_material",
            entity_id=material.id,
            actor_user_id=user_id,
            location_id=material.location_id,
        )
        db.session.commit()

    run_with_retry(_op)
