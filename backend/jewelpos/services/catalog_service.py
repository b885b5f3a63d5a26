# Overview: Reference catalog lookups (gold categories, products, locations, storage boxes).

"""
Reference data consumed by the stock and transaction engines.

Full CRUD for these tables lives with the back-office; this module only
offers the lookups the engines need plus `create_*` helpers used by the
bootstrap CLI and tests. Lookups ignore soft-deleted rows and raise
NotFoundError, so callers never have to test for None.
"""

from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..models import GoldCategory, Location, LocationType, Product, StorageBox
from ..validation import NotFoundError, ValidationError, quantize_money, quantize_weight


def get_gold_category(gold_category_id: int) -> GoldCategory:
    category = db.session.query(GoldCategory).filter(
        GoldCategory.id == gold_category_id,
        GoldCategory.deleted_at.is_(None),
    ).first()
    if not category:
        raise NotFoundError(f"Gold category {gold_category_id} not found")
    return category


def list_gold_categories(active_only: bool = True) -> list[GoldCategory]:
    query = db.session.query(GoldCategory).filter(GoldCategory.deleted_at.is_(None))
    if active_only:
        query = query.filter(GoldCategory.is_active.is_(True))
    return query.order_by(GoldCategory.code).all()


def get_product(product_id: int) -> Product:
    product = db.session.query(Product).filter(
        Product.id == product_id,
        Product.deleted_at.is_(None),
    ).first()
    if not product:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def get_location(location_id: int) -> Location:
    location = db.session.query(Location).filter(
        Location.id == location_id,
        Location.deleted_at.is_(None),
    ).first()
    if not location:
        raise NotFoundError(f"Location {location_id} not found")
    return location


def get_storage_box(box_id: int) -> StorageBox:
    box = db.session.query(StorageBox).filter(
        StorageBox.id == box_id,
        StorageBox.deleted_at.is_(None),
    ).first()
    if not box:
        raise NotFoundError(f"Storage box {box_id} not found")
    return box


def get_box_in_location(box_id: int, location_id: int) -> StorageBox:
    """Storage box lookup that also enforces box -> location ownership."""
    box = get_storage_box(box_id)
    if box.location_id != location_id:
        raise ValidationError(
            "Storage box does not belong to the location",
            details={"storage_box_id": box_id, "location_id": location_id},
        )
    return box


# -- bootstrap helpers (no commit; callers own the unit of work) --

def create_gold_category(
    *,
    code: str,
    name: str,
    buy_price: Decimal,
    sell_price: Decimal,
    purity: Decimal | None = None,
    description: str | None = None,
) -> GoldCategory:
    category = GoldCategory(
        code=code,
        name=name,
        purity=purity,
        buy_price=quantize_money(Decimal(buy_price)),
        sell_price=quantize_money(Decimal(sell_price)),
        description=description,
    )
    db.session.add(category)
    db.session.flush()
    return category


def create_product(
    *,
    barcode: str,
    name: str,
    gold_category_id: int,
    weight: Decimal,
    type: str = "other",
    category: str = "dewasa",
    description: str | None = None,
) -> Product:
    get_gold_category(gold_category_id)
    product = Product(
        barcode=barcode,
        name=name,
        type=type,
        category=category,
        gold_category_id=gold_category_id,
        weight=quantize_weight(Decimal(weight)),
        description=description,
    )
    db.session.add(product)
    db.session.flush()
    return product


def create_location(
    *,
    code: str,
    name: str,
    type: LocationType = LocationType.SHOP,
    address: str | None = None,
    phone: str | None = None,
) -> Location:
    location = Location(code=code, name=name, type=type, address=address, phone=phone)
    db.session.add(location)
    db.session.flush()
    return location


def create_storage_box(*, location_id: int, code: str, name: str | None = None, capacity: int = 0) -> StorageBox:
    get_location(location_id)
    box = StorageBox(location_id=location_id, code=code, name=name or code, capacity=capacity)
    db.session.add(box)
    db.session.flush()
    return box
