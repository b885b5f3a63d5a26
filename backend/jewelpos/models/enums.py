"""
Closed sets of states and types used across the jewelry domain.

Stored through `enum_column()` (non-native, string-backed, validated), so an
unknown value can neither be written by the ORM nor slip in from a request:
routes parse raw strings with `validation.parse_enum`.
"""
from __future__ import annotations

import enum

from ..extensions import db


class StockStatus(str, enum.Enum):
    AVAILABLE = "available"   # ready for sale
    RESERVED = "reserved"     # held for an order
    SOLD = "sold"
    TRANSFER = "transfer"     # in transit between locations


class TransactionType(str, enum.Enum):
    SALE = "sale"             # items leave inventory to a customer
    PURCHASE = "purchase"     # store buys gold from a customer ("setor")


class TransactionStatus(str, enum.Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    TRANSFER = "transfer"
    CARD = "card"
    MIXED = "mixed"


class TransferStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class MemberType(str, enum.Enum):
    REGULAR = "regular"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"


class RawMaterialStatus(str, enum.Enum):
    AVAILABLE = "available"
    PROCESSED = "processed"
    SOLD = "sold"


class RawMaterialCondition(str, enum.Enum):
    NEW = "new"
    LIKE_NEW = "like_new"
    SCRATCHED = "scratched"
    DENTED = "dented"
    DAMAGED = "damaged"


class LocationType(str, enum.Enum):
    WAREHOUSE = "gudang"
    SHOP = "toko"


def enum_column(enum_cls: type[enum.Enum], **kwargs) -> db.Column:
    """String-backed enum column keyed by member *values* ("available"), not names."""
    return db.Column(
        db.Enum(
            enum_cls,
            native_enum=False,
            validate_strings=True,
            length=20,
            values_callable=lambda cls: [m.value for m in cls],
            name=f"{enum_cls.__name__.lower()}_enum",
            create_constraint=False,
        ),
        **kwargs,
    )
