# Overview: Permission system package.
# Re-exports all public APIs.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    USER_PERMISSIONS,
    GOLD_PRICE_PERMISSIONS,
    MEMBER_PERMISSIONS,
    STOCK_PERMISSIONS,
    TRANSACTION_PERMISSIONS,
    RAW_MATERIAL_PERMISSIONS,
    POS_PERMISSIONS,
)
from .roles import DEFAULT_ROLE_PERMISSIONS

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "USER_PERMISSIONS",
    "GOLD_PRICE_PERMISSIONS",
    "MEMBER_PERMISSIONS",
    "STOCK_PERMISSIONS",
    "TRANSACTION_PERMISSIONS",
    "RAW_MATERIAL_PERMISSIONS",
    "POS_PERMISSIONS",
    "DEFAULT_ROLE_PERMISSIONS",
]
