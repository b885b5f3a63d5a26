# Overview: Default permission grants per role.

from .definitions import (
    PERMISSION_DEFINITIONS,
    POS_PERMISSIONS,
)


DEFAULT_ROLE_PERMISSIONS = {
    # Admin: everything
    "admin": [perm[0] for perm in PERMISSION_DEFINITIONS],

    # Manager: back office (intake, transfers, prices, cancellations), no user admin
    "manager": [
        "gold-categories.view",
        "gold-categories.update",
        "members.view",
        "members.create",
        "members.update",
        "members.delete",
        "stocks.view",
        "stocks.create",
        "stocks.update",
        "stocks.delete",
        "stocks.transfer",
        "transactions.view",
        "transactions.sale",
        "transactions.purchase",
        "transactions.cancel",
        "raw-materials.view",
        "raw-materials.create",
        "raw-materials.update",
        "raw-materials.delete",
    ] + [perm[0] for perm in POS_PERMISSIONS],

    # Cashier: counter work only
    "cashier": [
        "pos.view-gold-categories",
        "pos.view-members",
        "pos.create-members",
        "pos.update-members",
        "pos.view-stocks",
        "pos.update-stocks",
        "transactions.view",
        "transactions.sale",
        "transactions.purchase",
    ],
}
