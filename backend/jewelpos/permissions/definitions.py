# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- USERS --

USER_PERMISSIONS = [
    ("users.view", "View Users", "View user accounts", PermissionCategory.USERS),
    ("users.create", "Create Users", "Create user accounts", PermissionCategory.USERS),
    ("users.update", "Update Users", "Edit user accounts and role assignment", PermissionCategory.USERS),
    ("users.delete", "Delete Users", "Deactivate user accounts", PermissionCategory.USERS),
    ("roles.view", "View Roles", "View roles and their permissions", PermissionCategory.USERS),
    ("roles.create", "Create Roles", "Create roles", PermissionCategory.USERS),
    ("roles.update", "Update Roles", "Edit role permissions", PermissionCategory.USERS),
    ("roles.delete", "Delete Roles", "Delete roles", PermissionCategory.USERS),
]


# -- GOLD PRICES --

GOLD_PRICE_PERMISSIONS = [
    (
        "gold-categories.view",
        "View Gold Categories",
        "View gold categories, price history and the daily update check",
        PermissionCategory.GOLD_PRICES,
    ),
    (
        "gold-categories.update",
        "Update Gold Prices",
        "Submit bulk buy/sell price revisions",
        PermissionCategory.GOLD_PRICES,
    ),
]


# -- MEMBERS --

MEMBER_PERMISSIONS = [
    ("members.view", "View Members", "View members and loyalty figures", PermissionCategory.MEMBERS),
    ("members.create", "Create Members", "Register members", PermissionCategory.MEMBERS),
    (
        "members.update",
        "Update Members",
        "Edit member contact details, award bonus points, recalculate stats",
        PermissionCategory.MEMBERS,
    ),
    ("members.delete", "Delete Members", "Soft-delete members", PermissionCategory.MEMBERS),
]


# -- STOCKS --

STOCK_PERMISSIONS = [
    ("stocks.view", "View Stock", "View stock items, box contents and transfer history", PermissionCategory.STOCKS),
    ("stocks.create", "Receive Stock", "Receive new serialized stock items", PermissionCategory.STOCKS),
    ("stocks.update", "Update Stock", "Mark barcodes printed", PermissionCategory.STOCKS),
    ("stocks.delete", "Delete Stock", "Soft-delete available stock items", PermissionCategory.STOCKS),
    ("stocks.transfer", "Transfer Stock", "Move available items between locations and boxes", PermissionCategory.STOCKS),
]


# -- TRANSACTIONS --

TRANSACTION_PERMISSIONS = [
    ("transactions.view", "View Transactions", "View sales and purchases", PermissionCategory.TRANSACTIONS),
    ("transactions.sale", "Create Sale", "Sell stock items to customers", PermissionCategory.TRANSACTIONS),
    (
        "transactions.purchase",
        "Create Purchase",
        "Buy gold back from customers (setor)",
        PermissionCategory.TRANSACTIONS,
    ),
    (
        "transactions.cancel",
        "Cancel Transaction",
        "Cancel completed transactions and restore sold stock",
        PermissionCategory.TRANSACTIONS,
    ),
]


# -- RAW MATERIALS --

RAW_MATERIAL_PERMISSIONS = [
    ("raw-materials.view", "View Raw Materials", "View scrap gold intake", PermissionCategory.RAW_MATERIALS),
    ("raw-materials.create", "Create Raw Materials", "Record scrap gold intake", PermissionCategory.RAW_MATERIALS),
    (
        "raw-materials.update",
        "Update Raw Materials",
        "Edit raw materials and move them through processing",
        PermissionCategory.RAW_MATERIALS,
    ),
    ("raw-materials.delete", "Delete Raw Materials", "Soft-delete available raw materials", PermissionCategory.RAW_MATERIALS),
]


# -- POS (counter-scoped variants) --

POS_PERMISSIONS = [
    ("pos.view-gold-categories", "POS: View Gold Prices", "View today's gold prices at the counter", PermissionCategory.POS),
    ("pos.update-gold-prices", "POS: Update Gold Prices", "Enter today's gold prices at the counter", PermissionCategory.POS),
    ("pos.view-members", "POS: View Members", "Look up members at the counter", PermissionCategory.POS),
    ("pos.create-members", "POS: Create Members", "Register members at the counter", PermissionCategory.POS),
    ("pos.update-members", "POS: Update Members", "Edit members at the counter", PermissionCategory.POS),
    ("pos.delete-members", "POS: Delete Members", "Remove members at the counter", PermissionCategory.POS),
    ("pos.view-stocks", "POS: View Stock", "Look up stock items at the counter", PermissionCategory.POS),
    ("pos.update-stocks", "POS: Update Stock", "Mark barcodes printed at the counter", PermissionCategory.POS),
]


# Combined list of all permissions
PERMISSION_DEFINITIONS = (
    USER_PERMISSIONS
    + GOLD_PRICE_PERMISSIONS
    + MEMBER_PERMISSIONS
    + STOCK_PERMISSIONS
    + TRANSACTION_PERMISSIONS
    + RAW_MATERIAL_PERMISSIONS
    + POS_PERMISSIONS
)
