# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and UI display."""
    USERS = "USERS"
    GOLD_PRICES = "GOLD_PRICES"
    MEMBERS = "MEMBERS"
    STOCKS = "STOCKS"
    TRANSACTIONS = "TRANSACTIONS"
    RAW_MATERIALS = "RAW_MATERIALS"
    POS = "POS"
