"""Initial jewelpos schema

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None

NOW = sa.text("(CURRENT_TIMESTAMP)")
ACTIVE = sa.text("deleted_at IS NULL")


def _timestamps(updated=True, deleted=True):
    cols = [sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False)]
    if updated:
        cols.append(sa.Column("updated_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False))
    if deleted:
        cols.append(sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True))
    return cols


def _active_unique(name, table, columns):
    op.create_index(name, table, columns, unique=True, sqlite_where=ACTIVE, postgresql_where=ACTIVE)


def upgrade():
    # -- identity --
    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(64), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", name="uq_roles_name"),
        sqlite_autoincrement=True,
    )
    op.create_table(
        "permissions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(64), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("permissions", schema=None) as batch_op:
        batch_op.create_index("ix_permissions_code", ["code"], unique=True)
        batch_op.create_index("ix_permissions_category", ["category"], unique=False)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(64), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(100), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role_id", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username", name="uq_users_username"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("users", schema=None) as batch_op:
        batch_op.create_index("ix_users_username", ["username"], unique=False)
        batch_op.create_index("ix_users_role_id", ["role_id"], unique=False)

    op.create_table(
        "role_permissions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("role_id", sa.Integer(), nullable=False),
        sa.Column("permission_id", sa.Integer(), nullable=False),
        sa.Column("granted_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"]),
        sa.ForeignKeyConstraint(["permission_id"], ["permissions.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("role_id", "permission_id", name="uq_role_permissions"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_role_permissions_role_id", "role_permissions", ["role_id"])
    op.create_index("ix_role_permissions_permission_id", "role_permissions", ["permission_id"])

    op.create_table(
        "session_tokens",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("token_hash", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("last_used_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_revoked", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_reason", sa.String(255), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("session_tokens", schema=None) as batch_op:
        batch_op.create_index("ix_session_tokens_token_hash", ["token_hash"], unique=True)
        batch_op.create_index("ix_session_tokens_user_active", ["user_id", "is_revoked"], unique=False)
        batch_op.create_index("ix_session_tokens_expires_at", ["expires_at"], unique=False)
        batch_op.create_index("ix_session_tokens_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_session_tokens_is_revoked", ["is_revoked"], unique=False)

    # -- reference data --
    op.create_table(
        "gold_categories",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(20), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("purity", sa.Numeric(6, 4), nullable=True),
        sa.Column("buy_price", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("sell_price", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("description", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    _active_unique("uq_gold_categories_code_active", "gold_categories", ["code"])
    op.create_index("ix_gold_categories_deleted_at", "gold_categories", ["deleted_at"])

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("barcode", sa.String(50), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("type", sa.String(20), nullable=False, server_default="other"),
        sa.Column("category", sa.String(20), nullable=False, server_default="dewasa"),
        sa.Column("gold_category_id", sa.Integer(), nullable=False),
        sa.Column("weight", sa.Numeric(12, 3), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.ForeignKeyConstraint(["gold_category_id"], ["gold_categories.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    _active_unique("uq_products_barcode_active", "products", ["barcode"])
    op.create_index("ix_products_gold_category_id", "products", ["gold_category_id"])
    op.create_index("ix_products_type", "products", ["type"])
    op.create_index("ix_products_category", "products", ["category"])
    op.create_index("ix_products_deleted_at", "products", ["deleted_at"])

    op.create_table(
        "locations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(20), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("type", sa.String(20), nullable=False, server_default="toko"),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    _active_unique("uq_locations_code_active", "locations", ["code"])
    op.create_index("ix_locations_type", "locations", ["type"])
    op.create_index("ix_locations_deleted_at", "locations", ["deleted_at"])

    op.create_table(
        "storage_boxes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("location_id", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(20), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_storage_boxes_location_code", "storage_boxes", ["location_id", "code"])
    op.create_index("ix_storage_boxes_location_id", "storage_boxes", ["location_id"])
    op.create_index("ix_storage_boxes_deleted_at", "storage_boxes", ["deleted_at"])

    op.create_table(
        "members",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("member_code", sa.String(32), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("email", sa.String(100), nullable=True),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("id_number", sa.String(30), nullable=True),
        sa.Column("type", sa.String(20), nullable=False, server_default="regular"),
        sa.Column("points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_purchase", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total_sell", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("transaction_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("join_date", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.String(500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    _active_unique("uq_members_code_active", "members", ["member_code"])
    op.create_index("ix_members_phone", "members", ["phone"])
    op.create_index("ix_members_type", "members", ["type"])
    op.create_index("ix_members_deleted_at", "members", ["deleted_at"])

    # -- transactions & stock --
    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("transaction_code", sa.String(32), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("member_id", sa.Integer(), nullable=True),
        sa.Column("location_id", sa.Integer(), nullable=False),
        sa.Column("cashier_id", sa.Integer(), nullable=False),
        sa.Column("sub_total", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("discount", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("discount_percent", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("tax", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("grand_total", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("payment_method", sa.String(20), nullable=False, server_default="cash"),
        sa.Column("paid_amount", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("change_amount", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("customer_name", sa.String(100), nullable=True),
        sa.Column("customer_phone", sa.String(20), nullable=True),
        sa.Column("notes", sa.String(500), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="completed"),
        sa.Column("transaction_date", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by_id", sa.Integer(), nullable=True),
        sa.Column("cancel_reason", sa.String(255), nullable=True),
        *_timestamps(deleted=False),
        sa.ForeignKeyConstraint(["member_id"], ["members.id"]),
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"]),
        sa.ForeignKeyConstraint(["cashier_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["cancelled_by_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("transaction_code", name="uq_transactions_code"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("transactions", schema=None) as batch_op:
        batch_op.create_index("ix_transactions_location_date", ["location_id", "transaction_date"], unique=False)
        batch_op.create_index("ix_transactions_type_status", ["type", "status"], unique=False)
        batch_op.create_index("ix_transactions_member_id", ["member_id"], unique=False)
        batch_op.create_index("ix_transactions_location_id", ["location_id"], unique=False)
        batch_op.create_index("ix_transactions_cashier_id", ["cashier_id"], unique=False)
        batch_op.create_index("ix_transactions_status", ["status"], unique=False)
        batch_op.create_index("ix_transactions_transaction_date", ["transaction_date"], unique=False)

    op.create_table(
        "stocks",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("location_id", sa.Integer(), nullable=False),
        sa.Column("storage_box_id", sa.Integer(), nullable=False),
        sa.Column("serial_number", sa.String(32), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="available"),
        sa.Column("notes", sa.String(500), nullable=True),
        sa.Column("supplier_name", sa.String(100), nullable=True),
        sa.Column("received_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("received_by_id", sa.Integer(), nullable=True),
        sa.Column("sold_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("transaction_id", sa.Integer(), nullable=True),
        sa.Column("barcode_printed", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("barcode_printed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"]),
        sa.ForeignKeyConstraint(["storage_box_id"], ["storage_boxes.id"]),
        sa.ForeignKeyConstraint(["received_by_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["transaction_id"], ["transactions.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("serial_number", name="uq_stocks_serial_number"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("stocks", schema=None) as batch_op:
        batch_op.create_index("ix_stocks_location_status", ["location_id", "status"], unique=False)
        batch_op.create_index("ix_stocks_box_status", ["storage_box_id", "status"], unique=False)
        batch_op.create_index("ix_stocks_product_id", ["product_id"], unique=False)
        batch_op.create_index("ix_stocks_transaction_id", ["transaction_id"], unique=False)
        batch_op.create_index("ix_stocks_location_id", ["location_id"], unique=False)
        batch_op.create_index("ix_stocks_storage_box_id", ["storage_box_id"], unique=False)
        batch_op.create_index("ix_stocks_status", ["status"], unique=False)
        batch_op.create_index("ix_stocks_deleted_at", ["deleted_at"], unique=False)

    op.create_table(
        "transaction_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("transaction_id", sa.Integer(), nullable=False),
        sa.Column("stock_id", sa.Integer(), nullable=True),
        sa.Column("product_id", sa.Integer(), nullable=True),
        sa.Column("gold_category_id", sa.Integer(), nullable=True),
        sa.Column("item_name", sa.String(150), nullable=False),
        sa.Column("barcode", sa.String(50), nullable=True),
        sa.Column("weight", sa.Numeric(12, 3), nullable=False, server_default=sa.text("0")),
        sa.Column("price_per_gram", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("unit_price", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("discount", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("sub_total", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("notes", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(["transaction_id"], ["transactions.id"]),
        sa.ForeignKeyConstraint(["stock_id"], ["stocks.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.ForeignKeyConstraint(["gold_category_id"], ["gold_categories.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_transaction_items_transaction_id", "transaction_items", ["transaction_id"])
    op.create_index("ix_transaction_items_stock_id", "transaction_items", ["stock_id"])

    op.create_table(
        "stock_transfers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("transfer_number", sa.String(32), nullable=False),
        sa.Column("stock_id", sa.Integer(), nullable=False),
        sa.Column("from_location_id", sa.Integer(), nullable=False),
        sa.Column("from_box_id", sa.Integer(), nullable=True),
        sa.Column("to_location_id", sa.Integer(), nullable=False),
        sa.Column("to_box_id", sa.Integer(), nullable=True),
        sa.Column("transferred_by_id", sa.Integer(), nullable=True),
        sa.Column("transferred_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("notes", sa.String(500), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="completed"),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["stock_id"], ["stocks.id"]),
        sa.ForeignKeyConstraint(["from_location_id"], ["locations.id"]),
        sa.ForeignKeyConstraint(["from_box_id"], ["storage_boxes.id"]),
        sa.ForeignKeyConstraint(["to_location_id"], ["locations.id"]),
        sa.ForeignKeyConstraint(["to_box_id"], ["storage_boxes.id"]),
        sa.ForeignKeyConstraint(["transferred_by_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    _active_unique("uq_stock_transfers_number", "stock_transfers", ["transfer_number"])
    op.create_index("ix_stock_transfers_stock_transferred", "stock_transfers", ["stock_id", "transferred_at"])
    op.create_index("ix_stock_transfers_stock_id", "stock_transfers", ["stock_id"])
    op.create_index("ix_stock_transfers_from_location_id", "stock_transfers", ["from_location_id"])
    op.create_index("ix_stock_transfers_to_location_id", "stock_transfers", ["to_location_id"])
    op.create_index("ix_stock_transfers_transferred_by_id", "stock_transfers", ["transferred_by_id"])

    # -- pricing --
    op.create_table(
        "price_update_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("update_date", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("updated_by_id", sa.Integer(), nullable=True),
        sa.Column("notes", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(["updated_by_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_price_update_logs_update_date", "price_update_logs", ["update_date"])
    op.create_index("ix_price_update_logs_updated_by_id", "price_update_logs", ["updated_by_id"])

    op.create_table(
        "price_details",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("price_update_log_id", sa.Integer(), nullable=False),
        sa.Column("gold_category_id", sa.Integer(), nullable=False),
        sa.Column("old_buy_price", sa.Numeric(18, 2), nullable=False),
        sa.Column("new_buy_price", sa.Numeric(18, 2), nullable=False),
        sa.Column("old_sell_price", sa.Numeric(18, 2), nullable=False),
        sa.Column("new_sell_price", sa.Numeric(18, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(["price_update_log_id"], ["price_update_logs.id"]),
        sa.ForeignKeyConstraint(["gold_category_id"], ["gold_categories.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_price_details_price_update_log_id", "price_details", ["price_update_log_id"])
    op.create_index("ix_price_details_gold_category_id", "price_details", ["gold_category_id"])

    # -- raw materials --
    op.create_table(
        "raw_materials",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(32), nullable=False),
        sa.Column("gold_category_id", sa.Integer(), nullable=True),
        sa.Column("location_id", sa.Integer(), nullable=False),
        sa.Column("weight_gross", sa.Numeric(12, 3), nullable=False, server_default=sa.text("0")),
        sa.Column("shrinkage_percent", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("weight_grams", sa.Numeric(12, 3), nullable=False),
        sa.Column("purity", sa.Numeric(6, 2), nullable=True),
        sa.Column("buy_price_per_gram", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total_buy_price", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("condition", sa.String(20), nullable=False, server_default="like_new"),
        sa.Column("status", sa.String(20), nullable=False, server_default="available"),
        sa.Column("supplier_name", sa.String(100), nullable=True),
        sa.Column("member_id", sa.Integer(), nullable=True),
        sa.Column("transaction_id", sa.Integer(), nullable=True),
        sa.Column("received_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("received_by_id", sa.Integer(), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.String(500), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["gold_category_id"], ["gold_categories.id"]),
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"]),
        sa.ForeignKeyConstraint(["member_id"], ["members.id"]),
        sa.ForeignKeyConstraint(["transaction_id"], ["transactions.id"]),
        sa.ForeignKeyConstraint(["received_by_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    _active_unique("uq_raw_materials_code_active", "raw_materials", ["code"])
    op.create_index("ix_raw_materials_location_status", "raw_materials", ["location_id", "status"])
    for column in ("gold_category_id", "location_id", "status", "member_id", "transaction_id", "deleted_at"):
        op.create_index(f"ix_raw_materials_{column}", "raw_materials", [column])

    # -- documents & ledger --
    op.create_table(
        "document_sequences",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("document_type", sa.String(32), nullable=False),
        sa.Column("period", sa.String(8), nullable=False),
        sa.Column("next_number", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("document_type", "period", name="uq_doc_sequences_type_period"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_document_sequences_document_type", "document_sequences", ["document_type"])

    op.create_table(
        "ledger_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_type", sa.String(64), nullable=False),
        sa.Column("event_category", sa.String(32), nullable=False),
        sa.Column("entity_type", sa.String(64), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False),
        sa.Column("actor_user_id", sa.Integer(), nullable=True),
        sa.Column("location_id", sa.Integer(), nullable=True),
        sa.Column("transaction_id", sa.Integer(), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("note", sa.String(255), nullable=True),
        sa.Column("payload", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["actor_user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"]),
        sa.ForeignKeyConstraint(["transaction_id"], ["transactions.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("ledger_events", schema=None) as batch_op:
        batch_op.create_index("ix_ledger_events_entity", ["entity_type", "entity_id"], unique=False)
        batch_op.create_index("ix_ledger_events_occurred_at", ["occurred_at"], unique=False)
        batch_op.create_index("ix_ledger_events_transaction_id", ["transaction_id"], unique=False)
        batch_op.create_index("ix_ledger_events_event_type", ["event_type"], unique=False)
        batch_op.create_index("ix_ledger_events_event_category", ["event_category"], unique=False)
        batch_op.create_index("ix_ledger_events_actor_user_id", ["actor_user_id"], unique=False)
        batch_op.create_index("ix_ledger_events_location_id", ["location_id"], unique=False)


def downgrade():
    for table in (
        "ledger_events",
        "document_sequences",
        "raw_materials",
        "price_details",
        "price_update_logs",
        "stock_transfers",
        "transaction_items",
        "stocks",
        "transactions",
        "members",
        "storage_boxes",
        "locations",
        "products",
        "gold_categories",
        "session_tokens",
        "role_permissions",
        "users",
        "permissions",
        "roles",
    ):
        op.drop_table(table)
