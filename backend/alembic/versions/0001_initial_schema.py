from alembic import op
import sqlalchemy as sa


revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _money(name, nullable=False):
    return sa.Column(name, sa.Numeric(12, 2), nullable=nullable, server_default=None if nullable else "0")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("email", sa.String(255), nullable=False, index=True),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(50), nullable=False, server_default="operador"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_table(
        "clients",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("full_name", sa.String(255), nullable=False, index=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "products",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, index=True),
        sa.Column("description", sa.Text(), nullable=True),
        _money("base_price"),
        sa.Column("weight_grams", sa.Float(), nullable=False, server_default="0"),
        sa.Column("print_time_mins", sa.Float(), nullable=True),
        sa.Column("estimated_hours", sa.Float(), nullable=True),
        sa.Column("estimated_mins", sa.Float(), nullable=True),
        sa.Column("additional_costs", sa.JSON(), nullable=False),
        sa.Column("inventory_items", sa.JSON(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "inventory",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, index=True),
        sa.Column("type", sa.String(50), nullable=False, server_default="Filamento", index=True),
        sa.Column("color", sa.String(50), nullable=True),
        sa.Column("brand", sa.String(100), nullable=True),
        sa.Column("stock_grams", sa.Float(), nullable=False, server_default="0"),
        sa.Column("measurement_unit", sa.String(20), nullable=False, server_default="grams"),
        _money("price_per_kg", nullable=True),
        _money("price_per_unit", nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="disponible"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "orders",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, index=True),
        sa.Column("date", sa.Date(), nullable=True, index=True),
        sa.Column("deadline", sa.Date(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pendiente", index=True),
        _money("price"),
        sa.Column("quantity", sa.Integer(), nullable=True, server_default="1"),
        _money("cost"),
        _money("suggested_price", nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("product_id", sa.String(36), nullable=True, index=True),
        sa.Column("client_id", sa.String(36), nullable=True, index=True),
        sa.Column("custom_client_name", sa.String(255), nullable=True),
        sa.Column("inventory_id", sa.String(36), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("quoted_grams", sa.Float(), nullable=True),
        sa.Column("quoted_hours", sa.Float(), nullable=True),
        sa.Column("quoted_mins", sa.Float(), nullable=True),
        sa.Column("quoted_power_watts", sa.Float(), nullable=True),
        sa.Column("quoted_material_price", sa.Float(), nullable=True),
        sa.Column("quoted_op_multiplier", sa.Float(), nullable=True),
        sa.Column("quoted_sales_multiplier", sa.Float(), nullable=True),
        sa.Column("additional_costs", sa.JSON(), nullable=False),
        sa.Column("inventory_items", sa.JSON(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["inventory_id"], ["inventory.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
    )
    op.create_table(
        "expenses",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("category", sa.String(100), nullable=True, index=True),
        _money("amount"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("date", sa.Date(), nullable=False, index=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("evidence_path", sa.String(500), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
    )
    op.create_table(
        "assets",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("type", sa.String(50), nullable=False, server_default="Impresora"),
        sa.Column("acquisition_date", sa.Date(), nullable=False),
        _money("acquisition_cost"),
        _money("current_value"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
    )
    op.create_table(
        "tags",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False, index=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("name", name="uq_tags_name"),
    )
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("action", sa.String(50), nullable=False, index=True),
        sa.Column("table_name", sa.String(50), nullable=False),
        sa.Column("record_id", sa.String(36), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, index=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
    )
    op.create_table(
        "order_status_history",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("order_id", sa.String(36), nullable=False, index=True),
        sa.Column("old_status", sa.String(20), nullable=True),
        sa.Column("new_status", sa.String(20), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("user_email", sa.String(255), nullable=True),
        sa.Column("notes", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
    )
    op.create_table(
        "app_settings",
        sa.Column("key", sa.String(100), primary_key=True),
        sa.Column("value", sa.JSON(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("app_settings")
    op.drop_table("order_status_history")
    op.drop_table("audit_logs")
    op.drop_table("tags")
    op.drop_table("assets")
    op.drop_table("expenses")
    op.drop_table("orders")
    op.drop_table("inventory")
    op.drop_table("products")
    op.drop_table("clients")
    op.drop_table("users")
