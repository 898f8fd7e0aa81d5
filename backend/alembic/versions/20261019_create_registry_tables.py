from alembic import op
import sqlalchemy as sa


revision = "20261019_create_registry_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("slug", sa.String(length=120), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_categories_slug", "categories", ["slug"], unique=True)

    op.create_table(
        "gifts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("categories.id"), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(length=2048), nullable=True),
        sa.Column("external_url", sa.String(length=2048), nullable=True),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("target_amount", sa.Integer(), nullable=True),
        sa.Column("current_amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="available"),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("current_amount >= 0", name="ck_gifts_current_amount_non_negative"),
    )
    op.create_index("ix_gifts_category_id", "gifts", ["category_id"])

    op.create_table(
        "contributions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "gift_id",
            sa.Integer(),
            sa.ForeignKey("gifts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("guest_name", sa.String(length=120), nullable=False),
        sa.Column("guest_phone", sa.String(length=40), nullable=False),
        sa.Column("guest_message", sa.Text(), nullable=True),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("payment_method", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("verified_by", sa.String(length=120), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("amount >= 0", name="ck_contributions_amount_non_negative"),
    )
    op.create_index("ix_contributions_gift_id", "contributions", ["gift_id"])
    op.create_index("ix_contributions_status", "contributions", ["status"])

    op.create_table(
        "payment_methods",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("type", sa.String(length=20), nullable=False, unique=True),
        sa.Column("label", sa.String(length=120), nullable=False),
        sa.Column("value", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
    )

    op.create_table(
        "site_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("guest_password_hash", sa.String(length=255), nullable=False),
        sa.Column("admin_password_hash", sa.String(length=255), nullable=False),
        sa.Column("event_title", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("event_date", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("event_time", sa.String(length=60), nullable=False, server_default=""),
        sa.Column("event_location", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("hero_message", sa.Text(), nullable=False, server_default=""),
        sa.Column("whatsapp_number", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("site_settings")
    op.drop_table("payment_methods")
    op.drop_index("ix_contributions_status", table_name="contributions")
    op.drop_index("ix_contributions_gift_id", table_name="contributions")
    op.drop_table("contributions")
    op.drop_index("ix_gifts_category_id", table_name="gifts")
    op.drop_table("gifts")
    op.drop_index("ix_categories_slug", table_name="categories")
    op.drop_table("categories")
