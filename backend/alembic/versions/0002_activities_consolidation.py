from alembic import op
import sqlalchemy as sa


revision = "0002_activities_consolidation"
down_revision = "0001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "activities",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), nullable=False, index=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("branch_id", sa.Integer(), nullable=True, index=True),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, index=True),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["branch_id"], ["branches.id"], ondelete="SET NULL"),
    )
    op.create_table(
        "consolidated_sales",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), nullable=False, index=True),
        sa.Column("branch_id", sa.Integer(), nullable=False, index=True),
        sa.Column("date", sa.Date(), nullable=False, index=True),
        sa.Column("total_cash_sales", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("total_network_sales", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("total_sales", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("total_transactions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("average_ticket", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("total_discrepancy", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="open"),
        sa.Column("created_by_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("closed_by_id", sa.Integer(), nullable=True),
        sa.Column("closed_at", sa.DateTime(), nullable=True),
        sa.Column("transferred_by_id", sa.Integer(), nullable=True),
        sa.Column("transferred_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["branch_id"], ["branches.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["closed_by_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["transferred_by_id"], ["users.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("branch_id", "date", name="uq_consolidated_sales_branch_date"),
    )
    op.add_column("daily_sales", sa.Column("consolidated_id", sa.Integer(), nullable=True))
    op.create_index("ix_daily_sales_consolidated_id", "daily_sales", ["consolidated_id"])
    op.create_foreign_key(
        "fk_daily_sales_consolidated_id",
        "daily_sales",
        "consolidated_sales",
        ["consolidated_id"],
        ["id"],
        ondelete="SET NULL",
    )


def downgrade() -> None:
    op.drop_constraint("fk_daily_sales_consolidated_id", "daily_sales", type_="foreignkey")
    op.drop_index("ix_daily_sales_consolidated_id", table_name="daily_sales")
    op.drop_column("daily_sales", "consolidated_id")
    op.drop_table("consolidated_sales")
    op.drop_table("activities")
