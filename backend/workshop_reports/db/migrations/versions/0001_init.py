"""init

Revision ID: 0001_init
Revises: 
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None

KPI_COLUMNS = (
    "mo_mecanica",
    "mo_chapa",
    "mo_pintura",
    "or_mecanica",
    "or_carroceria",
    "material_pintura",
    "material_anexos",
    "materiales_mecanica",
    "total_materiales",
    "total_mano_obra",
    "total_facturas",
)

def upgrade():
    op.create_table(
        "workshop",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("network_id", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
    )
    op.create_index("ix_workshop_network_id", "workshop", ["network_id"])

    op.create_table(
        "kpis",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("workshop_id", sa.Integer(), sa.ForeignKey("workshop.id", ondelete="CASCADE"), nullable=False),
        sa.Column("fecha", sa.Date(), nullable=False),
        *[sa.Column(name, sa.Float(), nullable=True) for name in KPI_COLUMNS],
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
    )
    op.create_index("ix_kpis_workshop_id", "kpis", ["workshop_id"])
    op.create_index("ix_kpis_fecha", "kpis", ["fecha"])
    op.create_index("uq_kpis_workshop_fecha", "kpis", ["workshop_id", "fecha"], unique=True)

    op.create_table(
        "invoices",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("workshop_id", sa.Integer(), sa.ForeignKey("workshop.id", ondelete="CASCADE"), nullable=False),
        sa.Column("client_id", sa.String(length=64), nullable=False),
        sa.Column("client_name", sa.String(length=256), nullable=True),
        sa.Column("invoice_number", sa.String(length=64), nullable=True),
        sa.Column("concept", sa.Text(), nullable=False, server_default=""),
        sa.Column("amount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("issue_date", sa.DateTime(), nullable=False),
        sa.Column("collected", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
    )
    op.create_index("ix_invoices_workshop_id", "invoices", ["workshop_id"])
    op.create_index("ix_invoices_client_id", "invoices", ["client_id"])
    op.create_index("ix_invoices_issue_date", "invoices", ["issue_date"])


def downgrade():
    op.drop_table("invoices")
    op.drop_table("kpis")
    op.drop_table("workshop")
