# File: alembic/versions/0001_grid_core.py | Version: 1.0 | Title: Users, workspaces, bases, tables, columns, rows, cells, views
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_grid_core"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(updated: bool = True):
    cols = [sa.Column("created_at", sa.DateTime(timezone=True), nullable=True)]
    if updated:
        cols.append(sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True))
    return cols


def upgrade():
    op.create_table(
        "user",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_user_email", "user", ["email"], unique=True)

    op.create_table(
        "workspace",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("owner_id", sa.String(), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_workspace_owner_id", "workspace", ["owner_id"])

    op.create_table(
        "base",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "workspace_id", sa.String(), sa.ForeignKey("workspace.id", ondelete="CASCADE"), nullable=False
        ),
        *_timestamps(),
    )
    op.create_index("ix_base_workspace_id", "base", ["workspace_id"])

    op.create_table(
        "data_table",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("base_id", sa.String(), sa.ForeignKey("base.id", ondelete="CASCADE"), nullable=False),
        sa.Column("next_row_index", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.UniqueConstraint("base_id", "name", name="uq_data_table_base_name"),
    )
    op.create_index("ix_data_table_base_id", "data_table", ["base_id"])
    op.create_index("ix_data_table_base_id_updated_at", "data_table", ["base_id", "updated_at"])

    op.create_table(
        "table_column",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "table_id", sa.String(), sa.ForeignKey("data_table.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("table_id", "order", name="uq_table_column_table_order"),
        sa.UniqueConstraint("table_id", "name", name="uq_table_column_table_name"),
    )
    op.create_index("ix_table_column_table_id", "table_column", ["table_id"])

    op.create_table(
        "table_row",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "table_id", sa.String(), sa.ForeignKey("data_table.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("row_index", sa.Integer(), nullable=False),
        *_timestamps(updated=False),
        sa.UniqueConstraint("table_id", "row_index", name="uq_table_row_table_row_index"),
    )
    op.create_index("ix_table_row_table_id", "table_row", ["table_id"])

    op.create_table(
        "cell",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("row_id", sa.String(), sa.ForeignKey("table_row.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "column_id", sa.String(), sa.ForeignKey("table_column.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("text_value", sa.Text(), nullable=True),
        sa.Column("number_value", sa.Float(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("row_id", "column_id", name="uq_cell_row_column"),
    )
    op.create_index("ix_cell_column_id", "cell", ["column_id"])

    op.create_table(
        "view",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "table_id", sa.String(), sa.ForeignKey("data_table.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("type", sa.String(), nullable=False, server_default="GRID"),
        sa.Column("config", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("table_id", "name", name="uq_view_table_name"),
    )
    op.create_index("ix_view_table_id", "view", ["table_id"])


def downgrade():
    op.drop_index("ix_view_table_id", table_name="view")
    op.drop_table("view")
    op.drop_index("ix_cell_column_id", table_name="cell")
    op.drop_table("cell")
    op.drop_index("ix_table_row_table_id", table_name="table_row")
    op.drop_table("table_row")
    op.drop_index("ix_table_column_table_id", table_name="table_column")
    op.drop_table("table_column")
    op.drop_index("ix_data_table_base_id_updated_at", table_name="data_table")
    op.drop_index("ix_data_table_base_id", table_name="data_table")
    op.drop_table("data_table")
    op.drop_index("ix_base_workspace_id", table_name="base")
    op.drop_table("base")
    op.drop_index("ix_workspace_owner_id", table_name="workspace")
    op.drop_table("workspace")
    op.drop_index("ix_user_email", table_name="user")
    op.drop_table("user")
