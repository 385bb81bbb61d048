"""initial models

Creates the user and labreport tables.

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
import sqlmodel  # noqa: F401


revision: str = "0001_initial_models"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "user",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("hashed_password", sa.String(), nullable=False),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_user_email", "user", ["email"], unique=True)
    op.create_table(
        "labreport",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("file_name", sa.String(), nullable=False),
        sa.Column("raw_text", sa.String(), nullable=False),
        sa.Column("structured_data", sa.JSON(), nullable=True),
        sa.Column("ai_analysis", sa.String(), nullable=True),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_labreport_user_id", "labreport", ["user_id"])
    op.create_index("ix_labreport_uploaded_at", "labreport", ["uploaded_at"])


def downgrade() -> None:
    op.drop_index("ix_labreport_uploaded_at", table_name="labreport")
    op.drop_index("ix_labreport_user_id", table_name="labreport")
    op.drop_table("labreport")
    op.drop_index("ix_user_email", table_name="user")
    op.drop_table("user")
