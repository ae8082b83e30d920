"""Create notes table

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates the `notes` table holding text and handwritten notes.
How:   Portable column types (sa.Uuid, sa.JSON, DateTime with time zone) so the
       same migration runs on PostgreSQL and SQLite. Ids are generated by the
       application, so there is no server-side UUID default.

Rollback: downgrade() drops the table (all notes are lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "notes",
        sa.Column("id", sa.Uuid(), nullable=False, comment="Unique identifier"),
        sa.Column(
            "user_id",
            sa.String(64),
            nullable=False,
            comment="Owner id supplied by the authenticating gateway",
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("folder", sa.String(255), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column(
            "type",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'text'"),
            comment="Note kind: text, handwritten",
        ),
        sa.Column(
            "drawing_data",
            sa.Text(),
            nullable=True,
            comment="JSON array of page buffers (or a legacy single buffer)",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    # Serves "my notes, most recently edited first"
    op.create_index(
        "idx_notes_user_updated_at",
        "notes",
        ["user_id", sa.text("updated_at DESC")],
    )


def downgrade() -> None:
    op.drop_index("idx_notes_user_updated_at", table_name="notes")
    op.drop_table("notes")
