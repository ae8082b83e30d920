"""
InkPad Backend — Note SQLAlchemy Model
=======================================

What:  ORM model representing the `notes` table.
Who:   Used by NoteService for CRUD operations and by Alembic for schema management.

Table Design:
    - UUID primary key generated in Python (portable across PostgreSQL and SQLite)
    - user_id: opaque owner id from the authenticating gateway; every query filters on it
    - type: 'text' or 'handwritten'
    - drawing_data: page buffers of handwritten notes, opaque to the backend
    - tags: JSON array of strings
    - updated_at: list views sort on it, newest first

    Index on (user_id, updated_at DESC) serves "my notes, most recently edited".
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import JSON, DateTime, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from inkpad.database import Base

NOTE_TYPES = ("text", "handwritten")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A text or handwritten note owned by one user.

    Lifecycle:
        1. Created by POST /api/notes (type defaults to 'text')
        2. Updated by PUT /api/notes/{id}; handwritten saves rewrite drawing_data
        3. Deleted by DELETE /api/notes/{id}
    """

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier",
    )

    user_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Owner id supplied by the authenticating gateway",
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    # Handwritten notes store the "Handwritten Note" placeholder here
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    folder: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, default=None)

    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="text",
        server_default=text("'text'"),
        comment="Note kind: text, handwritten",
    )

    drawing_data: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        default=None,
        comment="JSON array of page buffers (or a legacy single buffer)",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_notes_user_updated_at", user_id, updated_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, type='{self.type}', title='{self.title}')>"
