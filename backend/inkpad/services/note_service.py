"""
InkPad Backend — Note Service (Business Logic)
===============================================

What:  CRUD, folder/tag listing, search, and drawing-page export for notes.
How:   Every query is scoped to the caller's user id; a note owned by someone
       else is indistinguishable from a missing one (NotFoundError).
Who:   Called by route handlers in routes/notes.py.

Error Handling Strategy:
    Our own exceptions (NotFoundError, ValidationError) propagate unchanged.
    Anything else raised while talking to the database is logged and wrapped
    in DatabaseError, which the global handler turns into a generic 500.
"""

import logging
import re
import uuid
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from inkpad.canvas.persistence import PersistenceAdapter
from inkpad.exceptions import DatabaseError, InkPadError, NotFoundError, ValidationError
from inkpad.models.note import Note
from inkpad.schemas.note import (
    DrawingPagesResponse,
    NoteCreate,
    NoteResponse,
    NoteUpdate,
)

logger = logging.getLogger(__name__)

# Columns that reject NULL; an explicit null in an update body is ignored for them
_NOT_NULL_FIELDS = {"title", "content", "tags", "type"}


class NoteService:
    """
    Business logic layer for note operations.

    Stateless: receives the database session and caller id on every call.
    """

    async def _fetch(self, db: AsyncSession, user_id: str, note_id: UUID) -> Note:
        result = await db.execute(
            select(Note).where(Note.id == note_id, Note.user_id == user_id)
        )
        note = result.scalar_one_or_none()
        if note is None:
            raise NotFoundError(resource="note", resource_id=str(note_id))
        return note

    async def _fetch_or_wrap(self, db: AsyncSession, user_id: str, note_id: UUID) -> Note:
        try:
            return await self._fetch(db, user_id, note_id)
        except InkPadError:
            raise
        except Exception as e:
            raise self._wrap("retrieve the note", e, note_id=str(note_id))

    async def _user_notes(self, db: AsyncSession, user_id: str) -> List[Note]:
        result = await db.execute(
            select(Note).where(Note.user_id == user_id).order_by(desc(Note.updated_at))
        )
        return list(result.scalars().all())

    def _wrap(self, action: str, e: Exception, **context) -> DatabaseError:
        logger.error("Database error while %s: %s", action, str(e), exc_info=True)
        return DatabaseError(
            message=f"Could not {action}. Please try again.",
            context={"error_type": type(e).__name__, **context},
        )

    # ── Create ────────────────────────────────────────────────────────────

    async def create_note(self, db: AsyncSession, user_id: str, data: NoteCreate) -> NoteResponse:
        try:
            now = datetime.now(timezone.utc)
            note = Note(
                id=uuid.uuid4(),
                user_id=user_id,
                title=data.title,
                content=data.content,
                folder=data.folder,
                tags=data.tags,
                type=data.type,
                drawing_data=data.drawing_data or None,
                created_at=now,
                updated_at=now,
            )
            db.add(note)
            await db.flush()
            logger.info("Note %s created (type=%s)", note.id, note.type)
            return NoteResponse.model_validate(note)
        except InkPadError:
            raise
        except Exception as e:
            raise self._wrap("create the note", e)

    # ── Read ──────────────────────────────────────────────────────────────

    async def list_notes(self, db: AsyncSession, user_id: str) -> List[NoteResponse]:
        """All of the caller's notes, most recently updated first."""
        try:
            notes = await self._user_notes(db, user_id)
            return [NoteResponse.model_validate(note) for note in notes]
        except Exception as e:
            raise self._wrap("retrieve notes", e)

    async def get_note(self, db: AsyncSession, user_id: str, note_id: UUID) -> NoteResponse:
        return NoteResponse.model_validate(await self._fetch_or_wrap(db, user_id, note_id))

    async def list_folders(self, db: AsyncSession, user_id: str) -> List[str]:
        """Distinct, non-null folders in alphabetical order."""
        try:
            result = await db.execute(
                select(Note.folder)
                .where(Note.user_id == user_id, Note.folder.is_not(None))
                .distinct()
            )
            return sorted(folder for folder in result.scalars().all() if folder)
        except Exception as e:
            raise self._wrap("retrieve folders", e)

    async def list_tags(self, db: AsyncSession, user_id: str) -> List[str]:
        """Distinct tags across the caller's notes in alphabetical order."""
        try:
            result = await db.execute(select(Note.tags).where(Note.user_id == user_id))
            tags = {tag for note_tags in result.scalars().all() for tag in (note_tags or [])}
            return sorted(tags)
        except Exception as e:
            raise self._wrap("retrieve tags", e)

    async def search_notes(
        self,
        db: AsyncSession,
        user_id: str,
        q: Optional[str] = None,
        folder: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> List[NoteResponse]:
        """
        Search the caller's notes.

        `q` is a case-insensitive regular expression matched against title,
        content, each tag, and folder; a note matches if any of them does.
        `folder` and `tag` are exact filters applied on top.

        Raises:
            ValidationError: q is not a valid regular expression (→ 400)
        """
        pattern = None
        if q:
            try:
                pattern = re.compile(q, re.IGNORECASE)
            except re.error as e:
                raise ValidationError(
                    message=f"Invalid search pattern: {e}",
                    field="q",
                )

        try:
            notes = await self._user_notes(db, user_id)
        except Exception as e:
            raise self._wrap("search notes", e)

        def matches(note: Note) -> bool:
            if folder and note.folder != folder:
                return False
            if tag and tag not in (note.tags or []):
                return False
            if pattern is None:
                return True
            fields = [note.title, note.content, note.folder or "", *(note.tags or [])]
            return any(pattern.search(value) for value in fields)

        return [NoteResponse.model_validate(note) for note in notes if matches(note)]

    async def get_pages(self, db: AsyncSession, user_id: str, note_id: UUID) -> DrawingPagesResponse:
        """Drawing pages of a note as the editor would load them."""
        note = await self._fetch_or_wrap(db, user_id, note_id)
        adapter = PersistenceAdapter()
        store = adapter.load(note.drawing_data)
        pages = store.to_array()
        return DrawingPagesResponse(
            note_id=note.id,
            format=adapter.detect_format(note.drawing_data).value,
            page_count=len(pages),
            pages=pages,
        )

    # ── Update / Delete ───────────────────────────────────────────────────

    async def update_note(
        self, db: AsyncSession, user_id: str, note_id: UUID, data: NoteUpdate
    ) -> NoteResponse:
        """Apply the fields present in the request body."""
        note = await self._fetch_or_wrap(db, user_id, note_id)
        changes = data.model_dump(exclude_unset=True)
        try:
            for field, value in changes.items():
                if value is None and field in _NOT_NULL_FIELDS:
                    continue
                setattr(note, field, value)
            note.updated_at = datetime.now(timezone.utc)
            await db.flush()
            logger.info("Note %s updated (%s)", note.id, ", ".join(sorted(changes)) or "no fields")
            return NoteResponse.model_validate(note)
        except Exception as e:
            raise self._wrap("update the note", e, note_id=str(note_id))

    async def delete_note(self, db: AsyncSession, user_id: str, note_id: UUID) -> None:
        note = await self._fetch_or_wrap(db, user_id, note_id)
        try:
            await db.delete(note)
            await db.flush()
            logger.info("Note %s deleted", note_id)
        except Exception as e:
            raise self._wrap("delete the note", e, note_id=str(note_id))


# ── Singleton Instance ────────────────────────────────────────────────────
note_service = NoteService()
