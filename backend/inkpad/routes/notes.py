"""
InkPad Backend — Notes Route Handlers
======================================

What:  CRUD, listing, search and drawing-page routes under /api/notes.
How:   Resolves the caller id, delegates to NoteService, returns JSON.
Who:   Called by the web client and by NotesApiClient (handwritten editor).

The static paths (/folders, /tags, /search) are registered before
/{note_id} so they are never captured by the id parameter.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from inkpad.auth import get_current_user
from inkpad.database import get_db_session
from inkpad.schemas.note import (
    DrawingPagesResponse,
    ErrorResponse,
    MessageResponse,
    NoteCreate,
    NoteResponse,
    NoteUpdate,
)
from inkpad.services.note_service import note_service

router = APIRouter(prefix="/api/notes", tags=["Notes"])

_COMMON_ERRORS = {
    401: {"description": "Missing user identity", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}
_NOT_FOUND = {404: {"description": "Note not found", "model": ErrorResponse}}


@router.post(
    "",
    status_code=201,
    response_model=NoteResponse,
    responses=_COMMON_ERRORS,
    summary="Create a note",
)
async def create_note(
    body: NoteCreate,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.create_note(db=db, user_id=user_id, data=body)


@router.get(
    "",
    response_model=List[NoteResponse],
    responses=_COMMON_ERRORS,
    summary="List the caller's notes, most recently updated first",
)
async def list_notes(
    response: Response,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[NoteResponse]:
    notes = await note_service.list_notes(db=db, user_id=user_id)
    response.headers["X-Total-Count"] = str(len(notes))
    return notes


@router.get(
    "/folders",
    response_model=List[str],
    responses=_COMMON_ERRORS,
    summary="Distinct folders used by the caller's notes",
)
async def list_folders(
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[str]:
    return await note_service.list_folders(db=db, user_id=user_id)


@router.get(
    "/tags",
    response_model=List[str],
    responses=_COMMON_ERRORS,
    summary="Distinct tags used by the caller's notes",
)
async def list_tags(
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[str]:
    return await note_service.list_tags(db=db, user_id=user_id)


@router.get(
    "/search",
    response_model=List[NoteResponse],
    responses={
        400: {"description": "Invalid search pattern", "model": ErrorResponse},
        **_COMMON_ERRORS,
    },
    summary="Search notes",
    description=(
        "Case-insensitive regular expression search over title, content, tags and "
        "folder, with optional exact folder and tag filters."
    ),
)
async def search_notes(
    q: Optional[str] = Query(default=None, max_length=200, description="Regular expression"),
    folder: Optional[str] = Query(default=None, description="Only notes in this folder"),
    tag: Optional[str] = Query(default=None, description="Only notes with this tag"),
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[NoteResponse]:
    return await note_service.search_notes(db=db, user_id=user_id, q=q, folder=folder, tag=tag)


@router.get(
    "/{note_id}",
    response_model=NoteResponse,
    responses={**_NOT_FOUND, **_COMMON_ERRORS},
    summary="Get a single note by ID",
)
async def get_note(
    note_id: UUID,
    response: Response,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    result = await note_service.get_note(db=db, user_id=user_id, note_id=note_id)
    # Notes are editable, so clients must revalidate
    response.headers["Cache-Control"] = "private, no-cache"
    return result


@router.get(
    "/{note_id}/pages",
    response_model=DrawingPagesResponse,
    responses={**_NOT_FOUND, **_COMMON_ERRORS},
    summary="Get the drawing pages of a handwritten note",
    description=(
        "Decodes drawing_data the way the handwritten editor does: legacy single-page "
        "buffers become one page, and every page is returned optimized."
    ),
)
async def get_note_pages(
    note_id: UUID,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> DrawingPagesResponse:
    return await note_service.get_pages(db=db, user_id=user_id, note_id=note_id)


@router.put(
    "/{note_id}",
    response_model=NoteResponse,
    responses={**_NOT_FOUND, **_COMMON_ERRORS},
    summary="Update a note",
)
async def update_note(
    note_id: UUID,
    body: NoteUpdate,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.update_note(db=db, user_id=user_id, note_id=note_id, data=body)


@router.delete(
    "/{note_id}",
    response_model=MessageResponse,
    responses={**_NOT_FOUND, **_COMMON_ERRORS},
    summary="Delete a note",
)
async def delete_note(
    note_id: UUID,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await note_service.delete_note(db=db, user_id=user_id, note_id=note_id)
    return MessageResponse(message="Note deleted")
