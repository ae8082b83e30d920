"""
InkPad Backend — Pydantic Request/Response Schemas
===================================================

What:  Pydantic models defining the API contract between clients and backend.
How:   FastAPI uses these models to validate request bodies, serialize responses,
       and generate the OpenAPI documentation. The API client parses responses
       back into the same models.
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

NoteType = Literal["text", "handwritten"]


def _clean_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    """Strip whitespace, drop blanks and duplicates, keep first-seen order."""
    if tags is None:
        return None
    seen: List[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def _clean_folder(folder: Optional[str]) -> Optional[str]:
    if folder is None:
        return None
    return folder.strip() or None


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class NoteCreate(BaseModel):
    """
    Body of POST /api/notes.

    Handwritten notes send `type="handwritten"`, the "Handwritten Note"
    placeholder as content, and their pages in `drawing_data`.
    """
    title: str = Field(min_length=1, max_length=255, description="Note title")
    content: str = Field(min_length=1, description="Note body (placeholder for drawings)")
    folder: Optional[str] = Field(default=None, max_length=255)
    tags: List[str] = Field(default_factory=list)
    type: NoteType = Field(default="text")
    drawing_data: Optional[str] = Field(
        default=None,
        description="JSON array of page buffers for handwritten notes",
    )

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title must not be blank")
        return v.strip()

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_tags(v)

    @field_validator("folder")
    @classmethod
    def validate_folder(cls, v: Optional[str]) -> Optional[str]:
        return _clean_folder(v)


class NoteUpdate(BaseModel):
    """
    Body of PUT /api/notes/{id}. Only fields present in the body are changed.
    """
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[str] = Field(default=None, min_length=1)
    folder: Optional[str] = Field(default=None, max_length=255)
    tags: Optional[List[str]] = Field(default=None)
    type: Optional[NoteType] = Field(default=None)
    drawing_data: Optional[str] = Field(default=None)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Title must not be blank")
        return v.strip() if v is not None else v

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_tags(v)

    @field_validator("folder")
    @classmethod
    def validate_folder(cls, v: Optional[str]) -> Optional[str]:
        return _clean_folder(v)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteResponse(BaseModel):
    """Full representation of a note, returned by every note endpoint."""
    id: uuid.UUID = Field(description="Unique note identifier (UUID)")
    title: str
    content: str
    folder: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    type: NoteType = "text"
    drawing_data: Optional[str] = None
    created_at: datetime = Field(description="When the note was created (UTC ISO 8601)")
    updated_at: datetime = Field(description="Last modification time (UTC ISO 8601)")

    model_config = {"from_attributes": True}


class DrawingPagesResponse(BaseModel):
    """
    Pages of a handwritten note, normalized by the persistence adapter.

    `format` reports how drawing_data was stored: empty, paged or legacy.
    """
    note_id: uuid.UUID
    format: str = Field(description="Stored format: empty, paged, legacy")
    page_count: int
    pages: List[str] = Field(description="Optimized page buffers in order")


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "note with ID '...' was not found",
            "details": {"resource": "note"},
            "request_id": "1a2b3c4d"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and database status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
