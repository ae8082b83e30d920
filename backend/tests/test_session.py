"""
InkPad — Handwritten Note Session Tests
========================================

What we test:
    ✅ Page switches flush the outgoing page before clearing the surface
    ✅ Page add/delete keep the surface and the store in step
    ✅ Switches and saves are refused while a stroke is being captured
    ✅ A save while another is in flight is suppressed
    ✅ Save failures keep the pages; load failures degrade to an empty page
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

import pytest

from inkpad.canvas.page_store import PageStore
from inkpad.canvas.session import HandwrittenNoteSession
from inkpad.canvas.stroke_buffer import empty_buffer, optimize
from inkpad.exceptions import NotFoundError, PageCapacityError, StorageError, StrokeInProgressError
from inkpad.schemas.note import NoteResponse


def note_response(note_id=None, **overrides) -> NoteResponse:
    now = datetime.now(timezone.utc)
    fields = {
        "id": note_id or uuid4(),
        "title": "Sketches",
        "content": "Handwritten Note",
        "folder": None,
        "tags": [],
        "type": "handwritten",
        "drawing_data": None,
        "created_at": now,
        "updated_at": now,
    }
    fields.update(overrides)
    return NoteResponse(**fields)


class FakeStorage:
    """In-memory NoteStorage; optional gate lets a test hold save_note open."""

    def __init__(self, notes=None, fail_with: Optional[Exception] = None):
        self.notes: Dict[str, NoteResponse] = dict(notes or {})
        self.saves = []
        self.fail_with = fail_with
        self.gate: Optional[asyncio.Event] = None

    async def get_note(self, note_id: str) -> NoteResponse:
        if self.fail_with:
            raise self.fail_with
        return self.notes[note_id]

    async def save_note(self, note_id: Optional[str], payload: Dict[str, Any]) -> NoteResponse:
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with:
            raise self.fail_with
        self.saves.append((note_id, payload))
        note = note_response(note_id=note_id, **payload)
        self.notes[str(note.id)] = note
        return note


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def session(surface, storage, dims):
    return HandwrittenNoteSession(surface, storage, dimensions=dims)


class TestOpen:

    @pytest.mark.asyncio
    async def test_new_note_has_one_empty_page(self, session, surface):
        assert await session.open() is True
        assert session.is_new
        assert session.page_count == 1
        assert surface.lines == []

    @pytest.mark.asyncio
    async def test_loads_pages_and_binds_first(self, surface, dims):
        first = '{"lines":[{"points":[{"x":1,"y":1}]}],"width":100,"height":100}'
        note = note_response(
            title="Diagram",
            tags=["work"],
            drawing_data=json.dumps([first, empty_buffer(dims)]),
        )
        storage = FakeStorage({str(note.id): note})
        session = HandwrittenNoteSession(surface, storage, note_id=str(note.id), dimensions=dims)

        assert await session.open() is True

        assert session.page_count == 2
        assert session.title == "Diagram"
        assert session.tags == ["work"]
        assert surface.lines == [{"points": [{"x": 1, "y": 1}]}]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [StorageError(), NotFoundError(resource="note")])
    async def test_load_failure_degrades_to_empty_page(self, surface, dims, error):
        session = HandwrittenNoteSession(
            surface, FakeStorage(fail_with=error), note_id="missing", dimensions=dims
        )

        assert await session.open() is False

        assert session.last_error == "Failed to load note"
        assert session.store.pages == [empty_buffer(dims)]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("drawing_data", [
        '{"lines":[{"points":[{"x":1,"y":1}],"label":"\\ud800"}],"width":100,"height":100}',
        json.dumps(['{"lines":[{"points":[{"x":1,"y":1}]}],"width":NaN,"height":100}']),
    ])
    async def test_unrenderable_drawing_opens_as_empty_page(self, surface, dims, drawing_data):
        note = note_response(drawing_data=drawing_data)
        session = HandwrittenNoteSession(
            surface, FakeStorage({str(note.id): note}), note_id=str(note.id), dimensions=dims
        )

        assert await session.open() is True

        assert session.page_count == 1
        assert surface.lines == []
        assert session.pages() == [empty_buffer(dims)]


class TestPageSwitching:

    @pytest.mark.asyncio
    async def test_flush_before_clear(self, session, surface, dims):
        await session.open()
        session.add_page()
        session.go_to_page(0)

        surface.draw([(1, 1), (2, 2)])
        unsaved = surface.get_serialized_state()

        assert session.go_to_page(1) is True
        assert surface.lines == []
        assert session.go_to_page(0) is True

        assert session.store.current_data == optimize(unsaved, dims)
        assert surface.get_serialized_state() == optimize(unsaved, dims)

    @pytest.mark.asyncio
    async def test_next_and_previous(self, session):
        await session.open()
        session.add_page()
        assert session.previous_page() is True
        assert session.current_page == 0
        assert session.previous_page() is False
        assert session.next_page() is True
        assert session.next_page() is False

    @pytest.mark.asyncio
    async def test_add_page_flushes_and_shows_empty_page(self, session, surface, dims):
        await session.open()
        surface.draw([(3, 3)])

        assert session.add_page() == 1

        assert surface.lines == []
        assert session.store.page_data(0) == optimize(
            '{"lines":[{"points":[{"x":3,"y":3}],"brushColor":"#000000","brushRadius":3}],'
            '"width":100,"height":100}',
            dims,
        )

    @pytest.mark.asyncio
    async def test_add_page_at_capacity_changes_nothing(self, surface, storage, dims):
        session = HandwrittenNoteSession(surface, storage, dimensions=dims)
        await session.open()
        session.store = PageStore([empty_buffer(dims)] * 50, dimensions=dims, max_pages=50)
        surface.draw([(4, 4)])

        with pytest.raises(PageCapacityError):
            session.add_page()

        assert session.page_count == 50
        assert session.store.page_data(0) == empty_buffer(dims)
        assert len(surface.lines) == 1

    @pytest.mark.asyncio
    async def test_delete_page(self, session, surface):
        await session.open()
        session.add_page()
        surface.draw([(7, 7)])

        assert session.delete_page() == 0
        assert session.page_count == 1
        assert surface.lines == []

        with pytest.raises(PageCapacityError):
            session.delete_page()
        assert session.page_count == 1

    @pytest.mark.asyncio
    async def test_switch_refused_mid_stroke(self, session, surface):
        await session.open()
        session.add_page()
        surface.begin_stroke(1, 1)

        with pytest.raises(StrokeInProgressError):
            session.go_to_page(0)
        with pytest.raises(StrokeInProgressError):
            session.add_page()
        with pytest.raises(StrokeInProgressError):
            session.delete_page()

        assert session.current_page == 1
        assert session.page_count == 2

    @pytest.mark.asyncio
    async def test_undo_and_clear_page(self, session, surface):
        await session.open()
        surface.draw([(1, 1)])
        surface.draw([(2, 2)])
        session.undo()
        assert len(surface.lines) == 1
        session.clear_page()
        assert surface.lines == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tool", ["undo", "clear_page"])
    async def test_drawing_tools_force_the_next_bind_to_reload(self, session, surface, tool):
        await session.open()
        surface.draw([(1, 1)])
        session.add_page()
        session.go_to_page(0)
        stored = session.store.current_data
        assert len(surface.lines) == 1

        getattr(session, tool)()

        assert surface.lines == []
        assert not session.binding.load_state.is_loaded
        assert session.binding.bind_active_page(stored) is True
        assert len(surface.lines) == 1


class TestSave:

    @pytest.mark.asyncio
    async def test_new_note_adopts_id(self, session, storage, surface, dims):
        await session.open()
        surface.draw([(1, 1)])

        note = await session.save()

        assert session.note_id == str(note.id)
        assert not session.is_new
        note_id, payload = storage.saves[0]
        assert note_id is None
        assert payload["type"] == "handwritten"
        assert json.loads(payload["drawing_data"]) == session.pages()

    @pytest.mark.asyncio
    async def test_existing_note_saves_to_same_id(self, session, storage):
        await session.open()
        first = await session.save()
        await session.save()
        assert storage.saves[1][0] == str(first.id)

    @pytest.mark.asyncio
    async def test_concurrent_save_is_suppressed(self, session, storage):
        await session.open()
        storage.gate = asyncio.Event()

        first = asyncio.create_task(session.save())
        await asyncio.sleep(0)
        assert session.is_saving

        assert await session.save() is None

        storage.gate.set()
        assert await first is not None
        assert len(storage.saves) == 1
        assert not session.is_saving

    @pytest.mark.asyncio
    async def test_save_refused_mid_stroke(self, session, storage, surface):
        await session.open()
        surface.begin_stroke(1, 1)

        with pytest.raises(StrokeInProgressError):
            await session.save()

        assert storage.saves == []
        assert not session.is_saving

    @pytest.mark.asyncio
    async def test_save_failure_keeps_pages(self, session, storage, surface):
        await session.open()
        surface.draw([(1, 1)])
        session.add_page()
        surface.draw([(2, 2)])
        storage.fail_with = StorageError(status_code=503)

        with pytest.raises(StorageError):
            await session.save()

        assert session.last_error == "Failed to save note"
        assert session.is_new
        assert not session.is_saving
        pages = session.pages()
        assert len(pages) == 2
        assert all('"points"' in page for page in pages)

        storage.fail_with = None
        assert await session.save() is not None
        assert session.last_error is None

    @pytest.mark.asyncio
    async def test_discard_drops_pages(self, session, surface, dims):
        await session.open()
        surface.draw([(1, 1)])
        session.add_page()

        session.discard()

        assert session.store.pages == [empty_buffer(dims)]
        assert surface.lines == []
