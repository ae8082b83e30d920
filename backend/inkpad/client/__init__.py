"""
InkPad — API Client Package
============================

NotesApiClient talks to the /api/notes service over httpx and implements the
NoteStorage protocol used by HandwrittenNoteSession.
"""

from inkpad.client.api_client import NotesApiClient

__all__ = ["NotesApiClient"]
