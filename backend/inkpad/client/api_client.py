"""
InkPad — Notes API Client
==========================

What:  Async client for the /api/notes REST API.
How:   httpx.AsyncClient with the caller identity header on every request.
       Transport failures (connect errors, timeouts) are retried by tenacity
       with exponential backoff and jitter; HTTP error responses are not
       retried. Every failure surfaces as an InkPad exception:

           404                        → NotFoundError
           other 4xx/5xx              → StorageError(status_code=...)
           transport, retries spent   → StorageError
           unreadable response body   → StorageError

Who:   HandwrittenNoteSession uses it as its NoteStorage collaborator
       (get_note / save_note); list views use list_notes().

Note list cache:
    list_notes() is read-through. Every successful write (create, update,
    delete, save) invalidates the cache and immediately refetches it, so the
    next list view reflects the write.
"""

import logging
from typing import Any, Dict, List, Optional, Type, Union

import httpx
from pydantic import BaseModel
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from inkpad.config import settings
from inkpad.exceptions import NotFoundError, StorageError
from inkpad.schemas.note import (
    DrawingPagesResponse,
    HealthResponse,
    NoteCreate,
    NoteResponse,
    NoteUpdate,
)

logger = logging.getLogger(__name__)

NOTES_PATH = "/api/notes"

Body = Union[NoteCreate, NoteUpdate, Dict[str, Any]]


def _body(data: Body) -> Dict[str, Any]:
    if isinstance(data, NoteCreate):
        return data.model_dump(mode="json")
    if isinstance(data, NoteUpdate):
        return data.model_dump(mode="json", exclude_unset=True)
    return dict(data)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase


class NotesApiClient:
    """
    Args:
        user_id: Caller identity sent in the configured user id header.
        base_url: API root; defaults to settings.api_base_url.
        transport: Optional httpx transport (tests pass MockTransport or
            ASGITransport).
        timeout: Per-request timeout in seconds.
        retry_attempts: Total attempts for a request that fails in transport.
        retry_min_wait / retry_max_wait: Backoff bounds in seconds.
    """

    def __init__(
        self,
        user_id: str,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
        retry_attempts: Optional[int] = None,
        retry_min_wait: Optional[float] = None,
        retry_max_wait: Optional[float] = None,
    ):
        self.user_id = user_id
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.retry_attempts = retry_attempts or settings.client_retry_attempts
        self.retry_min_wait = (
            settings.client_retry_min_wait if retry_min_wait is None else retry_min_wait
        )
        self.retry_max_wait = (
            settings.client_retry_max_wait if retry_max_wait is None else retry_max_wait
        )
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers={settings.user_id_header: user_id},
            timeout=timeout or settings.client_timeout,
            transport=transport,
        )
        self._notes_cache: Optional[List[NoteResponse]] = None

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "NotesApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ── Transport ─────────────────────────────────────────────────────────

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            retry=retry_if_exception_type(httpx.TransportError),
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential_jitter(
                initial=self.retry_min_wait,
                max=self.retry_max_wait,
                jitter=self.retry_min_wait,
            ),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            async for attempt in self._retrying():
                with attempt:
                    response = await self._http.request(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.error(
                "%s %s failed after %d attempt(s): %s",
                method,
                path,
                self.retry_attempts,
                str(e),
            )
            raise StorageError(
                context={"method": method, "path": path, "error_type": type(e).__name__}
            ) from e

        if response.status_code == 404:
            raise NotFoundError(resource="note", context={"path": path})
        if response.is_error:
            raise StorageError(
                message=_error_message(response),
                status_code=response.status_code,
                context={"method": method, "path": path},
            )
        return response

    @staticmethod
    def _decode(
        response: httpx.Response,
        model: Optional[Type[BaseModel]] = None,
        many: bool = False,
    ) -> Any:
        """Parse a 2xx body; a body that is not JSON or fails validation is a StorageError."""
        try:
            body = response.json()
            if many:
                return [model.model_validate(item) if model else item for item in body]
            return model.model_validate(body) if model else body
        except (ValueError, TypeError) as e:
            # pydantic.ValidationError is a ValueError
            logger.error("Unreadable response from %s: %s", response.request.url.path, str(e))
            raise StorageError(
                message="Malformed response from storage",
                status_code=response.status_code,
                context={"path": response.request.url.path, "error_type": type(e).__name__},
            ) from e

    # ── Note list cache ───────────────────────────────────────────────────

    @property
    def cached_notes(self) -> Optional[List[NoteResponse]]:
        return None if self._notes_cache is None else list(self._notes_cache)

    def invalidate_cache(self) -> None:
        self._notes_cache = None

    async def list_notes(self, refresh: bool = False) -> List[NoteResponse]:
        """The caller's notes, newest first; served from cache unless `refresh`."""
        if self._notes_cache is None or refresh:
            response = await self._request("GET", NOTES_PATH)
            self._notes_cache = self._decode(response, NoteResponse, many=True)
        return list(self._notes_cache)

    async def _refresh_after_write(self) -> None:
        self.invalidate_cache()
        try:
            await self.list_notes(refresh=True)
        except StorageError as e:
            # The write itself succeeded; the next list_notes() refetches
            logger.warning("Note list refresh after write failed: %s", e.message)

    # ── Reads ─────────────────────────────────────────────────────────────

    async def get_note(self, note_id: str) -> NoteResponse:
        response = await self._request("GET", f"{NOTES_PATH}/{note_id}")
        return self._decode(response, NoteResponse)

    async def get_pages(self, note_id: str) -> DrawingPagesResponse:
        response = await self._request("GET", f"{NOTES_PATH}/{note_id}/pages")
        return self._decode(response, DrawingPagesResponse)

    async def search_notes(
        self,
        q: Optional[str] = None,
        folder: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> List[NoteResponse]:
        params = {k: v for k, v in {"q": q, "folder": folder, "tag": tag}.items() if v}
        response = await self._request("GET", f"{NOTES_PATH}/search", params=params)
        return self._decode(response, NoteResponse, many=True)

    async def list_folders(self) -> List[str]:
        response = await self._request("GET", f"{NOTES_PATH}/folders")
        return self._decode(response, many=True)

    async def list_tags(self) -> List[str]:
        response = await self._request("GET", f"{NOTES_PATH}/tags")
        return self._decode(response, many=True)

    async def health(self) -> HealthResponse:
        response = await self._request("GET", "/health")
        return self._decode(response, HealthResponse)

    # ── Writes ────────────────────────────────────────────────────────────

    async def create_note(self, data: Body) -> NoteResponse:
        response = await self._request("POST", NOTES_PATH, json=_body(data))
        note = self._decode(response, NoteResponse)
        await self._refresh_after_write()
        return note

    async def update_note(self, note_id: str, data: Body) -> NoteResponse:
        response = await self._request("PUT", f"{NOTES_PATH}/{note_id}", json=_body(data))
        note = self._decode(response, NoteResponse)
        await self._refresh_after_write()
        return note

    async def delete_note(self, note_id: str) -> None:
        await self._request("DELETE", f"{NOTES_PATH}/{note_id}")
        await self._refresh_after_write()

    async def save_note(self, note_id: Optional[str], payload: Dict[str, Any]) -> NoteResponse:
        """Create when `note_id` is None, otherwise update."""
        if note_id is None:
            return await self.create_note(payload)
        return await self.update_note(note_id, payload)
