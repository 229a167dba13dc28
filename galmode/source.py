"""Content source — the host that owns the conversation.

Playback reads the transcript from, and sends player input to, an injected
source matching the protocol below. Two implementations are provided:

    HttpContentSource   — talks to a host bridge over HTTP.
    StaticContentSource — serves a fixed in-memory transcript. Used by the
                          demo and as a test double.

Host bridge endpoints (all JSON):
  GET  /character        → {"name": ..., "avatar": ...}
  GET  /transcript       → {"messages": [TranscriptMessage, ...]}
  GET  /messages/{index} → {"text": ...}        404 if the message is gone
  GET  /status           → {"generating": bool}
  POST /messages         {"text": ...}          send player input ("" = continue)
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from galmode.models import CharacterInfo, TranscriptMessage

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol: every content source must match these signatures
# ---------------------------------------------------------------------------

class ContentSource(Protocol):
    async def get_character(self) -> CharacterInfo: ...

    async def get_transcript(self) -> list[TranscriptMessage]: ...

    async def get_message_text(self, index: int) -> str | None: ...

    async def is_generating(self) -> bool: ...

    async def send_message(self, text: str) -> None: ...


# ---------------------------------------------------------------------------
# HttpContentSource: connects to a running host bridge
# ---------------------------------------------------------------------------

class HttpContentSource:
    """Async HTTP client for a host bridge.

    Args:
        base_url: Base URL of the bridge, e.g. "http://localhost:8000/api/galmode".
        api_key:  Bearer token, or empty string if not required.
        timeout:  HTTP timeout in seconds. Defaults to 30.
    """

    def __init__(self, base_url: str, api_key: str = "", timeout: float = 30.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def _request(self, method: str, path: str, body: dict | None = None) -> httpx.Response:
        url = f"{self._base_url}{path}"
        logger.debug("host %s %s", method, url)
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.request(method, url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise SourceError(f"Cannot connect to host at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise SourceError(f"Host returned HTTP {e.response.status_code}") from e
        except httpx.TimeoutException as e:
            raise SourceError(f"Host timed out after {self._timeout}s") from e
        return resp

    async def _get_json(self, path: str) -> Any:
        resp = await self._request("GET", path)
        try:
            return resp.json()
        except ValueError as e:
            raise SourceError(f"Host returned invalid JSON for {path}") from e

    async def get_character(self) -> CharacterInfo:
        return CharacterInfo.model_validate(await self._get_json("/character"))

    async def get_transcript(self) -> list[TranscriptMessage]:
        data = await self._get_json("/transcript")
        messages = data.get("messages") if isinstance(data, dict) else None
        if not isinstance(messages, list):
            raise SourceError("Unexpected transcript format from host")
        return [TranscriptMessage.model_validate(m) for m in messages]

    async def get_message_text(self, index: int) -> str | None:
        try:
            data = await self._get_json(f"/messages/{index}")
        except SourceError as e:
            if isinstance(e.__cause__, httpx.HTTPStatusError) and e.__cause__.response.status_code == 404:
                return None
            raise
        return data.get("text") if isinstance(data, dict) else None

    async def is_generating(self) -> bool:
        data = await self._get_json("/status")
        return bool(data.get("generating")) if isinstance(data, dict) else False

    async def send_message(self, text: str) -> None:
        await self._request("POST", "/messages", {"text": text})


# ---------------------------------------------------------------------------
# StaticContentSource: fixed transcript, no network
# ---------------------------------------------------------------------------

class StaticContentSource:
    """Serves an in-memory transcript.

    Non-empty sent messages are appended as user messages; set `generating`
    and append to `messages` to simulate a host reply.
    """

    def __init__(
        self,
        messages: list[TranscriptMessage] | None = None,
        character: CharacterInfo | None = None,
    ) -> None:
        self.messages = list(messages or [])
        self.character = character or CharacterInfo()
        self.generating = False
        self.sent: list[str] = []

    async def get_character(self) -> CharacterInfo:
        return self.character

    async def get_transcript(self) -> list[TranscriptMessage]:
        return list(self.messages)

    async def get_message_text(self, index: int) -> str | None:
        if 0 <= index < len(self.messages):
            return self.messages[index].raw_content
        return None

    async def is_generating(self) -> bool:
        return self.generating

    async def send_message(self, text: str) -> None:
        logger.debug("StaticContentSource received %r", text)
        self.sent.append(text)
        if text:
            self.messages.append(TranscriptMessage(
                raw_content=text, speaker_name="You", is_user=True,
            ))


# ---------------------------------------------------------------------------
# SourceError: raised by HttpContentSource for all connection and protocol failures
# ---------------------------------------------------------------------------

class SourceError(RuntimeError):
    """Raised when the host cannot be reached or returns an error."""
