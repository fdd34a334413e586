"""
Chat assistant collaborator.

Keeps a running conversation (ordered, role-tagged turns) and sends it to an
OpenAI-compatible chat-completions endpoint. Every call yields a ChatOutcome:
either the generated text, or an error message for transport, HTTP and quota
failures. Nothing here raises for a failed request.
"""

from __future__ import annotations

import json
import logging
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional

import requests

from smarthub.config import Settings
from smarthub.timeutil import now_ms

logger = logging.getLogger("smarthub.assistant")

SYSTEM_PROMPT = (
    "You are the SmartHub assistant for university students and staff. "
    "Answer questions about courses, events and campus life concisely."
)
DEFAULT_IMAGE_PROMPT = "Please analyze this image"


@dataclass(frozen=True)
class ChatTurn:
    role: str
    content: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()), compare=False)
    timestamp: int = field(default_factory=now_ms, compare=False)


@dataclass(frozen=True)
class ChatOutcome:
    text: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Conversation:
    """Ordered list of turns, always starting with the system prompt."""

    def __init__(self, system_prompt: str = SYSTEM_PROMPT) -> None:
        self._system = ChatTurn("system", system_prompt)
        self._turns: List[ChatTurn] = [self._system]

    @property
    def turns(self) -> List[ChatTurn]:
        return list(self._turns)

    def add(self, role: str, content: str) -> ChatTurn:
        turn = ChatTurn(role, content)
        self._turns.append(turn)
        return turn

    def clear(self) -> None:
        self._turns = [self._system]

    def __len__(self) -> int:
        return len(self._turns)

    def save(self, path: str | Path) -> int:
        """
        Write the user and assistant turns to a JSON file:

            [{"id": ..., "content": ..., "isFromUser": true, "timestamp": 1700000000000}, ...]

        The system prompt is not saved. Returns the number of turns written.
        """
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)

        records = [
            {"id": t.id, "content": t.content, "isFromUser": t.role == "user", "timestamp": t.timestamp}
            for t in self._turns[1:]
        ]
        out.write_text(json.dumps(records, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.debug("Saved %d chat turns to %s", len(records), out)
        return len(records)

    def load(self, path: str | Path) -> bool:
        """
        Replace the turns after the system prompt with the ones saved in path.

        A missing, unreadable or malformed file leaves the conversation unchanged
        and returns False.
        """
        src = Path(path)
        if not src.exists():
            logger.warning("Conversation file not found: %s", src)
            return False

        try:
            data = json.loads(src.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning("Ignoring unreadable conversation file %s: %s", src, exc)
            return False

        if not isinstance(data, list):
            logger.warning("Ignoring conversation file %s: expected a JSON array", src)
            return False

        loaded: List[ChatTurn] = []
        for item in data:
            try:
                loaded.append(
                    ChatTurn(
                        role="user" if bool(item["isFromUser"]) else "assistant",
                        content=str(item["content"]),
                        id=str(item["id"]),
                        timestamp=int(item["timestamp"]),
                    )
                )
            except (KeyError, TypeError, ValueError):
                logger.warning("Ignoring conversation file %s: malformed turn %r", src, item)
                return False

        self._turns = [self._system, *loaded]
        logger.debug("Loaded %d chat turns from %s", len(loaded), src)
        return True


class ChatClient:
    def __init__(
        self,
        api_key: Optional[str],
        *,
        url: str,
        model: str,
        vision_model: str,
        timeout: float = 60.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._api_key = api_key
        self._url = url
        self._model = model
        self._vision_model = vision_model
        self._timeout = timeout
        self._session = session if session is not None else requests.Session()
        self._executor: Optional[ThreadPoolExecutor] = None

    @classmethod
    def from_settings(cls, settings: Settings, session: Optional[requests.Session] = None) -> "ChatClient":
        return cls(
            settings.chat_api_key,
            url=settings.chat_url,
            model=settings.chat_model,
            vision_model=settings.vision_model,
            timeout=settings.chat_timeout,
            session=session,
        )

    def send(self, conversation: Conversation, message: str, image_base64: Optional[str] = None) -> ChatOutcome:
        """
        Append the user message, request a reply and append it on success.

        With image_base64 the message is sent as the prompt for the attached JPEG.
        """
        if not self._api_key:
            return ChatOutcome(error="No chat API key configured")

        if image_base64:
            conversation.add("user", message or DEFAULT_IMAGE_PROMPT)
            payload = self._vision_payload(conversation, message or DEFAULT_IMAGE_PROMPT, image_base64)
        else:
            conversation.add("user", message)
            payload = {
                "model": self._model,
                "messages": [{"role": t.role, "content": t.content} for t in conversation.turns],
            }

        outcome = self._post(payload)
        if outcome.ok and outcome.text is not None:
            conversation.add("assistant", outcome.text)
        return outcome

    def submit(self, conversation: Conversation, message: str, image_base64: Optional[str] = None) -> "Future[ChatOutcome]":
        """
        Run send() on a worker thread and return a future for the outcome.
        """
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="smarthub-chat")
        return self._executor.submit(self.send, conversation, message, image_base64)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        self._session.close()

    def _vision_payload(self, conversation: Conversation, prompt: str, image_base64: str) -> dict[str, Any]:
        history = [{"role": t.role, "content": t.content} for t in conversation.turns[:-1]]
        history.append(
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {"type": "image_url", "image_url": {"url": f"data:image/jpeg;base64,{image_base64}"}},
                ],
            }
        )
        return {"model": self._vision_model, "messages": history, "max_tokens": 1000}

    def _post(self, payload: dict[str, Any]) -> ChatOutcome:
        headers = {"Authorization": f"Bearer {self._api_key}", "Content-Type": "application/json"}
        try:
            resp = self._session.post(self._url, json=payload, headers=headers, timeout=self._timeout)
        except requests.RequestException as exc:
            logger.warning("Chat request failed: %s", exc)
            return ChatOutcome(error=f"Network error: {exc}")

        if resp.status_code == 429:
            logger.warning("Chat request rejected: quota exceeded")
            return ChatOutcome(error="Quota exceeded, please try again later")
        if resp.status_code >= 400:
            logger.warning("Chat request failed with HTTP %s", resp.status_code)
            return ChatOutcome(error=f"HTTP {resp.status_code}: {_error_message(resp)}")

        try:
            text = resp.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            logger.warning("Chat response could not be parsed")
            return ChatOutcome(error="Malformed response from chat service")

        return ChatOutcome(text=str(text).strip())


def _error_message(resp: requests.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text[:200] or resp.reason or "error"
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        return str(data["error"].get("message", "error"))
    return str(data)[:200]


__all__ = ["ChatClient", "ChatOutcome", "ChatTurn", "Conversation"]
