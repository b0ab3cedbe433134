"""Outgoing side of the chat transport."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
import logging
from threading import Lock
from typing import Protocol

logger = logging.getLogger(__name__)


class ChatTransport(Protocol):
    """Anything that can deliver public and private chat messages."""

    def send(self, text: str) -> None: ...

    def send_private(self, text: str, user: str) -> None: ...


@dataclass(slots=True, frozen=True)
class OutgoingMessage:
    """A message waiting to be delivered. ``user`` is None for public chat."""

    text: str
    user: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)


class OutboxTransport:
    """Queues outgoing messages until the chat bridge collects them."""

    def __init__(self, max_messages: int = 1000) -> None:
        self._messages: deque[OutgoingMessage] = deque(maxlen=max_messages)
        self._lock = Lock()

    def send(self, text: str) -> None:
        logger.info("-> public: %s", text)
        with self._lock:
            self._messages.append(OutgoingMessage(text=text))

    def send_private(self, text: str, user: str) -> None:
        logger.debug("-> %s: %s", user, text)
        with self._lock:
            self._messages.append(OutgoingMessage(text=text, user=user))

    def drain(self) -> list[OutgoingMessage]:
        """Return and forget every queued message, oldest first."""
        with self._lock:
            messages = list(self._messages)
            self._messages.clear()
        return messages

    def pending(self) -> list[OutgoingMessage]:
        with self._lock:
            return list(self._messages)
