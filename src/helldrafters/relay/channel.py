"""In-process relay channel used by tests and single-process hosting."""

from __future__ import annotations

import copy
import logging
from typing import Any

from helldrafters.interfaces.relay import IntentHandler, SnapshotCallback

logger = logging.getLogger(__name__)


class InMemoryRelay:
    """Synchronous :class:`~helldrafters.interfaces.relay.RelayChannel`.

    Payloads are deep-copied on delivery so participants never share state.
    With ``redeliver`` set every intent is delivered twice, mimicking an
    at-least-once transport.
    """

    def __init__(self, *, redeliver: bool = False) -> None:
        self.redeliver = redeliver
        self.sent_intents: list[tuple[dict[str, Any], int]] = []
        self.published: list[dict[str, Any]] = []
        self._intent_handler: IntentHandler | None = None
        self._subscribers: list[SnapshotCallback] = []

    def send_intent(self, intent: dict[str, Any], sender_slot: int) -> None:
        self.sent_intents.append((intent, sender_slot))
        if self._intent_handler is None:
            logger.warning("intent from slot %d dropped: no host listening", sender_slot)
            return
        deliveries = 2 if self.redeliver else 1
        for _ in range(deliveries):
            self._intent_handler(copy.deepcopy(intent), sender_slot)

    def on_intent(self, handler: IntentHandler) -> None:
        self._intent_handler = handler

    def publish_state(self, snapshot: dict[str, Any]) -> None:
        self.published.append(snapshot)
        for callback in list(self._subscribers):
            callback(copy.deepcopy(snapshot))

    def subscribe_state(self, callback: SnapshotCallback) -> None:
        self._subscribers.append(callback)

    @property
    def last_snapshot(self) -> dict[str, Any] | None:
        return self.published[-1] if self.published else None
