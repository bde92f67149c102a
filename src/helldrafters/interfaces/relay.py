"""Relay Channel Protocol Interface.

This module defines the transport contract used for host-authoritative
multiplayer: clients send intents towards the host, the host publishes full
state snapshots that every participant subscribes to.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

IntentHandler = Callable[[dict[str, Any], int], bool]
SnapshotCallback = Callable[[dict[str, Any]], None]


class RelayChannel(Protocol):
    """Opaque pub/sub transport between one host and its clients.

    Delivery is at-least-once and ordered per sender only. Snapshots are
    last-write-wins.
    """

    def send_intent(self, intent: dict[str, Any], sender_slot: int) -> None:
        """Send a client intent towards the host.

        Args:
            intent: JSON-compatible intent payload
            sender_slot: Lobby slot of the sending client
        """
        ...

    def on_intent(self, handler: IntentHandler) -> None:
        """Register the host handler; it returns ``True`` when the intent was consumed."""
        ...

    def publish_state(self, snapshot: dict[str, Any]) -> None:
        """Broadcast a full canonical state snapshot."""
        ...

    def subscribe_state(self, callback: SnapshotCallback) -> None:
        """Register a callback invoked with every published snapshot."""
        ...
