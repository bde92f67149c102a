"""Host-authoritative action relay.

Clients send :class:`~helldrafters.relay.intents.Intent` payloads over a
:class:`~helldrafters.interfaces.relay.RelayChannel`; the host validates and
applies them, then publishes full state snapshots back.
"""

from helldrafters.relay.channel import InMemoryRelay
from helldrafters.relay.intents import (
    CLIENT_ALLOWED_ACTIONS,
    ActionType,
    Intent,
    SamplesPayload,
    is_client_allowed,
)
from helldrafters.relay.session import INTENT_RULES, GameSession, SessionRole

__all__ = [
    "CLIENT_ALLOWED_ACTIONS",
    "INTENT_RULES",
    "ActionType",
    "GameSession",
    "InMemoryRelay",
    "Intent",
    "SamplesPayload",
    "SessionRole",
    "is_client_allowed",
]
