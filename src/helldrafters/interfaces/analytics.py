"""Analytics Recorder Protocol Interface.

Analytics is fire-and-forget: the rules call these hooks synchronously but
never wait on or branch on their result.
"""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class AnalyticsRecorder(Protocol):
    """Protocol for recording run telemetry."""

    def record_draft(self, player_id: int, difficulty: int, star_rating: int) -> None:
        """Record that a player finished a draft session.

        Args:
            player_id: Identifier of the drafting player
            difficulty: Difficulty the session was dealt at
            star_rating: Star rating used for the hand size
        """
        ...

    def record_loadout(self, player_id: int, item_id: str, slot: str) -> None:
        """Record an item being equipped into a loadout slot."""
        ...

    def record_requisition(self, amount: float, reason: str) -> None:
        """Record a change to the shared requisition pool.

        Args:
            amount: Signed change applied to the pool
            reason: Short label (``"mission"``, ``"reroll"``, ``"event"``)
        """
        ...

    def record_mission(self, difficulty: int, success: bool, extracted: list[int]) -> None:
        """Record a mission outcome and which player ids extracted."""
        ...


class LoggingAnalytics:
    """Default recorder that writes analytics calls to the log."""

    def record_draft(self, player_id: int, difficulty: int, star_rating: int) -> None:
        logger.info(
            "draft complete: player=%s difficulty=%d stars=%d", player_id, difficulty, star_rating
        )

    def record_loadout(self, player_id: int, item_id: str, slot: str) -> None:
        logger.info("loadout change: player=%s slot=%s item=%s", player_id, slot, item_id)

    def record_requisition(self, amount: float, reason: str) -> None:
        logger.info("requisition %+.2f (%s)", amount, reason)

    def record_mission(self, difficulty: int, success: bool, extracted: list[int]) -> None:
        logger.info(
            "mission at difficulty %d %s; extracted=%s",
            difficulty,
            "succeeded" if success else "failed",
            extracted,
        )
