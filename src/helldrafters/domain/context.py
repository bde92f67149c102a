"""Shared context passed to every rule function."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from helldrafters.interfaces.analytics import AnalyticsRecorder

from .catalog import Catalog
from .hand import generate_hand
from .models import ArmorCombo, GameState, Item, Player
from .rules_config import DEFAULT_RULES, RulesConfig

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ActionResult:
    """Outcome of a rule operation; failures are no-ops, never exceptions."""

    success: bool
    detail: str | None = None


@dataclass(slots=True)
class RunContext:
    """Everything a rule needs besides its own arguments.

    Configuration (catalog, balancing, randomness, analytics) is resolved once
    when a session starts and injected here, so the rules never look anything
    up on their own.
    """

    state: GameState
    catalog: Catalog
    rng: random.Random
    rules: RulesConfig = DEFAULT_RULES
    analytics: AnalyticsRecorder | None = None
    debug_draft_filtering: bool = False

    def player(self, index: int | None) -> Player | None:
        """Return the player at ``index`` or log and return ``None``."""

        player = self.state.player_at(index)
        if player is None:
            logger.warning("player index %s does not resolve to a player", index)
        return player

    def deal_hand(
        self,
        player_index: int,
        *,
        difficulty: int | None = None,
        hand_size: int | None = None,
    ) -> list[Item | ArmorCombo]:
        """Deal a hand for ``player_index`` against the current run state."""

        state = self.state
        player = self.player(player_index)
        if player is None:
            return []
        return generate_hand(
            player,
            difficulty if difficulty is not None else state.current_diff,
            state.config,
            state.burned_cards,
            state.players,
            state.burn,
            hand_size,
            player.locked_slots,
            self.catalog,
            self.rng,
            self.rules,
            debug=self.debug_draft_filtering,
        )

    def record(self, hook: str, *args: object) -> None:
        """Invoke an analytics hook without letting it affect the rules."""

        if self.analytics is None:
            return
        try:
            getattr(self.analytics, hook)(*args)
        except Exception:  # noqa: BLE001
            logger.exception("analytics hook %s failed", hook)
