"""Top-level phase state machine."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from .enums import Phase
from .loadout import create_starting_player
from .models import GameConfig, GameState, Loadout
from .rules_config import DEFAULT_RULES, RulesConfig

logger = logging.getLogger(__name__)

_ALWAYS_ALLOWED = frozenset({Phase.MENU, Phase.KICKED})

TRANSITIONS: dict[Phase, frozenset[Phase]] = {
    Phase.MENU: frozenset({Phase.SOLO_CONFIG, Phase.LOBBY}),
    Phase.SOLO_CONFIG: frozenset({Phase.CUSTOM_SETUP, Phase.DASHBOARD}),
    Phase.LOBBY: frozenset({Phase.CUSTOM_SETUP, Phase.DASHBOARD}),
    Phase.CUSTOM_SETUP: frozenset({Phase.DASHBOARD}),
    Phase.DASHBOARD: frozenset(
        {Phase.DRAFT, Phase.EVENT, Phase.SACRIFICE, Phase.VICTORY, Phase.GAMEOVER}
    ),
    Phase.DRAFT: frozenset({Phase.DASHBOARD, Phase.EVENT}),
    Phase.EVENT: frozenset({Phase.DASHBOARD, Phase.DRAFT}),
    Phase.SACRIFICE: frozenset({Phase.DRAFT, Phase.DASHBOARD}),
    Phase.VICTORY: frozenset(),
    Phase.GAMEOVER: frozenset(),
    Phase.KICKED: frozenset(),
}

_SUBSYSTEMS: dict[Phase, str] = {
    Phase.DASHBOARD: "mission",
    Phase.DRAFT: "draft",
    Phase.EVENT: "events",
    Phase.SACRIFICE: "sacrifice",
    Phase.CUSTOM_SETUP: "setup",
}

_SETUP_PHASES = frozenset({Phase.SOLO_CONFIG, Phase.LOBBY, Phase.CUSTOM_SETUP})


def can_transition(current: Phase, target: Phase) -> bool:
    if current == target or target in _ALWAYS_ALLOWED:
        return True
    return target in TRANSITIONS.get(current, frozenset())


def transition(state: GameState, target: Phase) -> bool:
    """Move ``state`` into ``target`` if the edge is allowed.

    Refused transitions are logged and leave the state untouched.
    """

    if not can_transition(state.phase, target):
        logger.warning("refusing phase transition %s -> %s", state.phase, target)
        return False
    if state.phase != target:
        logger.debug("phase %s -> %s", state.phase, target)
    state.phase = target
    return True


def active_subsystem(phase: Phase) -> str | None:
    """Name the sub-system that accepts input in ``phase``, if any."""

    return _SUBSYSTEMS.get(phase)


def start_game(
    state: GameState,
    config: GameConfig,
    player_names: Sequence[str],
    *,
    rules: RulesConfig = DEFAULT_RULES,
    start_difficulty: int = 1,
    loadouts: Sequence[Loadout] | None = None,
    warbonds: Sequence[Sequence[str]] | None = None,
) -> bool:
    """Create the squad and enter the dashboard.

    A custom start may begin at a later difficulty with hand-picked loadouts;
    equipped items are added to each player's inventory.
    """

    if state.phase not in _SETUP_PHASES:
        logger.warning("cannot start a game from phase %s", state.phase)
        return False
    if not player_names:
        logger.warning("cannot start a game without players")
        return False

    economy = rules.economy
    difficulty = max(economy.min_difficulty, min(start_difficulty, economy.max_difficulty))
    config.player_count = len(player_names)
    players = []
    for index, name in enumerate(player_names):
        player = create_starting_player(
            index + 1,
            name,
            rules=rules,
            warbonds=warbonds[index] if warbonds and index < len(warbonds) else None,
        )
        if loadouts is not None and index < len(loadouts):
            player.loadout = loadouts[index]
            for item_id in loadouts[index].equipped_ids():
                player.grant(item_id)
        players.append(player)

    custom: dict[str, Any] | None = None
    if config.custom_start:
        custom = {"difficulty": difficulty, "custom_loadouts": loadouts is not None}

    state.config = config
    state.players = players
    state.current_diff = difficulty
    state.current_mission = 1
    state.requisition = 0.0
    state.draft_state = None
    state.sacrifice_state = None
    state.event_state = None
    state.custom_setup = custom
    return transition(state, Phase.DASHBOARD)
