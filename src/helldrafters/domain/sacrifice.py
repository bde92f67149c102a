"""Sacrifice sub-flow after a failed extraction.

Each queued player gives up one equipped item. Slots with a default fall back
to it (the default is granted back to the inventory), the others empty out.
Default items themselves can never be sacrificed.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .context import ActionResult, RunContext
from .draft import start_draft_phase
from .enums import Phase
from .models import GameConfig, ItemID, Player, SacrificeState
from .phases import transition
from .rules_config import DEFAULT_RULES, RulesConfig

logger = logging.getLogger(__name__)


def required_sacrifices(players: Sequence[Player], config: GameConfig) -> list[int]:
    """Return the player indices owing a sacrifice after a mission.

    Brutality mode punishes every player left behind; otherwise the squad only
    pays when nobody made it out. Disconnected players are never queued.
    """

    present = [(index, player) for index, player in enumerate(players) if player.connected]
    if config.brutality_mode:
        return [index for index, player in present if not player.extracted]
    if present and not any(player.extracted for _, player in present):
        return [index for index, _ in present]
    return []


def sacrificable_items(player: Player, rules: RulesConfig = DEFAULT_RULES) -> list[ItemID]:
    """Equipped items the player may give up, in slot order."""

    gear = rules.loadout
    defaults = {
        "secondary": gear.starting_secondary,
        "grenade": gear.starting_grenade,
        "armor": gear.starting_armor,
    }
    loadout = player.loadout
    candidates: list[ItemID] = []
    for slot in ("primary", "secondary", "grenade", "armor", "booster"):
        item_id = getattr(loadout, slot)
        if item_id is None or item_id in gear.protected_items:
            continue
        if defaults.get(slot) == item_id:
            continue
        candidates.append(item_id)
    for item_id in loadout.stratagems:
        if item_id is not None and item_id not in candidates:
            candidates.append(item_id)
    return candidates


def start_sacrifice(ctx: RunContext, required: list[int]) -> ActionResult:
    """Queue ``required`` and enter the SACRIFICE phase.

    Queued players with nothing left to give are skipped; when nobody can pay
    the draft opens straight away.
    """

    if not required:
        return ActionResult(False, "no sacrifices owed")
    state = ctx.state
    sacrifice = SacrificeState(
        active_player_index=required[0], sacrifices_required=list(required)
    )
    state.sacrifice_state = sacrifice
    logger.info("players %s owe a sacrifice", required)
    if not transition(state, Phase.SACRIFICE):
        state.sacrifice_state = None
        return ActionResult(False, f"cannot sacrifice from phase {state.phase}")
    if not _can_sacrifice(ctx, required[0]):
        logger.info("player index %s has nothing to sacrifice or is away; skipped", required[0])
        return _advance_queue(ctx, sacrifice, 0)
    return ActionResult(True)


def handle_sacrifice(ctx: RunContext, player_index: int, item_id: str) -> ActionResult:
    """Remove ``item_id`` from the active player's gear and advance the queue."""

    state = ctx.state
    sacrifice = state.sacrifice_state
    if state.phase != Phase.SACRIFICE or sacrifice is None:
        logger.warning("sacrifice from player %s ignored: no sacrifice in progress", player_index)
        return ActionResult(False, "no sacrifice in progress")
    if player_index != sacrifice.active_player_index:
        logger.warning(
            "sacrifice from player %s ignored: player %s is active",
            player_index,
            sacrifice.active_player_index,
        )
        return ActionResult(False, "not this player's turn")
    player = ctx.player(player_index)
    if player is None:
        return ActionResult(False, "player not found")
    if not player.owns(item_id):
        return ActionResult(False, f"player does not own {item_id}")
    if item_id not in sacrificable_items(player, ctx.rules):
        logger.info("player %s tried to sacrifice protected item %s", player.id, item_id)
        return ActionResult(False, f"{item_id} cannot be sacrificed")

    _remove_item(player, ItemID(item_id), ctx.rules)
    logger.info("player %s sacrificed %s", player.id, item_id)

    return _advance_queue(ctx, sacrifice, _queue_position(sacrifice))


def skip_disconnected_player(ctx: RunContext) -> bool:
    """Move the queue on when the active player has dropped out."""

    state = ctx.state
    sacrifice = state.sacrifice_state
    if state.phase != Phase.SACRIFICE or sacrifice is None:
        return False
    player = state.player_at(sacrifice.active_player_index)
    if player is not None and player.connected:
        return False
    logger.info("player index %s left before sacrificing", sacrifice.active_player_index)
    _advance_queue(ctx, sacrifice, _queue_position(sacrifice))
    return True


def _can_sacrifice(ctx: RunContext, player_index: int) -> bool:
    player = ctx.state.player_at(player_index)
    return (
        player is not None
        and player.connected
        and bool(sacrificable_items(player, ctx.rules))
    )


def _queue_position(sacrifice: SacrificeState) -> int:
    queue = sacrifice.sacrifices_required
    if sacrifice.active_player_index in queue:
        return queue.index(sacrifice.active_player_index)
    return len(queue) - 1


def _advance_queue(ctx: RunContext, sacrifice: SacrificeState, position: int) -> ActionResult:
    """Activate the next queued player after ``position`` who can pay, else draft."""

    state = ctx.state
    for candidate in sacrifice.sacrifices_required[position + 1 :]:
        if _can_sacrifice(ctx, candidate):
            sacrifice.active_player_index = candidate
            return ActionResult(True)
        logger.info("player index %s has nothing to sacrifice or is away; skipped", candidate)

    state.sacrifice_state = None
    for member in state.players:
        member.extracted = True
    start_draft_phase(ctx)
    return ActionResult(True)


def _remove_item(player: Player, item_id: ItemID, rules: RulesConfig) -> None:
    gear = rules.loadout
    if item_id in player.inventory:
        player.inventory.remove(item_id)

    loadout = player.loadout
    fallbacks = {
        "secondary": gear.starting_secondary,
        "grenade": gear.starting_grenade,
        "armor": gear.starting_armor,
    }
    for slot in ("primary", "secondary", "grenade", "armor", "booster"):
        if getattr(loadout, slot) != item_id:
            continue
        fallback = fallbacks.get(slot)
        setattr(loadout, slot, ItemID(fallback) if fallback is not None else None)
        if fallback is not None:
            player.grant(ItemID(fallback))
    loadout.stratagems = [None if slot == item_id else slot for slot in loadout.stratagems]
