"""Draft director: turn order and sub-round sequencing for draft sessions.

A draft session starts from the dashboard (or after the sacrifice queue
drains), shuffles the connected squad into a ``draft_order`` and deals the
first hand. After every pick or skip :func:`proceed_to_next_draft` evaluates a
fixed, prioritised rule list:

1. retrospective catch-up sessions replay missed difficulties for one player;
2. redraft rounds repeat the turn for the same player, then end the session;
3. extra draft cards repeat the turn for the same player, then fall through;
4. the next connected player in ``draft_order`` takes the turn;
5. otherwise the session completes: history is recorded and the run moves
   on to a catch-up session, a random event, or the dashboard.

Intents that do not come from the active player are ignored (logged only),
so stale or duplicated relay messages cannot corrupt the turn state.
"""

from __future__ import annotations

import logging

from helldrafters.utils.rng import fisher_yates

from . import events
from .context import ActionResult, RunContext
from .enums import ItemType, Phase
from .hand import (
    draw_replacement,
    find_card,
    hand_size_for,
    star_rating_for_difficulty,
)
from .loadout import equip, first_empty_stratagem_slot
from .models import ArmorCombo, DraftHistoryRecord, DraftState, Item
from .phases import transition

logger = logging.getLogger(__name__)

NO_MORE_UNIQUE_CARDS = "no more unique cards available"

DraftResult = ActionResult
start_redraft = events.start_redraft


# --- Session lifecycle ------------------------------------------------------------


def start_draft_phase(ctx: RunContext) -> ActionResult:
    """Open a draft session for every connected player in shuffled order."""

    state = ctx.state
    for player in state.players:
        if player.weapon_restricted:
            if player.saved_stratagems is not None:
                player.loadout.stratagems = list(player.saved_stratagems)
            player.saved_stratagems = None
            player.weapon_restricted = False

    connected = state.connected_indices()
    if not connected:
        logger.warning("no connected players; skipping draft session")
        state.draft_state = None
        transition(state, Phase.DASHBOARD)
        return ActionResult(False, "no connected players")

    order = fisher_yates(ctx.rng, connected)
    state.draft_state = DraftState(
        active_player_index=order[0],
        round_cards=ctx.deal_hand(order[0]),
        draft_order=order,
    )
    transition(state, Phase.DRAFT)
    return ActionResult(True)


def start_retrospective_draft(ctx: RunContext, player_index: int) -> ActionResult:
    """Start the catch-up sessions for a player who joined mid-run."""

    state = ctx.state
    player = ctx.player(player_index)
    if player is None:
        return ActionResult(False, "player not found")
    if not player.needs_retrospective_draft or player.catch_up_drafts_remaining <= 0:
        player.needs_retrospective_draft = False
        return ActionResult(False, "no catch-up drafts owed")

    # Resumes where an interrupted catch-up left off.
    resume_at = player.retrospective_drafts_completed + 1
    state.draft_state = DraftState(
        active_player_index=player_index,
        round_cards=_deal_retrospective(ctx, player_index, resume_at),
        draft_order=[player_index],
        is_retrospective=True,
        retrospective_player_index=player_index,
    )
    logger.info(
        "player %s starts %d catch-up drafts", player.id, player.catch_up_drafts_remaining
    )
    transition(state, Phase.DRAFT)
    return ActionResult(True)


def proceed_to_next_draft(ctx: RunContext) -> None:
    """Advance the session after a pick or skip (see module docstring)."""

    state = ctx.state
    draft = state.draft_state
    if draft is None:
        logger.warning("no draft session to advance; returning to dashboard")
        transition(state, Phase.DASHBOARD)
        return

    draft.pending_stratagem = None
    current = draft.active_player_index

    if draft.is_retrospective:
        _advance_retrospective(ctx, draft)
        return

    player = ctx.player(current)
    if player is None:
        _return_to_dashboard(ctx)
        return

    if player.redraft_rounds > 1:
        player.redraft_rounds -= 1
        draft.is_redrafting = True
        draft.round_cards = ctx.deal_hand(current)
        return
    if player.redraft_rounds:
        player.redraft_rounds = 0
        if player.extra_draft_cards:
            logger.info(
                "player %s keeps %d extra draft cards for a later session",
                player.id,
                player.extra_draft_cards,
            )
        _return_to_dashboard(ctx)
        return

    if player.extra_draft_cards and draft.extra_draft_round < player.extra_draft_cards:
        draft.extra_draft_round += 1
        draft.round_cards = ctx.deal_hand(current)
        return
    if player.extra_draft_cards:
        player.extra_draft_cards = 0

    _pass_turn(ctx, draft)


def skip_disconnected_player(ctx: RunContext) -> bool:
    """Hand the turn on when the active drafter has dropped out.

    A catch-up session is suspended and resumes when the player is back. A
    normal turn passes to the next connected player, or completes the session.
    Returns ``True`` when the turn moved.
    """

    state = ctx.state
    draft = state.draft_state
    if state.phase != Phase.DRAFT or draft is None:
        return False
    player = state.player_at(draft.active_player_index)
    if player is not None and player.connected:
        return False

    draft.pending_stratagem = None
    if draft.is_retrospective:
        logger.info("catch-up drafts for player index %s suspended", draft.active_player_index)
        state.draft_state = None
        if not _start_owed_retrospective(ctx):
            transition(state, Phase.DASHBOARD)
        return True

    logger.info("player index %s left mid-turn; passing the turn", draft.active_player_index)
    _pass_turn(ctx, draft)
    return True


# --- Turn actions -----------------------------------------------------------------


def handle_draft_pick(ctx: RunContext, player_index: int, card_id: str) -> ActionResult:
    """Resolve the active player's pick of ``card_id`` from the current hand."""

    draft = _active_turn(ctx, player_index)
    if draft is None:
        return ActionResult(False, "not this player's turn")
    if draft.pending_stratagem is not None:
        return ActionResult(False, "stratagem replacement pending")
    card = find_card(draft.round_cards, card_id)
    if card is None:
        logger.warning("card %s is not in the current hand", card_id)
        return ActionResult(False, "card not in hand")
    player = ctx.player(player_index)
    if player is None:
        return ActionResult(False, "player not found")

    if isinstance(card, ArmorCombo):
        for item in card.items:
            player.grant(item.id)
        player.loadout.armor = card.representative.id
        ctx.record("record_loadout", int(player.id), card.representative.id, "armor")
    elif card.type == ItemType.STRATAGEM and first_empty_stratagem_slot(player.loadout) is None:
        draft.pending_stratagem = card
        return ActionResult(True, "stratagem replacement required")
    else:
        slot = equip(player, card)
        if slot is not None:
            ctx.record("record_loadout", int(player.id), card.id, slot)

    _burn_hand(ctx, draft)
    proceed_to_next_draft(ctx)
    return ActionResult(True)


def handle_stratagem_replacement(
    ctx: RunContext, player_index: int, slot_index: int
) -> ActionResult:
    """Place the pending stratagem into ``slot_index`` and finish the turn."""

    draft = _active_turn(ctx, player_index)
    if draft is None:
        return ActionResult(False, "not this player's turn")
    pending = draft.pending_stratagem
    if pending is None:
        return ActionResult(False, "no stratagem pending")
    player = ctx.player(player_index)
    if player is None:
        return ActionResult(False, "player not found")
    if not 0 <= slot_index < len(player.loadout.stratagems):
        return ActionResult(False, f"stratagem slot {slot_index} out of range")

    player.grant(pending.id)
    player.loadout.stratagems[slot_index] = pending.id
    draft.pending_stratagem = None
    ctx.record("record_loadout", int(player.id), pending.id, f"stratagem_{slot_index}")

    _burn_hand(ctx, draft)
    proceed_to_next_draft(ctx)
    return ActionResult(True)


def handle_skip(ctx: RunContext, player_index: int) -> ActionResult:
    """Pass on the current hand without taking a card."""

    draft = _active_turn(ctx, player_index)
    if draft is None:
        return ActionResult(False, "not this player's turn")
    _burn_hand(ctx, draft)
    proceed_to_next_draft(ctx)
    return ActionResult(True)


def handle_reroll(ctx: RunContext, player_index: int, cost: int | None = None) -> ActionResult:
    """Spend requisition to replace the whole hand."""

    draft = _active_turn(ctx, player_index)
    if draft is None:
        return ActionResult(False, "not this player's turn")
    if draft.is_retrospective:
        return ActionResult(False, "rerolls are unavailable in catch-up drafts")
    if draft.pending_stratagem is not None:
        return ActionResult(False, "stratagem replacement pending")

    price = ctx.rules.draft.reroll_cost if cost is None else cost
    state = ctx.state
    if state.requisition < price:
        return ActionResult(False, "insufficient requisition")
    state.requisition -= price
    ctx.record("record_requisition", -price, "reroll")
    draft.round_cards = _deal_for_turn(ctx, draft)
    return ActionResult(True)


def handle_remove_card(ctx: RunContext, player_index: int, card_id: str) -> ActionResult:
    """Permanently exclude a card and swap a fresh one into its place.

    The exclusion sticks even when nothing can replace the card.
    """

    draft = _active_turn(ctx, player_index)
    if draft is None:
        return ActionResult(False, "not this player's turn")
    card = find_card(draft.round_cards, card_id)
    if card is None:
        return ActionResult(False, "card not in hand")
    player = ctx.player(player_index)
    if player is None:
        return ActionResult(False, "player not found")

    player.excluded_items.update(card.item_ids)
    state = ctx.state
    replacement = draw_replacement(
        player,
        draft.round_cards,
        _turn_difficulty(ctx, draft),
        state.config,
        state.burned_cards,
        state.players,
        player.locked_slots,
        ctx.catalog,
        ctx.rng,
        ctx.rules,
    )
    if replacement is None:
        logger.info("no replacement card for player %s", player.id)
        return ActionResult(False, NO_MORE_UNIQUE_CARDS)

    if state.config.burn_cards:
        for item_id in replacement.item_ids:
            state.burn(item_id)
    position = draft.round_cards.index(card)
    draft.round_cards[position] = replacement
    return ActionResult(True)


def lock_slot(ctx: RunContext, player_index: int, slot_type: ItemType) -> ActionResult:
    """Spend requisition to stop ``slot_type`` from appearing in a player's hands."""

    state = ctx.state
    player = ctx.player(player_index)
    if player is None:
        return ActionResult(False, "player not found")
    if slot_type in player.locked_slots:
        return ActionResult(False, "slot already locked")
    if len(player.locked_slots) >= ctx.rules.draft.max_locked_slots:
        return ActionResult(False, "locked slot limit reached")
    cost = ctx.rules.draft.lock_cost(state.config.player_count)
    if state.requisition < cost:
        return ActionResult(False, "insufficient requisition")

    state.requisition -= cost
    ctx.record("record_requisition", -cost, "lock_slot")
    player.locked_slots.append(slot_type)
    _regenerate_if_active(ctx, player_index)
    return ActionResult(True)


def unlock_slot(ctx: RunContext, player_index: int, slot_type: ItemType) -> ActionResult:
    player = ctx.player(player_index)
    if player is None:
        return ActionResult(False, "player not found")
    if slot_type not in player.locked_slots:
        return ActionResult(False, "slot not locked")
    player.locked_slots.remove(slot_type)
    _regenerate_if_active(ctx, player_index)
    return ActionResult(True)


# --- Helpers ----------------------------------------------------------------------


def _active_turn(ctx: RunContext, player_index: int) -> DraftState | None:
    state = ctx.state
    draft = state.draft_state
    if state.phase != Phase.DRAFT or draft is None:
        logger.warning("draft intent from player %s ignored: no draft in progress", player_index)
        return None
    if player_index != draft.active_player_index:
        logger.warning(
            "draft intent from player %s ignored: player %s is active",
            player_index,
            draft.active_player_index,
        )
        return None
    return draft


def _turn_difficulty(ctx: RunContext, draft: DraftState) -> int:
    if draft.is_retrospective:
        player = ctx.state.player_at(draft.active_player_index)
        completed = player.retrospective_drafts_completed if player is not None else 0
        return completed + 1
    return ctx.state.current_diff


def _deal_for_turn(ctx: RunContext, draft: DraftState) -> list[Item | ArmorCombo]:
    if draft.is_retrospective:
        return _deal_retrospective(ctx, draft.active_player_index, _turn_difficulty(ctx, draft))
    return ctx.deal_hand(draft.active_player_index)


def _deal_retrospective(
    ctx: RunContext, player_index: int, difficulty: int
) -> list[Item | ArmorCombo]:
    stars = star_rating_for_difficulty(difficulty, ctx.rules)
    return ctx.deal_hand(player_index, difficulty=difficulty, hand_size=hand_size_for(stars))


def _regenerate_if_active(ctx: RunContext, player_index: int) -> None:
    state = ctx.state
    draft = state.draft_state
    if state.phase != Phase.DRAFT or draft is None:
        return
    if draft.active_player_index != player_index or draft.pending_stratagem is not None:
        return
    draft.round_cards = _deal_for_turn(ctx, draft)


def _burn_hand(ctx: RunContext, draft: DraftState) -> None:
    state = ctx.state
    if not state.config.burn_cards:
        return
    for card in draft.round_cards:
        for item_id in card.item_ids:
            state.burn(item_id)


def _next_connected(ctx: RunContext, draft: DraftState) -> int | None:
    try:
        position = draft.draft_order.index(draft.active_player_index)
    except ValueError:
        logger.warning(
            "active player %s missing from draft order %s",
            draft.active_player_index,
            draft.draft_order,
        )
        return None
    for candidate in draft.draft_order[position + 1 :]:
        player = ctx.state.player_at(candidate)
        if player is not None and player.connected:
            return candidate
    return None


def _pass_turn(ctx: RunContext, draft: DraftState) -> None:
    next_index = _next_connected(ctx, draft)
    if next_index is not None:
        draft.active_player_index = next_index
        draft.extra_draft_round = 0
        draft.round_cards = ctx.deal_hand(next_index)
        return
    _complete_session(ctx, draft)


def _advance_retrospective(ctx: RunContext, draft: DraftState) -> None:
    index = draft.retrospective_player_index
    if index is None:
        index = draft.active_player_index
    player = ctx.player(index)
    if player is None:
        _return_to_dashboard(ctx)
        return

    completed = player.retrospective_drafts_completed + 1
    player.retrospective_drafts_completed = completed
    if completed < player.catch_up_drafts_remaining:
        draft.round_cards = _deal_retrospective(ctx, index, completed + 1)
        return

    logger.info("player %s finished %d catch-up drafts", player.id, completed)
    player.needs_retrospective_draft = False
    player.catch_up_drafts_remaining = 0
    player.retrospective_drafts_completed = 0
    ctx.state.draft_state = None
    if not _start_owed_retrospective(ctx):
        transition(ctx.state, Phase.DASHBOARD)


def _complete_session(ctx: RunContext, draft: DraftState) -> None:
    state = ctx.state
    if not draft.is_retrospective:
        record = DraftHistoryRecord(
            difficulty=state.current_diff, star_rating=state.config.star_rating
        )
        state.draft_history.append(record)
        for player in state.players:
            ctx.record("record_draft", int(player.id), record.difficulty, record.star_rating)
    state.draft_state = None

    if _start_owed_retrospective(ctx) or events.try_trigger(ctx):
        return
    transition(state, Phase.DASHBOARD)


def _start_owed_retrospective(ctx: RunContext) -> bool:
    for index, player in enumerate(ctx.state.players):
        if player.connected and player.needs_retrospective_draft:
            if start_retrospective_draft(ctx, index).success:
                return True
    return False


def _return_to_dashboard(ctx: RunContext) -> None:
    ctx.state.draft_state = None
    transition(ctx.state, Phase.DASHBOARD)
