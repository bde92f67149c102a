"""Random event triggering and outcome resolution.

Events roll after a completed draft session (or an intermediate endurance
mission). The chance grows with the samples collected since the last event,
and every event id is shown at most once per run. Outcomes are applied through
a handler registry; an outcome that needs a further decision (the booster
pick) parks a :class:`~helldrafters.domain.models.PendingBoosterChoice` in the
event state instead of closing the event.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass

from helldrafters.utils.rng import random_sample, weighted_index

from .context import ActionResult, RunContext
from .enums import ItemType, OutcomeType, Phase, TargetPlayer
from .loadout import reset_to_starting_gear
from .models import (
    DraftState,
    EventOutcome,
    EventState,
    GameEvent,
    ItemID,
    PendingBoosterChoice,
    Samples,
)
from .phases import transition
from .rules_config import DEFAULT_RULES, RulesConfig

logger = logging.getLogger(__name__)

AWAIT_BOOSTER = "await_booster"
REDRAFT_STARTED = "redraft_started"


@dataclass(slots=True)
class EventSelection:
    """Player selections made while an event is on screen."""

    target_player: int | None = None


OutcomeHandler = Callable[[RunContext, EventOutcome, EventSelection], str | None]


def event_chance(samples: Samples, rules: RulesConfig = DEFAULT_RULES) -> float:
    """Return the probability that an event triggers for the collected samples."""

    weights = rules.events
    chance = (
        samples.common * weights.common_sample_chance
        + samples.rare * weights.rare_sample_chance
        + samples.super_rare * weights.super_rare_sample_chance
    )
    return min(1.0, chance)


def eligible_events(
    events: list[GameEvent], difficulty: int, is_multiplayer: bool, seen: list[str]
) -> list[GameEvent]:
    seen_ids = set(seen)
    return [
        event
        for event in events
        if event.min_difficulty <= difficulty <= event.max_difficulty
        and (is_multiplayer or not event.requires_multiplayer)
        and event.id not in seen_ids
    ]


def try_trigger(ctx: RunContext) -> bool:
    """Roll for a random event and enter the EVENT phase on success."""

    state = ctx.state
    if not state.events_enabled:
        return False

    chance = event_chance(state.samples, ctx.rules)
    if chance <= 0 or ctx.rng.random() >= chance:
        return False

    candidates = eligible_events(
        ctx.catalog.events, state.current_diff, len(state.players) > 1, state.seen_events
    )
    if not candidates:
        logger.info(
            "event roll succeeded but no event is eligible at difficulty %d", state.current_diff
        )
        return False

    index = weighted_index(ctx.rng, [event.weight for event in candidates])
    event = candidates[index] if index is not None else candidates[-1]

    state.samples = Samples()
    state.seen_events.append(event.id)
    state.event_state = EventState(event_id=event.id)
    logger.info("event %s triggered (chance %.2f)", event.id, chance)
    return transition(state, Phase.EVENT)


def select_event_player(ctx: RunContext, player_index: int) -> ActionResult:
    """Record which player an event's ``choose`` outcomes apply to."""

    state = ctx.state
    if state.phase != Phase.EVENT or state.event_state is None:
        return ActionResult(False, "no event in progress")
    if ctx.player(player_index) is None:
        return ActionResult(False, "player not found")
    state.event_state.player_choice = player_index
    return ActionResult(True)


def resolve_event_choice(
    ctx: RunContext, choice_index: int, selection: EventSelection | None = None
) -> ActionResult:
    """Apply every outcome of the chosen option in order.

    The choice's requisition cost is spent first. The event closes and the
    run returns to the dashboard unless an outcome awaits a booster pick or
    has started a redraft.
    """

    state = ctx.state
    if state.phase != Phase.EVENT or state.event_state is None:
        return ActionResult(False, "no event in progress")
    if state.event_state.pending_booster is not None:
        return ActionResult(False, "awaiting booster selection")

    event = ctx.catalog.get_event(state.event_state.event_id)
    if event is None:
        logger.warning("event %s missing from catalog; closing", state.event_state.event_id)
        close_event(ctx)
        return ActionResult(False, "unknown event")

    choices = event.resolved_choices()
    if not 0 <= choice_index < len(choices):
        return ActionResult(False, f"choice {choice_index} out of range")
    choice = choices[choice_index]

    if choice.requires_requisition > state.requisition:
        return ActionResult(False, "insufficient requisition")
    if choice.requires_requisition:
        state.requisition -= choice.requires_requisition
        ctx.record("record_requisition", -choice.requires_requisition, "event")

    selection = selection or EventSelection()
    follow_ups: set[str] = set()
    for outcome in choice.outcomes:
        handler = _OUTCOME_HANDLERS.get(outcome.type)
        if handler is None:
            logger.warning("unsupported outcome type %s in event %s", outcome.type, event.id)
            continue
        follow_up = handler(ctx, outcome, selection)
        if follow_up is not None:
            follow_ups.add(follow_up)

    if REDRAFT_STARTED in follow_ups:
        return ActionResult(True, "redraft started")
    if AWAIT_BOOSTER in follow_ups:
        return ActionResult(True, "awaiting booster selection")
    close_event(ctx)
    return ActionResult(True)


def resolve_booster_choice(ctx: RunContext, booster_id: str) -> ActionResult:
    """Apply the booster picked from a pending booster choice and close the event."""

    state = ctx.state
    event_state = state.event_state
    if state.phase != Phase.EVENT or event_state is None or event_state.pending_booster is None:
        return ActionResult(False, "no booster choice pending")
    pending = event_state.pending_booster
    if booster_id not in pending.options:
        return ActionResult(False, f"booster {booster_id} was not offered")

    if pending.player_index is not None:
        targets = [pending.player_index]
    else:
        targets = list(range(len(state.players)))
    for index in targets:
        player = ctx.player(index)
        if player is None:
            continue
        player.loadout.booster = ItemID(booster_id)
        player.grant(ItemID(booster_id))
        ctx.record("record_loadout", int(player.id), booster_id, "booster")

    close_event(ctx)
    return ActionResult(True)


def skip_event(ctx: RunContext) -> ActionResult:
    if ctx.state.phase != Phase.EVENT:
        return ActionResult(False, "no event in progress")
    close_event(ctx)
    return ActionResult(True)


def close_event(ctx: RunContext) -> None:
    ctx.state.event_state = None
    transition(ctx.state, Phase.DASHBOARD)


def start_redraft(ctx: RunContext, player_index: int, items_per_round: int) -> bool:
    """Liquidate a player's gear and open a single-player redraft session.

    Every non-starting equipped item is liquidated. The player redrafts one
    round per ``items_per_round`` liquidated items and receives bonus
    requisition for the inventory they give up. Their booster survives.
    """

    state = ctx.state
    player = ctx.player(player_index)
    if player is None:
        return False

    starting = set(ctx.rules.loadout.starting_items)
    liquidated = [item_id for item_id in player.loadout.equipped_ids() if item_id not in starting]
    if player.loadout.booster in liquidated:
        liquidated.remove(player.loadout.booster)
    if not liquidated:
        logger.info("player %s has nothing to liquidate; redraft skipped", player.id)
        return False

    per_round = max(1, items_per_round)
    rounds = math.ceil(len(liquidated) / per_round)
    bonus = math.ceil(len(player.inventory) / per_round)

    reset_to_starting_gear(player, ctx.rules)
    player.redraft_rounds = rounds
    state.requisition += bonus
    ctx.record("record_requisition", bonus, "redraft")
    logger.info(
        "player %s liquidated %d items; %d redraft rounds", player.id, len(liquidated), rounds
    )

    state.event_state = None
    state.draft_state = DraftState(
        active_player_index=player_index,
        round_cards=ctx.deal_hand(player_index),
        draft_order=[player_index],
        is_redrafting=True,
    )
    return transition(state, Phase.DRAFT)


def available_boosters(ctx: RunContext) -> list[ItemID]:
    """Boosters nobody has equipped (and, in burn mode, not yet burned)."""

    state = ctx.state
    equipped = {player.loadout.booster for player in state.players}
    boosters = [
        item.id for item in ctx.catalog.of_type(ItemType.BOOSTER) if item.id not in equipped
    ]
    if state.config.burn_cards:
        boosters = [booster for booster in boosters if booster not in state.burned_cards]
    return boosters


# --- Outcome handlers -------------------------------------------------------------


def _target_index(
    ctx: RunContext, outcome: EventOutcome, selection: EventSelection
) -> int | None:
    state = ctx.state
    if outcome.target_player == TargetPlayer.CHOOSE and selection.target_player is not None:
        return selection.target_player
    if state.event_state is not None and state.event_state.player_choice is not None:
        return state.event_state.player_choice
    if len(state.players) == 1:
        return 0
    return None


def _add_requisition(ctx: RunContext, outcome: EventOutcome, selection: EventSelection) -> None:
    config = ctx.state.config
    multiplier = ctx.rules.requisition_multiplier(config.player_count, config.subfaction)
    amount = outcome.value * multiplier
    ctx.state.requisition += amount
    ctx.record("record_requisition", amount, "event")


def _spend_requisition(ctx: RunContext, outcome: EventOutcome, selection: EventSelection) -> None:
    before = ctx.state.requisition
    ctx.state.requisition = max(0.0, before - outcome.value)
    ctx.record("record_requisition", ctx.state.requisition - before, "event")


def _extra_draft(ctx: RunContext, outcome: EventOutcome, selection: EventSelection) -> None:
    player = ctx.player(_target_index(ctx, outcome, selection))
    if player is not None:
        player.extra_draft_cards += outcome.value


def _skip_difficulty(ctx: RunContext, outcome: EventOutcome, selection: EventSelection) -> None:
    state = ctx.state
    state.current_diff = min(ctx.rules.economy.max_difficulty, state.current_diff + outcome.value)


def _replay_difficulty(ctx: RunContext, outcome: EventOutcome, selection: EventSelection) -> None:
    state = ctx.state
    state.current_diff = max(ctx.rules.economy.min_difficulty, state.current_diff - outcome.value)


def _sacrifice_stratagem(ctx: RunContext, outcome: EventOutcome, selection: EventSelection) -> None:
    player = ctx.player(_target_index(ctx, outcome, selection))
    if player is None:
        return
    stratagems = player.loadout.stratagems
    for slot in range(len(stratagems) - 1, -1, -1):
        item_id = stratagems[slot]
        if item_id is not None:
            stratagems[slot] = None
            if item_id in player.inventory:
                player.inventory.remove(item_id)
            return


def _gain_booster(ctx: RunContext, outcome: EventOutcome, selection: EventSelection) -> str | None:
    state = ctx.state
    boosters = available_boosters(ctx)
    if not boosters or not state.players:
        logger.info("no boosters available for event outcome")
        return None

    if outcome.target_player == TargetPlayer.RANDOM:
        without = [i for i, player in enumerate(state.players) if player.loadout.booster is None]
        candidates = without or list(range(len(state.players)))
        index = candidates[int(ctx.rng.random() * len(candidates))]
        booster = boosters[int(ctx.rng.random() * len(boosters))]
        player = state.players[index]
        player.loadout.booster = booster
        player.grant(booster)
        if state.config.burn_cards:
            state.burn(booster)
        return None

    options = random_sample(ctx.rng, boosters, ctx.rules.events.booster_choice_count)
    if state.config.burn_cards:
        for booster in options:
            state.burn(booster)
    target_index = None
    if outcome.target_player == TargetPlayer.CHOOSE:
        target_index = _target_index(ctx, outcome, selection)
    if state.event_state is None:
        return None
    state.event_state.pending_booster = PendingBoosterChoice(
        options=options, target_player=outcome.target_player, player_index=target_index
    )
    return AWAIT_BOOSTER


def _restrict_to_single_weapon(
    ctx: RunContext, outcome: EventOutcome, selection: EventSelection
) -> None:
    index = selection.target_player
    if index is None and outcome.target_player == TargetPlayer.CHOOSE:
        index = _target_index(ctx, outcome, selection)
    player = ctx.player(index)
    if player is None:
        return
    loadout = player.loadout
    player.saved_stratagems = list(loadout.stratagems)
    loadout.stratagems = [None] * len(loadout.stratagems)
    if loadout.primary is not None:
        loadout.secondary = None
    player.weapon_restricted = True


def _redraft(ctx: RunContext, outcome: EventOutcome, selection: EventSelection) -> str | None:
    index = _target_index(ctx, outcome, selection)
    if index is None:
        logger.warning("redraft outcome without a chosen player")
        return None
    if start_redraft(ctx, index, outcome.value or 1):
        return REDRAFT_STARTED
    return None


_OUTCOME_HANDLERS: dict[OutcomeType, OutcomeHandler] = {
    OutcomeType.ADD_REQUISITION: _add_requisition,
    OutcomeType.SPEND_REQUISITION: _spend_requisition,
    OutcomeType.LOSE_REQUISITION: _spend_requisition,
    OutcomeType.EXTRA_DRAFT: _extra_draft,
    OutcomeType.SKIP_DIFFICULTY: _skip_difficulty,
    OutcomeType.REPLAY_DIFFICULTY: _replay_difficulty,
    OutcomeType.SACRIFICE_ITEM: _sacrifice_stratagem,
    OutcomeType.GAIN_BOOSTER: _gain_booster,
    OutcomeType.RESTRICT_TO_SINGLE_WEAPON: _restrict_to_single_weapon,
    OutcomeType.REDRAFT: _redraft,
}
