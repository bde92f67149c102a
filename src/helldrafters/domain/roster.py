"""Squad membership: connectivity flags and mid-run joins."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from . import draft, sacrifice
from .context import RunContext
from .enums import Phase
from .loadout import create_starting_player
from .models import GameState, ItemID

logger = logging.getLogger(__name__)

_SYNC_IGNORED_PHASES = frozenset({Phase.MENU, Phase.LOBBY})
# Joins wait for the draft to finish; the turn order is fixed for a session.
_JOIN_DEFERRED_PHASES = frozenset({Phase.DRAFT})


@dataclass(slots=True)
class LobbyEntry:
    """One occupied lobby slot as reported by the transport."""

    slot: int
    name: str | None = None
    connected: bool = True
    warbonds: list[str] = field(default_factory=list)
    include_superstore: bool = False
    excluded_items: list[str] = field(default_factory=list)


@dataclass(slots=True)
class RosterChange:
    """What a roster sync did."""

    joined: list[int] = field(default_factory=list)
    reconnected: list[int] = field(default_factory=list)
    disconnected: list[int] = field(default_factory=list)
    deferred: list[int] = field(default_factory=list)
    turn_passed: bool = False
    retrospective_started: bool = False

    @property
    def changed(self) -> bool:
        return bool(
            self.joined
            or self.reconnected
            or self.disconnected
            or self.turn_passed
            or self.retrospective_started
        )


def sync_roster(
    ctx: RunContext, lobby_roster: Sequence[LobbyEntry], *, is_host: bool
) -> RosterChange:
    """Reconcile the squad with the lobby (host only).

    Players whose slot has gone (kicked) or is flagged disconnected are marked
    disconnected and skipped by later drafts; if one of them holds the current
    draft or sacrifice turn, the turn passes on. Connected slots with no player
    get a fresh one (``id = slot + 1``) who owes one catch-up draft per
    difficulty already cleared. Joins arriving mid-draft are reported in
    ``deferred`` and picked up by a later sync. A late joiner arriving on the
    dashboard starts their catch-up drafts straight away.
    """

    state = ctx.state
    change = RosterChange()
    if not is_host or state.phase in _SYNC_IGNORED_PHASES or not state.players:
        return change

    lobby_by_id = {entry.slot + 1: entry for entry in lobby_roster}
    for index, player in enumerate(state.players):
        entry = lobby_by_id.get(int(player.id))
        connected = entry is not None and entry.connected
        if connected == player.connected:
            continue
        (change.reconnected if connected else change.disconnected).append(index)
        logger.info("player %s %s", player.id, "reconnected" if connected else "disconnected")
        player.connected = connected

    if change.disconnected:
        change.turn_passed = _pass_abandoned_turns(ctx, change.disconnected)

    known = {int(player.id) for player in state.players}
    newcomers = [
        entry for entry in lobby_roster if entry.connected and entry.slot + 1 not in known
    ]
    if not newcomers:
        return change
    if state.phase in _JOIN_DEFERRED_PHASES:
        change.deferred = [entry.slot for entry in newcomers]
        logger.info("joins from slots %s wait for the draft to finish", change.deferred)
        return change

    catch_up = max(0, state.current_diff - 1)
    for entry in newcomers:
        player = create_starting_player(
            entry.slot + 1,
            entry.name or f"Helldiver {entry.slot + 1}",
            rules=ctx.rules,
            warbonds=entry.warbonds or None,
            include_superstore=entry.include_superstore,
        )
        player.excluded_items = {ItemID(item_id) for item_id in entry.excluded_items}
        player.catch_up_drafts_remaining = catch_up
        player.needs_retrospective_draft = catch_up > 0
        state.players.append(player)
        logger.info(
            "player %s joined mid-run and owes %d catch-up drafts", player.id, catch_up
        )

    _sort_players(state)
    state.config.player_count = len(state.players)
    joined_ids = {entry.slot + 1 for entry in newcomers}
    change.joined = [
        index for index, player in enumerate(state.players) if int(player.id) in joined_ids
    ]

    if state.phase == Phase.DASHBOARD:
        for index, player in enumerate(state.players):
            if player.needs_retrospective_draft and player.catch_up_drafts_remaining > 0:
                change.retrospective_started = draft.start_retrospective_draft(ctx, index).success
                break
    return change


def _pass_abandoned_turns(ctx: RunContext, disconnected: list[int]) -> bool:
    state = ctx.state
    if state.draft_state is not None and state.draft_state.active_player_index in disconnected:
        return draft.skip_disconnected_player(ctx)
    if (
        state.sacrifice_state is not None
        and state.sacrifice_state.active_player_index in disconnected
    ):
        return sacrifice.skip_disconnected_player(ctx)
    return False


def _sort_players(state: GameState) -> None:
    """Order players by id and rewrite every stored player index to match."""

    before = [int(player.id) for player in state.players]
    state.players.sort(key=lambda member: int(member.id))
    position = {int(player.id): index for index, player in enumerate(state.players)}
    moved = {old: position[player_id] for old, player_id in enumerate(before)}
    if all(old == new for old, new in moved.items()):
        return

    def remap(index: int | None) -> int | None:
        return moved.get(index, index) if index is not None else None

    turn = state.draft_state
    if turn is not None:
        turn.active_player_index = moved.get(turn.active_player_index, turn.active_player_index)
        turn.draft_order = [moved.get(index, index) for index in turn.draft_order]
        turn.retrospective_player_index = remap(turn.retrospective_player_index)
    queue = state.sacrifice_state
    if queue is not None:
        queue.active_player_index = moved.get(queue.active_player_index, queue.active_player_index)
        queue.sacrifices_required = [moved.get(index, index) for index in queue.sacrifices_required]
    event = state.event_state
    if event is not None:
        event.player_choice = remap(event.player_choice)
        if event.pending_booster is not None:
            event.pending_booster.player_index = remap(event.pending_booster.player_index)
