"""Host-authoritative game sessions.

A :class:`GameSession` owns one :class:`~helldrafters.domain.models.GameState`.

* ``solo`` and ``host`` sessions apply intents to their state synchronously,
  through one dispatch table keyed by :class:`~helldrafters.relay.intents.ActionType`.
  After every accepted mutation the version is bumped and the host publishes a
  full snapshot.
* ``client`` sessions never mutate their state directly: they forward intents
  to the host and replace their whole state with each newer snapshot.

The rules re-validate turn ownership, so stale intents are rejected as no-ops
rather than corrupting the run. Intents carrying an ``intent_id`` are applied
at most once, so a redelivered reroll or slot lock is not paid for twice.
"""

from __future__ import annotations

import logging
import random
import uuid
from collections import deque
from collections.abc import Callable, Sequence
from enum import StrEnum
from typing import Any

from pydantic import ValidationError

from helldrafters.domain import draft, events, mission, phases, roster, sacrifice
from helldrafters.domain.catalog import Catalog
from helldrafters.domain.context import ActionResult, RunContext
from helldrafters.domain.enums import Phase
from helldrafters.domain.models import GameConfig, GameState, Loadout, Samples
from helldrafters.domain.rules_config import DEFAULT_RULES, RulesConfig
from helldrafters.interfaces.analytics import AnalyticsRecorder
from helldrafters.interfaces.relay import RelayChannel
from helldrafters.savegame import SnapshotError, deserialize_state, serialize_state
from helldrafters.utils.rng import make_rng

from .intents import ActionType, Intent, is_client_allowed

logger = logging.getLogger(__name__)

IntentRule = Callable[[RunContext, Intent], ActionResult]
ChangeListener = Callable[["GameSession"], None]

_REMEMBERED_INTENTS = 256


class SessionRole(StrEnum):
    """How a session participates in a run."""

    SOLO = "solo"
    HOST = "host"
    CLIENT = "client"


def _draft_pick(ctx: RunContext, intent: Intent) -> ActionResult:
    return draft.handle_draft_pick(ctx, intent.player_index, intent.card_id or "")


def _draft_reroll(ctx: RunContext, intent: Intent) -> ActionResult:
    return draft.handle_reroll(ctx, intent.player_index, intent.cost)


def _skip_draft(ctx: RunContext, intent: Intent) -> ActionResult:
    return draft.handle_skip(ctx, intent.player_index)


def _remove_card(ctx: RunContext, intent: Intent) -> ActionResult:
    return draft.handle_remove_card(ctx, intent.player_index, intent.card_id or "")


def _lock_slot(ctx: RunContext, intent: Intent) -> ActionResult:
    if intent.slot_type is None:
        return ActionResult(False, "slot type required")
    return draft.lock_slot(ctx, intent.player_index, intent.slot_type)


def _unlock_slot(ctx: RunContext, intent: Intent) -> ActionResult:
    if intent.slot_type is None:
        return ActionResult(False, "slot type required")
    return draft.unlock_slot(ctx, intent.player_index, intent.slot_type)


def _stratagem_replacement(ctx: RunContext, intent: Intent) -> ActionResult:
    if intent.slot_index is None:
        return ActionResult(False, "slot index required")
    return draft.handle_stratagem_replacement(ctx, intent.player_index, intent.slot_index)


def _sacrifice_item(ctx: RunContext, intent: Intent) -> ActionResult:
    return sacrifice.handle_sacrifice(ctx, intent.player_index, intent.item_id or "")


def _set_extracted(ctx: RunContext, intent: Intent) -> ActionResult:
    return mission.set_player_extracted(ctx, intent.player_index, bool(intent.extracted))


def _set_event_player(ctx: RunContext, intent: Intent) -> ActionResult:
    if intent.target_player is None:
        return ActionResult(False, "target player required")
    return events.select_event_player(ctx, intent.target_player)


def _resolve_event_choice(ctx: RunContext, intent: Intent) -> ActionResult:
    if intent.choice_index is None:
        return ActionResult(False, "choice index required")
    selection = events.EventSelection(target_player=intent.target_player)
    return events.resolve_event_choice(ctx, intent.choice_index, selection)


def _select_booster(ctx: RunContext, intent: Intent) -> ActionResult:
    return events.resolve_booster_choice(ctx, intent.booster_id or "")


def _skip_event(ctx: RunContext, intent: Intent) -> ActionResult:
    return events.skip_event(ctx)


def _complete_mission(ctx: RunContext, intent: Intent) -> ActionResult:
    samples = None
    if intent.samples is not None:
        samples = Samples(
            common=intent.samples.common,
            rare=intent.samples.rare,
            super_rare=intent.samples.super_rare,
        )
    return mission.complete_mission(ctx, bool(intent.success), samples)


INTENT_RULES: dict[ActionType, IntentRule] = {
    ActionType.DRAFT_PICK: _draft_pick,
    ActionType.DRAFT_REROLL: _draft_reroll,
    ActionType.SKIP_DRAFT: _skip_draft,
    ActionType.REMOVE_CARD: _remove_card,
    ActionType.LOCK_PLAYER_DRAFT_SLOT: _lock_slot,
    ActionType.UNLOCK_PLAYER_DRAFT_SLOT: _unlock_slot,
    ActionType.STRATAGEM_REPLACEMENT: _stratagem_replacement,
    ActionType.SACRIFICE_ITEM: _sacrifice_item,
    ActionType.SET_PLAYER_EXTRACTED: _set_extracted,
    ActionType.SET_EVENT_PLAYER_CHOICE: _set_event_player,
    ActionType.RESOLVE_EVENT_CHOICE: _resolve_event_choice,
    ActionType.SELECT_EVENT_BOOSTER: _select_booster,
    ActionType.SKIP_EVENT: _skip_event,
    ActionType.COMPLETE_MISSION: _complete_mission,
}


class GameSession:
    """One participant's view of a run, wired to an optional relay channel."""

    def __init__(
        self,
        session_id: str,
        role: SessionRole,
        *,
        catalog: Catalog,
        rules: RulesConfig = DEFAULT_RULES,
        channel: RelayChannel | None = None,
        rng: random.Random | None = None,
        analytics: AnalyticsRecorder | None = None,
        state: GameState | None = None,
        local_slot: int = 0,
        on_change: ChangeListener | None = None,
        debug_draft_filtering: bool = False,
    ) -> None:
        if role != SessionRole.SOLO and channel is None:
            raise ValueError(f"{role} sessions need a relay channel")
        self.session_id = session_id
        self.role = role
        self.channel = channel
        self.local_slot = local_slot
        self.on_change = on_change
        self._applied_intents: deque[str] = deque(maxlen=_REMEMBERED_INTENTS)
        self._deferred_lobby: list[roster.LobbyEntry] | None = None
        self.ctx = RunContext(
            state=state or GameState(),
            catalog=catalog,
            rng=rng or make_rng(),
            rules=rules,
            analytics=analytics,
            debug_draft_filtering=debug_draft_filtering,
        )
        if role == SessionRole.HOST and channel is not None:
            channel.on_intent(self._receive_intent)
        elif role == SessionRole.CLIENT and channel is not None:
            channel.subscribe_state(self._receive_snapshot)

    @property
    def state(self) -> GameState:
        return self.ctx.state

    @property
    def is_authoritative(self) -> bool:
        return self.role != SessionRole.CLIENT

    # --- Setup ----------------------------------------------------------------------

    def start_game(
        self,
        config: GameConfig,
        player_names: Sequence[str],
        *,
        start_difficulty: int = 1,
        loadouts: Sequence[Loadout] | None = None,
        warbonds: Sequence[Sequence[str]] | None = None,
    ) -> ActionResult:
        """Move from the menu through setup and onto the dashboard."""

        if not self.is_authoritative:
            return ActionResult(False, "clients cannot start a game")
        state = self.state
        if state.phase == Phase.MENU:
            setup = Phase.SOLO_CONFIG if self.role == SessionRole.SOLO else Phase.LOBBY
            phases.transition(state, setup)
        if config.custom_start and state.phase != Phase.CUSTOM_SETUP:
            phases.transition(state, Phase.CUSTOM_SETUP)
        started = phases.start_game(
            state,
            config,
            player_names,
            rules=self.ctx.rules,
            start_difficulty=start_difficulty,
            loadouts=loadouts,
            warbonds=warbonds,
        )
        if not started:
            return ActionResult(False, f"cannot start a game from phase {state.phase}")
        self._commit()
        return ActionResult(True)

    def sync_roster(self, lobby: Sequence[roster.LobbyEntry]) -> roster.RosterChange:
        """Apply a lobby update from the transport (host only).

        Disconnects take effect at once, passing on a turn the leaver held.
        Joins that arrive mid-draft are retried after each accepted intent
        until the draft is over.
        """

        entries = list(lobby)
        change = roster.sync_roster(self.ctx, entries, is_host=self.role == SessionRole.HOST)
        self._deferred_lobby = entries if change.deferred else None
        if change.changed:
            self._commit()
        return change

    # --- Intents --------------------------------------------------------------------

    def submit(self, intent: Intent) -> ActionResult:
        """Apply ``intent`` locally (solo/host) or forward it to the host (client)."""

        if self.is_authoritative:
            return self.dispatch(intent)
        if not is_client_allowed(intent, self.local_slot):
            logger.warning(
                "client in slot %d may not send %s for player %d",
                self.local_slot,
                intent.type,
                intent.player_index,
            )
            return ActionResult(False, "action not allowed for this client")
        if self.channel is None:
            return ActionResult(False, "no relay channel")
        if intent.intent_id is None:
            intent = intent.model_copy(update={"intent_id": uuid.uuid4().hex})
        self.channel.send_intent(intent.model_dump(mode="json"), self.local_slot)
        return ActionResult(True, "sent to host")

    def dispatch(self, intent: Intent) -> ActionResult:
        """Run the rule behind ``intent`` and publish on success."""

        if not self.is_authoritative:
            return ActionResult(False, "clients do not apply intents")
        rule = INTENT_RULES.get(intent.type)
        if rule is None:
            logger.warning("no rule registered for intent %s", intent.type)
            return ActionResult(False, f"unsupported action {intent.type}")
        if intent.intent_id is not None:
            if intent.intent_id in self._applied_intents:
                logger.info("duplicate %s intent %s ignored", intent.type, intent.intent_id)
                return ActionResult(False, "duplicate intent")
            self._applied_intents.append(intent.intent_id)
        result = rule(self.ctx, intent)
        if result.success:
            self._commit()
            if self._deferred_lobby is not None and self.state.phase != Phase.DRAFT:
                self.sync_roster(self._deferred_lobby)
        else:
            logger.debug("intent %s rejected: %s", intent.type, result.detail)
        return result

    def _receive_intent(self, payload: dict[str, Any], sender_slot: int) -> bool:
        try:
            intent = Intent.model_validate(payload)
        except ValidationError:
            logger.warning("malformed intent from slot %d dropped", sender_slot)
            return False
        if not is_client_allowed(intent, sender_slot):
            logger.warning(
                "rejected %s from slot %d for player %d",
                intent.type,
                sender_slot,
                intent.player_index,
            )
            return False
        self.dispatch(intent)
        return True

    # --- Snapshots ------------------------------------------------------------------

    def _commit(self) -> None:
        state = self.state
        state.version += 1
        if self.role == SessionRole.HOST and self.channel is not None:
            self.channel.publish_state(serialize_state(state))
        if self.on_change is not None:
            self.on_change(self)

    def _receive_snapshot(self, snapshot: dict[str, Any]) -> None:
        try:
            incoming = deserialize_state(snapshot)
        except SnapshotError:
            logger.exception("discarding unreadable snapshot")
            return
        if incoming.version < self.state.version:
            logger.debug(
                "ignoring stale snapshot v%d (have v%d)", incoming.version, self.state.version
            )
            return
        self.ctx.state = incoming

    def replace_state(self, state: GameState) -> None:
        """Adopt ``state`` wholesale (import or crash recovery) and publish it."""

        self.ctx.state = state
        if self.is_authoritative:
            self._commit()

    # --- Connectivity ---------------------------------------------------------------

    def host_lost(self) -> None:
        """The host vanished: a client falls back to the menu."""

        logger.info("host lost; session %s returns to menu", self.session_id)
        self._clear_transient()
        phases.transition(self.state, Phase.MENU)

    def kicked(self) -> None:
        logger.info("kicked from session %s", self.session_id)
        self._clear_transient()
        phases.transition(self.state, Phase.KICKED)

    def _clear_transient(self) -> None:
        state = self.state
        state.draft_state = None
        state.sacrifice_state = None
        state.event_state = None
