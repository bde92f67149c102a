"""Unit tests for the draft director."""

from __future__ import annotations

from conftest import make_item, make_state

from helldrafters.domain import draft
from helldrafters.domain.catalog import Catalog
from helldrafters.domain.context import RunContext
from helldrafters.domain.enums import ArmorClass, ItemType, Phase
from helldrafters.domain.hand import card_key, in_hand
from helldrafters.domain.models import ArmorCombo, DraftState, ItemID, Samples
from helldrafters.utils.rng import make_rng


def _set_hand(ctx, cards, *, active=0, order=None):
    ctx.state.phase = Phase.DRAFT
    ctx.state.draft_state = DraftState(
        active_player_index=active,
        round_cards=list(cards),
        draft_order=list(order) if order is not None else [active],
    )
    return ctx.state.draft_state


def _scout_combo(catalog) -> ArmorCombo:
    return ArmorCombo(
        passive="scout",
        armor_class=ArmorClass.LIGHT,
        items=(catalog.get("a_sc34"), catalog.get("a_sc30")),
    )


def _pick_first(ctx):
    state = ctx.state.draft_state
    return draft.handle_draft_pick(ctx, state.active_player_index, card_key(state.round_cards[0]))


# --- Session start ---------------------------------------------------------------


def test_start_shuffles_connected_players(make_ctx):
    ctx = make_ctx(3)
    ctx.state.players[1].connected = False

    result = draft.start_draft_phase(ctx)

    assert result.success
    state = ctx.state.draft_state
    assert ctx.state.phase == Phase.DRAFT
    assert sorted(state.draft_order) == [0, 2]
    assert state.active_player_index == state.draft_order[0]
    assert len(state.round_cards) == 3


def test_start_without_connected_players_returns_to_dashboard(make_ctx):
    ctx = make_ctx(2)
    for player in ctx.state.players:
        player.connected = False

    result = draft.start_draft_phase(ctx)

    assert not result.success
    assert ctx.state.phase == Phase.DASHBOARD
    assert ctx.state.draft_state is None


def test_same_seed_gives_same_order_and_hand(make_ctx):
    first = make_ctx(4, seed="replay")
    second = make_ctx(4, seed="replay")
    draft.start_draft_phase(first)
    draft.start_draft_phase(second)

    assert first.state.draft_state.draft_order == second.state.draft_state.draft_order
    assert [card_key(c) for c in first.state.draft_state.round_cards] == [
        card_key(c) for c in second.state.draft_state.round_cards
    ]


def test_start_restores_weapon_restricted_stratagems(make_ctx):
    ctx = make_ctx(1)
    player = ctx.state.players[0]
    player.weapon_restricted = True
    player.saved_stratagems = [ItemID("st_mg"), None, None, None]

    draft.start_draft_phase(ctx)

    assert player.loadout.stratagems == ["st_mg", None, None, None]
    assert not player.weapon_restricted
    assert player.saved_stratagems is None


# --- Picks -----------------------------------------------------------------------


def test_pick_equips_item_and_passes_turn(make_ctx, catalog, analytics):
    ctx = make_ctx(2)
    _set_hand(ctx, [catalog.get("p_lib"), catalog.get("st_mg")], order=[0, 1])

    result = draft.handle_draft_pick(ctx, 0, "p_lib")

    assert result.success
    first = ctx.state.players[0]
    assert first.loadout.primary == "p_lib"
    assert first.owns("p_lib")
    assert ("record_loadout", (1, "p_lib", "primary")) in analytics.calls
    state = ctx.state.draft_state
    assert state.active_player_index == 1
    assert state.round_cards

    assert _pick_first(ctx).success
    assert ctx.state.phase == Phase.DASHBOARD
    assert ctx.state.draft_state is None
    assert len(ctx.state.draft_history) == 1
    assert ctx.state.draft_history[0].difficulty == 1
    assert len(analytics.named("record_draft")) == 2


def test_stratagem_fills_first_empty_slot(make_ctx, catalog):
    ctx = make_ctx(1)
    ctx.state.players[0].loadout.stratagems[0] = ItemID("st_ops")
    _set_hand(ctx, [catalog.get("st_mg")])

    draft.handle_draft_pick(ctx, 0, "st_mg")

    assert ctx.state.players[0].loadout.stratagems == ["st_ops", "st_mg", None, None]


def test_pick_out_of_turn_is_ignored(make_ctx, catalog):
    ctx = make_ctx(2)
    _set_hand(ctx, [catalog.get("p_lib")], order=[0, 1])
    before = list(ctx.state.players[1].inventory)

    result = draft.handle_draft_pick(ctx, 1, "p_lib")

    assert not result.success
    assert ctx.state.draft_state.active_player_index == 0
    assert ctx.state.players[1].inventory == before


def test_pick_of_card_not_in_hand_fails(make_ctx, catalog):
    ctx = make_ctx(1)
    _set_hand(ctx, [catalog.get("p_lib")])

    result = draft.handle_draft_pick(ctx, 0, "p_breaker")

    assert not result.success
    assert result.detail == "card not in hand"


def test_pick_outside_draft_is_ignored(make_ctx):
    ctx = make_ctx(1)
    assert not draft.handle_draft_pick(ctx, 0, "p_lib").success


def test_combo_pick_grants_every_member(make_ctx, catalog, analytics):
    ctx = make_ctx(1)
    _set_hand(ctx, [_scout_combo(catalog)])

    assert draft.handle_draft_pick(ctx, 0, "combo:scout:light").success

    player = ctx.state.players[0]
    assert player.owns("a_sc34")
    assert player.owns("a_sc30")
    assert player.loadout.armor == "a_sc34"
    assert ("record_loadout", (1, "a_sc34", "armor")) in analytics.calls


def test_full_stratagem_slots_require_replacement(make_ctx, catalog):
    ctx = make_ctx(1)
    player = ctx.state.players[0]
    full = [ItemID("st_ops"), ItemID("st_gatling"), ItemID("st_strafe"), ItemID("st_sentry")]
    for item_id in full:
        player.grant(item_id)
    player.loadout.stratagems = list(full)
    _set_hand(ctx, [catalog.get("st_mg"), catalog.get("p_lib")])

    result = draft.handle_draft_pick(ctx, 0, "st_mg")

    assert result.success
    assert result.detail == "stratagem replacement required"
    state = ctx.state.draft_state
    assert state.pending_stratagem is not None
    assert state.pending_stratagem.id == "st_mg"
    assert player.loadout.stratagems == full
    assert not player.owns("st_mg")

    assert not draft.handle_draft_pick(ctx, 0, "p_lib").success
    assert not draft.handle_reroll(ctx, 0, 0).success
    assert not draft.handle_stratagem_replacement(ctx, 0, 7).success

    assert draft.handle_stratagem_replacement(ctx, 0, 2).success
    assert player.loadout.stratagems == ["st_ops", "st_gatling", "st_mg", "st_sentry"]
    assert player.owns("st_mg")
    assert ctx.state.phase == Phase.DASHBOARD


def test_replacement_without_pending_stratagem_fails(make_ctx, catalog):
    ctx = make_ctx(1)
    _set_hand(ctx, [catalog.get("p_lib")])
    assert not draft.handle_stratagem_replacement(ctx, 0, 0).success


def test_burn_mode_burns_the_whole_hand(make_ctx, catalog):
    ctx = make_ctx(1, burn_cards=True)
    _set_hand(ctx, [catalog.get("p_lib"), _scout_combo(catalog)])

    draft.handle_draft_pick(ctx, 0, "p_lib")

    assert {"p_lib", "a_sc34", "a_sc30"} <= ctx.state.burned_cards


def test_skip_burns_hand_and_advances(make_ctx, catalog):
    ctx = make_ctx(1, burn_cards=True)
    _set_hand(ctx, [catalog.get("p_breaker")])

    assert draft.handle_skip(ctx, 0).success

    assert "p_breaker" in ctx.state.burned_cards
    assert not ctx.state.players[0].owns("p_breaker")
    assert ctx.state.phase == Phase.DASHBOARD


def test_analytics_failures_do_not_break_picks(catalog):
    class ExplodingAnalytics:
        def record_loadout(self, *args):
            raise RuntimeError("analytics down")

        def record_draft(self, *args):
            raise RuntimeError("analytics down")

    ctx = RunContext(
        state=make_state(1), catalog=catalog, rng=make_rng("x"), analytics=ExplodingAnalytics()
    )
    _set_hand(ctx, [catalog.get("p_lib")])

    assert draft.handle_draft_pick(ctx, 0, "p_lib").success
    assert ctx.state.players[0].loadout.primary == "p_lib"


# --- Sequencing ------------------------------------------------------------------


def test_extra_draft_cards_repeat_the_turn(make_ctx):
    ctx = make_ctx(1)
    player = ctx.state.players[0]
    player.extra_draft_cards = 2
    draft.start_draft_phase(ctx)

    assert _pick_first(ctx).success
    assert ctx.state.draft_state.extra_draft_round == 1
    assert _pick_first(ctx).success
    assert ctx.state.draft_state.extra_draft_round == 2
    assert _pick_first(ctx).success

    assert ctx.state.phase == Phase.DASHBOARD
    assert player.extra_draft_cards == 0
    assert len(ctx.state.draft_history) == 1


def test_extra_draft_then_next_player(make_ctx):
    ctx = make_ctx(2)
    ctx.state.players[0].extra_draft_cards = 1
    _set_hand(ctx, ctx.deal_hand(0), order=[0, 1])

    draft.handle_skip(ctx, 0)
    state = ctx.state.draft_state
    assert state.active_player_index == 0
    assert state.extra_draft_round == 1

    draft.handle_skip(ctx, 0)
    state = ctx.state.draft_state
    assert state.active_player_index == 1
    assert state.extra_draft_round == 0
    assert ctx.state.players[0].extra_draft_cards == 0


def test_redraft_rounds_end_the_session(make_ctx):
    ctx = make_ctx(2)
    player = ctx.state.players[0]
    player.redraft_rounds = 2
    _set_hand(ctx, ctx.deal_hand(0), order=[0, 1])

    draft.handle_skip(ctx, 0)
    assert ctx.state.phase == Phase.DRAFT
    assert ctx.state.draft_state.is_redrafting
    assert player.redraft_rounds == 1

    draft.handle_skip(ctx, 0)
    assert player.redraft_rounds == 0
    assert ctx.state.phase == Phase.DASHBOARD
    assert ctx.state.draft_history == []


def test_disconnected_player_is_skipped_mid_session(make_ctx):
    ctx = make_ctx(3)
    _set_hand(ctx, ctx.deal_hand(0), order=[0, 1, 2])
    ctx.state.players[1].connected = False

    draft.handle_skip(ctx, 0)

    assert ctx.state.draft_state.active_player_index == 2


def test_active_player_dropping_out_passes_the_turn(make_ctx):
    ctx = make_ctx(3)
    _set_hand(ctx, ctx.deal_hand(0), order=[0, 1, 2])
    assert not draft.skip_disconnected_player(ctx)

    ctx.state.players[0].connected = False
    assert draft.skip_disconnected_player(ctx)

    state = ctx.state.draft_state
    assert state.active_player_index == 1
    assert state.round_cards


def test_last_player_dropping_out_completes_the_session(make_ctx):
    ctx = make_ctx(2)
    _set_hand(ctx, ctx.deal_hand(1), active=1, order=[0, 1])
    ctx.state.players[1].connected = False

    assert draft.skip_disconnected_player(ctx)

    assert ctx.state.phase == Phase.DASHBOARD
    assert ctx.state.draft_state is None
    assert len(ctx.state.draft_history) == 1


def test_completed_session_can_trigger_event(make_ctx):
    ctx = make_ctx(1)
    ctx.state.samples = Samples(super_rare=40)
    draft.start_draft_phase(ctx)

    draft.handle_skip(ctx, ctx.state.draft_state.active_player_index)

    assert ctx.state.phase == Phase.EVENT
    assert ctx.state.seen_events[0] in {"bonus", "review"}
    assert ctx.state.samples == Samples()


# --- Catch-up drafts -------------------------------------------------------------


def test_retrospective_draft_deals_one_hand_per_missed_difficulty(make_ctx):
    ctx = make_ctx(1)
    ctx.state.current_diff = 4
    player = ctx.state.players[0]
    player.needs_retrospective_draft = True
    player.catch_up_drafts_remaining = 3

    assert draft.start_retrospective_draft(ctx, 0).success
    state = ctx.state.draft_state
    assert state.is_retrospective
    assert state.retrospective_player_index == 0

    hands = 0
    while ctx.state.phase == Phase.DRAFT:
        assert len(ctx.state.draft_state.round_cards) == 2
        assert not draft.handle_reroll(ctx, 0, 0).success
        draft.handle_skip(ctx, 0)
        hands += 1

    assert hands == 3
    assert ctx.state.phase == Phase.DASHBOARD
    assert not player.needs_retrospective_draft
    assert player.catch_up_drafts_remaining == 0
    assert ctx.state.draft_history == []


def test_interrupted_retrospective_resumes(make_ctx):
    ctx = make_ctx(1)
    ctx.state.current_diff = 4
    player = ctx.state.players[0]
    player.needs_retrospective_draft = True
    player.catch_up_drafts_remaining = 3
    draft.start_retrospective_draft(ctx, 0)
    draft.handle_skip(ctx, 0)

    player.connected = False
    assert draft.skip_disconnected_player(ctx)
    assert ctx.state.phase == Phase.DASHBOARD
    assert player.needs_retrospective_draft
    assert player.retrospective_drafts_completed == 1

    player.connected = True
    assert draft.start_retrospective_draft(ctx, 0).success
    draft.handle_skip(ctx, 0)
    assert ctx.state.phase == Phase.DRAFT
    draft.handle_skip(ctx, 0)
    assert ctx.state.phase == Phase.DASHBOARD
    assert not player.needs_retrospective_draft


def test_retrospective_requires_owed_drafts(make_ctx):
    ctx = make_ctx(1)
    assert not draft.start_retrospective_draft(ctx, 0).success
    assert ctx.state.phase == Phase.DASHBOARD


def test_owed_retrospective_starts_after_session(make_ctx):
    ctx = make_ctx(2)
    ctx.state.current_diff = 2
    joiner = ctx.state.players[1]
    joiner.needs_retrospective_draft = True
    joiner.catch_up_drafts_remaining = 1
    draft.start_draft_phase(ctx)

    while not ctx.state.draft_state.is_retrospective:
        draft.handle_skip(ctx, ctx.state.draft_state.active_player_index)

    assert ctx.state.draft_state.active_player_index == 1
    draft.handle_skip(ctx, 1)
    assert ctx.state.phase == Phase.DASHBOARD
    assert len(ctx.state.draft_history) == 1


# --- Economy actions -------------------------------------------------------------


def test_reroll_spends_requisition(make_ctx, catalog, analytics):
    ctx = make_ctx(1)
    _set_hand(ctx, [catalog.get("p_lib")])

    result = draft.handle_reroll(ctx, 0)
    assert not result.success
    assert result.detail == "insufficient requisition"
    assert [card_key(c) for c in ctx.state.draft_state.round_cards] == ["p_lib"]

    ctx.state.requisition = 2.0
    assert draft.handle_reroll(ctx, 0).success
    assert ctx.state.requisition == 1.0
    assert len(ctx.state.draft_state.round_cards) == 3
    assert ("record_requisition", (-1, "reroll")) in analytics.calls
    assert ctx.state.phase == Phase.DRAFT


def test_reroll_with_explicit_cost(make_ctx, catalog):
    ctx = make_ctx(1)
    _set_hand(ctx, [catalog.get("p_lib")])

    assert draft.handle_reroll(ctx, 0, 0).success
    assert ctx.state.requisition == 0.0


def test_remove_card_swaps_in_a_fresh_card(make_ctx):
    ctx = make_ctx(1)
    hand = ctx.deal_hand(0)
    _set_hand(ctx, hand)
    removed = hand[1]

    assert draft.handle_remove_card(ctx, 0, card_key(removed)).success

    new_hand = ctx.state.draft_state.round_cards
    assert len(new_hand) == 3
    assert set(removed.item_ids) <= ctx.state.players[0].excluded_items
    assert not in_hand(new_hand[1], [new_hand[0], new_hand[2]])
    assert not in_hand(removed, new_hand)


def test_remove_card_with_exhausted_pool_still_excludes():
    tiny = Catalog(
        [make_item("p_one", ItemType.PRIMARY), make_item("p_two", ItemType.PRIMARY)]
    )
    ctx = RunContext(state=make_state(1), catalog=tiny, rng=make_rng("x"))
    _set_hand(ctx, [tiny.get("p_one"), tiny.get("p_two")])

    result = draft.handle_remove_card(ctx, 0, "p_one")

    assert not result.success
    assert result.detail == draft.NO_MORE_UNIQUE_CARDS
    assert "p_one" in ctx.state.players[0].excluded_items
    assert [card_key(c) for c in ctx.state.draft_state.round_cards] == ["p_one", "p_two"]


def test_lock_slot_costs_and_cap(make_ctx, analytics):
    ctx = make_ctx(1)
    ctx.state.requisition = 10.0
    _set_hand(ctx, ctx.deal_hand(0))

    assert draft.lock_slot(ctx, 0, ItemType.PRIMARY).success
    assert ctx.state.requisition == 7.0
    assert ("record_requisition", (-3, "lock_slot")) in analytics.calls
    assert all(card.type != ItemType.PRIMARY for card in ctx.state.draft_state.round_cards)

    assert not draft.lock_slot(ctx, 0, ItemType.PRIMARY).success
    assert draft.lock_slot(ctx, 0, ItemType.SECONDARY).success
    assert draft.lock_slot(ctx, 0, ItemType.GRENADE).success
    assert ctx.state.requisition == 1.0

    result = draft.lock_slot(ctx, 0, ItemType.ARMOR)
    assert not result.success
    assert result.detail == "locked slot limit reached"
    assert len(ctx.state.players[0].locked_slots) == 3


def test_lock_slot_needs_requisition(make_ctx):
    ctx = make_ctx(2)
    ctx.state.requisition = 2.0

    assert not draft.lock_slot(ctx, 0, ItemType.PRIMARY).success
    assert ctx.state.players[0].locked_slots == []
    assert ctx.state.requisition == 2.0


def test_lock_slot_is_cheaper_for_larger_squads(make_ctx):
    ctx = make_ctx(3)
    ctx.state.requisition = 2.0

    assert draft.lock_slot(ctx, 1, ItemType.STRATAGEM).success
    assert ctx.state.requisition == 0.0


def test_unlock_slot(make_ctx):
    ctx = make_ctx(1)
    ctx.state.requisition = 3.0
    draft.lock_slot(ctx, 0, ItemType.BOOSTER)

    assert draft.unlock_slot(ctx, 0, ItemType.BOOSTER).success
    assert ctx.state.players[0].locked_slots == []
    assert not draft.unlock_slot(ctx, 0, ItemType.BOOSTER).success
