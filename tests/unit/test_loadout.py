"""Tests for loadout helpers and player bookkeeping."""

from __future__ import annotations

import logging

from conftest import make_item

from helldrafters.domain.enums import EventType, ItemType, OutcomeType
from helldrafters.domain.loadout import (
    create_starting_player,
    equip,
    first_empty_stratagem_slot,
    reset_to_starting_gear,
)
from helldrafters.domain.models import EventChoice, EventOutcome, GameEvent, ItemID
from helldrafters.interfaces.analytics import LoggingAnalytics


def test_starting_player():
    player = create_starting_player(2, "Bravo", include_superstore=True)

    assert player.id == 2
    assert player.inventory == ["s_peacemaker", "g_he", "a_b01"]
    assert player.loadout.equipped_ids() == ["s_peacemaker", "g_he", "a_b01"]
    assert player.warbonds == ["helldivers_mobilize"]
    assert player.include_superstore
    assert player.connected and player.extracted


def test_equip_fills_slots():
    player = create_starting_player(1, "Alpha")

    assert equip(player, make_item("p_lib", ItemType.PRIMARY)) == "primary"
    assert equip(player, make_item("g_inc", ItemType.GRENADE)) == "grenade"

    assert player.loadout.primary == "p_lib"
    assert player.loadout.grenade == "g_inc"
    assert player.owns("g_he")


def test_equip_stratagems_until_full():
    player = create_starting_player(1, "Alpha")
    slots = [equip(player, make_item(f"st_{n}", ItemType.STRATAGEM)) for n in range(5)]

    assert slots == ["stratagem_0", "stratagem_1", "stratagem_2", "stratagem_3", None]
    assert first_empty_stratagem_slot(player.loadout) is None
    assert player.owns("st_4")
    assert "st_4" not in player.loadout.stratagems


def test_grant_ignores_duplicates():
    player = create_starting_player(1, "Alpha")
    player.grant(ItemID("g_he"))
    assert player.inventory.count("g_he") == 1


def test_reset_keeps_booster():
    player = create_starting_player(1, "Alpha")
    equip(player, make_item("p_lib", ItemType.PRIMARY))
    equip(player, make_item("b_space", ItemType.BOOSTER))

    reset_to_starting_gear(player)

    assert player.loadout.primary is None
    assert player.loadout.booster == "b_space"
    assert sorted(player.inventory) == ["a_b01", "b_space", "g_he", "s_peacemaker"]


def test_fixed_outcome_event_exposes_one_choice():
    outcome = EventOutcome(OutcomeType.ADD_REQUISITION, 1)
    fixed = GameEvent(id="gift", name="Gift", type=EventType.BENEFICIAL, outcomes=[outcome])
    choosy = GameEvent(
        id="pick", name="Pick", type=EventType.CHOICE, choices=[EventChoice("A"), EventChoice("B")]
    )

    assert [choice.outcomes for choice in fixed.resolved_choices()] == [[outcome]]
    assert len(choosy.resolved_choices()) == 2


def test_logging_analytics_writes_to_log(caplog):
    recorder = LoggingAnalytics()
    with caplog.at_level(logging.INFO, logger="helldrafters.interfaces.analytics"):
        recorder.record_requisition(-2.0, "reroll")
        recorder.record_mission(3, True, [1, 2])

    assert "requisition -2.00 (reroll)" in caplog.text
    assert "extracted=[1, 2]" in caplog.text
