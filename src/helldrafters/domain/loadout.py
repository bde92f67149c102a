"""Loadout helpers: starting gear, auto-equip, and slot fallbacks."""

from __future__ import annotations

from collections.abc import Sequence

from .enums import ItemType
from .models import Item, ItemID, Loadout, Player, PlayerID
from .rules_config import DEFAULT_RULES, RulesConfig

SLOT_FIELDS: dict[ItemType, str] = {
    ItemType.PRIMARY: "primary",
    ItemType.SECONDARY: "secondary",
    ItemType.GRENADE: "grenade",
    ItemType.ARMOR: "armor",
    ItemType.BOOSTER: "booster",
}


def starting_loadout(rules: RulesConfig = DEFAULT_RULES) -> Loadout:
    gear = rules.loadout
    return Loadout(
        primary=None,
        secondary=ItemID(gear.starting_secondary),
        grenade=ItemID(gear.starting_grenade),
        armor=ItemID(gear.starting_armor),
        booster=None,
        stratagems=[None] * gear.stratagem_slots,
    )


def create_starting_player(
    player_id: int,
    name: str,
    *,
    rules: RulesConfig = DEFAULT_RULES,
    warbonds: Sequence[str] | None = None,
    include_superstore: bool = False,
) -> Player:
    """Build a fresh squad member with the starting loadout."""

    return Player(
        id=PlayerID(player_id),
        name=name,
        loadout=starting_loadout(rules),
        inventory=[ItemID(item_id) for item_id in rules.loadout.starting_items],
        warbonds=list(warbonds) if warbonds is not None else list(rules.loadout.default_warbonds),
        include_superstore=include_superstore,
    )


def first_empty_stratagem_slot(loadout: Loadout) -> int | None:
    for index, item_id in enumerate(loadout.stratagems):
        if item_id is None:
            return index
    return None


def equip(player: Player, item: Item) -> str | None:
    """Grant ``item`` and equip it into its slot; return the slot name used.

    Stratagems take the first empty slot and stay unequipped when all slots
    are full.
    """

    player.grant(item.id)
    if item.type == ItemType.STRATAGEM:
        slot = first_empty_stratagem_slot(player.loadout)
        if slot is None:
            return None
        player.loadout.stratagems[slot] = item.id
        return f"stratagem_{slot}"
    field_name = SLOT_FIELDS[item.type]
    setattr(player.loadout, field_name, item.id)
    return field_name


def reset_to_starting_gear(player: Player, rules: RulesConfig = DEFAULT_RULES) -> None:
    """Reset a player's loadout and inventory, keeping their equipped booster."""

    booster = player.loadout.booster
    player.loadout = starting_loadout(rules)
    player.inventory = [ItemID(item_id) for item_id in rules.loadout.starting_items]
    if booster is not None:
        player.loadout.booster = booster
        player.grant(booster)
