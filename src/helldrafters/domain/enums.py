"""Enumerations shared by the Helldrafters rules layer."""

from __future__ import annotations

from enum import StrEnum


class Phase(StrEnum):
    """Top-level game phases."""

    MENU = "MENU"
    SOLO_CONFIG = "SOLO_CONFIG"
    LOBBY = "LOBBY"
    CUSTOM_SETUP = "CUSTOM_SETUP"
    DASHBOARD = "DASHBOARD"
    DRAFT = "DRAFT"
    EVENT = "EVENT"
    SACRIFICE = "SACRIFICE"
    VICTORY = "VICTORY"
    GAMEOVER = "GAMEOVER"
    KICKED = "KICKED"


class ItemType(StrEnum):
    """Equipment categories, one loadout slot each (stratagems have four)."""

    PRIMARY = "Primary"
    SECONDARY = "Secondary"
    GRENADE = "Grenade"
    STRATAGEM = "Stratagem"
    BOOSTER = "Booster"
    ARMOR = "Armor"


class Rarity(StrEnum):
    """Catalog rarity tiers."""

    COMMON = "Common"
    UNCOMMON = "Uncommon"
    RARE = "Rare"
    LEGENDARY = "Legendary"


class Faction(StrEnum):
    """Enemy factions a run can be played against."""

    TERMINID = "terminid"
    AUTOMATON = "automaton"
    ILLUMINATE = "illuminate"


class Tag(StrEnum):
    """Item tags consulted by the pool weighting."""

    FIRE = "Fire"
    ANTI_TANK = "Anti-Tank"
    STUN = "Stun"
    SMOKE = "Smoke"
    BACKPACK = "Backpack"
    SUPPORT_WEAPON = "Support Weapon"
    PRECISION = "Precision"
    EXPLOSIVE = "Explosive"
    DEFENSIVE = "Defensive"


class ArmorClass(StrEnum):
    """Armor weight classes."""

    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"


class EventType(StrEnum):
    """How an event presents its outcomes."""

    CHOICE = "choice"
    RANDOM = "random"
    BENEFICIAL = "beneficial"
    DETRIMENTAL = "detrimental"


class OutcomeType(StrEnum):
    """Effects an event choice can apply."""

    ADD_REQUISITION = "add_requisition"
    SPEND_REQUISITION = "spend_requisition"
    LOSE_REQUISITION = "lose_requisition"
    EXTRA_DRAFT = "extra_draft"
    SKIP_DIFFICULTY = "skip_difficulty"
    REPLAY_DIFFICULTY = "replay_difficulty"
    SACRIFICE_ITEM = "sacrifice_item"
    GAIN_BOOSTER = "gain_booster"
    RESTRICT_TO_SINGLE_WEAPON = "restrict_to_single_weapon"
    REDRAFT = "redraft"


class TargetPlayer(StrEnum):
    """Who an event outcome applies to."""

    CURRENT = "current"
    CHOOSE = "choose"
    ALL = "all"
    RANDOM = "random"
    SINGLE = "single"
