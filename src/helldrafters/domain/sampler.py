"""Weighted card pool construction for draft hands."""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from helldrafters.utils.rng import weighted_index

from .catalog import Catalog
from .enums import Faction, ItemType, Rarity, Tag
from .models import ArmorCombo, GameConfig, Item, Player
from .rules_config import DEFAULT_RULES, RulesConfig

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PoolEntry:
    """A draftable card and its draw weight."""

    card: Item | ArmorCombo
    weight: float

    @property
    def is_armor_combo(self) -> bool:
        return isinstance(self.card, ArmorCombo)

    @property
    def type(self) -> ItemType:
        return self.card.type


def rare_weight_multiplier(
    config: GameConfig, difficulty: int, rules: RulesConfig = DEFAULT_RULES
) -> float:
    """Return the multiplier applied to rare and legendary bonuses.

    Larger squads see fewer rare cards (each player drafts separately), harder
    subfactions and higher difficulties see more of them.
    """

    draft = rules.draft
    decay = draft.player_count_decay ** max(0, config.player_count - 1)
    growth = 1.0 + draft.rare_difficulty_growth * max(0, difficulty - 1)
    return decay * rules.faction.subfaction_multiplier(config.subfaction) * growth


def compute_pool(
    player: Player,
    difficulty: int,
    config: GameConfig,
    burned_cards: Iterable[str],
    all_players: Sequence[Player],
    locked_slots: Iterable[ItemType],
    catalog: Catalog,
    rules: RulesConfig = DEFAULT_RULES,
    *,
    debug: bool = False,
) -> list[PoolEntry]:
    """Build the weighted pool of cards ``player`` may be offered.

    Filters run in a fixed order (ownership, content packs, exclusions, burned
    cards, locked slots, global uniqueness) before armor is grouped into
    combos and every surviving entry is weighted. Entries whose weight drops
    to zero are removed. The player is never mutated.
    """

    burned = set(burned_cards) if config.burn_cards else set()
    locked = set(locked_slots)

    candidates = [
        item
        for item in catalog.items
        if not player.owns(item.id) and item.type != ItemType.BOOSTER
    ]
    _trace(debug, "after ownership filter", candidates)

    if player.warbonds:
        candidates = [item for item in candidates if _content_accessible(player, item)]
        _trace(debug, "after warbond filter", candidates)

    if player.excluded_items:
        candidates = [item for item in candidates if item.id not in player.excluded_items]
        _trace(debug, "after exclusion filter", candidates)

    if burned:
        candidates = [item for item in candidates if item.id not in burned]
        _trace(debug, "after burn filter", candidates)

    if locked:
        candidates = [item for item in candidates if item.type not in locked]
        _trace(debug, "after locked slot filter", candidates)

    if config.global_uniqueness:
        held = {item_id for other in all_players for item_id in other.inventory}
        candidates = [item for item in candidates if item.id not in held]
        _trace(debug, "after global uniqueness filter", candidates)

    singles = [item for item in candidates if item.type != ItemType.ARMOR]
    armor_cards = _armor_cards(
        player, [item for item in candidates if item.type == ItemType.ARMOR], catalog
    )

    multiplier = rare_weight_multiplier(config, difficulty, rules)
    has_anti_tank = catalog.any_has_tag(player.inventory, Tag.ANTI_TANK)
    has_backpack = catalog.any_has_tag(
        [sid for sid in player.loadout.stratagems if sid is not None], Tag.BACKPACK
    )

    pool: list[PoolEntry] = []
    for item in singles:
        weight = _base_weight(item, config, multiplier, rules)
        if (
            difficulty >= rules.draft.anti_tank_min_difficulty
            and not has_anti_tank
            and item.has_tag(Tag.ANTI_TANK)
        ):
            weight += rules.draft.anti_tank_boost
        if player.loadout.secondary and item.type == ItemType.SECONDARY:
            weight = max(1, weight - rules.draft.secondary_owned_penalty)
        if has_backpack and item.has_tag(Tag.BACKPACK):
            weight = 0
        pool.append(PoolEntry(item, weight))

    for card in armor_cards:
        representative = card.representative if isinstance(card, ArmorCombo) else card
        pool.append(PoolEntry(card, _base_weight(representative, config, multiplier, rules)))

    pool = [entry for entry in pool if entry.weight > 0]
    if debug:
        logger.debug(
            "pool for player %s at difficulty %d: %d entries (%d armor combos)",
            player.id,
            difficulty,
            len(pool),
            sum(1 for entry in pool if entry.is_armor_combo),
        )
    return pool


def draw_weighted(entries: Sequence[PoolEntry], rng: random.Random) -> int | None:
    """Return the index of a weighted draw from ``entries`` (walk-and-subtract)."""

    return weighted_index(rng, [entry.weight for entry in entries])


# --- Helpers ----------------------------------------------------------------------


def _content_accessible(player: Player, item: Item) -> bool:
    if item.warbond and item.warbond in player.warbonds:
        return True
    if item.superstore and player.include_superstore:
        return True
    return not item.warbond and not item.superstore


def _armor_cards(
    player: Player, armor: Sequence[Item], catalog: Catalog
) -> list[Item | ArmorCombo]:
    """Group armor by ``(passive, armor_class)`` and drop groups already owned."""

    groups: dict[tuple[str | None, str | None], list[Item]] = {}
    for item in armor:
        groups.setdefault((item.passive, item.armor_class), []).append(item)

    owned_pairs = set()
    for item_id in player.inventory:
        owned = catalog.get(item_id)
        if owned is not None and owned.type == ItemType.ARMOR:
            owned_pairs.add((owned.passive, owned.armor_class))

    cards: list[Item | ArmorCombo] = []
    for key, members in groups.items():
        if key in owned_pairs:
            continue
        accessible = [
            item
            for item in members
            if item.id not in player.excluded_items
            and (not player.warbonds or _content_accessible(player, item))
        ]
        if not accessible:
            continue
        passive, armor_class = key
        if len(members) >= 2 and passive is not None and armor_class is not None:
            cards.append(ArmorCombo(passive=passive, armor_class=armor_class, items=tuple(members)))
        else:
            cards.extend(members)
    return cards


def _base_weight(
    item: Item, config: GameConfig, multiplier: float, rules: RulesConfig
) -> float:
    draft = rules.draft
    weight: float = draft.base_weight
    if item.rarity == Rarity.COMMON:
        weight += draft.common_bonus
    elif item.rarity == Rarity.UNCOMMON:
        weight += draft.uncommon_bonus
    elif item.rarity == Rarity.RARE:
        weight += round(draft.rare_bonus * multiplier)
    elif item.rarity == Rarity.LEGENDARY:
        weight += round(draft.legendary_bonus * multiplier)

    faction = rules.faction
    if config.faction == Faction.TERMINID and item.has_tag(Tag.FIRE):
        weight += faction.fire_bonus
    if config.faction == Faction.AUTOMATON and item.has_tag(Tag.PRECISION):
        weight += faction.precision_bonus
    if config.faction == Faction.ILLUMINATE and item.has_tag(Tag.STUN):
        weight += faction.stun_bonus
    return weight


def _trace(enabled: bool, label: str, candidates: Sequence[Item]) -> None:
    if enabled:
        logger.debug("%s: %d candidates", label, len(candidates))
