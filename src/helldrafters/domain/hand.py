"""Draft hand generation on top of the weighted pool."""

from __future__ import annotations

import logging
import math
import random
from collections.abc import Callable, Iterable, Sequence

from .catalog import Catalog
from .enums import ItemType
from .models import ArmorCombo, GameConfig, Item, ItemID, Player
from .rules_config import DEFAULT_RULES, RulesConfig
from .sampler import PoolEntry, compute_pool, draw_weighted

logger = logging.getLogger(__name__)

BurnCallback = Callable[[ItemID], None]


def hand_size_for(star_rating: int) -> int:
    """Return how many cards a hand holds for the run's star rating."""

    if star_rating <= 2:
        return 2
    if star_rating <= 4:
        return 3
    return 4


def star_rating_for_difficulty(difficulty: int, rules: RulesConfig = DEFAULT_RULES) -> int:
    """Map a synthetic catch-up difficulty to the star rating used for its hand."""

    return min(math.ceil(difficulty / 2), rules.draft.max_star_rating)


def generate_hand(
    player: Player | None,
    difficulty: int,
    config: GameConfig,
    burned_cards: Iterable[str],
    all_players: Sequence[Player],
    on_burn: BurnCallback | None,
    hand_size: int | None,
    locked_slots: Iterable[ItemType],
    catalog: Catalog,
    rng: random.Random,
    rules: RulesConfig = DEFAULT_RULES,
    *,
    debug: bool = False,
) -> list[Item | ArmorCombo]:
    """Deal up to ``hand_size`` distinct cards for ``player``.

    The pool is computed once and cards are drawn without replacement. Hands of
    three or more cards penalise types already dealt, so a hand rarely repeats
    a slot. A smaller pool simply yields a shorter hand. In burn mode every
    dealt card (every member of a combo) is reported to ``on_burn``.
    """

    if player is None:
        logger.warning("cannot deal a hand: player not found")
        return []

    size = hand_size if hand_size is not None else hand_size_for(config.star_rating)
    pool = compute_pool(
        player,
        difficulty,
        config,
        burned_cards,
        all_players,
        locked_slots,
        catalog,
        rules,
        debug=debug,
    )

    hand: list[Item | ArmorCombo] = []
    type_counts: dict[ItemType, int] = {}
    while len(hand) < size:
        if not pool:
            logger.info(
                "pool exhausted after %d of %d cards for player %s", len(hand), size, player.id
            )
            break

        adjusted = [
            PoolEntry(entry.card, _diversity_weight(entry, type_counts, size, rules))
            for entry in pool
        ]
        index = draw_weighted(adjusted, rng)
        if index is None:
            logger.info("pool for player %s has no positive weights", player.id)
            break

        entry = pool.pop(index)
        hand.append(entry.card)
        type_counts[entry.type] = type_counts.get(entry.type, 0) + 1
        if config.burn_cards and on_burn is not None:
            for item_id in entry.card.item_ids:
                on_burn(item_id)
    return hand


def draw_replacement(
    player: Player,
    current_hand: Sequence[Item | ArmorCombo],
    difficulty: int,
    config: GameConfig,
    burned_cards: Iterable[str],
    all_players: Sequence[Player],
    locked_slots: Iterable[ItemType],
    catalog: Catalog,
    rng: random.Random,
    rules: RulesConfig = DEFAULT_RULES,
) -> Item | ArmorCombo | None:
    """Draw one card that is not already shown in ``current_hand``.

    No diversity penalty applies. Returns ``None`` when nothing is left.
    """

    pool = compute_pool(
        player, difficulty, config, burned_cards, all_players, locked_slots, catalog, rules
    )
    pool = [entry for entry in pool if not in_hand(entry.card, current_hand)]
    if not pool:
        return None
    index = draw_weighted(pool, rng)
    if index is None:
        return None
    return pool[index].card


def in_hand(card: Item | ArmorCombo, hand: Sequence[Item | ArmorCombo]) -> bool:
    """Return ``True`` if ``card`` (or an overlapping card) is already in ``hand``.

    Combos match by passive and class; single items match by id or by
    membership in a shown combo.
    """

    for shown in hand:
        if isinstance(card, ArmorCombo):
            if (
                isinstance(shown, ArmorCombo)
                and shown.passive == card.passive
                and shown.armor_class == card.armor_class
            ):
                return True
            if isinstance(shown, Item) and shown.id in card.item_ids:
                return True
        elif isinstance(shown, ArmorCombo):
            if card.id in shown.item_ids:
                return True
        elif shown.id == card.id:
            return True
    return False


def _diversity_weight(
    entry: PoolEntry, type_counts: dict[ItemType, int], hand_size: int, rules: RulesConfig
) -> float:
    count = type_counts.get(entry.type, 0)
    if hand_size < rules.draft.diversity_min_hand_size or count == 0:
        return entry.weight
    return max(1, entry.weight * rules.draft.diversity_penalty**count)


def card_key(card: Item | ArmorCombo) -> str:
    """Stable identifier used by intents to reference a card in a hand."""

    if isinstance(card, ArmorCombo):
        return f"combo:{card.passive}:{card.armor_class}"
    return card.id


def find_card(hand: Sequence[Item | ArmorCombo], key: str) -> Item | ArmorCombo | None:
    """Resolve ``key`` (a card key or any member item id) against ``hand``."""

    for card in hand:
        if card_key(card) == key or key in card.item_ids:
            return card
    return None
