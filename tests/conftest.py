"""Pytest configuration to ensure the `src` package layout is importable.

This adds the `src/` directory to `sys.path` so tests can import the
`helldrafters` package (e.g., `from helldrafters.api.app import create_app`)
without requiring an editable install in CI. It also provides a small,
hand-written catalog so rule tests can reason about exact pools.
"""

import sys
from pathlib import Path

import pytest

SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from helldrafters.domain.catalog import Catalog  # noqa: E402
from helldrafters.domain.context import RunContext  # noqa: E402
from helldrafters.domain.enums import (  # noqa: E402
    ArmorClass,
    EventType,
    ItemType,
    OutcomeType,
    Phase,
    Rarity,
    TargetPlayer,
)
from helldrafters.domain.loadout import create_starting_player  # noqa: E402
from helldrafters.domain.models import (  # noqa: E402
    EventChoice,
    EventID,
    EventOutcome,
    GameConfig,
    GameEvent,
    GameState,
    Item,
    ItemID,
)
from helldrafters.utils.rng import make_rng  # noqa: E402


def make_item(
    item_id: str,
    item_type: ItemType,
    rarity: Rarity = Rarity.COMMON,
    *tags: str,
    **extra,
) -> Item:
    return Item(
        id=ItemID(item_id),
        name=item_id.replace("_", " ").title(),
        type=item_type,
        rarity=rarity,
        tags=tuple(tags),
        **extra,
    )


def small_items() -> list[Item]:
    armor = ItemType.ARMOR
    return [
        make_item("p_lib", ItemType.PRIMARY),
        make_item("p_breaker", ItemType.PRIMARY, Rarity.UNCOMMON),
        make_item("p_slugger", ItemType.PRIMARY, Rarity.RARE, "Precision"),
        make_item("p_veteran", ItemType.PRIMARY, Rarity.COMMON, warbond="steeled_veterans"),
        make_item("p_store", ItemType.PRIMARY, Rarity.COMMON, superstore=True),
        make_item("s_peacemaker", ItemType.SECONDARY),
        make_item("s_senator", ItemType.SECONDARY, Rarity.UNCOMMON),
        make_item("g_he", ItemType.GRENADE),
        make_item("g_inc", ItemType.GRENADE, Rarity.COMMON, "Fire"),
        make_item("a_b01", armor, passive="extra_padding", armor_class=ArmorClass.MEDIUM),
        make_item("a_tr40", armor, passive="extra_padding", armor_class=ArmorClass.MEDIUM),
        make_item("a_sc34", armor, passive="scout", armor_class=ArmorClass.LIGHT),
        make_item("a_sc30", armor, passive="scout", armor_class=ArmorClass.LIGHT),
        make_item("a_fs05", armor, passive="fortified", armor_class=ArmorClass.HEAVY),
        make_item("st_ops", ItemType.STRATAGEM, Rarity.COMMON, "Anti-Tank"),
        make_item("st_mg", ItemType.STRATAGEM, Rarity.COMMON, "Support Weapon"),
        make_item("st_gatling", ItemType.STRATAGEM),
        make_item("st_strafe", ItemType.STRATAGEM),
        make_item("st_sentry", ItemType.STRATAGEM, Rarity.UNCOMMON, "Defensive"),
        make_item("st_jump", ItemType.STRATAGEM, Rarity.UNCOMMON, "Backpack"),
        make_item("st_supply", ItemType.STRATAGEM, Rarity.UNCOMMON, "Backpack"),
        make_item("b_space", ItemType.BOOSTER, Rarity.RARE),
        make_item("b_stamina", ItemType.BOOSTER, Rarity.RARE),
        make_item("b_vitality", ItemType.BOOSTER, Rarity.UNCOMMON),
    ]


def small_events() -> list[GameEvent]:
    return [
        GameEvent(
            id=EventID("bonus"),
            name="Bonus",
            type=EventType.BENEFICIAL,
            weight=5,
            target_player=TargetPlayer.ALL,
            outcomes=[EventOutcome(OutcomeType.ADD_REQUISITION, 2)],
        ),
        GameEvent(
            id=EventID("review"),
            name="Review",
            type=EventType.CHOICE,
            choices=[
                EventChoice(
                    "Retrain",
                    [EventOutcome(OutcomeType.REPLAY_DIFFICULTY, 1)],
                    requires_requisition=1,
                ),
                EventChoice("Punishment", [EventOutcome(OutcomeType.LOSE_REQUISITION, 1)]),
            ],
        ),
        GameEvent(
            id=EventID("squad_only"),
            name="Squad only",
            type=EventType.CHOICE,
            requires_multiplayer=True,
            outcomes=[EventOutcome(OutcomeType.ADD_REQUISITION, 1)],
        ),
        GameEvent(
            id=EventID("late_game"),
            name="Late game",
            type=EventType.DETRIMENTAL,
            min_difficulty=8,
            outcomes=[EventOutcome(OutcomeType.LOSE_REQUISITION, 1)],
        ),
    ]


def make_state(
    player_count: int = 1, *, phase: Phase = Phase.DASHBOARD, **config_overrides
) -> GameState:
    config = GameConfig(player_count=player_count, **config_overrides)
    players = [
        create_starting_player(index + 1, f"Diver {index + 1}") for index in range(player_count)
    ]
    return GameState(config=config, players=players, phase=phase)


class RecordingAnalytics:
    """Analytics double that remembers every hook call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple]] = []

    def record_draft(self, *args) -> None:
        self.calls.append(("record_draft", args))

    def record_loadout(self, *args) -> None:
        self.calls.append(("record_loadout", args))

    def record_requisition(self, *args) -> None:
        self.calls.append(("record_requisition", args))

    def record_mission(self, *args) -> None:
        self.calls.append(("record_mission", args))

    def named(self, hook: str) -> list[tuple]:
        return [args for name, args in self.calls if name == hook]


@pytest.fixture
def catalog() -> Catalog:
    return Catalog(small_items(), small_events())


@pytest.fixture
def analytics() -> RecordingAnalytics:
    return RecordingAnalytics()


@pytest.fixture
def make_ctx(catalog, analytics):
    """Build a :class:`RunContext` over a fresh state and a seeded rng."""

    def factory(player_count: int = 1, *, seed: str = "test-run", **kwargs) -> RunContext:
        phase = kwargs.pop("phase", Phase.DASHBOARD)
        state = make_state(player_count, phase=phase, **kwargs)
        return RunContext(state=state, catalog=catalog, rng=make_rng(seed), analytics=analytics)

    return factory
