"""Dataclasses describing the Helldrafters run state.

Everything the rules layer touches lives here: catalog entries (items,
armor combos, events), per-player progress, and the transient draft,
sacrifice and event sub-states. The whole tree is plain dataclasses so the
rules can run in memory, and a pydantic ``TypeAdapter`` over
:class:`GameState` is enough to snapshot it (see :mod:`helldrafters.savegame`).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated, Any, Literal, NewType

from pydantic import Field

from .enums import (
    ArmorClass,
    EventType,
    Faction,
    ItemType,
    OutcomeType,
    Phase,
    Rarity,
    TargetPlayer,
)

# --- Strongly typed identifiers -------------------------------------------------

PlayerID = NewType("PlayerID", int)
ItemID = NewType("ItemID", str)
EventID = NewType("EventID", str)


# --- Catalog entries ------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Item:
    """Immutable catalog entry for a piece of equipment."""

    id: ItemID
    name: str
    type: ItemType
    rarity: Rarity
    tags: tuple[str, ...] = ()
    warbond: str | None = None
    superstore: bool = False
    passive: str | None = None
    armor_class: ArmorClass | None = None
    kind: Literal["item"] = "item"

    @property
    def item_ids(self) -> tuple[ItemID, ...]:
        return (self.id,)

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags


@dataclass(frozen=True, slots=True)
class ArmorCombo:
    """Armor variants sharing a passive and class, drafted as one card."""

    passive: str
    armor_class: ArmorClass
    items: tuple[Item, ...]
    kind: Literal["armor_combo"] = "armor_combo"

    @property
    def type(self) -> ItemType:
        return ItemType.ARMOR

    @property
    def item_ids(self) -> tuple[ItemID, ...]:
        return tuple(item.id for item in self.items)

    @property
    def representative(self) -> Item:
        return self.items[0]


DraftCard = Annotated[Item | ArmorCombo, Field(discriminator="kind")]


@dataclass(slots=True)
class EventOutcome:
    """Single effect applied when an event choice resolves."""

    type: OutcomeType
    value: int = 0
    target_player: TargetPlayer | None = None


@dataclass(slots=True)
class EventChoice:
    """Option presented by an event."""

    text: str
    outcomes: list[EventOutcome] = field(default_factory=list)
    requires_requisition: int = 0


@dataclass(slots=True)
class GameEvent:
    """Narrative event definition (catalog entry)."""

    id: EventID
    name: str
    type: EventType
    description: str = ""
    min_difficulty: int = 1
    max_difficulty: int = 10
    weight: int = 1
    requires_multiplayer: bool = False
    target_player: TargetPlayer = TargetPlayer.SINGLE
    choices: list[EventChoice] = field(default_factory=list)
    outcomes: list[EventOutcome] = field(default_factory=list)

    def resolved_choices(self) -> list[EventChoice]:
        """Return the selectable choices; fixed-outcome events expose one."""

        if self.choices:
            return self.choices
        return [EventChoice(text="Continue", outcomes=list(self.outcomes))]


# --- Players --------------------------------------------------------------------


@dataclass(slots=True)
class Loadout:
    """Equipped item ids, one per slot plus the stratagem slots."""

    primary: ItemID | None = None
    secondary: ItemID | None = None
    grenade: ItemID | None = None
    armor: ItemID | None = None
    booster: ItemID | None = None
    stratagems: list[ItemID | None] = field(default_factory=lambda: [None, None, None, None])

    def equipped_ids(self) -> list[ItemID]:
        slots = [self.primary, self.secondary, self.grenade, self.armor, self.booster]
        return [item_id for item_id in [*slots, *self.stratagems] if item_id is not None]


@dataclass(slots=True)
class Player:
    """A squad member and their run progress."""

    id: PlayerID
    name: str
    loadout: Loadout = field(default_factory=Loadout)
    inventory: list[ItemID] = field(default_factory=list)
    warbonds: list[str] = field(default_factory=list)
    include_superstore: bool = False
    excluded_items: set[ItemID] = field(default_factory=set)
    locked_slots: list[ItemType] = field(default_factory=list)
    extracted: bool = True
    connected: bool = True
    # transient draft counters
    redraft_rounds: int = 0
    extra_draft_cards: int = 0
    needs_retrospective_draft: bool = False
    catch_up_drafts_remaining: int = 0
    retrospective_drafts_completed: int = 0
    # single-weapon restriction memory
    weapon_restricted: bool = False
    saved_stratagems: list[ItemID | None] | None = None

    def owns(self, item_id: str) -> bool:
        return item_id in self.inventory

    def grant(self, item_id: ItemID) -> None:
        """Add ``item_id`` to the inventory, ignoring duplicates."""

        if item_id not in self.inventory:
            self.inventory.append(item_id)


# --- Run configuration ----------------------------------------------------------


@dataclass(slots=True)
class GameConfig:
    """Run-wide settings chosen before the first mission."""

    player_count: int = 1
    star_rating: int = 3
    faction: Faction = Faction.TERMINID
    subfaction: str = "bugs_vanilla"
    burn_cards: bool = False
    global_uniqueness: bool = False
    endurance_mode: bool = False
    brutality_mode: bool = False
    endless_mode: bool = False
    custom_start: bool = False


@dataclass(slots=True)
class Samples:
    """Mission samples accumulated towards the next event roll."""

    common: int = 0
    rare: int = 0
    super_rare: int = 0

    def add(self, other: Samples) -> None:
        self.common += other.common
        self.rare += other.rare
        self.super_rare += other.super_rare


@dataclass(slots=True)
class DraftHistoryRecord:
    """Completed draft session."""

    difficulty: int
    star_rating: int


# --- Transient sub-states -------------------------------------------------------


@dataclass(slots=True)
class DraftState:
    """Turn state for one draft session."""

    active_player_index: int
    round_cards: list[DraftCard] = field(default_factory=list)
    draft_order: list[int] = field(default_factory=list)
    pending_stratagem: Item | None = None
    extra_draft_round: int = 0
    is_retrospective: bool = False
    retrospective_player_index: int | None = None
    is_redrafting: bool = False


@dataclass(slots=True)
class SacrificeState:
    """Queue of players owing one item after a failed extraction."""

    active_player_index: int
    sacrifices_required: list[int] = field(default_factory=list)


@dataclass(slots=True)
class PendingBoosterChoice:
    """Booster options awaiting a pick before an event can close."""

    options: list[ItemID]
    target_player: TargetPlayer | None = None
    player_index: int | None = None


@dataclass(slots=True)
class EventState:
    """The event currently on screen and the selections made so far."""

    event_id: EventID
    player_choice: int | None = None
    pending_booster: PendingBoosterChoice | None = None


@dataclass(slots=True)
class GameState:
    """Canonical state of a run; the host's copy is the truth."""

    config: GameConfig = field(default_factory=GameConfig)
    players: list[Player] = field(default_factory=list)
    phase: Phase = Phase.MENU
    current_diff: int = 1
    current_mission: int = 1
    requisition: float = 0.0
    samples: Samples = field(default_factory=Samples)
    burned_cards: set[ItemID] = field(default_factory=set)
    draft_state: DraftState | None = None
    sacrifice_state: SacrificeState | None = None
    draft_history: list[DraftHistoryRecord] = field(default_factory=list)
    events_enabled: bool = True
    event_state: EventState | None = None
    seen_events: list[EventID] = field(default_factory=list)
    custom_setup: dict[str, Any] | None = None
    version: int = 0

    def player_at(self, index: int | None) -> Player | None:
        if index is None or not 0 <= index < len(self.players):
            return None
        return self.players[index]

    def burn(self, item_id: ItemID) -> None:
        self.burned_cards.add(item_id)

    def connected_indices(self) -> list[int]:
        return [index for index, player in enumerate(self.players) if player.connected]
