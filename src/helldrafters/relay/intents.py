"""Wire models for player intents."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from helldrafters.domain.enums import ItemType


class ActionType(StrEnum):
    """Every intent the host knows how to apply."""

    DRAFT_PICK = "DRAFT_PICK"
    DRAFT_REROLL = "DRAFT_REROLL"
    SKIP_DRAFT = "SKIP_DRAFT"
    REMOVE_CARD = "REMOVE_CARD"
    LOCK_PLAYER_DRAFT_SLOT = "LOCK_PLAYER_DRAFT_SLOT"
    UNLOCK_PLAYER_DRAFT_SLOT = "UNLOCK_PLAYER_DRAFT_SLOT"
    STRATAGEM_REPLACEMENT = "STRATAGEM_REPLACEMENT"
    SACRIFICE_ITEM = "SACRIFICE_ITEM"
    SET_PLAYER_EXTRACTED = "SET_PLAYER_EXTRACTED"
    SET_EVENT_PLAYER_CHOICE = "SET_EVENT_PLAYER_CHOICE"
    RESOLVE_EVENT_CHOICE = "RESOLVE_EVENT_CHOICE"
    SELECT_EVENT_BOOSTER = "SELECT_EVENT_BOOSTER"
    # host only
    SKIP_EVENT = "SKIP_EVENT"
    COMPLETE_MISSION = "COMPLETE_MISSION"


CLIENT_ALLOWED_ACTIONS: frozenset[ActionType] = frozenset(
    {
        ActionType.DRAFT_PICK,
        ActionType.DRAFT_REROLL,
        ActionType.SKIP_DRAFT,
        ActionType.REMOVE_CARD,
        ActionType.LOCK_PLAYER_DRAFT_SLOT,
        ActionType.UNLOCK_PLAYER_DRAFT_SLOT,
        ActionType.STRATAGEM_REPLACEMENT,
        ActionType.SACRIFICE_ITEM,
        ActionType.SET_PLAYER_EXTRACTED,
        ActionType.SET_EVENT_PLAYER_CHOICE,
        ActionType.RESOLVE_EVENT_CHOICE,
        ActionType.SELECT_EVENT_BOOSTER,
    }
)

_REQUIRED_FIELDS: dict[ActionType, tuple[str, ...]] = {
    ActionType.DRAFT_PICK: ("card_id",),
    ActionType.REMOVE_CARD: ("card_id",),
    ActionType.LOCK_PLAYER_DRAFT_SLOT: ("slot_type",),
    ActionType.UNLOCK_PLAYER_DRAFT_SLOT: ("slot_type",),
    ActionType.STRATAGEM_REPLACEMENT: ("slot_index",),
    ActionType.SACRIFICE_ITEM: ("item_id",),
    ActionType.SET_PLAYER_EXTRACTED: ("extracted",),
    ActionType.SET_EVENT_PLAYER_CHOICE: ("target_player",),
    ActionType.RESOLVE_EVENT_CHOICE: ("choice_index",),
    ActionType.SELECT_EVENT_BOOSTER: ("booster_id",),
    ActionType.COMPLETE_MISSION: ("success",),
}


class SamplesPayload(BaseModel):
    common: int = Field(default=0, ge=0)
    rare: int = Field(default=0, ge=0)
    super_rare: int = Field(default=0, ge=0)


class Intent(BaseModel):
    """A request to mutate the run, sent by the player at ``player_index``."""

    model_config = ConfigDict(frozen=True)

    type: ActionType
    player_index: int = Field(ge=0)
    card_id: str | None = None
    cost: int | None = Field(default=None, ge=0)
    slot_type: ItemType | None = None
    slot_index: int | None = None
    item_id: str | None = None
    extracted: bool | None = None
    target_player: int | None = None
    choice_index: int | None = None
    booster_id: str | None = None
    success: bool | None = None
    samples: SamplesPayload | None = None
    # Set once by the sender; a redelivered copy carries the same id.
    intent_id: str | None = Field(default=None, max_length=64)

    @model_validator(mode="after")
    def _check_payload(self) -> Intent:
        required = _REQUIRED_FIELDS.get(self.type, ())
        missing = [name for name in required if getattr(self, name) is None]
        if missing:
            raise ValueError(f"{self.type} intent requires {', '.join(missing)}")
        return self


def is_client_allowed(intent: Intent, sender_slot: int) -> bool:
    """Return ``True`` if a client in ``sender_slot`` may send ``intent``.

    Clients may only use the allowed actions, and only on their own behalf.
    """

    return intent.type in CLIENT_ALLOWED_ACTIONS and intent.player_index == sender_slot
