"""Read-only content catalog: item and event definitions."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel, ValidationError

from .enums import ItemType, Tag
from .models import EventID, GameEvent, Item, ItemID

logger = logging.getLogger(__name__)


class CatalogError(ValueError):
    """Raised when catalog content cannot be loaded."""


class CatalogDocument(BaseModel):
    """On-disk layout of a catalog file."""

    items: list[Item]
    events: list[GameEvent] = []


class Catalog:
    """Lookup tables over the item and event definitions.

    Item order is preserved from the source file because the weighted draw
    walks the pool in that order.
    """

    def __init__(self, items: Iterable[Item], events: Iterable[GameEvent] = ()) -> None:
        self._items: dict[ItemID, Item] = {}
        for item in items:
            if item.id in self._items:
                raise CatalogError(f"duplicate item id: {item.id}")
            self._items[item.id] = item
        self._events: dict[EventID, GameEvent] = {event.id: event for event in events}

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    @property
    def items(self) -> list[Item]:
        return list(self._items.values())

    @property
    def events(self) -> list[GameEvent]:
        return list(self._events.values())

    def get(self, item_id: str | None) -> Item | None:
        if item_id is None:
            return None
        return self._items.get(ItemID(item_id))

    def get_event(self, event_id: str | None) -> GameEvent | None:
        if event_id is None:
            return None
        return self._events.get(EventID(event_id))

    def of_type(self, item_type: ItemType) -> list[Item]:
        return [item for item in self._items.values() if item.type == item_type]

    def any_has_tag(self, item_ids: Iterable[str], tag: Tag) -> bool:
        """Return ``True`` if any of ``item_ids`` resolves to an item tagged ``tag``."""

        for item_id in item_ids:
            item = self.get(item_id)
            if item is not None and item.has_tag(tag):
                return True
        return False


def load_catalog(path: Path | str) -> Catalog:
    """Load a catalog JSON file.

    Raises:
        FileNotFoundError: If ``path`` does not exist
        CatalogError: If the file is not a valid catalog document
    """

    source = Path(path)
    raw = source.read_text(encoding="utf-8")
    try:
        document = CatalogDocument.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise CatalogError(f"invalid catalog file {source}: {exc}") from exc
    catalog = Catalog(document.items, document.events)
    logger.info(
        "loaded catalog from %s (%d items, %d events)", source, len(catalog), len(document.events)
    )
    return catalog
