"""Rules layer for Helldrafters runs.

This package hosts every game rule as plain functions over mutable
dataclasses. It exposes:

* Dataclasses describing the run state and catalog entries (see :mod:`models`).
* Enumerations used across the rules layer (see :mod:`enums`).
* Balancing constants (see :mod:`rules_config`).
* The card pool sampler and hand generator.
* The draft, event, sacrifice and mission flows plus the phase machine.

Nothing here performs IO: the session runtime in :mod:`helldrafters.relay`
owns a :class:`~helldrafters.domain.models.GameState` and routes intents into
these functions through a :class:`~helldrafters.domain.context.RunContext`.
"""

from . import (
    catalog,
    context,
    draft,
    enums,
    events,
    hand,
    loadout,
    mission,
    models,
    phases,
    roster,
    rules_config,
    sacrifice,
    sampler,
)

__all__ = [
    "catalog",
    "context",
    "draft",
    "enums",
    "events",
    "hand",
    "loadout",
    "mission",
    "models",
    "phases",
    "roster",
    "rules_config",
    "sacrifice",
    "sampler",
]
