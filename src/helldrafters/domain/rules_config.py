"""Declarative balancing configuration for the draft rules."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class DraftRules:
    """Pool weighting, hand size, and draft economy constants."""

    base_weight: int = 10
    common_bonus: int = 50
    uncommon_bonus: int = 25
    rare_bonus: int = 5  # scaled by the rare multiplier
    legendary_bonus: int = 2  # scaled by the rare multiplier
    player_count_decay: float = 0.7
    rare_difficulty_growth: float = 0.1  # per difficulty level above 1
    anti_tank_boost: int = 500
    anti_tank_min_difficulty: int = 3
    secondary_owned_penalty: int = 40
    diversity_penalty: float = 0.1
    diversity_min_hand_size: int = 3
    reroll_cost: int = 1
    max_locked_slots: int = 3
    lock_slot_costs: dict[int, int] = field(default_factory=lambda: {1: 3, 2: 3, 3: 2, 4: 2})
    default_lock_slot_cost: int = 3
    max_star_rating: int = 5

    def lock_cost(self, player_count: int) -> int:
        return self.lock_slot_costs.get(player_count, self.default_lock_slot_cost)


@dataclass(frozen=True, slots=True)
class FactionRules:
    """Faction synergy bonuses and subfaction scaling."""

    fire_bonus: int = 30  # terminid
    precision_bonus: int = 20  # automaton
    stun_bonus: int = 20  # illuminate
    subfaction_multipliers: dict[str, float] = field(
        default_factory=lambda: {
            "bugs_vanilla": 1.0,
            "bugs_spore_burst": 1.1,
            "bugs_predator": 1.2,
            "bugs_rupture": 1.3,
            "bots_vanilla": 1.0,
            "bots_jet_brigade": 1.2,
            "bots_incineration_core": 1.3,
            "squids_vanilla": 1.0,
        }
    )

    def subfaction_multiplier(self, subfaction: str | None) -> float:
        if subfaction is None:
            return 1.0
        return self.subfaction_multipliers.get(subfaction, 1.0)


@dataclass(frozen=True, slots=True)
class EconomyRules:
    """Mission rewards and difficulty progression."""

    mission_reward: int = 1
    player_req_scaling: dict[int, float] = field(
        default_factory=lambda: {1: 1.0, 2: 0.8, 3: 0.6, 4: 0.5}
    )
    max_difficulty: int = 10
    min_difficulty: int = 1
    endurance_missions: dict[int, int] = field(
        default_factory=lambda: {1: 1, 2: 1, 3: 2, 4: 2}
    )
    endurance_missions_default: int = 3

    def missions_for(self, difficulty: int) -> int:
        return self.endurance_missions.get(difficulty, self.endurance_missions_default)


@dataclass(frozen=True, slots=True)
class EventRules:
    """Sample-driven event trigger weights."""

    common_sample_chance: float = 0.01
    rare_sample_chance: float = 0.02
    super_rare_sample_chance: float = 0.03
    booster_choice_count: int = 2


@dataclass(frozen=True, slots=True)
class LoadoutRules:
    """Starting gear, fallback items, and sacrifice protection."""

    stratagem_slots: int = 4
    starting_secondary: str = "s_peacemaker"
    starting_grenade: str = "g_he"
    starting_armor: str = "a_b01"
    protected_items: frozenset[str] = frozenset({"s_peacemaker", "a_b01"})
    default_warbonds: tuple[str, ...] = ("helldivers_mobilize",)

    @property
    def starting_items(self) -> tuple[str, ...]:
        return (self.starting_secondary, self.starting_grenade, self.starting_armor)


@dataclass(frozen=True, slots=True)
class RulesConfig:
    """Container aggregating all rule categories."""

    draft: DraftRules = field(default_factory=DraftRules)
    faction: FactionRules = field(default_factory=FactionRules)
    economy: EconomyRules = field(default_factory=EconomyRules)
    events: EventRules = field(default_factory=EventRules)
    loadout: LoadoutRules = field(default_factory=LoadoutRules)

    def requisition_multiplier(self, player_count: int, subfaction: str | None) -> float:
        """Scale requisition income by squad size and enemy subfaction."""

        scaling = self.economy.player_req_scaling.get(player_count, 1.0)
        return scaling * self.faction.subfaction_multiplier(subfaction)


DEFAULT_RULES = RulesConfig()
