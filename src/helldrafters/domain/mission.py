"""Mission reporting: rewards, difficulty progression and routing."""

from __future__ import annotations

import logging

from . import events
from .context import ActionResult, RunContext
from .draft import start_draft_phase
from .enums import Phase
from .models import Samples
from .phases import transition
from .sacrifice import required_sacrifices, start_sacrifice

logger = logging.getLogger(__name__)


def set_player_extracted(ctx: RunContext, player_index: int, extracted: bool) -> ActionResult:
    """Flag whether a player made it onto the extraction shuttle."""

    if ctx.state.phase != Phase.DASHBOARD:
        return ActionResult(False, "extraction can only be reported from the dashboard")
    player = ctx.player(player_index)
    if player is None:
        return ActionResult(False, "player not found")
    player.extracted = extracted
    return ActionResult(True)


def complete_mission(
    ctx: RunContext, success: bool, samples: Samples | None = None
) -> ActionResult:
    """Resolve the mission just played and route the run onwards.

    A failed mission ends the run. A successful one banks the samples, pays
    the mission reward (per operation in endurance mode), advances the
    difficulty and sends the squad to sacrifice, an event or the next draft.
    """

    state = ctx.state
    if state.phase != Phase.DASHBOARD:
        logger.warning("mission report ignored in phase %s", state.phase)
        return ActionResult(False, "missions are reported from the dashboard")

    extracted = [int(player.id) for player in state.players if player.extracted]
    ctx.record("record_mission", state.current_diff, success, extracted)

    if not success:
        logger.info("mission failed at difficulty %d; run over", state.current_diff)
        transition(state, Phase.GAMEOVER)
        return ActionResult(True, "game over")

    if samples is not None:
        state.samples.add(samples)
    owed = required_sacrifices(state.players, state.config)

    if state.config.endurance_mode:
        required = ctx.rules.economy.missions_for(state.current_diff)
        if state.current_mission < required:
            state.current_mission += 1
            logger.info(
                "operation continues: mission %d of %d", state.current_mission, required
            )
            if owed:
                return start_sacrifice(ctx, owed)
            if events.try_trigger(ctx):
                return ActionResult(True, "event triggered")
            for player in state.players:
                player.extracted = True
            return ActionResult(True, "next mission")
        state.current_mission = 1

    _pay_mission_reward(ctx)

    economy = ctx.rules.economy
    if state.current_diff >= economy.max_difficulty and not state.config.endless_mode:
        logger.info("final difficulty cleared; victory")
        transition(state, Phase.VICTORY)
        return ActionResult(True, "victory")
    if state.current_diff < economy.max_difficulty:
        state.current_diff += 1

    if owed:
        return start_sacrifice(ctx, owed)
    return start_draft_phase(ctx)


def _pay_mission_reward(ctx: RunContext) -> None:
    state = ctx.state
    config = state.config
    reward = ctx.rules.economy.mission_reward * ctx.rules.requisition_multiplier(
        config.player_count, config.subfaction
    )
    state.requisition += reward
    ctx.record("record_requisition", reward, "mission")
