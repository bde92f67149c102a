"""Unit tests for the phase state machine and game start."""

from __future__ import annotations

import pytest

from helldrafters.domain import phases
from helldrafters.domain.enums import Phase
from helldrafters.domain.models import GameConfig, GameState, ItemID, Loadout


@pytest.mark.parametrize(
    ("current", "target", "allowed"),
    [
        (Phase.MENU, Phase.LOBBY, True),
        (Phase.MENU, Phase.DRAFT, False),
        (Phase.DASHBOARD, Phase.SACRIFICE, True),
        (Phase.SACRIFICE, Phase.EVENT, False),
        (Phase.EVENT, Phase.DRAFT, True),
        (Phase.VICTORY, Phase.DRAFT, False),
        (Phase.GAMEOVER, Phase.MENU, True),
        (Phase.DRAFT, Phase.KICKED, True),
        (Phase.DRAFT, Phase.DRAFT, True),
    ],
)
def test_can_transition(current, target, allowed):
    assert phases.can_transition(current, target) is allowed


def test_refused_transition_leaves_state_alone():
    state = GameState(phase=Phase.VICTORY)
    assert not phases.transition(state, Phase.DASHBOARD)
    assert state.phase == Phase.VICTORY


def test_active_subsystem():
    assert phases.active_subsystem(Phase.DRAFT) == "draft"
    assert phases.active_subsystem(Phase.DASHBOARD) == "mission"
    assert phases.active_subsystem(Phase.CUSTOM_SETUP) == "setup"
    assert phases.active_subsystem(Phase.GAMEOVER) is None


def test_start_game_builds_the_squad():
    state = GameState(phase=Phase.SOLO_CONFIG, requisition=4.0)
    config = GameConfig()

    assert phases.start_game(state, config, ["Alpha", "Bravo"], warbonds=[["cutting_edge"]])

    assert state.phase == Phase.DASHBOARD
    assert config.player_count == 2
    assert [player.id for player in state.players] == [1, 2]
    assert state.players[0].warbonds == ["cutting_edge"]
    assert state.players[1].warbonds == ["helldivers_mobilize"]
    assert state.requisition == 0.0
    assert state.current_diff == 1
    assert state.custom_setup is None


def test_start_game_needs_a_setup_phase():
    state = GameState(phase=Phase.DASHBOARD)
    assert not phases.start_game(state, GameConfig(), ["Alpha"])
    assert state.players == []


def test_start_game_needs_players():
    state = GameState(phase=Phase.LOBBY)
    assert not phases.start_game(state, GameConfig(), [])
    assert state.phase == Phase.LOBBY


def test_custom_start_with_loadouts():
    state = GameState(phase=Phase.CUSTOM_SETUP)
    loadout = Loadout(primary=ItemID("p_lib"), stratagems=[ItemID("st_mg"), None, None, None])

    phases.start_game(
        state, GameConfig(custom_start=True), ["Alpha"], start_difficulty=14, loadouts=[loadout]
    )

    player = state.players[0]
    assert state.current_diff == 10
    assert state.custom_setup == {"difficulty": 10, "custom_loadouts": True}
    assert player.loadout is loadout
    assert player.owns("p_lib")
    assert player.owns("st_mg")
