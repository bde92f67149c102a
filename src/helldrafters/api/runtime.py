"""Runtime primitives backing the Helldrafters HTTP API."""

from __future__ import annotations

import copy
import logging
import uuid
from collections.abc import Sequence

from helldrafters import savegame
from helldrafters.config import Settings, get_settings
from helldrafters.domain.catalog import Catalog, load_catalog
from helldrafters.domain import phases
from helldrafters.domain.context import ActionResult
from helldrafters.domain.hand import card_key
from helldrafters.domain.models import GameConfig, GameState
from helldrafters.domain.roster import LobbyEntry, RosterChange
from helldrafters.domain.rules_config import DEFAULT_RULES, RulesConfig
from helldrafters.interfaces.analytics import LoggingAnalytics
from helldrafters.relay import GameSession, InMemoryRelay, Intent, SessionRole
from helldrafters.repository import JsonStateRepository
from helldrafters.utils.rng import generate_seed, make_rng

logger = logging.getLogger(__name__)


class SessionService:
    """Create, look up and persist the sessions hosted by this process."""

    def __init__(
        self,
        repository: JsonStateRepository,
        catalog: Catalog,
        *,
        rules: RulesConfig = DEFAULT_RULES,
        autosave: bool = True,
        rng_seed: str | None = None,
        debug_draft_filtering: bool = False,
    ) -> None:
        self._repository = repository
        self._catalog = catalog
        self._rules = rules
        self._autosave = autosave
        self._rng_seed = rng_seed
        self._debug = debug_draft_filtering
        self._sessions: dict[str, GameSession] = {}

    def _build_session(
        self, session_id: str, role: SessionRole, state: GameState | None = None
    ) -> GameSession:
        seed = self._rng_seed or generate_seed(session_id)
        session = GameSession(
            session_id,
            role,
            catalog=self._catalog,
            rules=self._rules,
            channel=InMemoryRelay() if role == SessionRole.HOST else None,
            rng=make_rng(seed),
            analytics=LoggingAnalytics(),
            state=state,
            on_change=self._persist if self._autosave else None,
            debug_draft_filtering=self._debug,
        )
        self._sessions[session_id] = session
        return session

    def _persist(self, session: GameSession) -> None:
        self._repository.save(session.session_id, session.state)

    def create_session(
        self,
        role: SessionRole,
        config: GameConfig,
        player_names: Sequence[str],
        *,
        start_difficulty: int = 1,
    ) -> tuple[GameSession, ActionResult]:
        """Create a session and start its run."""

        if role == SessionRole.CLIENT:
            raise ValueError("the API only hosts solo or host sessions")
        session_id = uuid.uuid4().hex[:12]
        session = self._build_session(session_id, role)
        result = session.start_game(config, player_names, start_difficulty=start_difficulty)
        logger.info("created %s session %s: %s", role, session_id, result)
        return session, result

    def get_session(self, session_id: str) -> GameSession:
        """Return a live session, recovering it from its autosave if needed.

        Raises:
            FileNotFoundError: if the session is neither live nor persisted.
        """

        session = self._sessions.get(session_id)
        if session is not None:
            return session
        state = self._repository.load(session_id)
        role = SessionRole.HOST if len(state.players) > 1 else SessionRole.SOLO
        logger.info("recovered session %s from autosave (version %d)", session_id, state.version)
        return self._build_session(session_id, role, state)

    def list_sessions(self) -> list[str]:
        return sorted(set(self._sessions) | set(self._repository.list_sessions()))

    def submit(self, session_id: str, intent: Intent) -> tuple[GameSession, ActionResult]:
        session = self.get_session(session_id)
        return session, session.submit(intent)

    def sync_roster(
        self, session_id: str, lobby: Sequence[LobbyEntry]
    ) -> tuple[GameSession, RosterChange]:
        session = self.get_session(session_id)
        if session.role != SessionRole.HOST:
            raise ValueError(f"{session.role} sessions have no lobby")
        return session, session.sync_roster(lobby)

    def export(self, session_id: str, *, from_autosave: bool = False) -> savegame.SaveManifest:
        """Package a run for download.

        ``from_autosave`` exports the last persisted snapshot instead of the live
        state, which is what a crashed host would come back up with.
        """

        if from_autosave:
            state = self._repository.load(session_id)
            kind = savegame.SaveKind.AUTOSAVE
        else:
            state = self.get_session(session_id).state
            kind = savegame.SaveKind.EXPORT
        return savegame.export_state(
            state, name=f"Helldrafters run {session_id}", session_id=session_id, kind=kind
        )

    def import_manifest(self, manifest: savegame.SaveManifest) -> GameSession:
        """Host the run stored in ``manifest`` under a fresh session id."""

        state = copy.deepcopy(manifest.state)
        role = SessionRole.HOST if len(state.players) > 1 else SessionRole.SOLO
        session = self._build_session(uuid.uuid4().hex[:12], role)
        session.replace_state(state)
        return session

    @staticmethod
    def to_view(session: GameSession) -> dict[str, object]:
        """Return a JSON-friendly view of a session for clients."""

        state = session.state
        draft = state.draft_state
        return {
            "session_id": session.session_id,
            "role": str(session.role),
            "phase": str(state.phase),
            "subsystem": phases.active_subsystem(state.phase),
            "version": state.version,
            "difficulty": state.current_diff,
            "mission": state.current_mission,
            "requisition": state.requisition,
            "active_player": draft.active_player_index if draft is not None else None,
            "hand": [card_key(card) for card in draft.round_cards] if draft is not None else [],
            "state": savegame.serialize_state(state),
        }


class ApiState:
    """Aggregated services shared by the FastAPI layer."""

    def __init__(
        self, *, settings: Settings | None = None, rules: RulesConfig = DEFAULT_RULES
    ) -> None:
        self.settings = settings or get_settings()
        self.repository = JsonStateRepository(self.settings.data_dir)
        self.catalog = load_catalog(self.settings.catalog_path)
        self.rules = rules
        self.sessions = SessionService(
            self.repository,
            self.catalog,
            rules=rules,
            autosave=self.settings.autosave_enabled,
            rng_seed=self.settings.rng_seed,
            debug_draft_filtering=self.settings.debug_draft_filtering,
        )

    async def shutdown(self) -> None:
        logger.info("API shutting down with %d live sessions", len(self.sessions.list_sessions()))


def build_state() -> ApiState:
    """Factory used by the API to initialize state."""

    return ApiState()
