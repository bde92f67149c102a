"""JSON-based repository for crash-recovery autosaves."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from helldrafters.domain.models import GameState
from helldrafters.savegame import STATE_ADAPTER

logger = logging.getLogger(__name__)

_SESSION_ID = re.compile(r"^[A-Za-z0-9_-]+$")


class JsonStateRepository:
    """Persist game states as JSON snapshots on disk, one file per session."""

    prefix = "session_"
    suffix = ".json"

    def __init__(self, base_path: Path) -> None:
        self.base_path = base_path
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _path_for(self, session_id: str) -> Path:
        if not _SESSION_ID.match(session_id):
            raise ValueError(f"invalid session id {session_id!r}")
        return self.base_path / f"{self.prefix}{session_id}{self.suffix}"

    def save(self, session_id: str, state: GameState) -> Path:
        """Serialize a state to disk and return the snapshot path."""

        path = self._path_for(session_id)
        payload = STATE_ADAPTER.dump_json(state, indent=2)
        path.write_bytes(payload)
        logger.debug("autosaved session %s (version %d)", session_id, state.version)
        return path

    def load(self, session_id: str) -> GameState:
        """Load a previously saved state or raise ``FileNotFoundError``."""

        path = self._path_for(session_id)
        data = path.read_bytes()
        return STATE_ADAPTER.validate_json(data)

    def list_sessions(self) -> list[str]:
        """Return all session ids currently persisted in the repository."""

        ids: list[str] = []
        for path in self.base_path.glob(f"{self.prefix}*{self.suffix}"):
            name = path.name
            session_id = name[len(self.prefix) : -len(self.suffix)]
            if _SESSION_ID.match(session_id):
                ids.append(session_id)
        return sorted(ids)

    def delete(self, session_id: str) -> None:
        """Remove a session snapshot if it exists."""

        path = self._path_for(session_id)
        if path.exists():
            path.unlink()
