"""Snapshot serialization and `.helldrafters` export archives."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import IO, Any
from uuid import UUID, uuid4
from zipfile import ZIP_DEFLATED, BadZipFile, ZipFile

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, model_validator

from helldrafters import __version__
from helldrafters.domain.models import GameState

STATE_ADAPTER: TypeAdapter[GameState] = TypeAdapter(GameState)

REQUIRED_STATE_KEYS = ("phase", "config", "players")

MANIFEST_PATH = "helldrafters/manifest.json"


class SnapshotError(ValueError):
    """Raised when a snapshot or export archive cannot be turned into a state."""


class SaveKind(StrEnum):
    """Distinguish manual exports from crash-recovery autosaves."""

    EXPORT = "export"
    AUTOSAVE = "autosave"


def serialize_state(state: GameState) -> dict[str, Any]:
    """Return a JSON-compatible snapshot of ``state``."""

    return STATE_ADAPTER.dump_python(state, mode="json")


def deserialize_state(payload: dict[str, Any]) -> GameState:
    """Validate ``payload`` and rebuild the state it describes.

    Raises:
        SnapshotError: if a required key is missing or validation fails.
    """

    if not isinstance(payload, dict):
        raise SnapshotError("snapshot must be a JSON object")
    missing = [key for key in REQUIRED_STATE_KEYS if key not in payload]
    if missing:
        raise SnapshotError(f"snapshot is missing required keys: {', '.join(missing)}")
    try:
        return STATE_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        raise SnapshotError(f"invalid snapshot: {exc.error_count()} validation errors") from exc


class SaveMetadata(BaseModel):
    """High-level information about an exported run."""

    id: UUID = Field(default_factory=uuid4)
    name: str
    session_id: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    game_version: str = __version__


class SaveManifest(BaseModel):
    """Top-level manifest stored in a `.helldrafters` archive."""

    format_version: int = 1
    kind: SaveKind = SaveKind.EXPORT
    metadata: SaveMetadata
    state: GameState

    @model_validator(mode="before")
    @classmethod
    def _convert_state(cls, values: dict[str, Any]) -> dict[str, Any]:
        raw = values.get("state")
        if raw is not None and not isinstance(raw, GameState):
            values["state"] = deserialize_state(raw)
        return values

    def model_dump(self, *args: Any, **kwargs: Any) -> dict[str, Any]:
        data = super().model_dump(*args, **kwargs)
        data["state"] = serialize_state(self.state)
        return data


def export_state(
    state: GameState,
    *,
    name: str = "Helldrafters run",
    session_id: str | None = None,
    kind: SaveKind = SaveKind.EXPORT,
) -> SaveManifest:
    """Produce a manifest from an in-memory state."""

    return SaveManifest(
        kind=kind,
        metadata=SaveMetadata(name=name, session_id=session_id),
        state=state,
    )


def manifest_bytes(manifest: SaveManifest) -> bytes:
    return json.dumps(
        manifest.model_dump(mode="json"),
        indent=2,
        sort_keys=True,
    ).encode("utf-8")


def parse_manifest(payload: Any) -> SaveManifest:
    """Validate a decoded manifest document.

    Raises:
        SnapshotError: if the document is not a valid manifest.
    """

    try:
        return SaveManifest.model_validate(payload)
    except ValidationError as exc:
        raise SnapshotError(f"invalid manifest: {exc.error_count()} validation errors") from exc


def save_manifest(manifest: SaveManifest, path: Path | str | IO[bytes]) -> Path | IO[bytes]:
    """Write a manifest to a `.helldrafters` archive (a path or a binary stream)."""

    target = Path(path) if isinstance(path, str | Path) else path
    if isinstance(target, Path):
        target.parent.mkdir(parents=True, exist_ok=True)
    with ZipFile(target, "w", ZIP_DEFLATED) as archive:
        archive.writestr(MANIFEST_PATH, manifest_bytes(manifest))
    return target


def load_manifest(path: Path | str | IO[bytes]) -> SaveManifest:
    """Load a manifest from a `.helldrafters` archive.

    Raises:
        FileNotFoundError: if the archive does not exist.
        SnapshotError: if the archive or its manifest is malformed.
    """

    zip_path = Path(path) if isinstance(path, str | Path) else path
    if isinstance(zip_path, Path) and not zip_path.exists():
        raise FileNotFoundError(f"archive {zip_path} not found")
    try:
        with ZipFile(zip_path, "r") as archive:
            with archive.open(MANIFEST_PATH) as manifest_file:
                payload = json.load(manifest_file)
    except KeyError as exc:
        raise SnapshotError("manifest.json not found in archive") from exc
    except (BadZipFile, json.JSONDecodeError) as exc:
        raise SnapshotError(f"unreadable archive: {exc}") from exc
    return parse_manifest(payload)


__all__ = [
    "MANIFEST_PATH",
    "STATE_ADAPTER",
    "SaveKind",
    "SaveManifest",
    "SaveMetadata",
    "SnapshotError",
    "deserialize_state",
    "export_state",
    "load_manifest",
    "manifest_bytes",
    "parse_manifest",
    "save_manifest",
    "serialize_state",
]
