"""HTTP routes for the Helldrafters API."""

from __future__ import annotations

import io
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import Response
from pydantic import BaseModel, Field

from helldrafters import savegame
from helldrafters.api.runtime import ApiState, SessionService
from helldrafters.domain.enums import Faction
from helldrafters.domain.models import GameConfig
from helldrafters.domain.roster import LobbyEntry
from helldrafters.relay import ActionType, GameSession, Intent, SamplesPayload, SessionRole

router = APIRouter()


def get_state(request: Request) -> ApiState:
    state = getattr(request.app.state, "api_state", None)
    if state is None:  # pragma: no cover - FastAPI should always initialise state
        raise RuntimeError("API state not initialised")
    return state


ApiStateDep = Annotated[ApiState, Depends(get_state)]


class SessionView(BaseModel):
    session_id: str
    role: str
    phase: str
    subsystem: str | None
    version: int
    difficulty: int
    mission: int
    requisition: float
    active_player: int | None
    hand: list[str]
    state: dict[str, object]


class ActionResponse(BaseModel):
    success: bool
    detail: str | None = None
    session: SessionView


class CreateSessionRequest(BaseModel):
    role: SessionRole = SessionRole.SOLO
    player_names: list[str] = Field(min_length=1, max_length=4)
    star_rating: int = Field(default=3, ge=1, le=5)
    faction: Faction = Faction.TERMINID
    subfaction: str = "bugs_vanilla"
    burn_cards: bool = False
    global_uniqueness: bool = False
    endurance_mode: bool = False
    brutality_mode: bool = False
    endless_mode: bool = False
    start_difficulty: int = Field(default=1, ge=1, le=10)


class LobbySlot(BaseModel):
    slot: int = Field(ge=0, le=3)
    name: str | None = None
    connected: bool = True
    warbonds: list[str] = Field(default_factory=list)
    include_superstore: bool = False
    excluded_items: list[str] = Field(default_factory=list)


class RosterResponse(BaseModel):
    joined: list[int]
    reconnected: list[int]
    disconnected: list[int]
    deferred: list[int]
    turn_passed: bool
    session: SessionView


class MissionReportRequest(BaseModel):
    success: bool
    samples: SamplesPayload = Field(default_factory=SamplesPayload)
    player_index: int = Field(default=0, ge=0)


def _session_or_404(state: ApiState, session_id: str) -> GameSession:
    try:
        return state.sessions.get_session(session_id)
    except (FileNotFoundError, ValueError) as exc:
        detail = f"Session {session_id} not found"
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail) from exc


def _view(session: GameSession) -> SessionView:
    return SessionView.model_validate(SessionService.to_view(session))


@router.get("/health")
async def health(state: ApiStateDep) -> dict[str, object]:
    return {
        "status": "ok",
        "catalog_items": len(state.catalog),
        "catalog_events": len(state.catalog.events),
        "autosave": state.settings.autosave_enabled,
    }


@router.get("/sessions", response_model=list[str])
async def list_sessions(state: ApiStateDep) -> list[str]:
    return state.sessions.list_sessions()


@router.post("/sessions", response_model=SessionView, status_code=status.HTTP_201_CREATED)
async def create_session(request: CreateSessionRequest, state: ApiStateDep) -> SessionView:
    if request.role == SessionRole.CLIENT:
        detail = "Only solo or host sessions can be created"
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail)
    config = GameConfig(
        player_count=len(request.player_names),
        star_rating=request.star_rating,
        faction=request.faction,
        subfaction=request.subfaction,
        burn_cards=request.burn_cards,
        global_uniqueness=request.global_uniqueness,
        endurance_mode=request.endurance_mode,
        brutality_mode=request.brutality_mode,
        endless_mode=request.endless_mode,
        custom_start=request.start_difficulty > 1,
    )
    session, result = state.sessions.create_session(
        request.role, config, request.player_names, start_difficulty=request.start_difficulty
    )
    if not result.success:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, result.detail or "Cannot start game")
    return _view(session)


@router.get("/sessions/{session_id}", response_model=SessionView)
async def get_session(session_id: str, state: ApiStateDep) -> SessionView:
    return _view(_session_or_404(state, session_id))


@router.post("/sessions/{session_id}/intents", response_model=ActionResponse)
async def submit_intent(session_id: str, intent: Intent, state: ApiStateDep) -> ActionResponse:
    session = _session_or_404(state, session_id)
    result = session.submit(intent)
    return ActionResponse(success=result.success, detail=result.detail, session=_view(session))


@router.post("/sessions/{session_id}/missions", response_model=ActionResponse)
async def report_mission(
    session_id: str, request: MissionReportRequest, state: ApiStateDep
) -> ActionResponse:
    session = _session_or_404(state, session_id)
    intent = Intent(
        type=ActionType.COMPLETE_MISSION,
        player_index=request.player_index,
        success=request.success,
        samples=request.samples,
    )
    result = session.submit(intent)
    if not result.success:
        raise HTTPException(status.HTTP_409_CONFLICT, result.detail or "Mission not accepted")
    return ActionResponse(success=True, detail=result.detail, session=_view(session))


@router.put("/sessions/{session_id}/roster", response_model=RosterResponse)
async def sync_roster(
    session_id: str, lobby: list[LobbySlot], state: ApiStateDep
) -> RosterResponse:
    _session_or_404(state, session_id)
    entries = [LobbyEntry(**slot.model_dump()) for slot in lobby]
    try:
        session, change = state.sessions.sync_roster(session_id, entries)
    except ValueError as exc:
        raise HTTPException(status.HTTP_409_CONFLICT, str(exc)) from exc
    return RosterResponse(
        joined=change.joined,
        reconnected=change.reconnected,
        disconnected=change.disconnected,
        deferred=change.deferred,
        turn_passed=change.turn_passed,
        session=_view(session),
    )


@router.get("/sessions/{session_id}/export")
async def export_session(
    session_id: str, state: ApiStateDep, autosave: bool = False
) -> Response:
    _session_or_404(state, session_id)
    try:
        manifest = state.sessions.export(session_id, from_autosave=autosave)
    except FileNotFoundError as exc:
        detail = f"No autosave for session {session_id}"
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail) from exc
    buffer = io.BytesIO()
    savegame.save_manifest(manifest, buffer)
    return Response(
        content=buffer.getvalue(),
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{session_id}.helldrafters"'},
    )


@router.post("/sessions/import", response_model=SessionView, status_code=status.HTTP_201_CREATED)
async def import_session(request: Request, state: ApiStateDep) -> SessionView:
    payload = await request.body()
    try:
        manifest = savegame.load_manifest(io.BytesIO(payload))
    except savegame.SnapshotError as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, str(exc)) from exc
    session = state.sessions.import_manifest(manifest)
    return _view(session)
