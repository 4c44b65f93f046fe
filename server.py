from typing import Any, Dict

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel

import game_context
from game_runner import Game
from game_session import GameSession
from rules.save_load import export_filename
from ui.events import build_state_payload
from ui.web_provider import WebProvider

game_context.configure_logging()

app = FastAPI(title="SuperBeatMaker")

app.add_middleware(
    CORSMiddleware,
    allow_origins=game_context.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

STORE = game_context.STORE

sessions: Dict[str, GameSession] = {}


class StartRequest(BaseModel):
    session_id: str
    mode: str = "normal"
    manual_track_type: bool = False


class StepRequest(BaseModel):
    session_id: str
    command: str
    index: int | None = None
    track_type: str | None = None
    power_up: str | None = None


class SessionRequest(BaseModel):
    session_id: str


class ImportRequest(BaseModel):
    session_id: str
    content: str


def _session(session_id: str) -> GameSession:
    if session_id not in sessions:
        session = GameSession(None, session_id)
        ui = WebProvider(session)
        session.game = Game(ui, store=STORE)
        sessions[session_id] = session
    return sessions[session_id]


@app.post("/run/start")
def start_run(req: StartRequest):
    session = _session(req.session_id)
    session.game.start(req.mode, req.manual_track_type)
    return session.drain()


@app.post("/run/continue")
def continue_run(req: SessionRequest):
    session = _session(req.session_id)
    ok = session.game.continue_run()
    return {"ok": ok, "events": session.drain()}


@app.post("/run/new")
def new_run(req: SessionRequest):
    session = _session(req.session_id)
    session.game.new_run()
    return session.drain()


@app.get("/run/{session_id}")
def get_run(session_id: str):
    session = sessions.get(session_id)
    state = session.game.state if session else None
    return build_state_payload(state)


@app.get("/run/{session_id}/export")
def export_run(session_id: str):
    session = sessions.get(session_id)
    data = session.game.export_file() if session else None
    if data is None:
        raise HTTPException(status_code=404, detail="No active run")
    return Response(
        content=data,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@app.post("/run/import")
def import_run(req: ImportRequest):
    session = _session(req.session_id)
    ok = session.game.import_file(req.content)
    return {"ok": ok, "events": session.drain()}


@app.post("/step")
def step(req: StepRequest):
    session = _session(req.session_id)
    payload: Dict[str, Any] = {
        "command": req.command,
        "index": req.index,
        "track_type": req.track_type,
        "power_up": req.power_up,
    }
    payload = {k: v for k, v in payload.items() if v is not None}
    return session.step(payload)


@app.post("/events")
def events(req: SessionRequest):
    if req.session_id not in sessions:
        return []
    return sessions[req.session_id].drain()
