"""WebSocket bridge between a touch surface and radial menu renderers.

A single pointer client streams raw touch samples to /ws/pointer; the
controller resolves them and every renderer connected to /ws receives menu
state changes and gesture outcomes as JSON messages.

Pointer messages:
    {"type": "down", "pointer_id": 0, "x": 500, "y": 1000}
    {"type": "move", "pointer_id": 0, "x": 520, "y": 930}
    {"type": "up", "pointer_id": 0, "x": 520, "y": 930}
    {"type": "cancel", "pointer_id": 0}
    {"type": "resize", "width": 1080, "height": 2400}

Usage:
    gesture-menu serve --record session.json   # save each pointer session for replay
    # or
    uvicorn gesture_menu.server:app --host 0.0.0.0 --port 8765
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Literal, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ValidationError

from gesture_menu import __version__
from gesture_menu.config import GestureConfig
from gesture_menu.controller import GestureMenuController, GestureOutcome
from gesture_menu.events import QueueEventSource
from gesture_menu.haptics import HapticFeedback
from gesture_menu.hooks import HostHooks
from gesture_menu.metrics import MetricsCollector
from gesture_menu.recorder import PointerRecorder
from gesture_menu.state import MenuState, MenuStateStore

logger = logging.getLogger("gesture_menu.server")


class PointerMessage(BaseModel):
    type: Literal["down", "move", "up", "cancel", "resize", "ping"]
    pointer_id: int = 0
    x: float = 0.0
    y: float = 0.0
    width: Optional[float] = None
    height: Optional[float] = None


# --- State ---

class ServerState:
    def __init__(self):
        self.clients: set[WebSocket] = set()
        self.config = GestureConfig()
        self.metrics = MetricsCollector()
        self.store = MenuStateStore()
        self.controller: Optional[GestureMenuController] = None
        self.hooks: Optional[HostHooks] = None
        self.record_path: Optional[Path] = None
        self.source: Optional[QueueEventSource] = None
        self.outbox: Optional[asyncio.Queue] = None
        self.last_outcome: Optional[dict] = None
        self.total_outcomes = 0

state = ServerState()


def configure(
    config: Optional[GestureConfig] = None,
    hooks: Optional[HostHooks] = None,
    record_path: Optional[str | Path] = None,
):
    """Build the controller for this server. Call before the app starts.

    With `record_path` set, every pointer connection is recorded and saved
    there (JSON, or npz for a `.npz` path) when it disconnects.
    """
    if config is not None:
        state.config = config
    if hooks is not None:
        state.hooks = hooks
    state.record_path = Path(record_path) if record_path is not None else None

    state.store = MenuStateStore()
    state.store.subscribe(_on_menu_change)
    state.controller = GestureMenuController(
        store=state.store,
        config=state.config,
        haptics=HapticFeedback.from_command(state.config.vibrator_command, metrics=state.metrics),
        metrics=state.metrics,
    )
    state.controller.on_outcome(_on_outcome)


def _enqueue(message: dict, outcome: Optional[GestureOutcome] = None):
    if state.outbox is not None:
        state.outbox.put_nowait((message, outcome))


def _on_menu_change(menu: MenuState):
    _enqueue({"type": "menu", **menu.to_dict()})


def _on_outcome(outcome: GestureOutcome):
    state.total_outcomes += 1
    state.last_outcome = outcome.to_dict()
    _enqueue({"type": "outcome", **outcome.to_dict()}, outcome)


async def _pump_outbox():
    """Forward controller output to renderers and host hooks."""
    while True:
        message, outcome = await state.outbox.get()
        await broadcast(message)
        if outcome is not None and state.hooks is not None:
            await state.hooks.dispatch(outcome)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    if state.controller is None:
        configure()
    state.outbox = asyncio.Queue()
    pump = asyncio.create_task(_pump_outbox())
    logger.info("gesture-menu server ready")
    try:
        yield
    finally:
        pump.cancel()
        try:
            await pump
        except asyncio.CancelledError:
            pass
        if state.source is not None:
            state.source.close()
        if state.hooks is not None:
            await state.hooks.aclose()
        state.outbox = None


app = FastAPI(title="gesture-menu", version=__version__, lifespan=lifespan)


# --- API endpoints ---

@app.get("/api/status")
async def api_status():
    controller = state.controller
    return {
        "pointer_connected": state.source is not None,
        "clients": len(state.clients),
        "session_active": controller is not None and controller.session is not None,
        "screen_size": list(controller.screen_size) if controller else None,
        "total_outcomes": state.total_outcomes,
        "last_outcome": state.last_outcome,
        "outcomes": state.metrics.outcome_counts,
    }


@app.get("/api/menu")
async def api_menu():
    return state.store.value.to_dict()


@app.get("/api/config")
async def api_config():
    return state.config.to_dict()


# --- Prometheus metrics ---

@app.get("/metrics")
async def metrics():
    state.metrics.set_connections(len(state.clients) + (1 if state.source else 0))
    return PlainTextResponse(
        state.metrics.render(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )


# --- WebSocket: renderers ---

@app.websocket("/ws")
async def renderer_endpoint(ws: WebSocket):
    await ws.accept()
    state.clients.add(ws)
    logger.info("Renderer connected (%d total)", len(state.clients))

    try:
        await ws.send_json({"type": "connected", "menu": state.store.value.to_dict()})

        while True:
            try:
                msg = await asyncio.wait_for(ws.receive_text(), timeout=30)
                data = json.loads(msg)
                if data.get("type") == "ping":
                    await ws.send_json({"type": "pong", "server_time": time.time()})
            except asyncio.TimeoutError:
                await ws.send_json({"type": "ping"})
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.debug("Renderer WebSocket error: %s", e)
    finally:
        state.clients.discard(ws)
        logger.info("Renderer disconnected (%d total)", len(state.clients))


# --- WebSocket: pointer input ---

@app.websocket("/ws/pointer")
async def pointer_endpoint(ws: WebSocket):
    await ws.accept()

    if state.source is not None:
        await ws.send_json({"type": "error", "detail": "pointer stream already active"})
        await ws.close(code=1013)
        return

    source = QueueEventSource()
    state.source = source
    task = asyncio.create_task(state.controller.run(source))
    logger.info("Pointer stream connected")

    recorder = None
    if state.record_path is not None:
        recorder = PointerRecorder(screen_size=state.controller.screen_size)
        recorder.start()

    try:
        while True:
            raw = await ws.receive_text()
            try:
                msg = PointerMessage.model_validate_json(raw)
            except ValidationError as e:
                await ws.send_json({"type": "error", "detail": e.errors(include_url=False)})
                continue

            if msg.type == "ping":
                await ws.send_json({"type": "pong", "server_time": time.time()})
            elif msg.type == "resize":
                if msg.width and msg.height and msg.width > 0 and msg.height > 0:
                    state.controller.screen_size = (msg.width, msg.height)
                else:
                    await ws.send_json({"type": "error", "detail": "resize needs positive width and height"})
            else:
                event = source.push_pointer(
                    msg.pointer_id,
                    (msg.x, msg.y),
                    pressed=msg.type in ("down", "move"),
                    cancelled=msg.type == "cancel",
                )
                if recorder is not None:
                    recorder.add_event(event)
    except WebSocketDisconnect:
        pass
    finally:
        source.close()
        try:
            await task
        except Exception as e:
            logger.error("Controller stopped with error: %s", e)
        state.source = None
        if recorder is not None:
            _save_recording(recorder, state.record_path)
        logger.info("Pointer stream disconnected")


def _save_recording(recorder: PointerRecorder, path: Path):
    recorder.stop()
    recorder.screen_size = state.controller.screen_size
    if path.suffix == ".npz":
        recorder.save_compact(path)
    else:
        recorder.save(path)
    logger.info("Saved %d pointer events to %s", recorder.event_count, path)


async def broadcast(message: dict):
    """Send message to all renderer clients."""
    if not state.clients:
        return
    dead = set()
    payload = json.dumps(message)
    for ws in state.clients:
        try:
            await ws.send_text(payload)
        except Exception:
            dead.add(ws)
    state.clients -= dead


# --- CLI entry point ---

def main():
    import argparse
    import uvicorn

    parser = argparse.ArgumentParser(description="gesture-menu WebSocket server")
    parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    parser.add_argument("--port", type=int, default=8765, help="Port")
    parser.add_argument("--log-level", default="info")
    parser.add_argument("--record", default=None, help="Save pointer sessions to this path")
    args = parser.parse_args()

    configure(record_path=args.record)
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level)


if __name__ == "__main__":
    main()
