# app/routers/websocket_helpers.py

from fastapi import WebSocket
from typing import Dict
import json
import logging

from app.engine.machine import GameStateMachine
from app.errors import InvalidInput
from app.models import GameState, TimerState

logger = logging.getLogger(__name__)


# --- Utility Functions ---

async def send_payload(websocket: WebSocket, payload: Dict):
    """Send a JSON message, ignoring sockets that have already gone away."""
    try:
        await websocket.send_text(json.dumps(payload))
    except Exception as e:
        logger.debug(f"Could not send '{payload.get('type')}' message: {e}")


async def send_state(websocket: WebSocket, engine: GameStateMachine, state: GameState):
    await send_payload(websocket, {"type": "state", **engine.snapshot()})


async def send_tick(websocket: WebSocket, timer: TimerState, level: str):
    await send_payload(websocket, {
        "type": "tick",
        "remaining": timer.remaining,
        "total": timer.total,
        "mode": timer.mode.value,
        "level": level,
    })


# --- Client Messages ---

async def handle_message(engine: GameStateMachine, websocket: WebSocket, data: str):
    """Route one client message to the engine."""
    try:
        message = json.loads(data)
    except json.JSONDecodeError:
        await send_payload(websocket, {"type": "error", "message": "Messages must be JSON."})
        return
    if not isinstance(message, dict):
        await send_payload(websocket, {"type": "error", "message": "Messages must be JSON objects."})
        return

    msg_type = message.get("type")

    if msg_type == "submit_answer":
        try:
            handled = await engine.submit(message.get("answer"))
        except InvalidInput as e:
            await send_payload(websocket, {"type": "invalid_input", "message": str(e)})
            return
    elif msg_type == "accept_chance":
        handled = await engine.accept_second_chance()
    elif msg_type == "decline_chance":
        handled = await engine.decline_second_chance()
    elif msg_type == "retry":
        handled = await engine.retry()
    elif msg_type == "restart":
        handled = await engine.restart()
    else:
        await send_payload(websocket, {"type": "error", "message": f"Unknown message type: {msg_type!r}"})
        return

    if not handled:
        await send_payload(websocket, {
            "type": "ignored",
            "action": msg_type,
            "state": engine.state.kind,
        })
