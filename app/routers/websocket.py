# app/routers/websocket.py

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from functools import partial
from typing import Callable, Dict, Optional
import uuid
import logging

from app.engine.machine import GameStateMachine
from app.models import Difficulty, Identity
from .websocket_helpers import handle_message, send_payload, send_state, send_tick

router = APIRouter()
logger = logging.getLogger(__name__)

# --- Live Engines ---
active_engines: Dict[str, GameStateMachine] = {}


def get_engine_factory() -> Callable[..., GameStateMachine]:
    """Builds one engine per connection. Overridden in tests."""
    return GameStateMachine


# --- Main WebSocket Endpoint ---
@router.websocket("/ws/play/{difficulty}")
async def play_endpoint(
    websocket: WebSocket,
    difficulty: str,
    user_id: Optional[str] = None,
    username: Optional[str] = None,
    engine_factory: Callable[..., GameStateMachine] = Depends(get_engine_factory),
):
    await websocket.accept()
    try:
        level = Difficulty.parse(difficulty)
    except ValueError as e:
        await send_payload(websocket, {"type": "error", "message": str(e)})
        await websocket.close(code=1008)
        return

    engine = engine_factory(level, Identity(id=user_id, username=username))
    engine.subscribe(partial(send_state, websocket, engine), partial(send_tick, websocket))

    connection_id = uuid.uuid4().hex
    active_engines[connection_id] = engine
    logger.info(f"Play connection '{connection_id}' opened for '{username}' ({level.value})")

    try:
        await engine.start()
        while True:
            data = await websocket.receive_text()
            await handle_message(engine, websocket, data)
    except WebSocketDisconnect:
        logger.info(f"Play connection '{connection_id}' disconnected")
    finally:
        active_engines.pop(connection_id, None)
        await engine.shutdown()
