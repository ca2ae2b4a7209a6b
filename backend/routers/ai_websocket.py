"""WebSocket endpoint for streaming AI Builder training progress.

A client connects after asking for training and receives the model's message
log from the start (status, training_progress, then training_done, stopped
or error). Sending ``{"command": "stop"}`` asks the engine to stop the run.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from core.ai_engine import ai_engine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ai-ws"])

# Application close code for a model id the engine does not know.
CLOSE_UNKNOWN_MODEL = 4004


async def _forward_commands(ws: WebSocket, model_id: str) -> None:
    try:
        while True:
            data = await ws.receive_json()
            if data.get("command") == "stop" and ai_engine.request_stop(model_id):
                logger.info("Stop requested over WebSocket for model %s", model_id)
    except (WebSocketDisconnect, RuntimeError):
        pass


async def _stream_session(ws: WebSocket, model_id: str) -> None:
    cursor = 0
    while True:
        messages, terminal = await ai_engine.wait_for_update(model_id, cursor, timeout=0.5)
        for msg in messages:
            await ws.send_json(msg)
        cursor += len(messages)
        if terminal:
            return


@router.websocket("/ws/ai/training/{model_id}")
async def ai_training_ws(ws: WebSocket, model_id: str) -> None:
    model = ai_engine.get_model(model_id)
    session = ai_engine.training_session(model_id)
    if model is None or session is None:
        await ws.close(code=CLOSE_UNKNOWN_MODEL, reason="Model not found")
        return

    await ws.accept()

    # Nothing will ever be published for a model that was never sent to train.
    if session.status == "idle":
        await ws.send_json(
            {"model_id": model_id, "type": "status", "status": "idle", "is_trained": model.is_trained}
        )
        await ws.close()
        return

    reader_task = asyncio.create_task(_forward_commands(ws, model_id))
    try:
        await _stream_session(ws, model_id)
    except (WebSocketDisconnect, RuntimeError):
        pass
    finally:
        reader_task.cancel()
        try:
            await ws.close()
        except RuntimeError:
            pass
