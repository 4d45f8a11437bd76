"""
WebSocket Router
Real-time generation progress with per-subscriber fanout queues.
"""

import asyncio
import json

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..config import get_settings
from ..services.progress_broadcaster import ProgressBroadcaster, Subscription
from ..utils.logger import get_logger

router = APIRouter()
logger = get_logger()


def _extract_websocket_api_key(websocket: WebSocket) -> str:
    api_key = websocket.headers.get("x-api-key", "").strip()
    if api_key:
        return api_key

    auth_header = websocket.headers.get("authorization", "")
    if auth_header.lower().startswith("bearer "):
        return auth_header.split(" ", 1)[1].strip()

    return websocket.query_params.get("token", "").strip()


def _is_authorized(websocket: WebSocket) -> bool:
    settings = get_settings()
    if not settings.api_key:
        return True
    return _extract_websocket_api_key(websocket) == settings.api_key


@router.websocket("/ws/progress")
async def progress_endpoint(websocket: WebSocket):
    """Progress channel: every subscriber receives every job's events."""
    if not _is_authorized(websocket):
        await websocket.close(code=1008, reason="Unauthorized")
        return

    broadcaster: ProgressBroadcaster = websocket.app.state.broadcaster

    await websocket.accept()
    subscription = await broadcaster.subscribe(websocket)

    try:
        send_task = asyncio.create_task(send_updates(websocket, subscription))
        receive_task = asyncio.create_task(receive_messages(websocket))

        done, pending = await asyncio.wait(
            [send_task, receive_task],
            return_when=asyncio.FIRST_COMPLETED,
        )

        for task in done:
            try:
                await task
            except (WebSocketDisconnect, asyncio.CancelledError):
                pass
            except Exception as exc:
                logger.debug(f"Progress subscriber task ended: {exc}")

        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    except WebSocketDisconnect:
        logger.info("Progress subscriber disconnected")
    except Exception as exc:
        logger.error(f"WebSocket error: {exc}")
    finally:
        await broadcaster.unsubscribe(websocket)


async def send_updates(websocket: WebSocket, subscription: Subscription):
    """Send queued events to the subscriber until it goes away."""
    while True:
        payload = await subscription.next_payload()
        try:
            await websocket.send_json(payload)
        except (WebSocketDisconnect, RuntimeError):
            break


async def receive_messages(websocket: WebSocket):
    """Answer keep-alive pings; other client messages are ignored."""
    while True:
        try:
            data = await websocket.receive_text()
        except (WebSocketDisconnect, RuntimeError):
            break

        try:
            message = json.loads(data)
        except json.JSONDecodeError:
            continue
        if isinstance(message, dict) and message.get("type") == "ping":
            await websocket.send_json({"type": "pong"})
