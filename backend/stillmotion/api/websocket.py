"""
WebSocket handler for real-time progress updates.

Streams progress of the active generation.
"""

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from stillmotion.services.progress_broadcaster import get_progress_broadcaster

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])

HEARTBEAT_INTERVAL = 30.0
TERMINAL_STATUSES = ("completed", "failed")


@router.websocket("/ws/progress")
async def progress_websocket(websocket: WebSocket) -> None:
    """
    WebSocket endpoint for generation progress.

    Messages are JSON objects with status, milestone, progress, message and
    timestamp. The connection closes after a completed/failed message.

    Example client (Python):
        async with websockets.connect("ws://localhost:8801/ws/progress") as ws:
            async for message in ws:
                data = json.loads(message)
                print(f"{data['progress']}% - {data['message']}")

    Args:
        websocket: WebSocket connection
    """
    broadcaster = get_progress_broadcaster()

    await websocket.accept()
    logger.info("WebSocket connected for progress")

    queue = broadcaster.subscribe()

    try:
        while True:
            try:
                message = await asyncio.wait_for(queue.get(), timeout=HEARTBEAT_INTERVAL)
                await websocket.send_json(message)

                if message.get("status") in TERMINAL_STATUSES:
                    break

            except asyncio.TimeoutError:
                # Send heartbeat to keep connection alive
                try:
                    await websocket.send_json({"type": "heartbeat"})
                except Exception:
                    break

    except WebSocketDisconnect:
        logger.info("WebSocket disconnected")
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
    finally:
        broadcaster.unsubscribe(queue)
        logger.info("WebSocket closed")
