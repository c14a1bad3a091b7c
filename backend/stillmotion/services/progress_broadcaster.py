"""
Progress broadcaster for the active generation.

Fans progress events of the current pipeline run out to WebSocket
subscribers. In-memory only.
"""

import asyncio
import logging
from datetime import datetime

from stillmotion.models.schemas import ProgressEvent

logger = logging.getLogger(__name__)


class ProgressBroadcaster:
    """
    Broadcasts progress messages to subscribed clients.

    Remembers the last message; a client that subscribes while a run is
    active receives it right away instead of waiting for the next milestone.

    Example:
        broadcaster = ProgressBroadcaster()
        queue = broadcaster.subscribe()

        await broadcaster.publish_event(event)
        message = await queue.get()
    """

    def __init__(self):
        """Initialize broadcaster with no subscribers."""
        self._subscribers: list[asyncio.Queue] = []
        self.last_message: dict | None = None

    async def publish_event(self, event: ProgressEvent) -> None:
        """
        Broadcast a pipeline progress event.

        Args:
            event: Progress event from the orchestrator
        """
        await self._broadcast({
            "status": "running",
            "milestone": event.milestone.value,
            "progress": event.progress,
            "message": event.message,
            "timestamp": event.timestamp.isoformat(),
        })

    async def publish_completed(self, size_bytes: int) -> None:
        """Broadcast successful completion."""
        await self._broadcast({
            "status": "completed",
            "progress": 100,
            "message": "Video ready",
            "size_bytes": size_bytes,
            "timestamp": datetime.now().isoformat(),
        })

    async def publish_failed(self, kind: str, message: str) -> None:
        """Broadcast failure."""
        await self._broadcast({
            "status": "failed",
            "kind": kind,
            "message": message,
            "timestamp": datetime.now().isoformat(),
        })

    def subscribe(self) -> asyncio.Queue:
        """
        Subscribe to progress updates.

        Returns:
            Queue that will receive progress messages
        """
        queue: asyncio.Queue = asyncio.Queue()
        if self.last_message and self.last_message.get("status") == "running":
            queue.put_nowait(self.last_message)
        self._subscribers.append(queue)
        logger.debug(f"Client subscribed ({len(self._subscribers)} total)")
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        """
        Unsubscribe from progress updates.

        Args:
            queue: Queue returned by subscribe()
        """
        try:
            self._subscribers.remove(queue)
            logger.debug(f"Client unsubscribed ({len(self._subscribers)} left)")
        except ValueError:
            pass

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def _broadcast(self, message: dict) -> None:
        """
        Send a message to every subscriber.

        Args:
            message: Message to broadcast
        """
        self.last_message = message

        for queue in list(self._subscribers):
            try:
                await queue.put(message)
            except Exception as e:
                logger.warning(f"Failed to broadcast to subscriber: {e}")


# Global broadcaster instance
progress_broadcaster = ProgressBroadcaster()


def get_progress_broadcaster() -> ProgressBroadcaster:
    """Get global progress broadcaster instance."""
    return progress_broadcaster
