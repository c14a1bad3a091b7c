"""
Cooperative cancellation for pipeline waits.

Cancelling only stops local waiting: remote jobs that were already submitted
keep running on the service side.
"""

import asyncio

from stillmotion.models.schemas import ErrorKind


class PipelineCancelledError(Exception):
    """Raised at the next suspension point after a token is cancelled."""

    kind = ErrorKind.CANCELLED

    def __init__(self, message: str = "Video generation was cancelled."):
        self.message = message
        super().__init__(message)


class CancellationToken:
    """
    Cancellation signal checked at every pipeline suspension point.

    Example:
        token = CancellationToken()
        task = asyncio.create_task(orchestrator.generate(request, cancel_token=token))
        ...
        token.cancel()  # generate() fails with kind=CANCELLED
    """

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "Video generation was cancelled.") -> None:
        """Signal cancellation. Only the first reason is kept."""
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise PipelineCancelledError(self.reason or "Video generation was cancelled.")

    async def sleep(self, seconds: float) -> None:
        """
        Wait `seconds`, waking early if cancelled.

        Raises:
            PipelineCancelledError: If the token is (or becomes) cancelled
        """
        self.raise_if_cancelled()
        try:
            await asyncio.wait_for(self._event.wait(), timeout=max(seconds, 0))
        except asyncio.TimeoutError:
            return
        self.raise_if_cancelled()
