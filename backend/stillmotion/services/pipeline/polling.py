"""
Fixed-interval polling of remote operations.

Waits `interval_sec`, polls the current snapshot, and repeats until the
service reports completion. There is no backoff and, by default, no attempt
or duration cap. Poll failures propagate unmodified.
"""

import logging

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_result,
    stop_after_delay,
    stop_never,
    wait_fixed,
)

from stillmotion.models.schemas import ErrorKind, RemoteOperation
from stillmotion.services.operation_clients.base import RemoteOperationClient
from stillmotion.services.pipeline.cancellation import CancellationToken

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SEC = 20.0


class PollTimeoutError(Exception):
    """Raised when an operation is still running after the configured cap."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, message: str, operation: RemoteOperation | None = None):
        self.message = message
        self.operation = operation
        super().__init__(message)


def _not_done(operation: RemoteOperation) -> bool:
    return not operation.done


def _log_still_running(retry_state: RetryCallState) -> None:
    operation = retry_state.outcome.result()
    logger.debug(
        f"Operation {operation.name} still running "
        f"(poll {retry_state.attempt_number}, {retry_state.seconds_since_start:.0f}s)"
    )


async def poll_until_done(
    client: RemoteOperationClient,
    operation: RemoteOperation,
    interval_sec: float = DEFAULT_POLL_INTERVAL_SEC,
    max_duration_sec: float | None = None,
    cancel_token: CancellationToken | None = None,
) -> RemoteOperation:
    """
    Poll an operation until it reports done.

    An operation that is already done is returned as-is without any poll
    call. Otherwise every poll is preceded by a wait of `interval_sec`.

    Args:
        client: Client used for poll calls
        operation: Snapshot returned by submit()
        interval_sec: Wait before each poll
        max_duration_sec: Optional cap, measured from the first poll
        cancel_token: Optional token that interrupts waits

    Returns:
        Snapshot with done=True

    Raises:
        PollTimeoutError: If max_duration_sec elapses first
        PipelineCancelledError: If the token is cancelled
        Exception: Any error raised by client.poll(), unmodified
    """
    if operation.done:
        return operation

    token = cancel_token or CancellationToken()
    current = operation

    async def _poll_once() -> RemoteOperation:
        nonlocal current
        token.raise_if_cancelled()
        current = await client.poll(current)
        return current

    stop = stop_never if max_duration_sec is None else stop_after_delay(max_duration_sec)
    retrying = AsyncRetrying(
        retry=retry_if_result(_not_done),
        wait=wait_fixed(interval_sec),
        stop=stop,
        sleep=token.sleep,
        before_sleep=_log_still_running,
    )

    logger.info(f"Polling operation {operation.name} every {interval_sec:.0f}s")

    await token.sleep(interval_sec)
    try:
        done_operation = await retrying(_poll_once)
    except RetryError as e:
        raise PollTimeoutError(
            f"Video generation did not finish within {max_duration_sec:.0f}s.",
            operation=current,
        ) from e

    logger.info(f"Operation {done_operation.name} done")
    return done_operation
