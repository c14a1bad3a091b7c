import pytest

from stillmotion.models.schemas import RemoteOperation
from stillmotion.services.pipeline import (
    PipelineCancelledError,
    PollTimeoutError,
    poll_until_done,
)


async def test_done_operation_returned_without_polling(fake_client, token):
    operation = RemoteOperation(name="operations/1", done=True)

    result = await poll_until_done(fake_client, operation, cancel_token=token)

    assert result is operation
    assert fake_client.polls == []
    assert token.sleeps == []


async def test_waits_interval_before_every_poll(fake_client, token):
    fake_client.pending_polls = 2
    operation = RemoteOperation(name="operations/1", done=False)

    result = await poll_until_done(fake_client, operation, interval_sec=20.0, cancel_token=token)

    assert result.done
    assert result.result == fake_client.result_for(1)
    assert len(fake_client.polls) == 3
    assert token.sleeps == [20.0, 20.0, 20.0]


async def test_each_poll_uses_latest_snapshot(fake_client, token):
    fake_client.pending_polls = 2
    operation = RemoteOperation(name="operations/1", done=False)

    await poll_until_done(fake_client, operation, cancel_token=token)

    assert fake_client.polls[0] is operation
    assert fake_client.polls[1] is not operation
    assert all(polled.name == "operations/1" for polled in fake_client.polls)


async def test_poll_error_propagates_unmodified(fake_client, token):
    error = ConnectionError("connection reset")
    fake_client.poll_error = error

    with pytest.raises(ConnectionError) as exc_info:
        await poll_until_done(fake_client, RemoteOperation(name="operations/1"), cancel_token=token)

    assert exc_info.value is error
    assert len(fake_client.polls) == 1


async def test_duration_cap_raises_timeout(fake_client, token):
    fake_client.pending_polls = 1000

    with pytest.raises(PollTimeoutError) as exc_info:
        await poll_until_done(
            fake_client,
            RemoteOperation(name="operations/1"),
            max_duration_sec=0,
            cancel_token=token,
        )

    assert exc_info.value.operation.name == "operations/1"
    assert not exc_info.value.operation.done


async def test_cancelled_token_stops_waiting(fake_client, token):
    token.cancel()

    with pytest.raises(PipelineCancelledError):
        await poll_until_done(fake_client, RemoteOperation(name="operations/1"), cancel_token=token)

    assert fake_client.polls == []
