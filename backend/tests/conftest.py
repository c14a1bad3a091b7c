"""Shared fixtures: settings in tmp_path and fakes for the remote service."""

from pathlib import Path

import pytest

from stillmotion.config import Settings
from stillmotion.models.artifact import ArtifactHandle
from stillmotion.models.schemas import (
    GenerationRequest,
    ImagePayload,
    RemoteOperation,
    ResultReference,
    StageInput,
    TargetLength,
)
from stillmotion.services.credentials import StaticCredentialProvider
from stillmotion.services.operation_clients.base import (
    BaseOperationClientImpl,
    OperationClientConfig,
)
from stillmotion.services.pipeline import CancellationToken, PipelineOrchestrator

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class FakeOperationClient(BaseOperationClientImpl):
    """
    In-memory operation client.

    Every submit creates operation "operations/<n>". Each operation reports
    running for `pending_polls` polls and is done on the next one.
    """

    def __init__(self, pending_polls: int = 1):
        super().__init__(OperationClientConfig(api_key="test-key"))
        self.pending_polls = pending_polls
        self.missing_results: set[int] = set()
        self.submit_error: Exception | None = None
        self.poll_error: Exception | None = None
        self.submitted: list[StageInput] = []
        self.polls: list[RemoteOperation] = []
        self.credentials: list[str] = []
        self.closed = False

    def result_for(self, index: int) -> ResultReference:
        return ResultReference(
            uri=f"https://media.example.test/v1/files/video-{index}:download?alt=media",
            mime_type="video/mp4",
        )

    async def submit(self, stage_input: StageInput) -> RemoteOperation:
        self.submitted.append(stage_input)
        if self.submit_error is not None:
            raise self.submit_error
        return RemoteOperation(name=f"operations/{len(self.submitted)}", done=False)

    async def poll(self, operation: RemoteOperation) -> RemoteOperation:
        self.polls.append(operation)
        if self.poll_error is not None:
            raise self.poll_error

        count = sum(1 for polled in self.polls if polled.name == operation.name)
        if count <= self.pending_polls:
            return RemoteOperation(name=operation.name, done=False)

        index = int(operation.name.rsplit("/", 1)[-1])
        if index in self.missing_results:
            return RemoteOperation(name=operation.name, done=True, error="no video")
        return RemoteOperation(name=operation.name, done=True, result=self.result_for(index))

    async def close(self) -> None:
        self.closed = True


class FakeFetcher:
    """Writes a small file per fetch and records what was requested."""

    def __init__(self, artifact_dir: Path):
        self.artifact_dir = artifact_dir
        self.requests: list[tuple[ResultReference, str]] = []
        self.handles: list[ArtifactHandle] = []

    async def fetch(self, reference: ResultReference, credential: str) -> ArtifactHandle:
        self.requests.append((reference, credential))
        self.artifact_dir.mkdir(parents=True, exist_ok=True)
        path = self.artifact_dir / f"video_{len(self.requests)}.mp4"
        path.write_bytes(b"fake-mp4-bytes")
        handle = ArtifactHandle(
            path=path,
            size_bytes=path.stat().st_size,
            source_uri=reference.uri,
        )
        self.handles.append(handle)
        return handle


class CountingCredentialProvider(StaticCredentialProvider):
    def __init__(self, api_key: str | None):
        super().__init__(api_key)
        self.calls = 0

    def get_credential(self) -> str | None:
        self.calls += 1
        return super().get_credential()


class RecordingToken(CancellationToken):
    """Cancellation token that records waits instead of sleeping."""

    def __init__(self):
        super().__init__()
        self.sleeps: list[float] = []

    async def sleep(self, seconds: float) -> None:
        self.raise_if_cancelled()
        self.sleeps.append(seconds)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        poll_interval_sec=20.0,
        settle_delay_sec=3.0,
        artifact_dir=tmp_path / "artifacts",
        temp_dir=tmp_path / "uploads",
    )


@pytest.fixture
def fake_client() -> FakeOperationClient:
    return FakeOperationClient()


@pytest.fixture
def fake_fetcher(tmp_path: Path) -> FakeFetcher:
    return FakeFetcher(tmp_path / "downloads")


@pytest.fixture
def credential_provider() -> CountingCredentialProvider:
    return CountingCredentialProvider("test-key")


@pytest.fixture
def token() -> RecordingToken:
    return RecordingToken()


@pytest.fixture
def orchestrator(settings, fake_client, fake_fetcher, credential_provider) -> PipelineOrchestrator:
    def client_factory(credential: str) -> FakeOperationClient:
        fake_client.credentials.append(credential)
        return fake_client

    return PipelineOrchestrator(
        settings,
        credential_provider=credential_provider,
        client_factory=client_factory,
        fetcher=fake_fetcher,
    )


@pytest.fixture
def image() -> ImagePayload:
    return ImagePayload(data=PNG_BYTES, mime_type="image/png")


@pytest.fixture
def short_request(image) -> GenerationRequest:
    return GenerationRequest(prompt="A boat drifts across the lake", image=image)


@pytest.fixture
def long_request(image) -> GenerationRequest:
    return GenerationRequest(
        prompt="A boat drifts across the lake",
        image=image,
        target_length=TargetLength.LONG,
    )
