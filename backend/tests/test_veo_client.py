from types import SimpleNamespace

import pytest
from google.genai import errors as genai_errors
from google.genai import types

from stillmotion.models.schemas import (
    AspectRatio,
    ErrorKind,
    PipelineStage,
    RemoteOperation,
    ResultReference,
    StageInput,
)
from stillmotion.services.error_classifier import ErrorClassifier
from stillmotion.services.operation_clients import (
    OperationClientConfig,
    OperationClientResponseError,
    VeoOperationClient,
)
from stillmotion.services.operation_clients.veo_client import to_remote_operation


class FakeModels:
    def __init__(self, error: Exception | None = None):
        self.calls = []
        self.error = error

    async def generate_videos(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(name="operations/veo-1", done=False, response=None, error=None)


class FakeOperations:
    def __init__(self, result):
        self.calls = []
        self.result = result

    async def get(self, operation):
        self.calls.append(operation)
        return self.result


@pytest.fixture
def veo_client() -> VeoOperationClient:
    return VeoOperationClient(OperationClientConfig(api_key="test-key"))


def install_fakes(client, models=None, operations=None):
    client.client = SimpleNamespace(
        aio=SimpleNamespace(models=models or FakeModels(), operations=operations)
    )


def test_requires_api_key():
    with pytest.raises(ValueError):
        VeoOperationClient(OperationClientConfig(api_key=""))


def test_done_operation_with_video():
    video = SimpleNamespace(uri="https://media.example.test/files/v1", mime_type="video/mp4")
    operation = SimpleNamespace(
        name="operations/1",
        done=True,
        response=SimpleNamespace(generated_videos=[SimpleNamespace(video=video)]),
        error=None,
    )

    snapshot = to_remote_operation(operation)

    assert snapshot.done
    assert snapshot.result.uri == "https://media.example.test/files/v1"
    assert snapshot.result.raw is video
    assert snapshot.raw is operation


def test_done_operation_without_video():
    operation = SimpleNamespace(
        name="operations/1",
        done=True,
        response=SimpleNamespace(generated_videos=[]),
        error={"code": 3, "message": "filtered"},
    )

    snapshot = to_remote_operation(operation)

    assert snapshot.done
    assert snapshot.result is None
    assert "filtered" in snapshot.error


def test_running_operation():
    snapshot = to_remote_operation(SimpleNamespace(name="operations/1", done=None))

    assert not snapshot.done
    assert snapshot.result is None


async def test_initial_submit_sends_image(veo_client, image):
    models = FakeModels()
    install_fakes(veo_client, models=models)
    stage_input = StageInput(
        stage=PipelineStage.INITIAL,
        model="veo-3.1-fast-generate-preview",
        prompt="Leaves rustle",
        aspect_ratio=AspectRatio.TALL,
        image=image,
    )

    snapshot = await veo_client.submit(stage_input)

    call = models.calls[0]
    assert call["model"] == "veo-3.1-fast-generate-preview"
    assert call["image"].image_bytes == image.data
    assert call["config"].aspect_ratio == "9:16"
    assert call["config"].resolution == "720p"
    assert call["config"].number_of_videos == 1
    assert "video" not in call
    assert snapshot.name == "operations/veo-1"
    assert not snapshot.done


async def test_extension_submit_reuses_video_object(veo_client):
    models = FakeModels()
    install_fakes(veo_client, models=models)
    video = types.Video(uri="https://media.example.test/files/v1", mime_type="video/mp4")
    stage_input = StageInput(
        stage=PipelineStage.EXTENSION,
        model="veo-3.1-generate-preview",
        prompt="Leaves rustle",
        aspect_ratio=AspectRatio.WIDE,
        video=ResultReference(uri=video.uri, raw=video),
    )

    await veo_client.submit(stage_input)

    call = models.calls[0]
    assert call["video"] is video
    assert "image" not in call


async def test_poll_passes_sdk_operation(veo_client):
    sdk_operation = SimpleNamespace(name="operations/1", done=False)
    refreshed = SimpleNamespace(name="operations/1", done=True, response=None, error=None)
    operations = FakeOperations(refreshed)
    install_fakes(veo_client, operations=operations)

    snapshot = await veo_client.poll(RemoteOperation(name="operations/1", raw=sdk_operation))

    assert operations.calls == [sdk_operation]
    assert snapshot.done
    assert snapshot.raw is refreshed


async def test_api_error_keeps_service_text(veo_client, image):
    api_error = genai_errors.APIError(
        429,
        {"error": {"code": 429, "message": "Quota exceeded", "status": "RESOURCE_EXHAUSTED"}},
    )
    install_fakes(veo_client, models=FakeModels(error=api_error))
    stage_input = StageInput(
        stage=PipelineStage.INITIAL,
        model="veo-3.1-fast-generate-preview",
        prompt="Leaves rustle",
        aspect_ratio=AspectRatio.WIDE,
        image=image,
    )

    with pytest.raises(OperationClientResponseError) as exc_info:
        await veo_client.submit(stage_input)

    assert exc_info.value.status_code == 429
    assert exc_info.value.original_error is api_error
    assert ErrorClassifier().classify(exc_info.value).kind == ErrorKind.RATE_LIMITED
