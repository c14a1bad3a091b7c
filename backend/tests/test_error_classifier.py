import pytest

from stillmotion.models.schemas import ErrorKind
from stillmotion.services.error_classifier import (
    INVALID_CREDENTIAL_MESSAGE,
    RATE_LIMIT_MESSAGE,
    UNKNOWN_ERROR_MESSAGE,
    ClassifiedError,
    ErrorClassifier,
    SubstringRule,
)
from stillmotion.services.input_normalizer import InputProcessingError
from stillmotion.services.operation_clients import (
    OperationClientConnectionError,
    OperationClientResponseError,
)
from stillmotion.services.pipeline import PipelineCancelledError, PollTimeoutError


@pytest.fixture
def classifier() -> ErrorClassifier:
    return ErrorClassifier()


@pytest.mark.parametrize(
    "raw",
    [
        "429 Too Many Requests",
        '{"error": {"status": "RESOURCE_EXHAUSTED"}}',
    ],
)
def test_rate_limit_markers(classifier, raw):
    error = classifier.classify(RuntimeError(raw))

    assert error.kind == ErrorKind.RATE_LIMITED
    assert error.message == RATE_LIMIT_MESSAGE
    assert not error.requires_reauth


def test_invalid_credential_marker(classifier):
    error = classifier.classify(RuntimeError("404 NOT_FOUND. Requested entity was not found."))

    assert error.kind == ErrorKind.INVALID_CREDENTIAL
    assert error.message == INVALID_CREDENTIAL_MESSAGE
    assert error.requires_reauth


def test_rate_limit_wins_when_both_markers_present(classifier):
    error = classifier.classify(RuntimeError("429: Requested entity was not found"))

    assert error.kind == ErrorKind.RATE_LIMITED


def test_markers_are_case_sensitive(classifier):
    error = classifier.classify(RuntimeError("resource_exhausted"))

    assert error.kind == ErrorKind.UNKNOWN
    assert error.message == "resource_exhausted"


def test_empty_message_falls_back(classifier):
    error = classifier.classify(RuntimeError())

    assert error.kind == ErrorKind.UNKNOWN
    assert error.message == UNKNOWN_ERROR_MESSAGE


def test_classified_error_passes_through(classifier):
    original = ClassifiedError(ErrorKind.MISSING_RESULT, "nothing came back")

    assert classifier.classify(original) is original


@pytest.mark.parametrize(
    ("error", "kind"),
    [
        (InputProcessingError("bad video"), ErrorKind.INPUT_PROCESSING),
        (PollTimeoutError("took too long"), ErrorKind.TIMEOUT),
        (PipelineCancelledError(), ErrorKind.CANCELLED),
    ],
)
def test_typed_errors_keep_their_kind(classifier, error, kind):
    classified = classifier.classify(error)

    assert classified.kind == kind
    assert classified.message == error.message
    assert classified.cause is error


def test_custom_rules(classifier):
    custom = ErrorClassifier(
        rules=(SubstringRule(("quota",), ErrorKind.RATE_LIMITED, "slow down"),)
    )

    assert custom.classify(RuntimeError("daily quota hit")).message == "slow down"
    assert custom.classify(RuntimeError("429")).kind == ErrorKind.UNKNOWN


def test_client_error_uses_service_text_not_decorated_str(classifier):
    error = OperationClientResponseError(
        "400 INVALID_ARGUMENT. Prompt was blocked",
        status_code=400,
        provider="veo",
        model="veo-3.1-fast-generate-preview",
    )

    classified = classifier.classify(error)

    assert "provider=veo" in str(error)
    assert classified.kind == ErrorKind.UNKNOWN
    assert classified.message == "400 INVALID_ARGUMENT. Prompt was blocked"
    assert classified.cause is error


def test_client_error_rate_limit_matched_on_service_text(classifier):
    error = OperationClientConnectionError("429 RESOURCE_EXHAUSTED", provider="veo")

    assert classifier.classify(error).kind == ErrorKind.RATE_LIMITED
