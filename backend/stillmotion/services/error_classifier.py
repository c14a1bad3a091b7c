"""
Error classification for the generation pipeline.

Maps raw transport/service failures to a small set of user-actionable
categories. Called once, at the outer boundary of a pipeline run; lower
layers let their errors propagate unmodified.
"""

import logging
from dataclasses import dataclass

from stillmotion.models.schemas import ErrorKind

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = (
    "Rate limit exceeded. You've made too many requests in a short period. "
    "Please wait a moment and try again."
)
INVALID_CREDENTIAL_MESSAGE = (
    "API key is invalid or not found. Please re-select your API key."
)
UNKNOWN_ERROR_MESSAGE = "An unknown error occurred while communicating with the API."

CREDENTIAL_KINDS = frozenset({ErrorKind.MISSING_CREDENTIAL, ErrorKind.INVALID_CREDENTIAL})


class ClassifiedError(Exception):
    """
    Pipeline failure with a user-facing category.

    Attributes:
        kind: Failure category
        message: Short human-readable message
        cause: Original exception (if any)
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        cause: BaseException | None = None,
    ):
        self.kind = kind
        self.message = message
        self.cause = cause
        super().__init__(message)

    @property
    def requires_reauth(self) -> bool:
        """True when the user must select a credential before retrying."""
        return self.kind in CREDENTIAL_KINDS

    def __repr__(self) -> str:
        return f"ClassifiedError(kind={self.kind.value!r}, message={self.message!r})"


@dataclass(frozen=True)
class SubstringRule:
    """Classify a message that contains any of `markers` (case-sensitive)."""

    markers: tuple[str, ...]
    kind: ErrorKind
    message: str

    def matches(self, text: str) -> bool:
        return any(marker in text for marker in self.markers)


# Priority order: first match wins
DEFAULT_RULES: tuple[SubstringRule, ...] = (
    SubstringRule(("RESOURCE_EXHAUSTED", "429"), ErrorKind.RATE_LIMITED, RATE_LIMIT_MESSAGE),
    SubstringRule(
        ("Requested entity was not found",),
        ErrorKind.INVALID_CREDENTIAL,
        INVALID_CREDENTIAL_MESSAGE,
    ),
)


class ErrorClassifier:
    """
    Turns arbitrary exceptions into ClassifiedError.

    Resolution order:
    1. Already classified -> returned unchanged
    2. Typed internal error with a `kind` attribute -> that kind, own message
    3. Substring rules against str(error)
    4. UNKNOWN with the raw message (or a generic fallback)

    The substring rules are isolated in `rules` so that a structured
    matcher can replace them without touching callers.

    Example:
        classifier = ErrorClassifier()
        try:
            ...
        except Exception as e:
            raise classifier.classify(e) from e
    """

    def __init__(self, rules: tuple[SubstringRule, ...] = DEFAULT_RULES):
        self.rules = rules

    def classify(self, error: BaseException) -> ClassifiedError:
        """
        Classify an exception.

        Args:
            error: Raw exception from any pipeline layer

        Returns:
            ClassifiedError with kind and user-facing message
        """
        if isinstance(error, ClassifiedError):
            return error

        kind = getattr(error, "kind", None)
        if isinstance(kind, ErrorKind):
            message = getattr(error, "message", None) or str(error)
            return ClassifiedError(kind, message, cause=error)

        # Client errors decorate str() with provider/model; match the service text
        text = getattr(error, "message", None) or str(error)
        return self.classify_message(text, cause=error)

    def classify_message(
        self,
        text: str,
        cause: BaseException | None = None,
    ) -> ClassifiedError:
        """
        Classify raw error text with the substring rules.

        Args:
            text: Raw error message
            cause: Exception the text came from

        Returns:
            ClassifiedError
        """
        for rule in self.rules:
            if rule.matches(text):
                logger.debug(f"Error classified as {rule.kind.value}: {text[:200]}")
                return ClassifiedError(rule.kind, rule.message, cause=cause)

        return ClassifiedError(ErrorKind.UNKNOWN, text or UNKNOWN_ERROR_MESSAGE, cause=cause)
