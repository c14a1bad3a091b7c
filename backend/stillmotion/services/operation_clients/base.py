"""
Base protocol for remote long-running operation clients.

Defines the two primitive calls the pipeline depends on (submit and poll),
allowing the Veo client to be swapped for a fake in tests or for another
provider later.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from stillmotion.models.schemas import RemoteOperation, StageInput


@dataclass
class OperationClientConfig:
    """
    Configuration for operation client instances.

    Attributes:
        api_key: API key for the generation service
        timeout: Per-request timeout in seconds
    """

    api_key: str
    timeout: float = 60.0


@runtime_checkable
class RemoteOperationClient(Protocol):
    """
    Protocol for clients of an asynchronous generation service.

    Both calls may fail with transport errors; callers let those propagate.

    Example:
        async def run(client: RemoteOperationClient, stage_input: StageInput):
            operation = await client.submit(stage_input)
            while not operation.done:
                operation = await client.poll(operation)
            return operation
    """

    async def submit(self, stage_input: StageInput) -> RemoteOperation:
        """
        Submit a generation job.

        Args:
            stage_input: Prompt, source media and output shape

        Returns:
            First snapshot of the remote operation
        """
        ...

    async def poll(self, operation: RemoteOperation) -> RemoteOperation:
        """
        Refresh an operation.

        Args:
            operation: Current snapshot

        Returns:
            New snapshot (the argument is not modified)
        """
        ...


class OperationClientError(Exception):
    """
    Base exception for operation client errors.

    The provider's raw error text is kept in `message` so that downstream
    classification still sees service status phrases.

    Attributes:
        message: Error description
        provider: Service name (veo, etc.)
        model: Model that caused the error
        original_error: Underlying exception if available
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        model: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.provider = provider
        self.model = model
        self.original_error = original_error
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.provider:
            parts.append(f"provider={self.provider}")
        if self.model:
            parts.append(f"model={self.model}")
        return " | ".join(parts)


class OperationClientConnectionError(OperationClientError):
    """Raised when the service cannot be reached."""

    pass


class OperationClientResponseError(OperationClientError):
    """
    Raised when the service returns an error response.

    Attributes:
        status_code: HTTP status code if available
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.status_code = status_code


class BaseOperationClientImpl(ABC):
    """
    Abstract base class for operation client implementations.

    Provides the async context manager protocol.

    Subclasses must implement:
        - submit()
        - poll()
        - close()
    """

    def __init__(self, config: OperationClientConfig):
        self.config = config

    @abstractmethod
    async def submit(self, stage_input: StageInput) -> RemoteOperation:
        """Submit a generation job."""
        pass

    @abstractmethod
    async def poll(self, operation: RemoteOperation) -> RemoteOperation:
        """Refresh an operation snapshot."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release client resources."""
        pass

    async def __aenter__(self) -> "BaseOperationClientImpl":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
