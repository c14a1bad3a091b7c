"""
Remote operation clients for asynchronous video generation.

- RemoteOperationClient: protocol with submit() and poll()
- VeoOperationClient: google-genai implementation

Usage:
    from stillmotion.services.operation_clients import VeoOperationClient

    async with VeoOperationClient.from_settings(settings, api_key) as client:
        operation = await client.submit(stage_input)
"""

from stillmotion.services.operation_clients.base import (
    BaseOperationClientImpl,
    OperationClientConfig,
    OperationClientConnectionError,
    OperationClientError,
    OperationClientResponseError,
    RemoteOperationClient,
)
from stillmotion.services.operation_clients.veo_client import (
    VeoOperationClient,
    to_remote_operation,
)

__all__ = [
    # Protocol and base classes
    "RemoteOperationClient",
    "BaseOperationClientImpl",
    "OperationClientConfig",
    # Errors
    "OperationClientError",
    "OperationClientConnectionError",
    "OperationClientResponseError",
    # Implementations
    "VeoOperationClient",
    "to_remote_operation",
]
