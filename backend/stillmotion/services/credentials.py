"""
API credential providers.

The pipeline asks its provider for a key once per run, so a key changed
between runs is picked up by the next run and never mid-flight.
"""

import os
from typing import Protocol, runtime_checkable

# Checked in order
CREDENTIAL_ENV_VARS = ("GEMINI_API_KEY", "API_KEY")


@runtime_checkable
class CredentialProvider(Protocol):
    """Supplies the API key, or None when none is selected."""

    def get_credential(self) -> str | None:
        ...


class EnvironmentCredentialProvider:
    """Reads the key from the process environment on every call."""

    def __init__(self, env_vars: tuple[str, ...] = CREDENTIAL_ENV_VARS):
        self.env_vars = env_vars

    def get_credential(self) -> str | None:
        for name in self.env_vars:
            value = os.getenv(name, "").strip()
            if value:
                return value
        return None


class StaticCredentialProvider:
    """Wraps a key supplied by the caller (e.g. a request header)."""

    def __init__(self, api_key: str | None):
        self._api_key = api_key.strip() if api_key else None

    def get_credential(self) -> str | None:
        return self._api_key or None
