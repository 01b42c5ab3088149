"""
This module manages authentication configuration for the supported providers.
It handles retrieval of API keys from environment variables or direct input,
and renders them as the headers each provider expects.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from ai_client._errors import InvalidApiKeyError, MissingApiKeyError

OPENAI_API_KEY_ENV = "OPENAI_API_KEY"
GEMINI_API_KEY_ENV = "GEMINI_API_KEY"


@dataclass(frozen=True, slots=True)
class AuthConfig:
    """
    Configuration container for provider API credentials.
    Ensures the API key is present and can be sent as an HTTP header value.
    """

    api_key: str = field(repr=False)

    @staticmethod
    def from_env_or_value(api_key: str | None, *, env_var: str = OPENAI_API_KEY_ENV) -> AuthConfig:
        """
        Create an AuthConfig instance from a provided value or environment variable.

        Args:
            api_key: Optional API key string provided by the user.
            env_var: Environment variable consulted when no value is given.

        Returns:
            An initialized AuthConfig instance containing the validated API key.

        Raises:
            MissingApiKeyError: If no API key is found in both the argument and environment.
            InvalidApiKeyError: If the key contains characters not allowed in a header.
        """
        key = api_key or os.getenv(env_var)

        if not key:
            raise MissingApiKeyError(
                f"API key missing. Define {env_var} in environment or pass api_key value"
            )
        if not (key.isascii() and key.isprintable()):
            raise InvalidApiKeyError("API key contains characters that cannot be sent in a header")
        return AuthConfig(api_key=key)

    def bearer_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def header(self, name: str) -> dict[str, str]:
        return {name: self.api_key}
