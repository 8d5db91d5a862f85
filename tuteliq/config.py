"""Connection settings for the Tuteliq voice streaming endpoint."""

from __future__ import annotations

import os
from dataclasses import dataclass
from urllib.parse import urlparse

from .exceptions import ConfigurationError

DEFAULT_VOICE_STREAM_URL = "wss://api.tuteliq.ai/voice/stream"
MIN_API_KEY_LENGTH = 10


@dataclass
class VoiceStreamSettings:
    """Transport settings for a voice streaming session.

    Attributes:
        api_key: Tuteliq API key, sent as a bearer credential.
        url: WebSocket endpoint.
        open_timeout: Seconds allowed for the opening handshake.
        close_timeout: Seconds allowed for the closing handshake.
        ping_interval: Seconds between keepalive pings (None disables them).
        ping_timeout: Seconds to wait for a keepalive pong (None waits forever).
        max_message_size: Largest inbound frame accepted, in bytes.
    """

    api_key: str = ""
    url: str = DEFAULT_VOICE_STREAM_URL
    open_timeout: float = 10.0
    close_timeout: float = 10.0
    ping_interval: float | None = 20.0
    ping_timeout: float | None = 20.0
    max_message_size: int = 1024 * 1024

    def validate(self) -> None:
        """Check the settings.

        Raises:
            ConfigurationError: If any value is invalid.
        """
        if not self.api_key or not self.api_key.strip():
            raise ConfigurationError("API key is required")
        if len(self.api_key) < MIN_API_KEY_LENGTH:
            raise ConfigurationError("API key appears to be invalid")

        scheme = urlparse(self.url).scheme
        if scheme not in ("ws", "wss"):
            raise ConfigurationError(f"Voice stream URL must use ws:// or wss://, got {self.url!r}")

        if self.open_timeout <= 0:
            raise ConfigurationError(f"open_timeout must be positive, got {self.open_timeout}")
        if self.close_timeout <= 0:
            raise ConfigurationError(f"close_timeout must be positive, got {self.close_timeout}")
        if self.ping_interval is not None and self.ping_interval <= 0:
            raise ConfigurationError(f"ping_interval must be positive, got {self.ping_interval}")
        if self.ping_timeout is not None and self.ping_timeout <= 0:
            raise ConfigurationError(f"ping_timeout must be positive, got {self.ping_timeout}")
        if self.max_message_size <= 0:
            raise ConfigurationError(
                f"max_message_size must be positive, got {self.max_message_size}"
            )

    def auth_headers(self) -> dict[str, str]:
        """Headers sent with the opening handshake."""
        return {"Authorization": f"Bearer {self.api_key}"}

    @classmethod
    def from_env(cls, prefix: str = "TUTELIQ_") -> VoiceStreamSettings:
        """
        Load settings from environment variables.

        - {prefix}API_KEY -> api_key
        - {prefix}VOICE_STREAM_URL -> url
        - {prefix}OPEN_TIMEOUT -> open_timeout
        - {prefix}CLOSE_TIMEOUT -> close_timeout
        - {prefix}PING_INTERVAL -> ping_interval ("none" disables)
        - {prefix}PING_TIMEOUT -> ping_timeout ("none" disables)
        - {prefix}MAX_MESSAGE_SIZE -> max_message_size

        Unset variables keep their defaults. The result is not validated;
        call ``validate()`` before use.

        Args:
            prefix: Environment variable prefix (default: "TUTELIQ_")

        Returns:
            VoiceStreamSettings with values from the environment.

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed.

        Example:
            export TUTELIQ_API_KEY=tq_live_0123456789
            export TUTELIQ_PING_INTERVAL=none
        """
        settings = cls()

        if api_key := os.getenv(f"{prefix}API_KEY"):
            settings.api_key = api_key
        if url := os.getenv(f"{prefix}VOICE_STREAM_URL"):
            settings.url = url

        if open_timeout := os.getenv(f"{prefix}OPEN_TIMEOUT"):
            settings.open_timeout = _parse_float(f"{prefix}OPEN_TIMEOUT", open_timeout)
        if close_timeout := os.getenv(f"{prefix}CLOSE_TIMEOUT"):
            settings.close_timeout = _parse_float(f"{prefix}CLOSE_TIMEOUT", close_timeout)

        if ping_interval := os.getenv(f"{prefix}PING_INTERVAL"):
            settings.ping_interval = (
                None
                if ping_interval.lower() == "none"
                else _parse_float(f"{prefix}PING_INTERVAL", ping_interval)
            )
        if ping_timeout := os.getenv(f"{prefix}PING_TIMEOUT"):
            settings.ping_timeout = (
                None
                if ping_timeout.lower() == "none"
                else _parse_float(f"{prefix}PING_TIMEOUT", ping_timeout)
            )

        if max_size := os.getenv(f"{prefix}MAX_MESSAGE_SIZE"):
            try:
                settings.max_message_size = int(max_size)
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid {prefix}MAX_MESSAGE_SIZE: {max_size}. Must be an integer."
                ) from e

        return settings


def _parse_float(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as e:
        raise ConfigurationError(f"Invalid {name}: {value}. Must be a number.") from e


__all__ = ["VoiceStreamSettings", "DEFAULT_VOICE_STREAM_URL", "MIN_API_KEY_LENGTH"]
