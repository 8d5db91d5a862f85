"""
Client for the Tuteliq real-time voice analysis stream.

A ``VoiceStream`` is one streaming conversation: it connects, accepts a
continuous feed of audio frames, delivers transcription and alert events to
your handlers as they arrive, and finishes with a session summary.

Example usage:
    class Alerts(NoOpHandlers):
        def on_alert(self, event):
            print(f"{event.category} ({event.severity}): {event.risk_score:.2f}")

    async with VoiceStream(
        "tq_live_0123456789",
        config=VoiceStreamConfig(interval_seconds=10),
        handlers=Alerts(),
    ) as stream:
        async for chunk in microphone():
            await stream.send_audio(chunk)
        summary = await stream.end()
        print(summary.overall_risk)

``connect()`` and ``end()`` have no built-in timeout; use
``asyncio.wait_for`` to bound them.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from .config import VoiceStreamSettings
from .voice_handlers import VoiceStreamHandlers
from .voice_models import (
    VoiceReadyEvent,
    VoiceSessionSummaryEvent,
    VoiceStreamConfig,
    VoiceStreamConfigInfo,
    VoiceStreamStats,
)
from .voice_session import Connector, SessionState, VoiceSessionMachine


class VoiceStream:
    """A single real-time voice analysis session.

    Args:
        api_key: Tuteliq API key. Overrides ``settings.api_key`` when given.
        config: Initial session configuration, sent before any audio.
        handlers: Handler object receiving events; see ``VoiceStreamHandlers``.
        settings: Transport settings. Defaults to ``VoiceStreamSettings()``.
        connector: Replacement for ``websockets.asyncio.client.connect``.

    Raises:
        ConfigurationError: If the API key or settings are invalid.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        config: VoiceStreamConfig | None = None,
        handlers: VoiceStreamHandlers | object | None = None,
        settings: VoiceStreamSettings | None = None,
        connector: Connector | None = None,
    ) -> None:
        settings = settings or VoiceStreamSettings()
        if api_key is not None:
            settings = replace(settings, api_key=api_key)
        settings.validate()

        self._config = config
        self._machine = VoiceSessionMachine(settings, handlers=handlers, connector=connector)

    @property
    def session_id(self) -> str | None:
        """Server-assigned session id; None until the session is ready."""
        return self._machine.session_id

    @property
    def is_active(self) -> bool:
        """True while audio and config updates can be sent."""
        return self._machine.state == SessionState.ACTIVE

    @property
    def state(self) -> SessionState:
        return self._machine.state

    @property
    def config(self) -> VoiceStreamConfig | None:
        """Configuration requested by this client."""
        return self._config

    @property
    def effective_config(self) -> VoiceStreamConfigInfo | None:
        """Configuration last confirmed by the server."""
        return self._machine.effective_config

    @property
    def stats(self) -> VoiceStreamStats:
        return self._machine.stats

    async def connect(self) -> VoiceReadyEvent:
        """Connect and wait until the server reports the session ready."""
        return await self._machine.connect(self._config)

    async def send_audio(self, data: bytes) -> None:
        """Send one frame of raw audio."""
        await self._machine.send_audio(data)

    async def update_config(self, config: VoiceStreamConfig) -> None:
        """Change the session configuration mid-stream."""
        await self._machine.update_config(config)
        self._config = _merge_config(self._config, config)

    async def end(self) -> VoiceSessionSummaryEvent:
        """End the session and return the server's summary."""
        return await self._machine.end()

    async def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        await self._machine.close()

    async def __aenter__(self) -> VoiceStream:
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()


def _merge_config(
    current: VoiceStreamConfig | None, update: VoiceStreamConfig
) -> VoiceStreamConfig:
    if current is None:
        return update
    return VoiceStreamConfig(
        interval_seconds=(
            update.interval_seconds
            if update.interval_seconds is not None
            else current.interval_seconds
        ),
        analysis_types=(
            update.analysis_types if update.analysis_types is not None else current.analysis_types
        ),
        context=update.context if update.context is not None else current.context,
    )


def create_voice_stream(
    api_key: str,
    config: VoiceStreamConfig | None = None,
    handlers: VoiceStreamHandlers | object | None = None,
    **settings_overrides: Any,
) -> VoiceStream:
    """Create a VoiceStream with settings overrides.

    Args:
        api_key: Tuteliq API key.
        config: Initial session configuration.
        handlers: Handler object receiving events.
        **settings_overrides: Overrides for ``VoiceStreamSettings`` fields.

    Returns:
        VoiceStream instance (not yet connected).
    """
    settings = VoiceStreamSettings(api_key=api_key, **settings_overrides)
    return VoiceStream(config=config, handlers=handlers, settings=settings)


__all__ = ["VoiceStream", "create_voice_stream"]
