"""tuteliq: Python client for the Tuteliq real-time voice analysis stream.

Stream live audio to Tuteliq and receive transcription and child-safety
alert events as they are produced:

    from tuteliq import NoOpHandlers, VoiceStream, VoiceStreamConfig

    class Alerts(NoOpHandlers):
        def on_alert(self, event):
            print(event.category, event.severity, event.risk_score)

    async with VoiceStream(api_key, config=VoiceStreamConfig(interval_seconds=10),
                           handlers=Alerts()) as stream:
        await stream.send_audio(pcm_bytes)
        summary = await stream.end()
"""

from .config import DEFAULT_VOICE_STREAM_URL, VoiceStreamSettings
from .enums import RiskLevel, Severity
from .exceptions import (
    ConfigurationError,
    TuteliqError,
    VoiceStreamConnectionError,
    VoiceStreamError,
    VoiceStreamStateError,
)
from .voice_codec import decode_event, encode_message
from .voice_handlers import NoOpHandlers, VoiceStreamHandlers
from .voice_models import (
    ConfigMessage,
    EndMessage,
    VoiceAlertEvent,
    VoiceConfigUpdatedEvent,
    VoiceErrorEvent,
    VoiceEvent,
    VoiceEventType,
    VoiceReadyEvent,
    VoiceSessionSummaryEvent,
    VoiceStreamConfig,
    VoiceStreamConfigInfo,
    VoiceStreamContext,
    VoiceStreamStats,
    VoiceTranscriptionEvent,
    VoiceTranscriptionSegment,
)
from .voice_session import SessionState
from .voice_stream import VoiceStream, create_voice_stream

__version__ = "1.0.0"

__all__ = [
    # Session
    "VoiceStream",
    "create_voice_stream",
    "SessionState",
    "VoiceStreamSettings",
    "DEFAULT_VOICE_STREAM_URL",
    # Handlers
    "VoiceStreamHandlers",
    "NoOpHandlers",
    # Models
    "VoiceStreamConfig",
    "VoiceStreamContext",
    "VoiceStreamConfigInfo",
    "VoiceEventType",
    "VoiceEvent",
    "VoiceReadyEvent",
    "VoiceTranscriptionEvent",
    "VoiceTranscriptionSegment",
    "VoiceAlertEvent",
    "VoiceSessionSummaryEvent",
    "VoiceConfigUpdatedEvent",
    "VoiceErrorEvent",
    "ConfigMessage",
    "EndMessage",
    "VoiceStreamStats",
    # Codec
    "decode_event",
    "encode_message",
    # Enums
    "Severity",
    "RiskLevel",
    # Exceptions
    "TuteliqError",
    "ConfigurationError",
    "VoiceStreamError",
    "VoiceStreamConnectionError",
    "VoiceStreamStateError",
]
