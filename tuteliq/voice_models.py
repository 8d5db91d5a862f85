"""
Data model for the Tuteliq voice streaming protocol.

Inbound events form a closed tagged union keyed by the ``type`` field of each
text frame. Outbound control messages are the ``config`` and ``end`` frames;
audio is never a control message and travels as raw binary frames.

All ``from_dict`` constructors ignore keys they do not know about, so fields
added by newer servers never break older clients. Missing required keys
raise ``ValueError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from .enums import RiskLevel, Severity, parse_enum

# =============================================================================
# Event Types
# =============================================================================


class VoiceEventType(str, Enum):
    """Inbound event discriminators."""

    READY = "ready"
    TRANSCRIPTION = "transcription"
    ALERT = "alert"
    SESSION_SUMMARY = "session_summary"
    CONFIG_UPDATED = "config_updated"
    ERROR = "error"


def _check_required(data: dict[str, Any], required_fields: list[str]) -> None:
    missing = [f for f in required_fields if f not in data]
    if missing:
        raise ValueError(f"Missing required fields: {missing}")


# =============================================================================
# Configuration
# =============================================================================


@dataclass
class VoiceStreamContext:
    """Optional context that tunes analysis for the conversation.

    Attributes:
        language: ISO language code of the conversation (e.g. "en").
        age_group: Age bracket of the child participant.
        relationship: Relationship between the participants.
        platform: Platform the conversation takes place on.
    """

    language: str | None = None
    age_group: str | None = None
    relationship: str | None = None
    platform: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, omitting unset fields."""
        result: dict[str, Any] = {}
        if self.language is not None:
            result["language"] = self.language
        if self.age_group is not None:
            result["age_group"] = self.age_group
        if self.relationship is not None:
            result["relationship"] = self.relationship
        if self.platform is not None:
            result["platform"] = self.platform
        return result


@dataclass
class VoiceStreamConfig:
    """Requested session configuration.

    Every field is optional. The server treats a present key as "update this
    field" and an absent key as "leave unchanged", so unset fields are left
    out of the wire payload rather than sent as null.

    Attributes:
        interval_seconds: Seconds of audio buffered per analysis flush.
        analysis_types: Analyses to run on each flush (e.g. "bullying").
        context: Conversation context.
    """

    interval_seconds: int | None = None
    analysis_types: list[str] | None = None
    context: VoiceStreamContext | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, omitting unset fields."""
        result: dict[str, Any] = {}
        if self.interval_seconds is not None:
            result["interval_seconds"] = self.interval_seconds
        if self.analysis_types is not None:
            result["analysis_types"] = list(self.analysis_types)
        if self.context is not None:
            result["context"] = self.context.to_dict()
        return result


@dataclass
class VoiceStreamConfigInfo:
    """Effective configuration reported by the server."""

    interval_seconds: int
    analysis_types: list[str]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VoiceStreamConfigInfo:
        _check_required(data, ["interval_seconds", "analysis_types"])
        return cls(
            interval_seconds=int(data["interval_seconds"]),
            analysis_types=[str(t) for t in data["analysis_types"]],
        )


# =============================================================================
# Inbound Events
# =============================================================================


@dataclass
class VoiceTranscriptionSegment:
    """A timed span of transcribed speech."""

    start: float
    end: float
    text: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VoiceTranscriptionSegment:
        _check_required(data, ["start", "end", "text"])
        return cls(start=float(data["start"]), end=float(data["end"]), text=str(data["text"]))


@dataclass
class VoiceReadyEvent:
    """First event of a session: the server accepted the connection.

    Attributes:
        session_id: Server-assigned session identifier.
        config: Effective configuration for the session.
    """

    session_id: str
    config: VoiceStreamConfigInfo
    type: str = field(default=VoiceEventType.READY.value, init=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VoiceReadyEvent:
        _check_required(data, ["session_id", "config"])
        return cls(
            session_id=str(data["session_id"]),
            config=VoiceStreamConfigInfo.from_dict(data["config"]),
        )


@dataclass
class VoiceTranscriptionEvent:
    """Transcript of one flushed audio segment."""

    text: str
    segments: list[VoiceTranscriptionSegment]
    flush_index: int
    type: str = field(default=VoiceEventType.TRANSCRIPTION.value, init=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VoiceTranscriptionEvent:
        _check_required(data, ["text", "segments", "flush_index"])
        return cls(
            text=str(data["text"]),
            segments=[VoiceTranscriptionSegment.from_dict(s) for s in data["segments"]],
            flush_index=int(data["flush_index"]),
        )


@dataclass
class VoiceAlertEvent:
    """Safety alert raised for a flushed audio segment.

    Attributes:
        category: Detected harm category (e.g. "distress").
        severity: Severity string as sent by the server.
        risk_score: Risk score between 0.0 and 1.0.
        details: Category-specific details.
        flush_index: Flush the alert was raised for.
    """

    category: str
    severity: str
    risk_score: float
    flush_index: int
    details: dict[str, Any] = field(default_factory=dict)
    type: str = field(default=VoiceEventType.ALERT.value, init=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VoiceAlertEvent:
        _check_required(data, ["category", "severity", "risk_score", "flush_index"])
        details = data.get("details") or {}
        if not isinstance(details, dict):
            raise ValueError("Alert details must be an object")
        return cls(
            category=str(data["category"]),
            severity=str(data["severity"]),
            risk_score=float(data["risk_score"]),
            flush_index=int(data["flush_index"]),
            details=details,
        )

    @property
    def severity_level(self) -> Severity | None:
        """Severity as an enum member, or None if this client does not know it."""
        return parse_enum(Severity, self.severity)  # type: ignore[return-value]


@dataclass
class VoiceSessionSummaryEvent:
    """Terminal report emitted after the client ends the session."""

    session_id: str
    duration_seconds: float
    overall_risk: str
    overall_risk_score: float
    total_flushes: int
    transcript: str
    type: str = field(default=VoiceEventType.SESSION_SUMMARY.value, init=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VoiceSessionSummaryEvent:
        _check_required(
            data,
            [
                "session_id",
                "duration_seconds",
                "overall_risk",
                "overall_risk_score",
                "total_flushes",
                "transcript",
            ],
        )
        return cls(
            session_id=str(data["session_id"]),
            duration_seconds=float(data["duration_seconds"]),
            overall_risk=str(data["overall_risk"]),
            overall_risk_score=float(data["overall_risk_score"]),
            total_flushes=int(data["total_flushes"]),
            transcript=str(data["transcript"]),
        )

    @property
    def risk_level(self) -> RiskLevel | None:
        """Overall risk as an enum member, or None if this client does not know it."""
        return parse_enum(RiskLevel, self.overall_risk)  # type: ignore[return-value]


@dataclass
class VoiceConfigUpdatedEvent:
    """Acknowledgement of a mid-session configuration change."""

    config: VoiceStreamConfigInfo
    type: str = field(default=VoiceEventType.CONFIG_UPDATED.value, init=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VoiceConfigUpdatedEvent:
        _check_required(data, ["config"])
        return cls(config=VoiceStreamConfigInfo.from_dict(data["config"]))


@dataclass
class VoiceErrorEvent:
    """Error reported by the server, or a connection fault raised locally."""

    code: str
    message: str
    type: str = field(default=VoiceEventType.ERROR.value, init=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VoiceErrorEvent:
        _check_required(data, ["code", "message"])
        return cls(code=str(data["code"]), message=str(data["message"]))


VoiceEvent = Union[
    VoiceReadyEvent,
    VoiceTranscriptionEvent,
    VoiceAlertEvent,
    VoiceSessionSummaryEvent,
    VoiceConfigUpdatedEvent,
    VoiceErrorEvent,
]


# =============================================================================
# Outbound Control Messages
# =============================================================================


@dataclass
class ConfigMessage:
    """Set or update the session configuration."""

    config: VoiceStreamConfig

    def to_dict(self) -> dict[str, Any]:
        return {"type": "config", **self.config.to_dict()}


@dataclass
class EndMessage:
    """Ask the server to finish the session and emit its summary."""

    def to_dict(self) -> dict[str, Any]:
        return {"type": "end"}


ControlMessage = Union[ConfigMessage, EndMessage]


# =============================================================================
# Statistics
# =============================================================================


@dataclass
class VoiceStreamStats:
    """Statistics tracked by a voice streaming session.

    Attributes:
        chunks_sent: Number of audio frames sent.
        bytes_sent: Total audio bytes sent.
        events_received: Number of events decoded.
        transcriptions_received: Number of transcription events.
        alerts_received: Number of alert events.
        errors_received: Number of error events sent by the server.
        frames_skipped: Text frames discarded by the codec.
    """

    chunks_sent: int = 0
    bytes_sent: int = 0
    events_received: int = 0
    transcriptions_received: int = 0
    alerts_received: int = 0
    errors_received: int = 0
    frames_skipped: int = 0

    def to_dict(self) -> dict[str, int]:
        """Convert to dictionary."""
        return {
            "chunks_sent": self.chunks_sent,
            "bytes_sent": self.bytes_sent,
            "events_received": self.events_received,
            "transcriptions_received": self.transcriptions_received,
            "alerts_received": self.alerts_received,
            "errors_received": self.errors_received,
            "frames_skipped": self.frames_skipped,
        }


__all__ = [
    "VoiceEventType",
    "VoiceStreamContext",
    "VoiceStreamConfig",
    "VoiceStreamConfigInfo",
    "VoiceTranscriptionSegment",
    "VoiceReadyEvent",
    "VoiceTranscriptionEvent",
    "VoiceAlertEvent",
    "VoiceSessionSummaryEvent",
    "VoiceConfigUpdatedEvent",
    "VoiceErrorEvent",
    "VoiceEvent",
    "ConfigMessage",
    "EndMessage",
    "ControlMessage",
    "VoiceStreamStats",
]
