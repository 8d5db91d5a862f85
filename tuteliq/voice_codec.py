"""Frame codec for the voice streaming protocol.

Inbound text frames decode to exactly one ``VoiceEvent`` or are skipped.
A frame is skipped when it is not a JSON object, has no ``type`` or an
unknown one, or lacks required fields. Outbound control messages encode to
compact JSON text frames.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any

from .voice_models import (
    ControlMessage,
    VoiceAlertEvent,
    VoiceConfigUpdatedEvent,
    VoiceErrorEvent,
    VoiceEvent,
    VoiceEventType,
    VoiceReadyEvent,
    VoiceSessionSummaryEvent,
    VoiceTranscriptionEvent,
)

logger = logging.getLogger(__name__)

_DECODERS: dict[str, Callable[[dict[str, Any]], VoiceEvent]] = {
    VoiceEventType.READY.value: VoiceReadyEvent.from_dict,
    VoiceEventType.TRANSCRIPTION.value: VoiceTranscriptionEvent.from_dict,
    VoiceEventType.ALERT.value: VoiceAlertEvent.from_dict,
    VoiceEventType.SESSION_SUMMARY.value: VoiceSessionSummaryEvent.from_dict,
    VoiceEventType.CONFIG_UPDATED.value: VoiceConfigUpdatedEvent.from_dict,
    VoiceEventType.ERROR.value: VoiceErrorEvent.from_dict,
}


def decode_event(raw: str | bytes) -> VoiceEvent | None:
    """Decode one inbound text frame.

    Args:
        raw: Frame payload.

    Returns:
        The decoded event, or None if the frame should be skipped.
    """
    try:
        data = json.loads(raw)
    except (ValueError, RecursionError) as e:
        logger.debug("Skipping non-JSON frame: %s", e)
        return None

    if not isinstance(data, dict):
        logger.debug("Skipping frame that is not a JSON object")
        return None

    event_type = data.get("type")
    decoder = _DECODERS.get(event_type) if isinstance(event_type, str) else None
    if decoder is None:
        logger.debug("Skipping frame with unrecognized type: %r", event_type)
        return None

    try:
        return decoder(data)
    except (KeyError, TypeError, ValueError, OverflowError) as e:
        logger.debug("Skipping malformed %s frame: %s", event_type, e)
        return None


def encode_message(message: ControlMessage) -> str:
    """Encode a control message as a text frame payload."""
    return json.dumps(message.to_dict(), separators=(",", ":"))


__all__ = ["decode_event", "encode_message"]
