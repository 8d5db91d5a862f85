"""Handler interface for voice streaming events.

Handlers run on the session's receive task, one at a time, in the order the
server sent the events. A slow handler delays every event behind it, so
handlers should hand long work off to their own task or thread.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from .voice_models import (
    VoiceAlertEvent,
    VoiceConfigUpdatedEvent,
    VoiceErrorEvent,
    VoiceReadyEvent,
    VoiceSessionSummaryEvent,
    VoiceTranscriptionEvent,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class VoiceStreamHandlers(Protocol):
    """Callback interface for voice streaming events.

    Implement only the methods you need; events for missing methods are
    dropped. The handler object is fixed for the lifetime of a session.

    Handlers must not raise. If one does, the exception is logged and the
    receive loop carries on with the next frame.

    Example:
        >>> class AlertPrinter(NoOpHandlers):
        ...     def on_alert(self, event):
        ...         print(f"{event.category}: {event.severity}")
        ...
        >>> stream = VoiceStream(api_key, handlers=AlertPrinter())
    """

    def on_ready(self, event: VoiceReadyEvent) -> None:
        """Called once the server has accepted the session."""
        ...

    def on_transcription(self, event: VoiceTranscriptionEvent) -> None:
        """Called with the transcript of each flushed audio segment."""
        ...

    def on_alert(self, event: VoiceAlertEvent) -> None:
        """Called when analysis of a flush raises a safety alert."""
        ...

    def on_session_summary(self, event: VoiceSessionSummaryEvent) -> None:
        """Called with the final report after ``end()``."""
        ...

    def on_config_updated(self, event: VoiceConfigUpdatedEvent) -> None:
        """Called when the server confirms a configuration change."""
        ...

    def on_error(self, event: VoiceErrorEvent) -> None:
        """Called for server-reported errors and unsolicited connection faults.

        Connection faults arrive with code ``CONNECTION_ERROR``. A fault that
        fails a pending ``connect()`` or ``end()`` is raised there instead and
        is not repeated here.
        """
        ...

    def on_close(self, code: int, reason: str) -> None:
        """Called when the server closes the connection."""
        ...


class NoOpHandlers:
    """Default no-op handler implementation.

    Subclass and override the methods you care about.
    """

    def on_ready(self, event: VoiceReadyEvent) -> None:
        pass

    def on_transcription(self, event: VoiceTranscriptionEvent) -> None:
        pass

    def on_alert(self, event: VoiceAlertEvent) -> None:
        pass

    def on_session_summary(self, event: VoiceSessionSummaryEvent) -> None:
        pass

    def on_config_updated(self, event: VoiceConfigUpdatedEvent) -> None:
        pass

    def on_error(self, event: VoiceErrorEvent) -> None:
        pass

    def on_close(self, code: int, reason: str) -> None:
        pass


def invoke_handler_safely(
    handlers: VoiceStreamHandlers | object | None,
    method_name: str,
    *args,
) -> bool:
    """Invoke a handler method, catching and logging any exception.

    Args:
        handlers: The handler object (may be None).
        method_name: Name of the method to invoke (e.g. "on_alert").
        *args: Positional arguments to pass to the handler.

    Returns:
        True if the handler ran without raising, False if it raised or
        was not implemented.
    """
    if handlers is None:
        return False

    method = getattr(handlers, method_name, None)
    if method is None:
        return False

    try:
        method(*args)
        return True
    except Exception as e:
        logger.warning(
            "Handler %s raised exception: %s",
            method_name,
            e,
            exc_info=True,
        )
        return False


__all__ = ["VoiceStreamHandlers", "NoOpHandlers", "invoke_handler_safely"]
