"""
Session state machine for Tuteliq voice streaming.

One ``VoiceSessionMachine`` owns one WebSocket connection for its whole
life. It sequences the connection through::

    idle -> connecting -> active -> closing -> closed

and nothing leaves ``closed``; a machine is single-use.

A single background task (the receive loop) reads frames for as long as the
connection is open. Every inbound text frame is decoded, observed internally
(``ready`` assigns the session id and releases ``connect()``;
``session_summary`` releases ``end()``), and then handed to the registered
handler. Handlers therefore run on the receive task, one at a time, in
server order.

Connection faults are reported exactly once: to the pending ``connect()`` or
``end()`` if one is waiting, otherwise to ``on_error`` with code
``CONNECTION_ERROR``. The socket is closed as soon as the fault is reported.
Cancellation caused by ``close()`` is never reported.

There are no built-in timeouts on ``connect()`` or ``end()``. Wrap them in
``asyncio.wait_for`` to bound the wait.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Generic, TypeVar

from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosed

from .config import VoiceStreamSettings
from .exceptions import VoiceStreamConnectionError, VoiceStreamStateError
from .voice_codec import decode_event, encode_message
from .voice_handlers import VoiceStreamHandlers, invoke_handler_safely
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
    VoiceStreamStats,
    VoiceTranscriptionEvent,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Connector = Callable[..., Awaitable[Any]]

CONNECTION_ERROR_CODE = "CONNECTION_ERROR"
NORMAL_CLOSURE = 1000

_HANDLER_METHODS = {
    VoiceEventType.READY.value: "on_ready",
    VoiceEventType.TRANSCRIPTION.value: "on_transcription",
    VoiceEventType.ALERT.value: "on_alert",
    VoiceEventType.SESSION_SUMMARY.value: "on_session_summary",
    VoiceEventType.CONFIG_UPDATED.value: "on_config_updated",
    VoiceEventType.ERROR.value: "on_error",
}


# =============================================================================
# Session State
# =============================================================================


class SessionState(str, Enum):
    """Voice session lifecycle states."""

    IDLE = "idle"
    CONNECTING = "connecting"
    ACTIVE = "active"
    CLOSING = "closing"
    CLOSED = "closed"


# =============================================================================
# Rendezvous
# =============================================================================


class OneShot(Generic[T]):
    """Single-assignment rendezvous between the receive loop and a caller.

    The first ``resolve`` or ``fail`` wins; later writes are no-ops and
    return False, so duplicate events from the peer are harmless. Must be
    created inside a running event loop.
    """

    def __init__(self) -> None:
        self._future: asyncio.Future[T] = asyncio.get_running_loop().create_future()

    @property
    def done(self) -> bool:
        return self._future.done()

    def resolve(self, value: T) -> bool:
        if self._future.done():
            return False
        self._future.set_result(value)
        return True

    def fail(self, error: BaseException) -> bool:
        if self._future.done():
            return False
        self._future.set_exception(error)
        # Mark retrieved so an unawaited failure is not logged at GC.
        self._future.exception()
        return True

    async def wait(self) -> T:
        """Wait for the value. Cancelling the waiter leaves the slot intact."""
        return await asyncio.shield(self._future)


# =============================================================================
# State Machine
# =============================================================================


class VoiceSessionMachine:
    """Owns the connection, lifecycle state and receive loop of one session.

    Args:
        settings: Transport settings (URL, credential, timeouts).
        handlers: Optional handler object; see ``VoiceStreamHandlers``.
        connector: Coroutine used to open the socket. Defaults to
            ``websockets.asyncio.client.connect``.
    """

    def __init__(
        self,
        settings: VoiceStreamSettings,
        handlers: VoiceStreamHandlers | object | None = None,
        connector: Connector | None = None,
    ) -> None:
        self._settings = settings
        self._handlers = handlers
        self._connector: Connector = connector or ws_connect

        self._state = SessionState.IDLE
        self._websocket: Any = None  # websockets.asyncio.client.ClientConnection
        self._receive_task: asyncio.Task | None = None
        self._session_id: str | None = None
        self._effective_config: VoiceStreamConfigInfo | None = None

        self._ready: OneShot[VoiceReadyEvent] | None = None
        self._summary: OneShot[VoiceSessionSummaryEvent] | None = None
        self._end_requested = False
        self._released = False
        # Set when a send already surfaced the connection loss to a caller.
        self._fault_reported = False

        self.stats = VoiceStreamStats()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session_id(self) -> str | None:
        """Server-assigned session id; None until ``ready`` arrives."""
        return self._session_id

    @property
    def effective_config(self) -> VoiceStreamConfigInfo | None:
        """Configuration last confirmed by the server."""
        return self._effective_config

    # =========================================================================
    # Operations
    # =========================================================================

    async def connect(self, initial_config: VoiceStreamConfig | None = None) -> VoiceReadyEvent:
        """Open the connection and wait for the server's ``ready`` event.

        Args:
            initial_config: Sent as the first frame, before any audio.

        Returns:
            The ``ready`` event.

        Raises:
            VoiceStreamStateError: If the session is not idle.
            VoiceStreamConnectionError: If the socket cannot be opened, or the
                connection closes (or ``close()`` is called) before ``ready``.
        """
        if self._state != SessionState.IDLE:
            raise VoiceStreamStateError(f"Cannot connect in state {self._state.value}")

        self._state = SessionState.CONNECTING
        self._ready = OneShot()
        self._summary = OneShot()

        url = self._settings.url
        logger.info("Connecting to %s", url)
        try:
            websocket = await self._connector(
                url,
                additional_headers=self._settings.auth_headers(),
                open_timeout=self._settings.open_timeout,
                close_timeout=self._settings.close_timeout,
                ping_interval=self._settings.ping_interval,
                ping_timeout=self._settings.ping_timeout,
                max_size=self._settings.max_message_size,
            )
        except Exception as e:
            self._state = SessionState.CLOSED
            self._released = True
            logger.error("Connection failed: %s", e)
            raise VoiceStreamConnectionError(f"Failed to connect to {url}: {e}") from e

        if self._state != SessionState.CONNECTING:
            # close() ran while the handshake was in flight.
            await self._close_socket(websocket)
            raise VoiceStreamConnectionError("Session closed while connecting")

        self._websocket = websocket

        if initial_config is not None:
            try:
                await self._send(encode_message(ConfigMessage(initial_config)))
            except VoiceStreamConnectionError:
                await self.close()
                raise
            logger.debug("Sent initial config: %s", initial_config)

        if self._released:
            # close() ran while the initial config was being sent.
            raise VoiceStreamConnectionError("Session closed while connecting")

        self._receive_task = asyncio.create_task(self._receive_loop())

        try:
            event = await self._ready.wait()
        except VoiceStreamConnectionError:
            await self.close()
            raise
        logger.info("Connected to %s: session_id=%s", url, self._session_id)
        return event

    async def send_audio(self, data: bytes) -> None:
        """Send one audio frame.

        Audio is fire-and-forget: nothing is awaited from the server. The call
        suspends only while the transport applies backpressure; frames are
        never queued internally or dropped.

        Raises:
            VoiceStreamStateError: If the session is not active.
            VoiceStreamConnectionError: If the connection is lost mid-send.
        """
        self._require_active("send audio")
        payload = bytes(data)
        await self._send(payload)
        self.stats.chunks_sent += 1
        self.stats.bytes_sent += len(payload)
        logger.debug("Sent audio frame: bytes=%d", len(payload))

    async def update_config(self, config: VoiceStreamConfig) -> None:
        """Send a configuration update.

        Only the populated fields of ``config`` change on the server. The
        confirmation, if any, arrives later through ``on_config_updated``.

        Raises:
            VoiceStreamStateError: If the session is not active.
            VoiceStreamConnectionError: If the connection is lost mid-send.
        """
        self._require_active("update config")
        await self._send(encode_message(ConfigMessage(config)))
        logger.info("Sent config update: %s", config)

    async def end(self) -> VoiceSessionSummaryEvent:
        """Ask the server to finish and wait for the session summary.

        May be called once per session; a second call fails immediately.

        Raises:
            VoiceStreamStateError: If the session is not active, or ``end()``
                was already called.
            VoiceStreamConnectionError: If the connection closes (or
                ``close()`` is called) before the summary arrives.
        """
        self._require_active("end session")
        if self._end_requested:
            raise VoiceStreamStateError("end() has already been called for this session")
        assert self._summary is not None

        self._end_requested = True
        await self._send(encode_message(EndMessage()))
        logger.info("Sent end, waiting for session summary")

        summary = await self._summary.wait()
        logger.info(
            "Session ended: session_id=%s, total_flushes=%d, overall_risk=%s",
            summary.session_id,
            summary.total_flushes,
            summary.overall_risk,
        )
        return summary

    async def close(self) -> None:
        """Close the session and release its resources.

        Safe to call multiple times and in any state. A pending ``connect()``
        or ``end()`` fails with ``VoiceStreamConnectionError``. No handlers
        are invoked.
        """
        if self._released:
            return
        self._released = True

        logger.info("Closing voice stream session %s", self._session_id)
        if self._state != SessionState.CLOSED:
            self._state = SessionState.CLOSING

        self._fail_pending(VoiceStreamConnectionError("Session closed by client"))

        task = self._receive_task
        self._receive_task = None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        websocket = self._websocket
        self._websocket = None
        if websocket is not None:
            await self._close_socket(websocket)

        self._state = SessionState.CLOSED
        logger.info("Voice stream session closed")

    # =========================================================================
    # Internal Methods
    # =========================================================================

    def _require_active(self, action: str) -> None:
        if self._state != SessionState.ACTIVE or self._websocket is None:
            raise VoiceStreamStateError(
                f"Voice stream is not connected (cannot {action} in state {self._state.value})"
            )

    async def _send(self, payload: str | bytes) -> None:
        try:
            await self._websocket.send(payload)
        except ConnectionClosed as e:
            self._fault_reported = True
            logger.error("Failed to send frame: %s", e)
            raise VoiceStreamConnectionError(f"Connection closed while sending: {e}") from e

    async def _close_socket(self, websocket: Any) -> None:
        try:
            await websocket.close(code=NORMAL_CLOSURE, reason="Client closed")
        except Exception as e:
            logger.warning("Error closing websocket: %s", e)

    async def _release_socket(self, websocket: Any) -> None:
        """Close the socket after the receive loop died on a fault."""
        await self._close_socket(websocket)
        if self._websocket is websocket:
            self._websocket = None

    def _fail_pending(self, error: VoiceStreamConnectionError) -> bool:
        """Fail whichever rendezvous a caller is waiting on.

        Returns:
            True if a waiting caller will observe ``error``.
        """
        failed = False
        if self._ready is not None and self._ready.fail(error):
            failed = True
        if self._end_requested and self._summary is not None and self._summary.fail(error):
            failed = True
        return failed

    async def _receive_loop(self) -> None:
        """Background task that reads frames until the connection ends."""
        websocket = self._websocket
        try:
            async for message in websocket:
                if isinstance(message, str):
                    self._handle_text(message)
                else:
                    logger.debug("Ignoring inbound binary frame: bytes=%d", len(message))
        except asyncio.CancelledError:
            raise
        except ConnectionClosed as e:
            if e.rcvd is not None:
                self._handle_peer_close(e.rcvd.code, e.rcvd.reason)
            else:
                self._handle_transport_fault(e)
                await self._release_socket(websocket)
            return
        except Exception as e:
            self._handle_transport_fault(e)
            await self._release_socket(websocket)
            return

        code = websocket.close_code if websocket.close_code is not None else NORMAL_CLOSURE
        self._handle_peer_close(code, websocket.close_reason or "")

    def _handle_text(self, text: str) -> None:
        event = decode_event(text)
        if event is None:
            self.stats.frames_skipped += 1
            return

        self.stats.events_received += 1
        logger.debug("Received event: type=%s", event.type)

        if isinstance(event, VoiceReadyEvent):
            self._observe_ready(event)
        elif isinstance(event, VoiceSessionSummaryEvent):
            self._observe_summary(event)
        elif isinstance(event, VoiceConfigUpdatedEvent):
            self._effective_config = event.config
        elif isinstance(event, VoiceTranscriptionEvent):
            self.stats.transcriptions_received += 1
        elif isinstance(event, VoiceAlertEvent):
            self.stats.alerts_received += 1
        elif isinstance(event, VoiceErrorEvent):
            self.stats.errors_received += 1
            logger.warning("Server reported error: code=%s message=%s", event.code, event.message)

        self._dispatch(event)

    def _dispatch(self, event: VoiceEvent) -> None:
        invoke_handler_safely(self._handlers, _HANDLER_METHODS[event.type], event)

    def _observe_ready(self, event: VoiceReadyEvent) -> None:
        if self._session_id is None:
            self._session_id = event.session_id
            self._effective_config = event.config
            if self._state == SessionState.CONNECTING:
                self._state = SessionState.ACTIVE
            logger.info("Session ready: session_id=%s", event.session_id)
        else:
            logger.warning(
                "Ignoring duplicate ready event (session_id=%s, current=%s)",
                event.session_id,
                self._session_id,
            )

        if self._ready is not None:
            self._ready.resolve(event)

    def _observe_summary(self, event: VoiceSessionSummaryEvent) -> None:
        if self._session_id is not None and event.session_id != self._session_id:
            logger.warning(
                "Session summary for %s does not match session %s",
                event.session_id,
                self._session_id,
            )
            return
        if self._summary is not None and not self._summary.resolve(event):
            logger.warning("Ignoring duplicate session summary for %s", event.session_id)

    def _handle_peer_close(self, code: int, reason: str) -> None:
        logger.info("Server closed connection: code=%d reason=%s", code, reason)
        self._state = SessionState.CLOSING
        self._fail_pending(
            VoiceStreamConnectionError(
                f"Connection closed by server (code={code}, reason={reason!r})"
            )
        )
        self._state = SessionState.CLOSED
        invoke_handler_safely(self._handlers, "on_close", code, reason)

    def _handle_transport_fault(self, error: Exception) -> None:
        self._state = SessionState.CLOSED
        message = str(error) or "Unknown error"
        if self._fail_pending(VoiceStreamConnectionError(f"Connection lost: {message}")):
            logger.error("Connection lost while waiting: %s", message)
            return
        if self._fault_reported:
            return

        logger.error("Receive loop error: %s", message)
        invoke_handler_safely(
            self._handlers,
            "on_error",
            VoiceErrorEvent(code=CONNECTION_ERROR_CODE, message=message),
        )


__all__ = [
    "SessionState",
    "OneShot",
    "VoiceSessionMachine",
    "Connector",
    "CONNECTION_ERROR_CODE",
]
