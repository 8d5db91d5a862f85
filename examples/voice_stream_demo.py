#!/usr/bin/env python3
"""
Voice stream demo: real-time safety analysis over WebSocket.

Streams a WAV file (or generated silence) to the Tuteliq voice endpoint,
prints transcription and alert events as they arrive, then ends the session
and prints the summary.

**Usage**:

    export TUTELIQ_API_KEY=tq_live_...

    # Stream a 16kHz mono 16-bit WAV file in real time:
    python examples/voice_stream_demo.py --audio path/to/audio.wav

    # Stream 20 seconds of silence with a 5 second analysis interval:
    python examples/voice_stream_demo.py --duration 20 --interval 5

    # Verbose logging:
    python examples/voice_stream_demo.py --audio call.wav -v
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import wave
from dataclasses import dataclass, field
from pathlib import Path

from tuteliq import (
    ConfigurationError,
    NoOpHandlers,
    VoiceAlertEvent,
    VoiceErrorEvent,
    VoiceReadyEvent,
    VoiceStream,
    VoiceStreamConfig,
    VoiceStreamConnectionError,
    VoiceStreamSettings,
    VoiceTranscriptionEvent,
)

SAMPLE_RATE = 16000
CHUNK_SECONDS = 0.1


@dataclass
class DemoHandlers(NoOpHandlers):
    """Prints events to the console as they arrive."""

    alerts: list[VoiceAlertEvent] = field(default_factory=list)

    def on_ready(self, event: VoiceReadyEvent) -> None:
        print(f"\n[READY] session_id={event.session_id}")
        print(f"  Interval: {event.config.interval_seconds}s")
        print(f"  Analyses: {', '.join(event.config.analysis_types) or '(server default)'}")

    def on_transcription(self, event: VoiceTranscriptionEvent) -> None:
        print(f"\n[TRANSCRIPT #{event.flush_index}] {event.text}")

    def on_alert(self, event: VoiceAlertEvent) -> None:
        self.alerts.append(event)
        print(
            f"\n[ALERT #{event.flush_index}] {event.category} "
            f"severity={event.severity} risk={event.risk_score:.2f}"
        )

    def on_error(self, event: VoiceErrorEvent) -> None:
        print(f"\n[ERROR] {event.code}: {event.message}")

    def on_close(self, code: int, reason: str) -> None:
        print(f"\n[CLOSED] code={code} reason={reason or '-'}")


def generate_silence_chunks(duration_sec: float) -> list[bytes]:
    """Generate PCM 16-bit silence split into CHUNK_SECONDS frames."""
    bytes_per_chunk = int(SAMPLE_RATE * CHUNK_SECONDS) * 2
    return [b"\x00" * bytes_per_chunk] * int(duration_sec / CHUNK_SECONDS)


def load_audio_chunks(audio_path: Path) -> list[bytes]:
    """
    Load a WAV file and split it into CHUNK_SECONDS frames.

    Raises:
        ValueError: If the file is not 16kHz mono 16-bit PCM.
    """
    with wave.open(str(audio_path), "rb") as wav:
        if wav.getframerate() != SAMPLE_RATE:
            raise ValueError(
                f"Audio must be {SAMPLE_RATE}Hz, got {wav.getframerate()}Hz. "
                f"Resample with: ffmpeg -i {audio_path} -ar {SAMPLE_RATE} -ac 1 output.wav"
            )
        if wav.getnchannels() != 1:
            raise ValueError(f"Audio must be mono, got {wav.getnchannels()} channels.")
        if wav.getsampwidth() != 2:
            raise ValueError(f"Audio must be 16-bit, got {wav.getsampwidth() * 8}-bit.")

        frames = wav.readframes(wav.getnframes())

    bytes_per_chunk = int(SAMPLE_RATE * CHUNK_SECONDS) * 2
    return [frames[i : i + bytes_per_chunk] for i in range(0, len(frames), bytes_per_chunk)]


async def run_demo(
    settings: VoiceStreamSettings,
    audio_chunks: list[bytes],
    interval_seconds: int,
    summary_timeout: float,
) -> int:
    handlers = DemoHandlers()
    stream = VoiceStream(
        settings=settings,
        config=VoiceStreamConfig(interval_seconds=interval_seconds),
        handlers=handlers,
    )

    try:
        async with stream:
            print(f"Sending {len(audio_chunks)} chunks...")
            for chunk in audio_chunks:
                await stream.send_audio(chunk)
                await asyncio.sleep(CHUNK_SECONDS)

            summary = await asyncio.wait_for(stream.end(), timeout=summary_timeout)
    except VoiceStreamConnectionError as e:
        print(f"\nConnection error: {e}")
        return 1
    except asyncio.TimeoutError:
        print(f"\nNo session summary within {summary_timeout}s")
        return 1

    print("\n" + "=" * 60)
    print("SESSION SUMMARY")
    print("=" * 60)
    print(f"Session: {summary.session_id}")
    print(f"Duration: {summary.duration_seconds:.1f}s over {summary.total_flushes} flushes")
    print(f"Overall risk: {summary.overall_risk} ({summary.overall_risk_score:.2f})")
    print(f"Alerts: {len(handlers.alerts)}")
    print(f"Client stats: {stream.stats.to_dict()}")
    if summary.transcript:
        print("\nTranscript:")
        print("-" * 40)
        print(summary.transcript)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Tuteliq voice stream demo")
    parser.add_argument("--audio", type=Path, help="16kHz mono 16-bit WAV file to stream")
    parser.add_argument(
        "--duration", type=float, default=10.0, help="Seconds of silence when no audio is given"
    )
    parser.add_argument("--interval", type=int, default=10, help="Analysis interval in seconds")
    parser.add_argument("--url", help="Override the voice stream URL")
    parser.add_argument(
        "--summary-timeout", type=float, default=60.0, help="Seconds to wait for the summary"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = VoiceStreamSettings.from_env()
        if args.url:
            settings.url = args.url
        settings.validate()
    except ConfigurationError as e:
        print(f"Configuration error: {e}")
        print("Set TUTELIQ_API_KEY to your Tuteliq API key.")
        return 2

    if args.audio:
        audio_chunks = load_audio_chunks(args.audio)
    else:
        audio_chunks = generate_silence_chunks(args.duration)

    return asyncio.run(run_demo(settings, audio_chunks, args.interval, args.summary_timeout))


if __name__ == "__main__":
    sys.exit(main())
