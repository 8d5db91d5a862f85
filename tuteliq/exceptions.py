"""Custom exception classes for the Tuteliq client library."""


class TuteliqError(Exception):
    """Base error for this library."""


class ConfigurationError(TuteliqError):
    """Raised when client configuration is invalid."""


class VoiceStreamError(TuteliqError):
    """Base error for voice streaming sessions."""


class VoiceStreamConnectionError(VoiceStreamError):
    """Raised when the connection fails, or closes before an awaited event."""


class VoiceStreamStateError(VoiceStreamError, RuntimeError):
    """Raised when an operation is invoked in the wrong lifecycle state."""
