"""
UCI Client Errors

Every failure raised by the client derives from UCIError, so callers can
catch protocol problems without catching unrelated exceptions.

Taxonomy:
    - MalformedOption: unparseable 'option' declaration
    - InvalidOptionValue: 'setoption' value rejected by the declaration
    - ProtocolViolation: command issued in a state that forbids it
    - UnexpectedEndOfStream: channel closed before the awaited token
    - SearchFailure: channel failure while a search was running
    - EngineNotFound: engine binary auto-detection failed
"""

from typing import Optional


class UCIError(Exception):
    """Base class for all UCI client errors."""


class MalformedOption(UCIError, ValueError):
    """Raised when an 'option' line cannot be parsed."""

    def __init__(self, line: str, reason: str):
        super().__init__(f"Malformed option ({reason}): {line!r}")
        self.line = line
        self.reason = reason


class InvalidOptionValue(UCIError, ValueError):
    """Raised when a value does not fit the engine's option declaration."""


class ProtocolViolation(UCIError):
    """Raised when a command is issued in a state that forbids it.

    Always raised before any bytes are written to the engine.
    """


class UnexpectedEndOfStream(UCIError):
    """Raised when the channel ends before the awaited terminal token."""

    def __init__(self, awaiting: str):
        super().__init__(f"Engine output ended while waiting for {awaiting!r}")
        self.awaiting = awaiting


class SearchFailure(UCIError):
    """
    Raised when the channel fails during an active search.

    Attributes:
        infos_received: Number of info lines delivered before the failure
    """

    def __init__(self, infos_received: int, reason: Optional[str] = None):
        message = f"Search ended without bestmove after {infos_received} info line(s)"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.infos_received = infos_received


class EngineNotFound(UCIError, FileNotFoundError):
    """Raised when no engine binary can be located."""
