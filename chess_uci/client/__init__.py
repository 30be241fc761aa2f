"""
UCI Client Module

Runs the client side of a UCI conversation over a line channel.

Key Components:
    - LineChannel / StreamChannel / ProcessChannel: transport to the engine
    - UCISession: handshake and protocol state machine
    - SearchSession: streaming, cancellable 'go' searches
    - ClientConfig: settings for UCISession.open()

Threading:
    - One reader thread per session owns the engine's output
    - Commands may be sent from any thread
"""

from chess_uci.client.channel import (
    LineChannel,
    ProcessChannel,
    StreamChannel,
    find_engine,
)
from chess_uci.client.config import ClientConfig
from chess_uci.client.search import SearchSession
from chess_uci.client.session import SessionState, UCISession

__all__ = [
    'LineChannel',
    'ProcessChannel',
    'StreamChannel',
    'find_engine',
    'ClientConfig',
    'SearchSession',
    'SessionState',
    'UCISession',
]
