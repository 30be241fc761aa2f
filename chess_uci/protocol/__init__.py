"""
UCI Protocol Module

Wire-level pieces of the Universal Chess Interface, free of any I/O:

Key Components:
    - option: 'option name ... type ...' declarations
    - commands: rendering of client commands ('go', 'position', ...)
    - responses: classification of engine output into typed events

Protocol Flow (client side):
    Client -> "uci"
    Engine -> "id name ..." / "id author ..." / "option name ..."*
    Engine -> "uciok"
    Client -> "isready"
    Engine -> "readyok"
    Client -> "position startpos moves e2e4"
    Client -> "go wtime 300000 btime 300000"
    Engine -> "info depth 5 score cp 25 nodes 12345 pv e7e5"*
    Engine -> "bestmove e7e5"

Reference:
    UCI Protocol: https://www.chessprogramming.org/UCI
"""

from chess_uci.protocol.option import Option, OptionType, parse_option
from chess_uci.protocol.commands import SearchRequest
from chess_uci.protocol.responses import (
    BestMove,
    Score,
    SearchInfo,
    classify,
    parse_info,
)

__all__ = [
    'Option',
    'OptionType',
    'parse_option',
    'SearchRequest',
    'BestMove',
    'Score',
    'SearchInfo',
    'classify',
    'parse_info',
]
