"""
chess_uci

A client for the Universal Chess Interface (UCI): start or connect to a
chess engine, run the handshake, configure it and stream its searches.

## Architecture

The package is organized into several key modules:

1. **protocol**: Wire format, no I/O
   - Option declarations ('option name ... type ...')
   - Command rendering ('go', 'position', 'setoption', ...)
   - Response classification ('id', 'uciok', 'readyok', 'info', 'bestmove')

2. **client**: Talking to an engine
   - Line channels over text streams or an engine subprocess
   - UCISession: handshake and protocol state machine
   - SearchSession: streaming, cancellable searches
   - ClientConfig: engine path, options and logging

3. **analysis**: Scoring python-chess positions with an engine

4. **utils**: Logging setup and a scripted fake engine for tests

## Quick Start

```python
import chess
from chess_uci import ClientConfig, SearchRequest, UCISession

with UCISession.open(ClientConfig(options={"Threads": 2})) as engine:
    engine.set_position_from_board(chess.Board())
    search = engine.go(SearchRequest(movetime=500))
    for info in search:
        print(info.depth, info.score, info.pv)
    print(search.result().move)
```

## Command Line

```bash
python -m chess_uci /usr/bin/stockfish
```

## Version

0.1.0
"""

__version__ = "0.1.0"
__license__ = "MIT"

from chess_uci.errors import (
    EngineNotFound,
    InvalidOptionValue,
    MalformedOption,
    ProtocolViolation,
    SearchFailure,
    UCIError,
    UnexpectedEndOfStream,
)
from chess_uci.protocol import (
    BestMove,
    Option,
    OptionType,
    Score,
    SearchInfo,
    SearchRequest,
)
from chess_uci.client import (
    ClientConfig,
    ProcessChannel,
    SearchSession,
    SessionState,
    StreamChannel,
    UCISession,
)

__all__ = [
    'UCIError',
    'MalformedOption',
    'InvalidOptionValue',
    'ProtocolViolation',
    'UnexpectedEndOfStream',
    'SearchFailure',
    'EngineNotFound',
    'BestMove',
    'Option',
    'OptionType',
    'Score',
    'SearchInfo',
    'SearchRequest',
    'ClientConfig',
    'ProcessChannel',
    'SearchSession',
    'SessionState',
    'StreamChannel',
    'UCISession',
]
