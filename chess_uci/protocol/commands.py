"""
UCI Command Serialization

Pure functions that render client commands as single protocol lines.
Nothing here performs I/O; the session writes the returned strings.

Search parameters are emitted in a fixed order:

    go ponder infinite mate movetime wtime btime winc binc movestogo
       depth nodes searchmoves

'searchmoves' always comes last since some engines only accept it there.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Iterable, Optional, Tuple, Union

UCI = "uci"
ISREADY = "isready"
UCINEWGAME = "ucinewgame"
STOP = "stop"
PONDERHIT = "ponderhit"
QUIT = "quit"

Duration = Union[timedelta, int, float]

_ONE_MS = timedelta(milliseconds=1)


def _to_timedelta(value: Optional[Duration]) -> Optional[timedelta]:
    # Plain numbers are milliseconds, as on the wire
    if value is None or isinstance(value, timedelta):
        return value
    return timedelta(milliseconds=value)


@dataclass
class SearchRequest:
    """
    Parameters of a 'go' command.

    Every field is optional; only fields that are set (and non-zero) are
    sent. Durations accept timedelta or a number of milliseconds and are
    truncated to whole milliseconds.

    Attributes:
        search_moves: Restrict the search to these moves
        ponder: Search in ponder mode
        infinite: Search until 'stop'
        mate: Search for a mate in this many moves
        movetime: Search exactly this long
        wtime, btime: Time remaining on White's / Black's clock
        winc, binc: Increment per move for White / Black
        movestogo: Moves until the next time control
        depth: Search this many plies
        nodes: Search this many nodes
    """
    search_moves: Tuple[str, ...] = field(default_factory=tuple)
    ponder: bool = False
    infinite: bool = False
    mate: Optional[int] = None
    movetime: Optional[Duration] = None
    wtime: Optional[Duration] = None
    btime: Optional[Duration] = None
    winc: Optional[Duration] = None
    binc: Optional[Duration] = None
    movestogo: Optional[int] = None
    depth: Optional[int] = None
    nodes: Optional[int] = None

    def __post_init__(self):
        """Normalize durations and validate integer limits."""
        self.search_moves = tuple(self.search_moves)
        for name in ("movetime", "wtime", "btime", "winc", "binc"):
            setattr(self, name, _to_timedelta(getattr(self, name)))

        for name in ("mate", "movestogo", "depth", "nodes"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")


def _check_text(*parts: str) -> None:
    for part in parts:
        if "\n" in part or "\r" in part:
            raise ValueError(f"Command argument contains a line break: {part!r}")


def _milliseconds(value: Optional[timedelta]) -> int:
    if value is None:
        return 0
    return value // _ONE_MS


def go(request: SearchRequest) -> str:
    """
    Render a 'go' command.

    Example:
        >>> go(SearchRequest(wtime=300000, btime=300000, depth=12))
        'go wtime 300000 btime 300000 depth 12'
    """
    _check_text(*request.search_moves)
    parts = ["go"]

    if request.ponder:
        parts.append("ponder")
    if request.infinite:
        parts.append("infinite")
    if request.mate:
        parts.append(f"mate {request.mate}")

    for name in ("movetime", "wtime", "btime", "winc", "binc"):
        ms = _milliseconds(getattr(request, name))
        if ms > 0:
            parts.append(f"{name} {ms}")

    for name in ("movestogo", "depth", "nodes"):
        value = getattr(request, name)
        if value:
            parts.append(f"{name} {value}")

    if request.search_moves:
        parts.append("searchmoves " + " ".join(request.search_moves))

    return " ".join(parts)


def position(fen: Optional[str] = None, moves: Iterable[str] = ()) -> str:
    """
    Render a 'position' command.

    Args:
        fen: FEN of the root position (None = standard starting position)
        moves: Moves played from the root, in UCI notation

    Returns:
        'position startpos [moves ...]' or 'position fen <FEN> [moves ...]'
    """
    moves = list(moves)
    _check_text(*moves)

    if fen is None:
        line = "position startpos"
    else:
        _check_text(fen)
        line = f"position fen {fen}"

    if moves:
        line += " moves " + " ".join(moves)
    return line


def setoption(name: str, value: str = "") -> str:
    """Render 'setoption name <name> [value <value>]'."""
    _check_text(name, value)
    if value == "":
        return f"setoption name {name}"
    return f"setoption name {name} value {value}"


def debug(on: bool) -> str:
    return "debug on" if on else "debug off"


def register(name: str, code: str) -> str:
    _check_text(name, code)
    return f"register name {name} code {code}"


def register_later() -> str:
    return "register later"
