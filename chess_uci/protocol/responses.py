"""
UCI Response Parsing

Turns each line the engine prints into exactly one typed event:

    id name Stockfish 16      -> IdName
    id author the authors     -> IdAuthor
    option name Hash type ... -> OptionDeclared
    uciok                     -> UciOk
    readyok                   -> ReadyOk
    info depth 5 score cp 13  -> InfoEvent
    bestmove e2e4 ponder e7e5 -> BestMoveEvent
    anything else             -> Unrecognized

'info' lines are free-form: keys may come in any order and some keys
('pv', 'refutation', 'currline', 'string') swallow the rest of the line.
They are read with a token cursor rather than a regular expression.
"""

import logging
import re
from dataclasses import dataclass, fields
from typing import List, Optional, Tuple, Union

from chess_uci.protocol.option import Option, parse_option

logger = logging.getLogger(__name__)


class MalformedResponse(ValueError):
    """Raised internally when an info/bestmove line has bad operands."""


@dataclass(frozen=True)
class Score:
    """
    Engine score from the side to move's point of view.

    Exactly one of cp / mate is normally set. 'mate 0' means the side to
    move is checkmated; negative mate means the side to move gets mated.

    Attributes:
        cp: Centipawns (positive favors the side to move)
        mate: Moves until mate
        lowerbound: Score is only a lower bound
        upperbound: Score is only an upper bound
    """
    cp: Optional[int] = None
    mate: Optional[int] = None
    lowerbound: bool = False
    upperbound: bool = False

    @property
    def is_mate(self) -> bool:
        """Check if this is a mate score."""
        return self.mate is not None

    def to_centipawns(self, clamp: int = 10000) -> Optional[int]:
        """
        Convert to centipawns with clamping.

        Mate scores are converted to large values (+-clamp).

        Args:
            clamp: Maximum absolute centipawn value

        Returns:
            Centipawn evaluation, or None for an empty score
        """
        if self.is_mate:
            return clamp if self.mate > 0 else -clamp
        if self.cp is None:
            return None
        return max(-clamp, min(clamp, self.cp))


@dataclass(frozen=True)
class SearchInfo:
    """
    One 'info' line. Every field is optional.

    Attributes:
        depth: Search depth in plies
        seldepth: Selective search depth
        time: Time searched in milliseconds
        nodes: Nodes searched
        pv: Best line found
        multipv: 1-based index of this line in multi-PV mode
        score: Evaluation
        currmove: Move currently searched
        currmovenumber: 1-based index of currmove
        hashfull: Hash table fill in permille
        nps: Nodes per second
        tbhits: Tablebase hits
        cpuload: CPU usage in permille
        string: Free text, kept verbatim
        refutation: Move followed by its refutation line
        currline: Line currently searched (may start with a CPU number)
    """
    depth: Optional[int] = None
    seldepth: Optional[int] = None
    time: Optional[int] = None
    nodes: Optional[int] = None
    pv: Optional[Tuple[str, ...]] = None
    multipv: Optional[int] = None
    score: Optional[Score] = None
    currmove: Optional[str] = None
    currmovenumber: Optional[int] = None
    hashfull: Optional[int] = None
    nps: Optional[int] = None
    tbhits: Optional[int] = None
    cpuload: Optional[int] = None
    string: Optional[str] = None
    refutation: Optional[Tuple[str, ...]] = None
    currline: Optional[Tuple[str, ...]] = None

    def merged(self, newer: "SearchInfo") -> "SearchInfo":
        """Return a copy updated with every field set in `newer`."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        for f in fields(newer):
            value = getattr(newer, f.name)
            if value is not None:
                values[f.name] = value
        return SearchInfo(**values)


@dataclass(frozen=True)
class BestMove:
    """Final result of a search."""
    move: str
    ponder: Optional[str] = None


# ============================================================================
# Events
# ============================================================================


@dataclass(frozen=True)
class IdName:
    name: str


@dataclass(frozen=True)
class IdAuthor:
    author: str


@dataclass(frozen=True)
class OptionDeclared:
    option: Option


@dataclass(frozen=True)
class UciOk:
    pass


@dataclass(frozen=True)
class ReadyOk:
    pass


@dataclass(frozen=True)
class InfoEvent:
    info: SearchInfo


@dataclass(frozen=True)
class BestMoveEvent:
    best: BestMove


@dataclass(frozen=True)
class Unrecognized:
    line: str


Event = Union[
    IdName, IdAuthor, OptionDeclared, UciOk, ReadyOk, InfoEvent, BestMoveEvent, Unrecognized
]


# ============================================================================
# Info parsing
# ============================================================================

_INT_KEYS = (
    "depth", "seldepth", "time", "nodes", "multipv", "currmovenumber",
    "hashfull", "nps", "tbhits", "cpuload",
)
_LINE_KEYS = ("pv", "refutation", "currline")
_TOKEN = re.compile(r"\S+")


class _Cursor:
    """Token cursor that remembers where each token starts in the line."""

    def __init__(self, line: str):
        self.line = line
        self.matches = list(_TOKEN.finditer(line))
        self.pos = 0

    def done(self) -> bool:
        return self.pos >= len(self.matches)

    def peek(self) -> Optional[str]:
        if self.done():
            return None
        return self.matches[self.pos].group()

    def take(self) -> str:
        if self.done():
            raise MalformedResponse(f"missing operand in {self.line!r}")
        token = self.matches[self.pos].group()
        self.pos += 1
        return token

    def take_int(self) -> int:
        token = self.take()
        try:
            return int(token)
        except ValueError:
            raise MalformedResponse(f"expected integer, got {token!r}") from None

    def take_rest_tokens(self) -> Tuple[str, ...]:
        rest = tuple(m.group() for m in self.matches[self.pos:])
        self.pos = len(self.matches)
        return rest

    def take_rest_text(self) -> str:
        if self.done():
            return ""
        text = self.line[self.matches[self.pos].start():]
        self.pos = len(self.matches)
        return text.rstrip()


def _parse_score(cursor: _Cursor) -> Score:
    cp = mate = None
    lowerbound = upperbound = False

    while not cursor.done():
        token = cursor.peek()
        if token == "cp":
            cursor.take()
            cp = cursor.take_int()
        elif token == "mate":
            cursor.take()
            mate = cursor.take_int()
        elif token == "lowerbound":
            cursor.take()
            lowerbound = True
        elif token == "upperbound":
            cursor.take()
            upperbound = True
        else:
            break

    return Score(cp=cp, mate=mate, lowerbound=lowerbound, upperbound=upperbound)


def parse_info(line: str) -> SearchInfo:
    """
    Parse an 'info' line.

    Args:
        line: Raw line starting with 'info'

    Returns:
        SearchInfo with the fields present on the line

    Raises:
        MalformedResponse: If an operand is missing or not an integer

    Example:
        "info depth 5 score cp -34 pv e2e4 e7e5" parses to
        SearchInfo(depth=5, score=Score(cp=-34), pv=("e2e4", "e7e5"))
    """
    cursor = _Cursor(line)
    if cursor.take() != "info":
        raise MalformedResponse(f"not an info line: {line!r}")

    values = {}
    while not cursor.done():
        key = cursor.take()

        if key in _INT_KEYS:
            values[key] = cursor.take_int()
        elif key in _LINE_KEYS:
            values[key] = cursor.take_rest_tokens()
        elif key == "string":
            values["string"] = cursor.take_rest_text()
        elif key == "score":
            values["score"] = _parse_score(cursor)
        elif key == "currmove":
            values["currmove"] = cursor.take()
        else:
            logger.debug(f"Skipping unknown info token: {key}")

    return SearchInfo(**values)


def parse_bestmove(line: str) -> BestMove:
    """Parse 'bestmove <move> [ponder <move>]'."""
    tokens = line.split()
    if len(tokens) < 2 or tokens[0] != "bestmove":
        raise MalformedResponse(f"bestmove without a move: {line!r}")

    ponder = None
    if len(tokens) >= 4 and tokens[2] == "ponder":
        ponder = tokens[3]
    return BestMove(move=tokens[1], ponder=ponder)


def classify(line: str) -> Event:
    """
    Classify one line of engine output.

    Option lines are parsed eagerly, so MalformedOption propagates; the
    session decides whether that matters. Any other malformed line is
    reported as Unrecognized.

    Args:
        line: Raw line without its newline

    Returns:
        Exactly one event

    Raises:
        MalformedOption: If an 'option' line cannot be parsed
    """
    text = line.strip()
    first = text.split(None, 1)[0] if text else ""

    if text.startswith("id name "):
        return IdName(text[len("id name "):].strip())
    if text.startswith("id author "):
        return IdAuthor(text[len("id author "):].strip())
    if first == "option":
        return OptionDeclared(parse_option(text))
    if text == "uciok":
        return UciOk()
    if text == "readyok":
        return ReadyOk()

    try:
        if first == "info":
            return InfoEvent(parse_info(text))
        if first == "bestmove":
            return BestMoveEvent(parse_bestmove(text))
    except MalformedResponse as e:
        logger.debug(f"Dropping malformed line: {e}")

    return Unrecognized(line)


def merge_infos(infos: List[SearchInfo]) -> SearchInfo:
    """Fold a sequence of infos into one, later fields winning."""
    merged = SearchInfo()
    for info in infos:
        merged = merged.merged(info)
    return merged
