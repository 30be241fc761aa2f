"""
UCI Protocol Session

UCISession drives one engine over a LineChannel and tracks where the
conversation stands:

    FRESH --uci--> HANDSHAKE_PENDING --uciok--> IDLE
    IDLE  --isready--> IDLE (blocks until readyok)
    IDLE  --go--> BUSY_SEARCHING --bestmove--> IDLE
    any   --quit--> CLOSED

Threading:
    - Reader thread: the only caller of channel.read_line(). Classifies
      every line and routes it (handshake fields, readyok counter, search
      stream). It keeps draining even when no caller is waiting.
    - Caller threads: send commands and block on a condition variable for
      uciok / readyok. Writes are serialized by a lock.

Commands that reconfigure the engine (setoption, position, ucinewgame,
debug, register) are only accepted in IDLE; the engine gives no
acknowledgement for them, so they never block.

Example:
    channel = ProcessChannel("/usr/bin/stockfish")
    with UCISession(channel) as session:
        session.handshake()
        session.set_option("Threads", "2")
        session.is_ready()
        session.set_position(moves=["e2e4"])
        search = session.go(SearchRequest(depth=12))
        for info in search:
            print(info.depth, info.score)
        print(search.result().move)
"""

import logging
import threading
from enum import Enum
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Union

import chess

from chess_uci.client.channel import LineChannel, ProcessChannel, find_engine
from chess_uci.client.search import SearchSession
from chess_uci.errors import (
    MalformedOption,
    ProtocolViolation,
    UnexpectedEndOfStream,
)
from chess_uci.protocol import commands
from chess_uci.protocol.commands import SearchRequest
from chess_uci.protocol.option import Option
from chess_uci.protocol.responses import (
    BestMoveEvent,
    IdAuthor,
    IdName,
    InfoEvent,
    OptionDeclared,
    ReadyOk,
    UciOk,
    Unrecognized,
    classify,
)
from chess_uci.utils.log import setup_logger

if TYPE_CHECKING:
    from chess_uci.client.config import ClientConfig

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Where the conversation with the engine stands."""
    FRESH = 0
    HANDSHAKE_PENDING = 1
    IDLE = 2
    BUSY_SEARCHING = 3
    CLOSED = 4


OptionValue = Union[str, int, bool]


class UCISession:
    """
    Client side of a UCI conversation.

    Attributes:
        channel: Line channel to the engine
        name: Engine name from 'id name' ("" if never reported)
        author: Engine author from 'id author' ("" if never reported)
    """

    def __init__(self, channel: LineChannel):
        self.channel = channel
        self.name = ""
        self.author = ""
        self._options: Dict[str, Option] = {}

        self._state = SessionState.FRESH
        self._cond = threading.Condition()
        self._write_lock = threading.RLock()
        self._reader: Optional[threading.Thread] = None
        self._search: Optional[SearchSession] = None

        self._stream_ended = False
        self._stream_error: Optional[BaseException] = None
        self._handshake_error: Optional[MalformedOption] = None
        # Aborted handshakes whose trailing uciok is still to be drained
        self._stale_uciok = 0
        self._ready_sent = 0
        self._ready_received = 0

    @classmethod
    def open(cls, config: "ClientConfig") -> "UCISession":
        """
        Start the configured engine and bring it to IDLE.

        Runs the handshake, enables debug mode if asked, applies the
        configured options and (optionally) waits for readyok.

        Raises:
            EngineNotFound: If no engine binary can be located
            UCIError: If the handshake or the ready check fails
        """
        if config.log_file is not None:
            setup_logger(debug=config.verbose, log_file=config.log_file)

        path = config.engine_path or find_engine()
        session = cls(ProcessChannel(path, config.engine_args))
        try:
            session.handshake()
            if config.debug:
                session.set_debug(True)
            for name, value in config.options.items():
                session.set_option(name, value)
            if config.startup_ready_check:
                session.is_ready()
        except Exception:
            session.close()
            raise
        return session

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        with self._cond:
            return self._state

    @property
    def options(self) -> List[Option]:
        """Options declared during the handshake, in declaration order."""
        with self._cond:
            return list(self._options.values())

    def option(self, name: str) -> Optional[Option]:
        with self._cond:
            return self._options.get(name)

    @property
    def search(self) -> Optional[SearchSession]:
        """The running search, if any."""
        with self._cond:
            return self._search

    # ------------------------------------------------------------------
    # Blocking calls
    # ------------------------------------------------------------------

    def handshake(self) -> None:
        """
        Send 'uci' and collect identity and options until 'uciok'.

        On failure the session goes back to FRESH and handshake() may be
        called again.

        Raises:
            ProtocolViolation: If the session is not FRESH
            MalformedOption: If the engine declared an unparseable option
            UnexpectedEndOfStream: If the engine output ended before 'uciok'
        """
        with self._cond:
            self._require("uci", SessionState.FRESH)
            self.name = ""
            self.author = ""
            self._options = {}
            self._handshake_error = None
            self._state = SessionState.HANDSHAKE_PENDING
            logger.info("Handshake started")

        self._ensure_reader()
        try:
            self._send(commands.UCI)
        except OSError:
            with self._cond:
                self._state = SessionState.FRESH
            raise

        with self._cond:
            while True:
                if self._state is SessionState.IDLE:
                    return
                if self._handshake_error is not None:
                    error, self._handshake_error = self._handshake_error, None
                    raise error
                if self._state is SessionState.CLOSED:
                    raise ProtocolViolation("Session quit during the handshake")
                if self._stream_ended:
                    raise UnexpectedEndOfStream("uciok") from self._stream_error
                self._cond.wait()

    def is_ready(self) -> None:
        """
        Send 'isready' and block until 'readyok'.

        Raises:
            ProtocolViolation: Before the handshake completed or after quit
            UnexpectedEndOfStream: If the engine output ended first
        """
        with self._write_lock:
            with self._cond:
                self._require("isready", SessionState.IDLE, SessionState.BUSY_SEARCHING)
                if self._stream_ended:
                    raise UnexpectedEndOfStream("readyok") from self._stream_error
                self._ready_sent += 1
                ticket = self._ready_sent
            try:
                self._send(commands.ISREADY)
            except OSError:
                with self._cond:
                    self._ready_sent -= 1
                raise

        with self._cond:
            while self._ready_received < ticket:
                if self._stream_ended:
                    raise UnexpectedEndOfStream("readyok") from self._stream_error
                self._cond.wait()

    # ------------------------------------------------------------------
    # Fire-and-forget commands (IDLE only)
    # ------------------------------------------------------------------

    def set_option(self, name: str, value: OptionValue = "") -> None:
        """
        Send 'setoption'. Use the empty string for button options.

        Values of declared options are checked against the declaration;
        options the engine never declared are sent as-is.

        Raises:
            ProtocolViolation: If the session is not IDLE
            InvalidOptionValue: If the value does not fit the declaration
        """
        if isinstance(value, bool):
            value = "true" if value else "false"
        value = str(value)

        line = commands.setoption(name, value)

        with self._write_lock:
            with self._cond:
                self._require("setoption", SessionState.IDLE)
                option = self._options.get(name)

            if option is not None:
                option.check_value(value)
            else:
                logger.warning(f"Setting option {name!r} the engine did not declare")
            self._send(line)

    def set_debug(self, on: bool) -> None:
        self._send_idle("debug", commands.debug(on))

    def register(self, name: str, code: str) -> None:
        self._send_idle("register", commands.register(name, code))

    def register_later(self) -> None:
        self._send_idle("register", commands.register_later())

    def new_game(self) -> None:
        """Send 'ucinewgame': the next search is from a different game."""
        self._send_idle("ucinewgame", commands.UCINEWGAME)

    def set_position(self, fen: Optional[str] = None, moves: Iterable[str] = ()) -> None:
        """
        Send 'position'.

        Args:
            fen: Root position (None = standard starting position)
            moves: Moves from the root in UCI notation
        """
        self._send_idle("position", commands.position(fen, moves))

    def set_position_from_board(self, board: chess.Board) -> None:
        """
        Send the position of a python-chess board.

        The board's root position and move stack are sent, so the engine
        sees the game history (repetitions, fifty-move counter).
        """
        root = board.root()
        fen = None if root.fen() == chess.STARTING_FEN else root.fen()
        self.set_position(fen, [move.uci() for move in board.move_stack])

    # ------------------------------------------------------------------
    # Searching
    # ------------------------------------------------------------------

    def go(self, request: Optional[SearchRequest] = None) -> SearchSession:
        """
        Send 'go' and return a handle on the running search.

        Raises:
            ProtocolViolation: If the session is not IDLE
            UnexpectedEndOfStream: If the engine output already ended
        """
        request = request if request is not None else SearchRequest()
        line = commands.go(request)

        with self._write_lock:
            with self._cond:
                self._require("go", SessionState.IDLE)
                if self._stream_ended:
                    raise UnexpectedEndOfStream("bestmove") from self._stream_error
                search = SearchSession(self, request)
                self._search = search
                self._state = SessionState.BUSY_SEARCHING

            try:
                self._send(line)
            except OSError:
                with self._cond:
                    self._search = None
                    self._state = SessionState.IDLE
                raise

        logger.info(f"Search started: {line}")
        return search

    def stop(self) -> None:
        """Stop the running search, if any. Does not wait."""
        search = self.search
        if search is None:
            logger.debug("stop requested with no search running")
            return
        search.stop()

    def ponder_hit(self) -> None:
        """
        Confirm the running ponder search.

        Raises:
            ProtocolViolation: If no ponder search is running
        """
        search = self.search
        if search is None:
            raise ProtocolViolation("ponderhit sent while no search is running")
        search.ponder_hit()

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    def quit(self) -> None:
        """
        Send 'quit'. The session cannot be used afterwards.

        A search still running fails with SearchFailure once the engine's
        output ends.
        """
        with self._cond:
            if self._state is SessionState.CLOSED:
                return
            self._state = SessionState.CLOSED
            self._cond.notify_all()
        logger.info("Quitting engine")
        self._send(commands.QUIT)

    def close(self, timeout: float = 1.0) -> None:
        """Quit (if not done yet) and release the channel."""
        try:
            if self.state is not SessionState.CLOSED:
                self.quit()
        finally:
            self.channel.close()
            reader = self._reader
            if reader is not None and reader is not threading.current_thread():
                reader.join(timeout=timeout)

    def __enter__(self) -> "UCISession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require(self, command: str, *allowed: SessionState) -> None:
        # Caller holds self._cond
        if self._state is SessionState.CLOSED:
            raise ProtocolViolation(f"Cannot send {command!r}: session has quit")
        if self._state not in allowed:
            raise ProtocolViolation(
                f"Cannot send {command!r} while {self._state.name}"
            )

    def _send_idle(self, command: str, line: str) -> None:
        # The state check and the write must not interleave with go()
        with self._write_lock:
            with self._cond:
                self._require(command, SessionState.IDLE)
            self._send(line)

    def _send(self, line: str) -> None:
        with self._write_lock:
            logger.debug(f">>> {line}")
            self.channel.write_line(line)

    def _ensure_reader(self) -> None:
        with self._cond:
            reader = self._reader
            if reader is not None and reader.is_alive() and not self._stream_ended:
                return
        if reader is not None:
            reader.join()

        with self._cond:
            self._stream_ended = False
            self._stream_error = None
            self._reader = threading.Thread(
                target=self._read_loop, name="uci-reader", daemon=True
            )
            self._reader.start()

    def _read_loop(self) -> None:
        while True:
            try:
                line = self.channel.read_line()
            except (OSError, ValueError) as e:
                logger.error(f"Reading from engine failed: {e}")
                self._end_of_stream(e)
                return

            if line is None:
                logger.info("Engine output ended")
                self._end_of_stream(None)
                return

            logger.debug(f"<<< {line}")
            self._dispatch(line)

    def _dispatch(self, line: str) -> None:
        try:
            event = classify(line)
        except MalformedOption as e:
            self._option_failed(e)
            return

        if isinstance(event, (IdName, IdAuthor, OptionDeclared)):
            self._fold_identity(event)
        elif isinstance(event, UciOk):
            self._handshake_done()
        elif isinstance(event, ReadyOk):
            with self._cond:
                self._ready_received += 1
                self._cond.notify_all()
        elif isinstance(event, InfoEvent):
            search = self.search
            if search is not None:
                search._deliver(event.info)
            else:
                logger.debug("Dropping info outside a search")
        elif isinstance(event, BestMoveEvent):
            search = self.search
            if search is not None:
                search._finish(event.best)
            else:
                logger.warning(f"Dropping bestmove outside a search: {line}")
        elif isinstance(event, Unrecognized):
            logger.debug(f"Ignoring unrecognized line: {line}")

    def _collecting(self) -> bool:
        return self._state is SessionState.HANDSHAKE_PENDING and self._stale_uciok == 0

    def _fold_identity(self, event) -> None:
        with self._cond:
            if not self._collecting():
                logger.debug(f"Ignoring {type(event).__name__} outside the handshake")
                return
            if isinstance(event, IdName):
                self.name = event.name
            elif isinstance(event, IdAuthor):
                self.author = event.author
            else:
                self._options[event.option.name] = event.option

    def _option_failed(self, error: MalformedOption) -> None:
        with self._cond:
            if not self._collecting():
                logger.debug(f"Ignoring malformed option outside the handshake: {error}")
                return
            logger.error(f"Handshake aborted: {error}")
            self._handshake_error = error
            self._state = SessionState.FRESH
            self._stale_uciok += 1
            self._cond.notify_all()

    def _handshake_done(self) -> None:
        with self._cond:
            if self._stale_uciok:
                self._stale_uciok -= 1
                logger.warning("Drained the rest of an aborted handshake")
            elif self._state is SessionState.HANDSHAKE_PENDING:
                self._state = SessionState.IDLE
                logger.info(
                    f"Handshake complete: {self.name!r} by {self.author!r}, "
                    f"{len(self._options)} option(s)"
                )
            else:
                logger.debug("Ignoring uciok outside the handshake")
            self._cond.notify_all()

    def _search_finished(self, search: SearchSession) -> None:
        # Called by the search before its result resolves
        with self._cond:
            if self._search is search:
                self._search = None
                if self._state is SessionState.BUSY_SEARCHING:
                    self._state = SessionState.IDLE
            self._cond.notify_all()

    def _end_of_stream(self, error: Optional[BaseException]) -> None:
        with self._cond:
            self._stream_ended = True
            self._stream_error = error
            self._stale_uciok = 0
            if self._state is SessionState.HANDSHAKE_PENDING:
                self._state = SessionState.FRESH
            search = self._search
            self._cond.notify_all()

        if search is not None:
            reason = str(error) if error is not None else "engine output ended"
            search._fail(reason)

    def __repr__(self) -> str:
        return f"UCISession(name={self.name!r}, state={self.state.name})"
