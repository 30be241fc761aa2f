"""
Search Session

A 'go' command is answered by any number of 'info' lines followed by
exactly one 'bestmove'. SearchSession exposes both halves:

    - an ordered stream of SearchInfo, closed when bestmove arrives
    - a future resolving to the BestMove

The session's reader thread feeds the stream; callers consume it from
their own thread, and may stop the search or confirm a ponder search
meanwhile.

Threading:
    - Reader thread: _deliver() / _finish() / _fail()
    - Caller threads: iteration, result(), stop(), ponder_hit()
    - Info stream: unbounded queue, so the reader never blocks on a slow
      or detached consumer

Invariant:
    The info stream is closed before the result future resolves, so a
    consumer that got the result has already been offered every info.
"""

import logging
import queue
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeout
from typing import TYPE_CHECKING, Iterator, List, Optional

from chess_uci.errors import ProtocolViolation, SearchFailure
from chess_uci.protocol import commands
from chess_uci.protocol.commands import SearchRequest
from chess_uci.protocol.responses import BestMove, SearchInfo, merge_infos

if TYPE_CHECKING:
    from chess_uci.client.session import UCISession

logger = logging.getLogger(__name__)

_CLOSED = object()


class SearchSession:
    """
    Handle on one running search.

    Attributes:
        request: Parameters the search was started with
        history: Every SearchInfo received so far, in order
    """

    def __init__(self, session: "UCISession", request: SearchRequest):
        self.request = request
        self.history: List[SearchInfo] = []

        self._session = session
        self._lock = threading.Lock()
        self._infos: "queue.Queue" = queue.Queue()
        self._future: "Future[BestMove]" = Future()
        self._done = threading.Event()
        # Set by the reader before the session returns to IDLE
        self._finished = False
        self._stop_sent = False
        self._pondering = request.ponder
        self._failure: Optional[SearchFailure] = None

    # ------------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------------

    def __iter__(self) -> Iterator[SearchInfo]:
        """
        Iterate over infos until the search ends.

        Raises:
            SearchFailure: After the last info, if the search failed
        """
        while True:
            info = self.next_info()
            if info is None:
                return
            yield info

    def next_info(self, timeout: Optional[float] = None) -> Optional[SearchInfo]:
        """
        Wait for the next info.

        Args:
            timeout: Seconds to wait (None = until one arrives)

        Returns:
            The next SearchInfo, or None once the stream is closed

        Raises:
            TimeoutError: If nothing arrived in time (the search goes on)
            SearchFailure: If the stream was closed by a channel failure
        """
        try:
            item = self._infos.get(timeout=timeout)
        except queue.Empty:
            raise TimeoutError(f"No search info within {timeout}s") from None

        if item is _CLOSED:
            # Leave the marker for other consumers and repeated calls
            self._infos.put(_CLOSED)
            if self._failure is not None:
                raise self._failure
            return None
        return item

    def result(self, timeout: Optional[float] = None) -> BestMove:
        """
        Wait for the best move.

        Args:
            timeout: Seconds to wait (None = until the search ends)

        Raises:
            TimeoutError: If the search did not end in time (it goes on)
            SearchFailure: If the channel failed before bestmove
        """
        try:
            return self._future.result(timeout=timeout)
        except FutureTimeout:
            raise TimeoutError(f"Search still running after {timeout}s") from None

    def wait(self) -> BestMove:
        """Block until the search ends and return the best move."""
        return self.result()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def pondering(self) -> bool:
        """True while a ponder search has not been confirmed or ended."""
        with self._lock:
            return self._pondering and not self._finished

    @property
    def latest(self) -> SearchInfo:
        """All infos so far folded into one, most recent values winning."""
        with self._lock:
            return merge_infos(list(self.history))

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def stop(self) -> None:
        """
        Ask the engine to stop. Does not wait.

        The engine may still send infos before its bestmove; they are all
        delivered. Calling stop() again, or after the search ended, does
        nothing.
        """
        with self._lock:
            if self._stop_sent or self._finished:
                logger.debug("Stop already requested or search finished")
                return
            self._stop_sent = True
            self._session._send(commands.STOP)

    def ponder_hit(self) -> None:
        """
        Tell the engine the expected move was played.

        Raises:
            ProtocolViolation: If this search is not pondering
        """
        with self._lock:
            if not self._pondering or self._finished:
                raise ProtocolViolation("ponderhit sent while no ponder search is active")
            self._pondering = False
            self._session._send(commands.PONDERHIT)

    def __enter__(self) -> "SearchSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Stop the search and wait until the engine has answered."""
        self.stop()
        self._done.wait()
        return False

    # ------------------------------------------------------------------
    # Reader side
    # ------------------------------------------------------------------

    def _deliver(self, info: SearchInfo) -> None:
        with self._lock:
            self.history.append(info)
        self._infos.put(info)

    def _finish(self, best: BestMove) -> None:
        with self._lock:
            self._finished = True
        self._infos.put(_CLOSED)
        self._session._search_finished(self)
        self._done.set()
        logger.info(
            f"Search finished: bestmove={best.move} ponder={best.ponder} "
            f"infos={len(self.history)}"
        )
        self._future.set_result(best)

    def _fail(self, reason: str) -> None:
        with self._lock:
            self._finished = True
            failure = SearchFailure(len(self.history), reason)
            self._failure = failure
        self._infos.put(_CLOSED)
        self._session._search_finished(self)
        self._done.set()
        logger.error(f"Search failed: {failure}")
        self._future.set_exception(failure)

    def __repr__(self) -> str:
        state = "done" if self.done else "running"
        return f"SearchSession({commands.go(self.request)!r}, {state}, infos={len(self.history)})"
