"""
Unit Tests for Search Sessions

Tests for 'go' searches against a scripted engine, focusing on:
    - Info stream delivered in order and closed before the result
    - Idempotent stop
    - Ponder / ponderhit rules
    - Channel failures turning into SearchFailure
    - Detaching a consumer without stopping the reader
"""

import threading

import pytest

from chess_uci.client.session import SessionState, UCISession
from chess_uci.errors import ProtocolViolation, SearchFailure, UnexpectedEndOfStream
from chess_uci.protocol.commands import SearchRequest
from chess_uci.protocol.responses import BestMove, Score, SearchInfo
from chess_uci.utils.testing import CHANNEL_ERROR, END_OF_STREAM, ScriptedEngine

INFOS = (
    "info depth 1 seldepth 1 score cp 20 nodes 20 pv e2e4",
    "info depth 2 seldepth 2 score cp 15 nodes 90 pv e2e4 e7e5",
    "info depth 3 seldepth 4 score cp 31 nodes 400 pv d2d4 d7d5 c2c4",
)


@pytest.fixture
def engine():
    return ScriptedEngine().on("uci", "id name Scripted", "uciok").on("isready", "readyok")


@pytest.fixture
def session(engine):
    """Session past the handshake, closed after the test."""
    session = UCISession(engine)
    session.handshake()
    yield session
    session.close()


class TestSearchStream:
    """Tests for info delivery and the result."""

    def test_infos_then_result(self, session, engine):
        """N infos are yielded, then the stream closes and the result resolves."""
        engine.on("go", *INFOS, "bestmove d2d4 ponder d7d5")

        search = session.go(SearchRequest(depth=3))
        infos = list(search)

        assert engine.sent[-1] == "go depth 3"
        assert [info.depth for info in infos] == [1, 2, 3]
        assert infos[-1].pv == ("d2d4", "d7d5", "c2c4")
        assert search.result(timeout=5) == BestMove("d2d4", "d7d5")
        assert search.next_info() is None

    def test_stream_closed_before_result(self, session, engine):
        """Once the result is available every info can be read without blocking."""
        engine.on("go", *INFOS, "bestmove d2d4")

        search = session.go(SearchRequest(depth=3))
        search.result(timeout=5)

        assert [search.next_info(timeout=0) for _ in INFOS] == list(search.history)
        assert search.next_info(timeout=0) is None

    def test_session_idle_after_result(self, session, engine):
        engine.on("go", "bestmove e2e4")

        search = session.go(SearchRequest(movetime=100))
        search.result(timeout=5)

        assert search.done
        assert session.state is SessionState.IDLE
        assert session.search is None

    def test_consumer_thread(self, session, engine):
        """Infos cross threads in the order they were received."""
        received = []
        search = session.go(SearchRequest(infinite=True))
        consumer = threading.Thread(target=lambda: received.extend(search))
        consumer.start()

        engine.feed(*INFOS)
        engine.feed("bestmove d2d4")
        consumer.join(timeout=5)

        assert not consumer.is_alive()
        assert [info.nodes for info in received] == [20, 90, 400]
        assert search.result(timeout=5).move == "d2d4"

    def test_latest_merges_fields(self, session, engine):
        engine.on("go", "info depth 5 score cp 12 pv e2e4", "info currmove g1f3 currmovenumber 2",
                  "bestmove e2e4")

        search = session.go(SearchRequest(depth=5))
        search.result(timeout=5)

        assert search.latest == SearchInfo(
            depth=5, score=Score(cp=12), pv=("e2e4",), currmove="g1f3", currmovenumber=2
        )

    def test_unrecognized_lines_dropped(self, session, engine):
        engine.on("go", "info depth 1", "info depth bogus", "vendor chatter", "info depth 2",
                  "bestmove a2a3")

        search = session.go(SearchRequest(depth=2))

        assert [info.depth for info in search] == [1, 2]

    def test_consecutive_searches(self, session, engine):
        engine.on("go", "info depth 1", "bestmove e2e4")
        engine.on("go", "info depth 1", "info depth 2", "bestmove d2d4")

        first = session.go(SearchRequest(depth=1))
        assert first.result(timeout=5).move == "e2e4"
        second = session.go(SearchRequest(depth=2))

        assert second.result(timeout=5).move == "d2d4"
        assert len(first.history) == 1
        assert len(second.history) == 2


class TestStop:
    """Tests for stopping searches."""

    def test_stop(self, session, engine):
        engine.on("go", INFOS[0])
        engine.on("stop", INFOS[1], "bestmove e2e4")

        search = session.go(SearchRequest(infinite=True))
        search.stop()

        assert search.result(timeout=5) == BestMove("e2e4")
        assert len(list(search)) == 2

    def test_stop_twice(self, session, engine):
        """A second stop sends nothing and changes nothing."""
        engine.on("go", INFOS[0])
        engine.on("stop", INFOS[1], "bestmove e2e4")

        search = session.go(SearchRequest(infinite=True))
        search.stop()
        search.stop()
        session.stop()

        assert search.result(timeout=5) == BestMove("e2e4")
        assert engine.commands("stop") == ["stop"]
        assert len(list(search)) == 2

    def test_stop_after_done(self, session, engine):
        engine.on("go", "bestmove e2e4")

        search = session.go(SearchRequest(depth=1))
        search.result(timeout=5)
        search.stop()

        assert engine.commands("stop") == []

    def test_stop_while_finishing(self, session, engine, monkeypatch):
        """Once bestmove is being handled, stop and ponderhit write nothing."""
        search = session.go(SearchRequest(ponder=True))
        refused = []
        search_finished = session._search_finished

        def finishing(finished):
            search_finished(finished)
            # Session is IDLE again but the search has not resolved yet
            finished.stop()
            try:
                finished.ponder_hit()
            except ProtocolViolation:
                refused.append("ponderhit")

        monkeypatch.setattr(session, "_search_finished", finishing)
        engine.feed("bestmove e2e4")

        assert search.result(timeout=5).move == "e2e4"
        assert engine.commands("stop") == []
        assert engine.commands("ponderhit") == []
        assert refused == ["ponderhit"]

    def test_session_stop_without_search(self, session, engine):
        session.stop()
        assert engine.commands("stop") == []

    def test_context_manager_stops(self, session, engine):
        engine.on("stop", "bestmove h2h3")

        with session.go(SearchRequest(infinite=True)) as search:
            engine.feed(INFOS[0])

        assert search.done
        assert search.result(timeout=0) == BestMove("h2h3")
        assert session.state is SessionState.IDLE


class TestPonder:
    """Tests for ponder searches."""

    def test_ponder_hit(self, session, engine):
        engine.on("ponderhit", INFOS[0], "bestmove e2e4")

        search = session.go(SearchRequest(ponder=True, wtime=1000, btime=1000))
        assert search.pondering
        session.ponder_hit()

        assert engine.sent[-2:] == ["go ponder wtime 1000 btime 1000", "ponderhit"]
        assert search.result(timeout=5).move == "e2e4"
        assert not search.pondering

    def test_ponder_hit_twice(self, session, engine):
        engine.on("stop", "bestmove e2e4")

        search = session.go(SearchRequest(ponder=True))
        search.ponder_hit()
        with pytest.raises(ProtocolViolation):
            search.ponder_hit()

        assert engine.commands("ponderhit") == ["ponderhit"]
        search.stop()
        search.result(timeout=5)

    def test_ponder_hit_not_pondering(self, session, engine):
        engine.on("stop", "bestmove e2e4")

        search = session.go(SearchRequest(infinite=True))
        with pytest.raises(ProtocolViolation):
            search.ponder_hit()

        assert engine.commands("ponderhit") == []
        search.stop()
        search.result(timeout=5)

    def test_ponder_hit_without_search(self, session, engine):
        with pytest.raises(ProtocolViolation):
            session.ponder_hit()
        assert engine.commands("ponderhit") == []

    def test_stop_ponder_search(self, session, engine):
        engine.on("stop", "bestmove e7e5 ponder g1f3")

        search = session.go(SearchRequest(ponder=True))
        search.stop()

        assert search.result(timeout=5) == BestMove("e7e5", "g1f3")


class TestSearchFailure:
    """Tests for channel failures during a search."""

    def test_end_of_stream(self, session, engine):
        engine.on("go", INFOS[0], INFOS[1], END_OF_STREAM)

        search = session.go(SearchRequest(depth=10))

        with pytest.raises(SearchFailure) as excinfo:
            search.result(timeout=5)
        assert excinfo.value.infos_received == 2

    def test_stream_raises_after_infos(self, session, engine):
        """Every info is still delivered before the failure."""
        engine.on("go", INFOS[0], INFOS[1], CHANNEL_ERROR)

        search = session.go(SearchRequest(depth=10))
        received = []
        with pytest.raises(SearchFailure):
            for info in search:
                received.append(info)

        assert len(received) == 2
        # The failure is sticky
        with pytest.raises(SearchFailure):
            search.next_info()

    def test_quit_during_search(self, session, engine):
        search = session.go(SearchRequest(infinite=True))
        session.quit()

        with pytest.raises(SearchFailure) as excinfo:
            search.result(timeout=5)
        assert excinfo.value.infos_received == 0
        assert session.state is SessionState.CLOSED

    def test_go_after_stream_ended(self, session, engine):
        engine.on("go", END_OF_STREAM)
        search = session.go(SearchRequest(depth=1))
        with pytest.raises(SearchFailure):
            search.result(timeout=5)

        with pytest.raises(UnexpectedEndOfStream):
            session.go(SearchRequest(depth=1))


class TestDetach:
    """Tests for timeouts on the consumer side."""

    def test_timeouts_do_not_stop_search(self, session, engine):
        engine.on("stop", INFOS[2], "bestmove d2d4")

        search = session.go(SearchRequest(infinite=True))
        with pytest.raises(TimeoutError):
            search.next_info(timeout=0.05)
        with pytest.raises(TimeoutError):
            search.result(timeout=0.05)

        assert not search.done
        assert engine.commands("stop") == []

        search.stop()
        assert search.result(timeout=5).move == "d2d4"
        assert [info.depth for info in search] == [3]

    def test_is_ready_during_search(self, session, engine):
        engine.on("stop", "bestmove e2e4")

        search = session.go(SearchRequest(infinite=True))
        session.is_ready()

        assert session.state is SessionState.BUSY_SEARCHING
        search.stop()
        search.result(timeout=5)
