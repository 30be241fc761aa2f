"""
Unit Tests for the UCI Client

Most tests drive sessions against ScriptedEngine (chess_uci.utils.testing),
so no engine binary is needed. test_channel.py starts a tiny Python engine
in a subprocess; the Stockfish checks in test_evaluator.py are skipped when
Stockfish is not installed.

Running Tests:
    # Run all tests
    pytest tests/

    # Run specific test file
    pytest tests/test_session.py

    # Run with coverage
    pytest tests/ --cov=chess_uci --cov-report=html

    # Run specific test
    pytest tests/test_search.py::TestStop::test_stop_twice

Dependencies:
    - pytest: Test framework
    - pytest-cov: Coverage reporting
"""
