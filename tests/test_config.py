"""
Tests for client configuration and logging setup.
"""

import logging
import os
import sys
from pathlib import Path

import pytest

from chess_uci.client.config import ClientConfig
from chess_uci.utils.log import setup_logger


class TestClientConfig:
    """Test ClientConfig validation."""

    def test_defaults(self):
        config = ClientConfig()

        assert config.engine_path is None
        assert config.engine_args == ()
        assert config.options == {}
        assert config.startup_ready_check
        assert not config.debug

    def test_normalization(self, tmp_path):
        config = ClientConfig(
            engine_path=sys.executable,
            engine_args=["-c", "pass"],
            log_file=str(tmp_path / "uci.log"),
        )

        assert config.engine_args == ("-c", "pass")
        assert isinstance(config.log_file, Path)

    def test_engine_command_name(self, monkeypatch):
        monkeypatch.setenv("PATH", os.path.dirname(sys.executable))
        config = ClientConfig(engine_path=os.path.basename(sys.executable))
        assert config.engine_path == os.path.basename(sys.executable)

    def test_missing_engine(self):
        with pytest.raises(FileNotFoundError):
            ClientConfig(engine_path="/nonexistent/stockfish")

    @pytest.mark.parametrize("name", ["", " Hash", "Threads "])
    def test_invalid_option_names(self, name):
        with pytest.raises(ValueError):
            ClientConfig(options={name: 1})

    def test_option_names_with_inner_spaces(self):
        config = ClientConfig(options={"Move Overhead": 30, "Ponder": False})
        assert config.options["Move Overhead"] == 30


class TestSetupLogger:
    """Test the file logger."""

    @pytest.fixture
    def restore_logger(self):
        logger = logging.getLogger("chess_uci")
        level, handlers = logger.level, list(logger.handlers)
        yield
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(level)
        for handler in handlers:
            logger.addHandler(handler)

    def test_writes_protocol_lines(self, tmp_path, restore_logger):
        log_file = tmp_path / "logs" / "client.log"

        setup_logger(debug=True, log_file=log_file)
        logging.getLogger("chess_uci.client.session").debug(">>> isready")

        text = log_file.read_text()
        assert f"Log file: {log_file}" in text
        assert "[DEBUG] >>> isready" in text

    def test_info_level(self, tmp_path, restore_logger):
        log_file = tmp_path / "client.log"

        logger = setup_logger(debug=False, log_file=log_file)
        logging.getLogger("chess_uci.client.session").debug("<<< readyok")

        assert logger.level == logging.INFO
        assert "readyok" not in log_file.read_text()

    def test_repeated_setup_single_handler(self, tmp_path, restore_logger):
        setup_logger(log_file=tmp_path / "a.log")
        logger = setup_logger(log_file=tmp_path / "b.log")

        assert len(logger.handlers) == 1
