"""
Line Channels

A line channel is the duplex text pipe between the client and an engine.
The session only needs three operations:

    read_line()   -> next line without its newline, None at end of stream
    write_line(s) -> append one line and flush
    close()       -> release the underlying resources

Implementations:
    - StreamChannel: any pair of text streams (sockets, pipes, StringIO)
    - ProcessChannel: spawns the engine binary and talks over stdin/stdout
"""

import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from typing import Optional, Sequence, TextIO

from chess_uci.errors import EngineNotFound

logger = logging.getLogger(__name__)


class LineChannel(ABC):
    """
    Abstract duplex channel of newline-terminated text lines.

    read_line() is only ever called from one thread at a time; write_line()
    may be called from any thread, the session serializes writers.
    """

    @abstractmethod
    def read_line(self) -> Optional[str]:
        """
        Block until the next line arrives.

        Returns:
            The line without its trailing newline, or None at end of stream

        Raises:
            OSError: If the channel failed
        """
        pass

    @abstractmethod
    def write_line(self, line: str) -> None:
        """
        Append one line and flush.

        Raises:
            OSError: If the channel failed
        """
        pass

    def close(self) -> None:
        """Release the channel. Safe to call more than once."""


class StreamChannel(LineChannel):
    """Channel over an already open reader and writer."""

    def __init__(self, reader: TextIO, writer: TextIO):
        self.reader = reader
        self.writer = writer

    def read_line(self) -> Optional[str]:
        line = self.reader.readline()
        if not line:
            return None
        return line.rstrip("\r\n")

    def write_line(self, line: str) -> None:
        self.writer.write(line + "\n")
        self.writer.flush()


class ProcessChannel(StreamChannel):
    """
    Channel connected to a freshly started engine process.

    Args:
        path: Path to the engine binary, or a command name looked up on PATH
        args: Extra command line arguments

    Raises:
        EngineNotFound: If the binary does not exist
    """

    def __init__(self, path: str, args: Sequence[str] = ()):
        resolved = shutil.which(path)
        if resolved is None:
            raise EngineNotFound(f"Engine binary not found at: {path}")

        self.path = resolved
        self.process = subprocess.Popen(
            [resolved, *args],
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            bufsize=1,
        )
        logger.info(f"Started engine process {path} (pid={self.process.pid})")
        super().__init__(self.process.stdout, self.process.stdin)

    def close(self, timeout: float = 1.0) -> None:
        """Close the pipes and wait for the process, killing it if needed."""
        if self.process.poll() is None:
            try:
                self.process.stdin.close()
            except OSError as e:
                logger.debug(f"Closing engine stdin failed: {e}")
            try:
                self.process.wait(timeout=timeout)
            except subprocess.TimeoutExpired:
                logger.warning(f"Engine {self.path} did not exit, killing it")
                self.process.kill()
                self.process.wait()
        self.process.stdout.close()
        logger.info(f"Engine process {self.path} exited with code {self.process.returncode}")


def find_engine(candidates: Optional[Sequence[str]] = None) -> str:
    """
    Auto-detect an engine binary.

    Args:
        candidates: Names or paths to try (default: common Stockfish locations)

    Returns:
        Path to the first binary found

    Raises:
        EngineNotFound: If none of the candidates exists
    """
    if candidates is None:
        candidates = [
            "stockfish",
            "/usr/local/bin/stockfish",
            "/usr/games/stockfish",
            "/usr/bin/stockfish",
            "/opt/homebrew/bin/stockfish",
        ]

    for candidate in candidates:
        path = shutil.which(candidate)
        if path:
            return path

    raise EngineNotFound(
        "No UCI engine found. Install one with: brew install stockfish (macOS) "
        "or apt install stockfish (Linux)"
    )
