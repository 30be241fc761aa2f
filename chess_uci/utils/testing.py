"""
Scripted Engine for Testing

ScriptedEngine is an in-memory LineChannel that plays the engine side of
a conversation from a script, so sessions can be tested without a real
engine binary.

Replies are keyed by the first word of the command they answer:

    engine = ScriptedEngine()
    engine.on("uci", "id name Fake", "id author Tests", "uciok")
    engine.on("isready", "readyok")
    engine.on("go", "info depth 1 score cp 10 pv e2e4", "bestmove e2e4")

Scripting rules:
    - Replies for the same command are used in order; the last one is
      reused for every later command
    - END_OF_STREAM in a reply ends the engine's output at that point
    - CHANNEL_ERROR in a reply makes the next read raise OSError
    - 'quit' ends the output unless a reply was scripted for it
"""

import queue
import threading
from typing import Dict, List, Optional

from chess_uci.client.channel import LineChannel

END_OF_STREAM = None
CHANNEL_ERROR = object()


class ScriptedEngine(LineChannel):
    """
    Fake engine driven by scripted replies.

    Attributes:
        sent: Every line the client wrote, in order
    """

    def __init__(self):
        self.sent: List[str] = []
        self._output: "queue.Queue" = queue.Queue()
        self._replies: Dict[str, List[list]] = {}
        self._lock = threading.Lock()
        self._closed = False

    def on(self, command: str, *lines) -> "ScriptedEngine":
        """Script the reply to the next `command` (matched on its first word)."""
        with self._lock:
            self._replies.setdefault(command, []).append(list(lines))
        return self

    def feed(self, *lines) -> None:
        """Emit lines right away, as if the engine printed them unprompted."""
        for line in lines:
            self._output.put(line)

    def end(self) -> None:
        """End the engine's output."""
        self._output.put(END_OF_STREAM)

    def commands(self, word: str) -> List[str]:
        """All sent lines whose first word is `word`."""
        with self._lock:
            return [line for line in self.sent if line.split()[0] == word]

    def read_line(self) -> Optional[str]:
        item = self._output.get()
        if item is CHANNEL_ERROR:
            raise OSError("scripted channel failure")
        return item

    def write_line(self, line: str) -> None:
        with self._lock:
            if self._closed:
                raise BrokenPipeError("scripted engine is closed")
            self.sent.append(line)
            word = line.split()[0]
            replies = self._replies.get(word)
            if replies:
                reply = replies.pop(0) if len(replies) > 1 else replies[0]
            elif word == "quit":
                reply = [END_OF_STREAM]
            else:
                reply = []

        self.feed(*reply)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self.end()
