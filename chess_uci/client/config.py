"""
Client configuration.
"""

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple, Union


@dataclass
class ClientConfig:
    """Configuration for starting an engine with UCISession.open().

    Collects everything needed to spawn an engine and bring it to a ready
    state in one place.
    """

    # Engine process
    engine_path: Optional[str] = None
    """Engine binary path or command name on PATH (None = auto-detect Stockfish)"""

    engine_args: Tuple[str, ...] = ()
    """Extra command line arguments for the engine"""

    # Engine setup
    options: Dict[str, Union[str, int, bool]] = field(default_factory=dict)
    """Options sent with 'setoption' right after the handshake"""

    debug: bool = False
    """Send 'debug on' after the handshake"""

    startup_ready_check: bool = True
    """Wait for 'readyok' once the options are sent"""

    # Logging
    log_file: Optional[Path] = None
    """Write a protocol log to this file (None = leave logging alone)"""

    verbose: bool = False
    """Log every line sent and received (DEBUG level)"""

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.log_file is not None:
            self.log_file = Path(self.log_file)

        self.engine_args = tuple(self.engine_args)

        if self.engine_path is not None and shutil.which(self.engine_path) is None:
            raise FileNotFoundError(f"Engine binary not found at: {self.engine_path}")

        for name in self.options:
            if not name or name != name.strip():
                raise ValueError(f"Invalid option name: {name!r}")
