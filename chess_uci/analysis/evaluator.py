"""
Engine-backed position evaluation.

Scores python-chess positions with any UCI engine (Stockfish by default)
at a fixed depth, keeping the engine process alive between positions.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

import chess
from tqdm import tqdm

from chess_uci.client.config import ClientConfig
from chess_uci.client.session import UCISession
from chess_uci.protocol.commands import SearchRequest

logger = logging.getLogger(__name__)


@dataclass
class EngineEvaluation:
    """Evaluation result from the engine, from White's point of view."""

    centipawn_score: Optional[int]  # None if mate score
    mate_in: Optional[int]  # None if centipawn score
    depth: int
    nodes: int
    best_move: Optional[str] = None

    @property
    def is_mate(self) -> bool:
        """Check if evaluation is a mate score."""
        return self.mate_in is not None

    def to_centipawns(self, clamp: int = 10000) -> int:
        """
        Convert evaluation to centipawns with clamping.

        Mate scores are converted to large values (+-clamp).

        Args:
            clamp: Maximum absolute centipawn value

        Returns:
            Centipawn evaluation
        """
        if self.is_mate:
            # Positive for White mating, negative for Black mating
            if self.mate_in > 0:
                return clamp
            else:
                return -clamp
        else:
            return max(-clamp, min(clamp, self.centipawn_score or 0))


class PositionEvaluator:
    """Evaluate positions with a UCI engine."""

    def __init__(
        self,
        engine_path: Optional[str] = None,
        depth: int = 15,
        threads: int = 1,
        hash_mb: Optional[int] = None,
        session: Optional[UCISession] = None,
    ):
        """
        Initialize the evaluator and start the engine.

        Args:
            engine_path: Path to engine binary (None = auto-detect Stockfish)
            depth: Search depth for evaluation
            threads: Engine 'Threads' option
            hash_mb: Engine 'Hash' option in MB (None = engine default)
            session: Already handshaken session to use instead of spawning

        Raises:
            EngineNotFound: If no engine binary is found
            ValueError: If depth is not positive
        """
        if depth <= 0:
            raise ValueError(f"depth must be positive, got {depth}")

        self.depth = depth
        self.threads = threads

        if session is None:
            options = {"Threads": threads}
            if hash_mb is not None:
                options["Hash"] = hash_mb
            session = UCISession.open(ClientConfig(engine_path=engine_path, options=options))

        self.session = session
        logger.info(f"Initialized evaluator: {session.name or 'engine'} (depth={depth})")

    def evaluate_position(self, board: chess.Board) -> EngineEvaluation:
        """
        Evaluate a single position.

        Args:
            board: Chess position to evaluate

        Returns:
            EngineEvaluation with score and metadata
        """
        self.session.set_position_from_board(board)
        search = self.session.go(SearchRequest(depth=self.depth))

        centipawn_score = None
        mate_in = None
        depth = 0
        nodes = 0

        for info in search:
            # Only the main line counts in multi-PV mode
            if info.multipv not in (None, 1):
                continue
            if info.depth is not None:
                depth = info.depth
            if info.nodes is not None:
                nodes = info.nodes
            if info.score is not None and not (info.score.lowerbound or info.score.upperbound):
                centipawn_score = info.score.cp
                mate_in = info.score.mate

        best = search.result()

        # Engine scores are from the side to move
        if board.turn == chess.BLACK:
            centipawn_score = -centipawn_score if centipawn_score is not None else None
            mate_in = -mate_in if mate_in is not None else None

        return EngineEvaluation(
            centipawn_score=centipawn_score,
            mate_in=mate_in,
            depth=depth,
            nodes=nodes,
            best_move=best.move,
        )

    def evaluate_batch(
        self, positions: Iterable[chess.Board], show_progress: bool = False
    ) -> List[EngineEvaluation]:
        """
        Evaluate multiple positions, one after the other.

        Args:
            positions: Chess positions
            show_progress: Display a tqdm progress bar

        Returns:
            List of evaluations, in input order
        """
        positions = list(positions)
        evaluations = []
        for board in tqdm(positions, desc="Evaluating", disable=not show_progress):
            self.session.new_game()
            evaluations.append(self.evaluate_position(board))
        return evaluations

    def close(self) -> None:
        """Quit the engine."""
        self.session.close()

    def __enter__(self) -> "PositionEvaluator":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
