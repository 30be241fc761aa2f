#!/usr/bin/env python3
"""
CLI tool for scoring positions with a UCI engine.

Usage:
    python tools/evaluate_positions.py positions.fen \\
        --engine /usr/bin/stockfish \\
        --depth 15 \\
        --threads 2

The input holds one FEN per line (blank lines and '#' comments skipped).
Output is tab separated: fen, centipawns (White's view), best move.
"""

import argparse
import logging
import sys
from pathlib import Path

import chess

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from chess_uci.analysis.evaluator import PositionEvaluator
from chess_uci.errors import UCIError


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def read_positions(path: Path):
    """Read boards from a FEN file, skipping blanks and comments."""
    boards = []
    for number, line in enumerate(path.read_text().splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        try:
            boards.append(chess.Board(line))
        except ValueError as e:
            print(f"Error: invalid FEN on line {number}: {e}")
            sys.exit(1)
    return boards


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Evaluate FEN positions with a UCI engine",
    )
    parser.add_argument("fen_file", help="File with one FEN per line")
    parser.add_argument("--engine", default=None, help="Engine binary (default: auto-detect)")
    parser.add_argument("--depth", type=int, default=15, help="Search depth (default: 15)")
    parser.add_argument("--threads", type=int, default=1, help="Engine threads (default: 1)")
    parser.add_argument("--hash", type=int, default=None, help="Engine hash in MB")
    parser.add_argument("--verbose", action="store_true", help="Log every protocol line")
    args = parser.parse_args()

    setup_logging(args.verbose)

    fen_path = Path(args.fen_file)
    if not fen_path.exists():
        print(f"Error: FEN file not found: {fen_path}")
        sys.exit(1)

    boards = read_positions(fen_path)

    try:
        with PositionEvaluator(
            engine_path=args.engine,
            depth=args.depth,
            threads=args.threads,
            hash_mb=args.hash,
        ) as evaluator:
            evaluations = evaluator.evaluate_batch(boards, show_progress=True)
    except (UCIError, FileNotFoundError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    for board, evaluation in zip(boards, evaluations):
        print(f"{board.fen()}\t{evaluation.to_centipawns()}\t{evaluation.best_move}")


if __name__ == "__main__":
    main()
