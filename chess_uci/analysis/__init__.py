"""
Analysis module: scoring positions with a UCI engine.
"""

from chess_uci.analysis.evaluator import EngineEvaluation, PositionEvaluator

__all__ = [
    "EngineEvaluation",
    "PositionEvaluator",
]
