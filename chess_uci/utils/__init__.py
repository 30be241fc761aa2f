"""
Utilities Module

Key Components:
    - log.setup_logger: file-based protocol log
    - testing.ScriptedEngine: in-memory fake engine for tests and demos
"""

from chess_uci.utils.log import setup_logger

__all__ = ['setup_logger']
