"""
Tic-tac-toe client - learning the game by self-play with two BOXES tables.

The engine knows nothing about lines or turns: each board is a state index
(3^9 of them, reachable or not), each cell an action, and only the final
win/lose/draw outcome feeds back into the tables.
"""

from tictactoe.board import Board, NUM_STATES, NUM_CELLS, DRAW, IN_PROGRESS
from tictactoe.trainer import SelfPlayTrainer, TrainingReport, BatchStats, default_config

__all__ = [
    "Board",
    "NUM_STATES",
    "NUM_CELLS",
    "DRAW",
    "IN_PROGRESS",
    "SelfPlayTrainer",
    "TrainingReport",
    "BatchStats",
    "default_config",
]
