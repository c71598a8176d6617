"""
Tic-tac-toe board - cells, encoding, legality and victory.

Cells are numbered left to right, top to bottom:
    0 1 2
    3 4 5
    6 7 8
Each cell holds EMPTY, or the mark of player 1 or 2. The learner knows none
of the rules; it only sees the base-3 encoded board and a legality mask.
"""

from typing import List, Optional
import numpy as np

EMPTY = 0
NUM_CELLS = 9
NUM_STATES = 3 ** NUM_CELLS  # 19683, unreachable boards included

# Result codes returned by Board.victor()
IN_PROGRESS = 0
DRAW = -1

WIN_LINES = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),  # rows
    (0, 3, 6), (1, 4, 7), (2, 5, 8),  # columns
    (0, 4, 8), (6, 4, 2),             # diagonals
)

_PLACE_VALUES = np.array([3 ** i for i in range(NUM_CELLS)], dtype=np.int64)


class Board:
    """A 3x3 board with two players marked 1 and 2"""

    def __init__(self, cells: Optional[List[int]] = None):
        if cells is None:
            cells = [EMPTY] * NUM_CELLS
        if len(cells) != NUM_CELLS:
            raise ValueError(f"Board needs {NUM_CELLS} cells, got {len(cells)}")
        for c in cells:
            if c not in (EMPTY, 1, 2):
                raise ValueError(f"Invalid cell value: {c}")
        self.cells = list(cells)

    def encode(self) -> int:
        """Base-3 state index of this board"""
        return int(np.dot(self.cells, _PLACE_VALUES))

    @classmethod
    def decode(cls, state: int) -> 'Board':
        if not 0 <= state < NUM_STATES:
            raise IndexError(f"state {state} out of range [0, {NUM_STATES})")
        cells = []
        for _ in range(NUM_CELLS):
            state, cell = divmod(state, 3)
            cells.append(cell)
        return cls(cells)

    def legal_mask(self) -> np.ndarray:
        """True for every empty cell"""
        return np.array([c == EMPTY for c in self.cells], dtype=bool)

    def play(self, cell: int, player: int):
        if player not in (1, 2):
            raise ValueError(f"Invalid player: {player}")
        if not 0 <= cell < NUM_CELLS:
            raise IndexError(f"cell {cell} out of range")
        if self.cells[cell] != EMPTY:
            raise ValueError(f"Cell {cell} is already taken")
        self.cells[cell] = player

    def winner(self) -> int:
        """Player holding a full line, or 0"""
        for a, b, c in WIN_LINES:
            if self.cells[a] != EMPTY and self.cells[a] == self.cells[b] == self.cells[c]:
                return self.cells[a]
        return 0

    def victor(self) -> int:
        """1 or 2 for a win, DRAW for a full board, IN_PROGRESS otherwise"""
        winner = self.winner()
        if winner:
            return winner
        if all(c != EMPTY for c in self.cells):
            return DRAW
        return IN_PROGRESS

    def render(self) -> str:
        symbols = {EMPTY: '.', 1: 'X', 2: 'O'}
        rows = []
        for r in range(3):
            rows.append(''.join(symbols[c] for c in self.cells[r * 3:r * 3 + 3]))
        return '\n'.join(rows)

    def __repr__(self) -> str:
        return f"Board({''.join(str(c) for c in self.cells)})"
