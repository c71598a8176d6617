"""
Self-play trainer - two weight tables learn tic-tac-toe against each other.

Each round is a double game: table A opens the first game, table B opens
the second. After every game the winner's decisions are rewarded, the
loser's punished, and a draw nudges both sides up by a sliver.

Statistics are gathered per batch of games: first-mover wins, second-mover
wins, draws and underflows. Two convergence markers are reported:
    P50: first batch where draws outnumber each kind of win
    P90: first batch where draws outnumber each kind of win ten to one
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
import logging
import time

from boxes import (
    ActionSelector, BoxesConfig, Episode, InvalidConfiguration, Outcome, RandomSource,
    RecorderKind, WeightTable,
)
from tictactoe.board import Board, DRAW, NUM_CELLS, NUM_STATES

logger = logging.getLogger(__name__)

MAX_TURNS = NUM_CELLS


@dataclass
class BatchStats:
    start_game: int
    first_wins: int = 0
    second_wins: int = 0
    draws: int = 0
    underflows: int = 0

    @property
    def games(self) -> int:
        return self.first_wins + self.second_wins + self.draws


@dataclass
class TrainingReport:
    batches: List[BatchStats] = field(default_factory=list)
    games: int = 0
    elapsed: float = 0.0

    @property
    def p50(self) -> Optional[int]:
        for b in self.batches:
            if b.first_wins < b.draws and b.second_wins < b.draws:
                return b.start_game
        return None

    @property
    def p90(self) -> Optional[int]:
        for b in self.batches:
            if 10 * b.first_wins < b.draws and 10 * b.second_wins < b.draws:
                return b.start_game
        return None

    @property
    def last_underflow(self) -> Optional[int]:
        last = None
        for b in self.batches:
            if b.underflows > 0:
                last = b.start_game
        return last


def default_config(tokens: float = 1000.0, seed: Optional[int] = None,
                   exploration_exponent: Optional[float] = None,
                   recorder: RecorderKind = RecorderKind.CHAIN) -> BoxesConfig:
    return BoxesConfig(
        state_count=NUM_STATES,
        action_count=NUM_CELLS,
        initial_weight=tokens,
        exploration_exponent=exploration_exponent,
        seed=seed,
        recorder=recorder,
    )


class SelfPlayTrainer:
    """Two tables sharing one random stream, alternating who moves first"""

    def __init__(self, config: Optional[BoxesConfig] = None):
        self.config = (config or default_config()).validate()
        if (self.config.state_count, self.config.action_count) != (NUM_STATES, NUM_CELLS):
            raise InvalidConfiguration(
                f"Tic-tac-toe needs a {NUM_STATES}x{NUM_CELLS} table, got "
                f"{self.config.state_count}x{self.config.action_count}")
        rng = RandomSource(self.config.seed)
        self.tables = (WeightTable.from_config(self.config),
                       WeightTable.from_config(self.config))
        self.selector = ActionSelector.from_config(self.config, rng=rng)

    def play_game(self, first: WeightTable, second: WeightTable) -> Dict:
        """
        Play one game, learn from it, and report the result.

        Returns a dict with 'victor' (1 = first mover, 2 = second mover,
        0 = draw), 'moves' and 'underflows'.
        """
        board = Board()
        players = {1: first, 2: second}
        episodes = {
            p: Episode(table, self.selector, self.config.recorder, self.config.outcomes)
            for p, table in players.items()
        }
        try:
            victor = 0
            moves = 0
            player = 1
            while moves < MAX_TURNS:
                state = board.encode()
                mask = board.legal_mask()
                cell = episodes[player].choose(state, mask)
                board.play(cell, player)
                moves += 1

                result = board.victor()
                if result == DRAW:
                    break
                if result:
                    victor = result
                    break
                player = 2 if player == 1 else 1

            if victor:
                loser = 2 if victor == 1 else 1
                episodes[victor].learn(Outcome.WIN)
                episodes[loser].learn(Outcome.LOSE)
            else:
                episodes[1].learn(Outcome.DRAW)
                episodes[2].learn(Outcome.DRAW)

            return {
                'victor': victor,
                'moves': moves,
                'underflows': sum(e.underflows for e in episodes.values()),
                'board': board,
            }
        finally:
            for episode in episodes.values():
                episode.close()

    def train(self, rounds: int, batch_size: int = 1000) -> TrainingReport:
        """Play ``rounds`` double games, collecting stats per batch_size rounds"""
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        start_time = time.time()
        report = TrainingReport()
        table_a, table_b = self.tables

        for rnd in range(rounds):
            if rnd % batch_size == 0:
                report.batches.append(BatchStats(start_game=rnd))
            batch = report.batches[-1]

            for first, second in ((table_a, table_b), (table_b, table_a)):
                result = self.play_game(first, second)
                if result['victor'] == 1:
                    batch.first_wins += 1
                elif result['victor'] == 2:
                    batch.second_wins += 1
                else:
                    batch.draws += 1
                batch.underflows += result['underflows']
                report.games += 1

            if (rnd + 1) % batch_size == 0:
                logger.info(f"Batch at {batch.start_game}: first={batch.first_wins} "
                            f"second={batch.second_wins} draws={batch.draws} "
                            f"underflows={batch.underflows}")

        report.elapsed = time.time() - start_time
        return report

    def close(self):
        for table in self.tables:
            if not table.destroyed:
                table.destroy()
