"""
Episode - one run of decisions from start to outcome

Bundles the usual client loop:
    with Episode(table, selector) as episode:
        while not done:
            action = episode.choose(state, mask)
            ...
        episode.learn(Outcome.WIN)
"""

from typing import Dict, Optional, Union
import logging

from .brain import WeightTable
from .config import DEFAULT_OUTCOMES, Outcome, OutcomeProfile, RecorderKind
from .learning import update_trajectory
from .recorders import Trajectory, create_trajectory
from .selector import ActionSelector

logger = logging.getLogger(__name__)


class Episode:
    """Selects, records and learns for one episode against one table"""

    def __init__(self, table: WeightTable, selector: ActionSelector,
                 recorder: Union[str, RecorderKind] = RecorderKind.CHAIN,
                 outcomes: Optional[Dict[Outcome, OutcomeProfile]] = None):
        self.table = table
        self.selector = selector
        self.outcomes = outcomes or DEFAULT_OUTCOMES
        self.trajectory: Trajectory = create_trajectory(table, RecorderKind(recorder).value)
        self.steps = 0
        self.underflows = 0
        self.learned = False

    def choose(self, state: int, mask=None,
               exploration_exponent: Optional[float] = None) -> int:
        """Draw an action for this state and record the decision"""
        selection = self.selector.select(self.table, state, mask, exploration_exponent)
        self.trajectory.append(state, selection.action, mask)
        self.steps += 1
        if selection.underflow:
            self.underflows += 1
        return selection.action

    def record(self, state: int, action: int, mask=None):
        """Record a decision made elsewhere (e.g. a forced move)"""
        self.trajectory.append(state, action, mask)
        self.steps += 1

    def learn(self, outcome: Union[Outcome, OutcomeProfile]) -> int:
        """Apply an outcome to every recorded decision"""
        profile = self.outcomes[outcome] if isinstance(outcome, Outcome) else outcome
        applied = update_trajectory(self.table, self.trajectory,
                                    profile.add, profile.multiply)
        self.learned = True
        return applied

    def truncate(self, keep_last: int) -> int:
        return self.trajectory.truncate(keep_last)

    def close(self):
        """Release the trajectory; safe to call more than once"""
        if not self.trajectory.destroyed:
            self.trajectory.destroy()

    def __enter__(self) -> 'Episode':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def __len__(self) -> int:
        return len(self.trajectory)
