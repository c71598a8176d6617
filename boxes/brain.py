"""
Weight Table ("Brain") - the learned policy surface

One "box" per discrete problem state; each box holds a pool of tokens for
every action. The pools are stored densely as a state_count x action_count
float matrix.

Only two things ever change the weights:
- the learning updater (boxes.learning)
- the selector's underflow repair (boxes.selector)
"""

from typing import Any, Dict, Optional
import logging
import operator
import weakref

import numpy as np

from .errors import InvalidConfiguration, OwnershipError

logger = logging.getLogger(__name__)

# Floor applied after every learning update; weights never reach zero.
TOKEN_MIN = 1e-6

# Eligible weight mass at or below this triggers a refill of the box.
UNDERFLOW_THRESHOLD = 1.0


class WeightTable:
    """
    Dense table of per-state, per-action token weights.

    The table also keeps a weak registry of live trajectories recorded
    against it so destruction order can be enforced.
    """

    def __init__(self, state_count: int, action_count: int,
                 initial_weight: float,
                 token_min: float = TOKEN_MIN,
                 underflow_threshold: float = UNDERFLOW_THRESHOLD):
        state_count = _as_count('state_count', state_count)
        action_count = _as_count('action_count', action_count)
        if not np.isfinite(initial_weight) or initial_weight <= 0:
            raise InvalidConfiguration(
                f"initial_weight must be a positive number, got {initial_weight}")
        if not np.isfinite(token_min) or token_min <= 0:
            raise InvalidConfiguration(
                f"token_min must be a positive number, got {token_min}")
        if not np.isfinite(underflow_threshold) or underflow_threshold < 0:
            raise InvalidConfiguration(
                f"underflow_threshold must be >= 0, got {underflow_threshold}")

        self.state_count = state_count
        self.action_count = action_count
        self.initial_weight = float(initial_weight)
        self.token_min = float(token_min)
        self.underflow_threshold = float(underflow_threshold)

        self._weights: Optional[np.ndarray] = np.full(
            (state_count, action_count), self.initial_weight, dtype=np.float64)
        self._trajectories: 'weakref.WeakSet' = weakref.WeakSet()

        logger.debug(f"Created weight table {state_count}x{action_count} "
                     f"at {self.initial_weight} tokens per action")

    @classmethod
    def from_config(cls, config) -> 'WeightTable':
        """Build a table from a BoxesConfig"""
        config.validate()
        return cls(
            state_count=config.state_count,
            action_count=config.action_count,
            initial_weight=config.initial_weight,
            token_min=config.token_min,
            underflow_threshold=config.underflow_threshold,
        )

    # -- lifecycle -------------------------------------------------------

    @property
    def destroyed(self) -> bool:
        return self._weights is None

    def destroy(self):
        """
        Release the weight storage.

        Refuses while any trajectory recorded against this table is still
        alive; destroy those first.
        """
        if self._weights is None:
            raise OwnershipError("Weight table already destroyed")
        live = len(self._trajectories)
        if live:
            raise OwnershipError(
                f"Cannot destroy weight table: {live} trajectories still reference it")
        self._weights = None
        logger.debug(f"Destroyed weight table {self.state_count}x{self.action_count}")

    def _attach(self, trajectory):
        self._require_live()
        self._trajectories.add(trajectory)

    def _detach(self, trajectory):
        self._trajectories.discard(trajectory)

    @property
    def live_trajectories(self) -> int:
        return len(self._trajectories)

    def owns(self, trajectory) -> bool:
        """True if the trajectory is live and was recorded against this table"""
        return trajectory in self._trajectories

    # -- validation ------------------------------------------------------

    def _require_live(self) -> np.ndarray:
        if self._weights is None:
            raise OwnershipError("Weight table has been destroyed")
        return self._weights

    def check_state(self, state) -> int:
        state = operator.index(state)
        if not 0 <= state < self.state_count:
            raise IndexError(
                f"state {state} out of range [0, {self.state_count})")
        return state

    def check_action(self, action) -> int:
        action = operator.index(action)
        if not 0 <= action < self.action_count:
            raise IndexError(
                f"action {action} out of range [0, {self.action_count})")
        return action

    def check_mask(self, mask) -> Optional[np.ndarray]:
        """Normalize a legality mask to a bool vector, or None for 'all legal'"""
        if mask is None:
            return None
        mask = np.asarray(mask, dtype=bool)
        if mask.ndim != 1 or mask.shape[0] != self.action_count:
            raise IndexError(
                f"mask length {mask.size} does not match action_count {self.action_count}")
        return mask

    # -- read access -----------------------------------------------------

    @property
    def weights(self) -> np.ndarray:
        """Read-only view of the weight matrix"""
        view = self._require_live().view()
        view.flags.writeable = False
        return view

    def weight(self, state: int, action: int) -> float:
        weights = self._require_live()
        return float(weights[self.check_state(state), self.check_action(action)])

    def row(self, state: int) -> np.ndarray:
        """Copy of one box (all action weights for a state)"""
        weights = self._require_live()
        return weights[self.check_state(state)].copy()

    def snapshot(self) -> np.ndarray:
        """Copy of the full weight matrix"""
        return self._require_live().copy()

    @property
    def shape(self):
        return (self.state_count, self.action_count)

    def stats(self) -> Dict[str, Any]:
        """Summary statistics of the learned surface"""
        weights = self._require_live()
        return {
            'state_count': self.state_count,
            'action_count': self.action_count,
            'initial_weight': self.initial_weight,
            'total_tokens': float(weights.sum()),
            'min_weight': float(weights.min()),
            'max_weight': float(weights.max()),
            'mean_weight': float(weights.mean()),
            'touched_cells': int(np.count_nonzero(weights != self.initial_weight)),
            'live_trajectories': len(self._trajectories),
        }

    def __repr__(self) -> str:
        status = 'destroyed' if self.destroyed else 'live'
        return (f"WeightTable({self.state_count}x{self.action_count}, "
                f"initial_weight={self.initial_weight}, {status})")


def _as_count(name: str, value) -> int:
    try:
        value = operator.index(value)
    except TypeError:
        raise InvalidConfiguration(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise InvalidConfiguration(f"{name} must be positive, got {value}")
    return value


def create_table(state_count: int, action_count: int,
                 initial_weight: float, **kwargs) -> WeightTable:
    """Create a table with every weight set to initial_weight"""
    return WeightTable(state_count, action_count, initial_weight, **kwargs)


def destroy_table(table: WeightTable):
    """Release a table's storage"""
    table.destroy()
