"""
Action Selector - drawing one token from a box

Given a table, a state and a legality mask, pick an admissible action with
probability proportional to its (optionally reweighted) token count.

Exploration exponent:
    effective_i ~ (weight_i / mean_eligible_weight) ** exponent
    exponent > 1 sharpens toward the heaviest actions (exploitation)
    exponent < 1 flattens toward uniform (exploration)
    exponent = 1 (or None) is classic proportional sampling

The reweighted values are computed in log space and scaled so the heaviest
action gets 1.0; a common factor leaves the distribution unchanged and keeps
large exponents from overflowing.

Underflow ("gambler's ruin"): when the eligible token mass of a box drops
to the table's underflow threshold or below, every eligible action in that
box is refilled to the table's initial weight before drawing, and the
call reports underflow=True.
"""

from typing import Any, Dict, NamedTuple, Optional
import logging
import math

import numpy as np

from .brain import WeightTable
from .random_source import RandomSource

logger = logging.getLogger(__name__)


class Selection(NamedTuple):
    action: int
    underflow: bool


def _check_exponent(exponent: Optional[float]) -> Optional[float]:
    if exponent is None:
        return None
    exponent = float(exponent)
    if not math.isfinite(exponent) or exponent < 0:
        raise ValueError(f"exploration_exponent must be finite and >= 0, got {exponent}")
    return exponent


def effective_weights(raw: np.ndarray, exponent: Optional[float] = None) -> np.ndarray:
    """Reweight eligible raw weights by the exploration exponent"""
    if exponent is None or exponent == 1.0:
        return raw
    logs = np.log(raw)
    return np.exp(exponent * (logs - logs.max()))


def selection_probabilities(table: WeightTable, state: int, mask=None,
                            exploration_exponent: Optional[float] = None) -> np.ndarray:
    """
    Probability of each action under the current weights, without drawing
    and without repairing underflow. Forbidden actions get probability 0.
    """
    weights = table._require_live()
    state = table.check_state(state)
    mask = table.check_mask(mask)
    exponent = _check_exponent(exploration_exponent)

    eligible = np.flatnonzero(mask) if mask is not None else np.arange(table.action_count)
    probs = np.zeros(table.action_count, dtype=np.float64)
    if eligible.size == 0:
        return probs
    effective = effective_weights(weights[state, eligible], exponent)
    probs[eligible] = effective / effective.sum()
    return probs


def select_action(table: WeightTable, state: int, mask=None,
                  exploration_exponent: Optional[float] = None,
                  rng=None) -> Selection:
    """
    Draw one admissible action for ``state``.

    Args:
        table: weight table to draw from
        state: state index, 0 <= state < table.state_count
        mask: optional bool vector of length action_count, True = permitted
        exploration_exponent: optional reweighting power (see module doc)
        rng: object with ``uniform(high)``; a fresh RandomSource if omitted

    Returns:
        Selection(action, underflow)
    """
    weights = table._require_live()
    state = table.check_state(state)
    mask = table.check_mask(mask)
    exponent = _check_exponent(exploration_exponent)
    if rng is None:
        rng = RandomSource()

    if mask is None:
        eligible = np.arange(table.action_count)
    else:
        eligible = np.flatnonzero(mask)
        if eligible.size == 0:
            raise ValueError(f"Mask admits no action in state {state}")

    box = weights[state]
    raw_total = float(box[eligible].sum())
    underflow = False
    if raw_total <= table.underflow_threshold:
        box[eligible] = table.initial_weight
        underflow = True
        logger.debug(f"Underflow in state {state}: {raw_total:.4f} tokens, "
                     f"refilled {eligible.size} actions to {table.initial_weight}")

    effective = effective_weights(box[eligible], exponent)
    total = float(effective.sum())

    remainder = rng.uniform(total)
    for action, weight in zip(eligible.tolist(), effective.tolist()):
        remainder -= weight
        # Actions sharpened down to zero weight are never drawn
        if remainder <= 0 and weight > 0:
            return Selection(action, underflow)

    # Rounding can leave a sliver above zero after the last subtraction
    return Selection(int(eligible[np.flatnonzero(effective)[-1]]), underflow)


class ActionSelector:
    """
    Selector bound to a random source and a default exploration exponent.

    Keeps running counters of draws and underflows so a client can watch
    convergence health across episodes.
    """

    def __init__(self, rng=None, exploration_exponent: Optional[float] = None,
                 seed: Optional[int] = None):
        self.rng = rng if rng is not None else RandomSource(seed)
        self.exploration_exponent = _check_exponent(exploration_exponent)
        self.draws = 0
        self.underflows = 0

    @classmethod
    def from_config(cls, config, rng=None) -> 'ActionSelector':
        return cls(rng=rng, exploration_exponent=config.exploration_exponent,
                   seed=config.seed)

    def select(self, table: WeightTable, state: int, mask=None,
               exploration_exponent: Optional[float] = None) -> Selection:
        """Draw an action; the per-call exponent overrides the default"""
        if exploration_exponent is None:
            exploration_exponent = self.exploration_exponent
        selection = select_action(table, state, mask,
                                  exploration_exponent=exploration_exponent,
                                  rng=self.rng)
        self.draws += 1
        if selection.underflow:
            self.underflows += 1
        return selection

    def reset_counters(self):
        self.draws = 0
        self.underflows = 0

    def stats(self) -> Dict[str, Any]:
        return {
            'draws': self.draws,
            'underflows': self.underflows,
            'underflow_rate': self.underflows / max(1, self.draws),
            'exploration_exponent': self.exploration_exponent,
        }
