"""
Learning Updater - the affine token rule

    weight <- max(add + multiply * weight, token_min)

Every credit assignment scheme reduces to a choice of (add, multiply):
    multiply = 1, add > 0   reward accumulation
    multiply = 1, add < 0   punishment (tokens removed)
    multiply < 1            decay toward add / (1 - multiply)

No normalization is applied; keeping growth bounded is the caller's job.
"""

import logging
import math

import numpy as np

from .brain import WeightTable
from .errors import OwnershipError
from .recorders import Trajectory

logger = logging.getLogger(__name__)


def _check_coefficients(add: float, multiply: float):
    if not (math.isfinite(add) and math.isfinite(multiply)):
        raise ValueError(f"add and multiply must be finite, got ({add}, {multiply})")


def _apply(weights: np.ndarray, state: int, action: int,
           add: float, multiply: float, floor: float) -> float:
    updated = add + multiply * weights[state, action]
    if updated < floor:
        updated = floor
    weights[state, action] = updated
    return float(updated)


def update_cell(table: WeightTable, state: int, action: int,
                add: float, multiply: float, mask=None) -> float:
    """
    Apply the affine rule to one (state, action) cell and return the new
    weight. ``mask`` is accepted for interface symmetry and only checked
    for length; it never changes which cell is updated.
    """
    weights = table._require_live()
    state = table.check_state(state)
    action = table.check_action(action)
    table.check_mask(mask)
    _check_coefficients(add, multiply)
    return _apply(weights, state, action, add, multiply, table.token_min)


def update_trajectory(table: WeightTable, trajectory: Trajectory,
                      add: float, multiply: float) -> int:
    """
    Apply the affine rule to every recorded (state, action) pair.

    A pair recorded n times is updated n times, so repeated visits compound.
    Mask snapshots are not consulted: the literal chosen action is always
    the one updated.

    Returns the number of cell updates applied.
    """
    weights = table._require_live()
    if trajectory.table is not table:
        raise OwnershipError("Trajectory was recorded against a different weight table")
    if not table.owns(trajectory):
        raise OwnershipError("Trajectory has been destroyed")
    _check_coefficients(add, multiply)

    floor = table.token_min
    applied = 0
    for entry in trajectory:
        _apply(weights, entry.state, entry.action, add, multiply, floor)
        applied += 1

    logger.debug(f"Learned from {applied} decisions with add={add}, multiply={multiply}")
    return applied


def update_all(table: WeightTable, add: float, multiply: float):
    """Apply the affine rule to every cell of the table, visited or not"""
    weights = table._require_live()
    _check_coefficients(add, multiply)
    np.maximum(add + multiply * weights, table.token_min, out=weights)
    logger.debug(f"Bulk update of {weights.size} cells with add={add}, multiply={multiply}")
