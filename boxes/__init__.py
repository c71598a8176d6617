"""
BOXES - Michie's token-box reinforcement learning engine

For each discrete problem state the engine keeps a box of tokens, one pool
per candidate action. Actions are drawn in proportion to their tokens and
the pools grow or shrink once the outcome of an episode is known.

Components:
- WeightTable: the dense state x action token matrix
- Block / Chain: interchangeable trajectory recorders
- select_action / ActionSelector: weighted draw with underflow repair
- update_cell / update_trajectory / update_all: the affine learning rule

No backpropagation, no gradients: only end-to-end acceptability of an
enumerated set of moves.
"""

__version__ = "0.2.0"

from .errors import InvalidConfiguration, OwnershipError
from .random_source import RandomSource, ScriptedRandomSource
from .brain import (
    WeightTable, create_table, destroy_table, TOKEN_MIN, UNDERFLOW_THRESHOLD,
)
from .recorders import Block, Chain, Trajectory, TrajectoryEntry, create_trajectory
from .selector import (
    ActionSelector, Selection, select_action, selection_probabilities, effective_weights,
)
from .learning import update_cell, update_trajectory, update_all
from .config import BoxesConfig, Outcome, OutcomeProfile, RecorderKind, DEFAULT_OUTCOMES
from .episode import Episode

__all__ = [
    'InvalidConfiguration',
    'OwnershipError',
    'RandomSource',
    'ScriptedRandomSource',
    'WeightTable',
    'create_table',
    'destroy_table',
    'TOKEN_MIN',
    'UNDERFLOW_THRESHOLD',
    'Block',
    'Chain',
    'Trajectory',
    'TrajectoryEntry',
    'create_trajectory',
    'ActionSelector',
    'Selection',
    'select_action',
    'selection_probabilities',
    'effective_weights',
    'update_cell',
    'update_trajectory',
    'update_all',
    'BoxesConfig',
    'Outcome',
    'OutcomeProfile',
    'RecorderKind',
    'DEFAULT_OUTCOMES',
    'Episode',
]
