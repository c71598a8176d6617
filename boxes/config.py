"""
Engine Configuration - per-problem settings and outcome profiles

The engine hard-codes none of these; each client describes its problem
with a BoxesConfig and its reward scheme with OutcomeProfiles.

Only configuration is serialized here. Learned weights have no
persistence format.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from enum import Enum
import json
import math
import os

from .brain import TOKEN_MIN, UNDERFLOW_THRESHOLD
from .errors import InvalidConfiguration


class Outcome(Enum):
    """Outcome classes of a finished episode"""
    WIN = "win"
    LOSE = "lose"
    DRAW = "draw"


@dataclass(frozen=True)
class OutcomeProfile:
    """The (add, multiply) pair applied to every decision of an episode"""
    add: float
    multiply: float = 1.0

    def to_dict(self) -> Dict[str, float]:
        return {'add': self.add, 'multiply': self.multiply}


# One token gained per winning move, one lost per losing move, a sliver for a draw
DEFAULT_OUTCOMES: Dict[Outcome, OutcomeProfile] = {
    Outcome.WIN: OutcomeProfile(add=1.0, multiply=1.0),
    Outcome.LOSE: OutcomeProfile(add=-1.0, multiply=1.0),
    Outcome.DRAW: OutcomeProfile(add=0.01, multiply=1.0),
}


class RecorderKind(Enum):
    BLOCK = "block"
    CHAIN = "chain"


@dataclass
class BoxesConfig:
    """Settings for one problem instance"""
    state_count: int
    action_count: int
    initial_weight: float = 10.0

    # Table tuning
    token_min: float = TOKEN_MIN
    underflow_threshold: float = UNDERFLOW_THRESHOLD

    # Selection
    exploration_exponent: Optional[float] = None
    seed: Optional[int] = None

    # Learning
    recorder: RecorderKind = RecorderKind.CHAIN
    outcomes: Dict[Outcome, OutcomeProfile] = field(
        default_factory=lambda: dict(DEFAULT_OUTCOMES))

    def validate(self) -> 'BoxesConfig':
        """Raise InvalidConfiguration on values no table could be built from"""
        if not isinstance(self.state_count, int) or self.state_count <= 0:
            raise InvalidConfiguration(f"state_count must be a positive integer, got {self.state_count}")
        if not isinstance(self.action_count, int) or self.action_count <= 0:
            raise InvalidConfiguration(f"action_count must be a positive integer, got {self.action_count}")
        if not math.isfinite(self.initial_weight) or self.initial_weight <= 0:
            raise InvalidConfiguration(f"initial_weight must be a positive number, got {self.initial_weight}")
        if not math.isfinite(self.token_min) or self.token_min <= 0:
            raise InvalidConfiguration(f"token_min must be a positive number, got {self.token_min}")
        if not math.isfinite(self.underflow_threshold) or self.underflow_threshold < 0:
            raise InvalidConfiguration(f"underflow_threshold must be >= 0, got {self.underflow_threshold}")
        if self.exploration_exponent is not None and (
                not math.isfinite(self.exploration_exponent) or self.exploration_exponent < 0):
            raise InvalidConfiguration(
                f"exploration_exponent must be finite and >= 0, got {self.exploration_exponent}")
        missing = [o.value for o in Outcome if o not in self.outcomes]
        if missing:
            raise InvalidConfiguration(f"Missing outcome profiles: {missing}")
        non_finite = [o.value for o, p in self.outcomes.items()
                      if not (math.isfinite(p.add) and math.isfinite(p.multiply))]
        if non_finite:
            raise InvalidConfiguration(f"Non-finite outcome profiles: {non_finite}")
        return self

    def profile(self, outcome: Outcome) -> OutcomeProfile:
        return self.outcomes[outcome]

    @classmethod
    def from_env(cls, prefix: str = 'BOXES_', **defaults) -> 'BoxesConfig':
        """Load from environment variables, falling back to keyword defaults"""
        def env(name, cast, default):
            raw = os.getenv(prefix + name)
            return cast(raw) if raw not in (None, '') else default

        exponent = env('EXPLORATION_EXPONENT', float, defaults.get('exploration_exponent'))
        seed = env('SEED', int, defaults.get('seed'))
        recorder = RecorderKind(defaults.get('recorder', RecorderKind.CHAIN))
        config = cls(
            state_count=env('STATE_COUNT', int, defaults.get('state_count', 0)),
            action_count=env('ACTION_COUNT', int, defaults.get('action_count', 0)),
            initial_weight=env('INITIAL_WEIGHT', float, defaults.get('initial_weight', 10.0)),
            token_min=env('TOKEN_MIN', float, defaults.get('token_min', TOKEN_MIN)),
            underflow_threshold=env('UNDERFLOW_THRESHOLD', float,
                                    defaults.get('underflow_threshold', UNDERFLOW_THRESHOLD)),
            exploration_exponent=exponent,
            seed=seed,
            recorder=env('RECORDER', lambda raw: RecorderKind(raw.lower()), recorder),
        )
        return config.validate()

    def to_dict(self) -> Dict[str, Any]:
        """Serialize configuration"""
        return {
            'state_count': self.state_count,
            'action_count': self.action_count,
            'initial_weight': self.initial_weight,
            'token_min': self.token_min,
            'underflow_threshold': self.underflow_threshold,
            'exploration_exponent': self.exploration_exponent,
            'seed': self.seed,
            'recorder': self.recorder.value,
            'outcomes': {o.value: p.to_dict() for o, p in self.outcomes.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BoxesConfig':
        outcomes = dict(DEFAULT_OUTCOMES)
        for name, profile in data.get('outcomes', {}).items():
            outcomes[Outcome(name)] = OutcomeProfile(
                add=float(profile['add']),
                multiply=float(profile.get('multiply', 1.0)))
        config = cls(
            state_count=data.get('state_count', 0),
            action_count=data.get('action_count', 0),
            initial_weight=data.get('initial_weight', 10.0),
            token_min=data.get('token_min', TOKEN_MIN),
            underflow_threshold=data.get('underflow_threshold', UNDERFLOW_THRESHOLD),
            exploration_exponent=data.get('exploration_exponent'),
            seed=data.get('seed'),
            recorder=RecorderKind(data.get('recorder', 'chain')),
            outcomes=outcomes,
        )
        return config.validate()

    def save(self, filepath: str):
        """Save configuration to file"""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, filepath: str) -> 'BoxesConfig':
        """Load configuration from file"""
        with open(filepath, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)
