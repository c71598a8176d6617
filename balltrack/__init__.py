"""
Ball-and-track client - balancing a ball on a servo-tilted track.

The physics (position, velocity, friction, bounce) stays hidden; the BOXES
table only sees quantized positions over a short window and learns online
from a continuous reward signal.
"""

from balltrack.physics import BallTrack, TrackParams, Quantization, RewardParams, reward
from balltrack.trainer import BalanceTrainer, BalanceReport, StepRecord

__all__ = [
    "BallTrack",
    "TrackParams",
    "Quantization",
    "RewardParams",
    "reward",
    "BalanceTrainer",
    "BalanceReport",
    "StepRecord",
]
