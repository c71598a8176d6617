"""
Online balancing trainer.

There are no episodes here: the ball runs continuously. Each step the
latest decision is pushed onto a chain that is truncated to the history
length, and the running reward is credited to just those recent decisions
with (add=reward, multiply=1).
"""

from dataclasses import dataclass, field
from typing import List, Optional
import logging
import time

import numpy as np

from boxes import (
    ActionSelector, RandomSource, WeightTable, create_trajectory, update_trajectory,
)
from balltrack.physics import BallTrack, Quantization, RewardParams, TrackParams, reward

logger = logging.getLogger(__name__)


@dataclass
class StepRecord:
    step: int
    track_angle: float
    ball_x: float
    ball_v: float
    error: float
    reward: float


@dataclass
class BalanceReport:
    steps: int = 0
    underflows: int = 0
    rewards: List[float] = field(default_factory=list)
    trace: List[StepRecord] = field(default_factory=list)
    elapsed: float = 0.0

    def mean_reward(self, last: Optional[int] = None) -> float:
        values = self.rewards[-last:] if last else self.rewards
        return float(np.mean(values)) if values else 0.0


class BalanceTrainer:
    """Learns to hold the ball at the setpoint by tilting the track"""

    def __init__(self, tokens: float = 100.0, seed: Optional[int] = None,
                 params: Optional[TrackParams] = None,
                 quantization: Optional[Quantization] = None,
                 reward_params: Optional[RewardParams] = None,
                 exploration_exponent: Optional[float] = None,
                 recorder: str = 'chain'):
        self.sim = BallTrack(params, quantization, seed=seed)
        self.reward_params = reward_params or RewardParams()
        quant = self.sim.quant
        self.table = WeightTable(quant.state_count, quant.actions, tokens)
        self.selector = ActionSelector(RandomSource(seed), exploration_exponent)
        self.recorder = recorder

    def run(self, steps: int, report_every: int = 0,
            keep_trace: bool = False) -> BalanceReport:
        """Run the online loop for ``steps`` timesteps"""
        report = BalanceReport()
        history = self.sim.quant.history
        chain = create_trajectory(self.table, self.recorder)
        start_time = time.time()
        try:
            for step in range(steps):
                state = self.sim.step(self.sim.command)
                current = reward(self.sim.ball_x, self.reward_params)

                chain.append(state, self.sim.command)
                chain.truncate(history)
                # Only credit once the observation window is full of real data
                if step > history:
                    update_trajectory(self.table, chain, current, 1.0)

                selection = self.selector.select(self.table, state)
                self.sim.command = selection.action
                if selection.underflow:
                    report.underflows += 1

                report.steps += 1
                report.rewards.append(current)
                if keep_trace:
                    report.trace.append(StepRecord(
                        step=step,
                        track_angle=self.sim.track_angle,
                        ball_x=self.sim.ball_x,
                        ball_v=self.sim.ball_v,
                        error=self.reward_params.setpoint - self.sim.ball_x,
                        reward=current,
                    ))

                if report_every and (step + 1) % report_every == 0:
                    logger.info(f"Step {step + 1}: mean reward "
                                f"{report.mean_reward(report_every):.3f}, "
                                f"ball at {self.sim.ball_x:.3f}, "
                                f"underflows {report.underflows}")
        finally:
            chain.destroy()

        report.elapsed = time.time() - start_time
        return report

    def close(self):
        if not self.table.destroyed:
            self.table.destroy()
