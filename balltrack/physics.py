"""
Ball-on-tilting-track physics and quantization.

The learner never sees these floats. It sees only a short history of
quantized ball positions and track angles, packed into one state index,
and has to infer the laws of motion from reward alone.

All values are SI units (meters, kilograms, seconds, radians).
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple
import math

import numpy as np


@dataclass
class TrackParams:
    """Hidden physical model"""
    timestep: float = 0.0333
    track_length: float = 1.0
    angle_min: float = -0.2
    angle_max: float = 0.2
    slew_rate: float = 0.5            # radians/sec the servo can turn
    gravity: float = 9.81
    ball_mass: float = 1.0
    ball_noise: float = 0.0001        # random force, Newtons
    ball_jitter: float = 0.001        # measurement noise, meters
    bounce: float = 0.5               # restitution at the end stops
    friction_threshold: float = 0.05  # static/dynamic switch, meters/sec
    static_friction: float = 0.05
    dynamic_friction: float = 0.02
    initial_ball_x: float = 0.0


@dataclass
class Quantization:
    """What the learner sees"""
    ball_levels: int = 5
    track_levels: int = 5
    history: int = 1   # number of past observations packed into the state
    actions: int = 3   # tilt left, level, tilt right

    @property
    def state_count(self) -> int:
        return (self.ball_levels * self.track_levels) ** self.history


@dataclass
class RewardParams:
    setpoint: float = 0.5
    max_reward: float = 1.0
    linear_taper: float = 2.0     # reward lost per meter of error
    squared_taper: float = 4.0    # reward lost per meter of error squared


class BallTrack:
    """Servo-driven track with a ball rolling on it"""

    def __init__(self, params: Optional[TrackParams] = None,
                 quantization: Optional[Quantization] = None,
                 seed: Optional[int] = None):
        self.params = params or TrackParams()
        self.quant = quantization or Quantization()
        self.noise = np.random.default_rng(seed)
        self.reset()

    def reset(self):
        p = self.params
        self.track_angle = 0.0
        self.ball_x = p.initial_ball_x
        self.ball_v = 0.0
        self.command = (self.quant.actions - 1) // 2
        self.ball_queue: List[int] = [0] * self.quant.history
        self.track_queue: List[int] = [0] * self.quant.history

    def command_angle(self, command: int) -> float:
        """Servo setpoint for an action index, spread evenly over the tilt range"""
        p = self.params
        if self.quant.actions == 1:
            return (p.angle_min + p.angle_max) / 2
        span = p.angle_max - p.angle_min
        return p.angle_min + command * span / (self.quant.actions - 1)

    def move_track(self, command: int):
        """Slew the track toward the commanded angle at a limited rate"""
        setpoint = self.command_angle(command)
        max_step = self.params.slew_rate * self.params.timestep
        delta = setpoint - self.track_angle
        if abs(delta) <= max_step:
            self.track_angle = setpoint
        else:
            self.track_angle += math.copysign(max_step, delta)

    def move_ball(self):
        p = self.params
        force = p.ball_mass * p.gravity * math.sin(self.track_angle)

        if abs(self.ball_v) < p.friction_threshold:
            friction = p.static_friction
        else:
            friction = p.dynamic_friction
        if self.ball_v != 0.0:
            force -= math.copysign(p.ball_mass * p.gravity * friction, self.ball_v)

        if p.ball_noise:
            force += self.noise.normal(0.0, p.ball_noise)

        self.ball_v += (force / p.ball_mass) * p.timestep
        self.ball_x += self.ball_v * p.timestep

        # End stops
        if self.ball_x < 0:
            self.ball_x = -self.ball_x * p.bounce
            self.ball_v = -self.ball_v * p.bounce
        if self.ball_x > p.track_length:
            self.ball_x = p.track_length - (self.ball_x - p.track_length) * p.bounce
            self.ball_v = -self.ball_v * p.bounce

    def observe(self) -> Tuple[int, int]:
        """Quantized (ball, track) observation, with measurement jitter on the ball"""
        p, q = self.params, self.quant
        seen_x = self.ball_x
        if p.ball_jitter:
            seen_x += self.noise.normal(0.0, p.ball_jitter)
        ball = int(seen_x * q.ball_levels / p.track_length)
        track = int((self.track_angle - p.angle_min) * q.track_levels
                    / (p.angle_max - p.angle_min))
        ball = min(max(ball, 0), q.ball_levels - 1)
        track = min(max(track, 0), q.track_levels - 1)
        return ball, track

    def push_observation(self, ball: int, track: int):
        """Slide the history window and append the newest observation"""
        self.ball_queue = self.ball_queue[1:] + [ball]
        self.track_queue = self.track_queue[1:] + [track]

    def state(self) -> int:
        """Pack the observation history into one state index (interleaved mixed radix)"""
        q = self.quant
        state = 0
        base = 1
        for ball, track in zip(self.ball_queue, self.track_queue):
            state += ball * base
            base *= q.ball_levels
            state += track * base
            base *= q.track_levels
        return state

    def step(self, command: int) -> int:
        """Advance one timestep under a command and return the new state"""
        self.command = command
        self.move_track(command)
        self.move_ball()
        self.push_observation(*self.observe())
        return self.state()


def reward(ball_x: float, params: Optional[RewardParams] = None) -> float:
    """Full reward at the setpoint, tapering linearly and quadratically with error"""
    params = params or RewardParams()
    error = abs(ball_x - params.setpoint)
    return params.max_reward - params.linear_taper * error - params.squared_taper * error * error
