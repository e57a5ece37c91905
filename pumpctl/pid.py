"""Incremental PID controller with setpoint ramping, and a scalar Kalman filter."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


@dataclass
class KalmanFilter:
    """One-dimensional Kalman filter."""

    q: float
    r: float
    a: float
    b: float
    h: float
    p: float
    x_hat: float
    k: float = 0.0

    def update(self, z: float, u: float) -> float:
        """Fold in measurement ``z`` with control input ``u``; return the estimate."""
        x_hat_minus = self.a * self.x_hat + self.b * u
        p_minus = self.a * self.p * self.a + self.q
        self.k = p_minus * self.h / (self.h * p_minus * self.h + self.r)
        self.x_hat = x_hat_minus + self.k * (z - self.h * x_hat_minus)
        self.p = (1 - self.k * self.h) * p_minus
        return self.x_hat


class Ratio(enum.IntEnum):
    """Setpoint ramp rate."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3


_SLOPES = {Ratio.LOW: 2, Ratio.MEDIUM: 4, Ratio.HIGH: 8}


@dataclass
class PidController:
    """Incremental PID controller with output limits and a ramped setpoint."""

    id: int
    out_max: float
    out_min: float
    target: float = 0.0
    ratio: Ratio | int = Ratio.LOW
    step: float = 0.0
    user_target: float = 0.0
    actual: float = 0.0
    output: float = 0.0
    err_now: float = 0.0
    err_last: float = 0.0
    err_last_last: float = 0.0
    kp: float = 0.0
    ki: float = 0.0
    kd: float = 0.0
    slope: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        self.set_ratio(self.ratio)

    def set_user_target(self, value: float) -> None:
        """Set the active setpoint directly."""
        self.target = value

    def ramp_target(self) -> None:
        """Move the active setpoint one ramp step towards the user setpoint."""
        diff = self.target - self.user_target
        if abs(diff) <= self.step:
            self.target = self.user_target
        elif self.target < self.user_target:
            self.target += self.slope * self.step
        elif self.target > self.user_target:
            self.target -= self.slope * self.step

    def set_gains(self, p: float, i: float, d: float) -> None:
        """Set the proportional, integral and derivative gains."""
        self.kp = p
        self.ki = i
        self.kd = d

    def set_ratio(self, ratio: Ratio | int) -> None:
        """Choose the ramp rate; an unknown rate stops the ramp."""
        self.ratio = ratio
        self.slope = _SLOPES.get(ratio, 0)

    def update(self, measured: float) -> float:
        """Run one incremental PID step and return the clamped output."""
        self.err_now = self.target - measured
        proportion = self.kp * self.err_now
        integral = self.ki * (self.err_now - self.err_last)
        differential = self.kd * (self.err_now - 2 * self.err_last + self.err_last_last)
        self.output += proportion + integral + differential

        self.err_last_last = self.err_last
        self.err_last = self.err_now

        if self.output < self.out_min:
            self.output = self.out_min
        elif self.output > self.out_max:
            self.output = self.out_max
        return self.output