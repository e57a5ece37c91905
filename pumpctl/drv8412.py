"""Bidirectional PWM driver for a thermoelectric element using a DRV8412 bridge."""

from __future__ import annotations

import enum
from typing import Optional, Protocol

SUPPLY_VOLTAGE = 12.0
MAX_SUPPLY_VOLTAGE = 52.0
OFF_DUTY_CYCLE = 0.01


class _OutputPin(Protocol):
    def write(self, level: bool) -> None: ...


class _PwmTimer(Protocol):
    period: int

    def start(self, channel: int) -> None: ...

    def stop(self, channel: int) -> None: ...

    def set_compare(self, channel: int, value: int) -> None: ...


class PwmChannel(enum.Enum):
    """The two PWM inputs of the bridge."""

    A = "a"
    B = "b"


class Drv8412Error(Exception):
    """Raised when a required hardware interface is not bound."""


class Drv8412:
    """Controls the bridge's nSLEEP pin and its two PWM inputs.

    ``nsleep`` is an output pin with ``write(level)``; each timer offers
    ``period``, ``start(channel)``, ``stop(channel)`` and
    ``set_compare(channel, value)``.
    """

    def __init__(
        self,
        nsleep: Optional[_OutputPin] = None,
        pwm_a_timer: Optional[_PwmTimer] = None,
        pwm_a_channel: int = 0,
        pwm_b_timer: Optional[_PwmTimer] = None,
        pwm_b_channel: int = 0,
        supply_voltage: float = SUPPLY_VOLTAGE,
    ) -> None:
        self.nsleep = nsleep
        self.pwm_a_timer = pwm_a_timer
        self.pwm_a_channel = pwm_a_channel & 0xFFFF
        self.pwm_b_timer = pwm_b_timer
        self.pwm_b_channel = pwm_b_channel & 0xFFFF
        self.supply_voltage = supply_voltage

    def _pin(self) -> _OutputPin:
        if self.nsleep is None:
            raise Drv8412Error("nSLEEP pin is not bound")
        return self.nsleep

    def _timers(self) -> None:
        if self.pwm_a_timer is None or self.pwm_b_timer is None:
            raise Drv8412Error("PWM timers are not bound")

    def _output(self, channel: PwmChannel) -> tuple:
        self._timers()
        if channel is PwmChannel.A:
            return self.pwm_a_timer, self.pwm_a_channel
        if channel is PwmChannel.B:
            return self.pwm_b_timer, self.pwm_b_channel
        raise ValueError(f"unknown PWM channel: {channel!r}")

    @staticmethod
    def _compare(timer: _PwmTimer, duty_cycle: float) -> int:
        return int(duty_cycle * (timer.period + 1) / 100)

    def power_on(self) -> None:
        """Wake the bridge by driving nSLEEP high."""
        self._pin().write(True)

    def power_off(self) -> None:
        """Put the bridge to sleep by driving nSLEEP low."""
        self._pin().write(False)

    def pwm_on(self, channel: PwmChannel) -> None:
        """Start PWM output on ``channel``."""
        timer, number = self._output(channel)
        timer.start(number)

    def pwm_off(self, channel: PwmChannel) -> None:
        """Reduce ``channel`` to the minimum duty cycle and stop it."""
        self.set_pwm(channel, OFF_DUTY_CYCLE)
        timer, number = self._output(channel)
        timer.stop(number)

    def set_pwm(self, channel: PwmChannel, duty_cycle: float) -> None:
        """Set the duty cycle of ``channel`` in percent; 0 and 100 are excluded."""
        timer, number = self._output(channel)
        if duty_cycle <= 0 or duty_cycle >= 100:
            raise ValueError(f"duty cycle must lie strictly between 0 and 100: {duty_cycle}")
        timer.set_compare(number, self._compare(timer, duty_cycle))

    def set_voltage(self, voltage: float) -> None:
        """Drive the load with ``voltage``; its sign selects the current direction.

        Channel A carries the magnitude as a duty cycle of the supply voltage;
        channel B is held fully low for positive voltages and fully high otherwise.
        """
        if self.supply_voltage <= 0 or self.supply_voltage > MAX_SUPPLY_VOLTAGE:
            raise ValueError(f"supply voltage out of range: {self.supply_voltage}")
        self._timers()
        duty_cycle = min(abs(voltage) / self.supply_voltage * 100, 100.0)
        timer_a, channel_a = self._output(PwmChannel.A)
        timer_a.set_compare(channel_a, self._compare(timer_a, duty_cycle))
        timer_b, channel_b = self._output(PwmChannel.B)
        level = 0.0 if voltage > 0 else 100.0
        timer_b.set_compare(channel_b, self._compare(timer_b, level))