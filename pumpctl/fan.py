"""Speed-controlled PWM fan with tachometer (FG) feedback."""

from __future__ import annotations

from typing import Optional, Protocol

FAN_MAX_PWM_FREQUENCY = 25000
TIMER_CLOCK_HZ = 170_000_000
CAPTURE_CLOCK_HZ = 1_000_000
COUNTER_SPAN = 65535
RPM_PER_HZ = 30


class _OutputPin(Protocol):
    def write(self, level: bool) -> None: ...


class _PwmTimer(Protocol):
    prescaler: int
    period: int

    def start(self, channel: int) -> None: ...

    def stop(self, channel: int) -> None: ...

    def set_compare(self, channel: int, value: int) -> None: ...


class _CaptureTimer(Protocol):
    def start(self) -> None: ...

    def stop(self) -> None: ...

    def start_capture(self, channel: int) -> None: ...

    def stop_capture(self, channel: int) -> None: ...

    def read_capture(self, channel: int) -> int: ...

    def set_counter(self, value: int) -> None: ...


class FanError(Exception):
    """Raised when a required hardware interface is not bound."""


class Fan:
    """A fan with a power switch, a PWM speed input and an FG speed output.

    The FG timer counts at 1 MHz; each counter overflow must be reported with
    :meth:`record_overflow` so long periods are measured correctly.
    """

    def __init__(
        self,
        power_pin: Optional[_OutputPin] = None,
        pwm_timer: Optional[_PwmTimer] = None,
        pwm_channel: int = 0,
        fg_timer: Optional[_CaptureTimer] = None,
        fg_channel: int = 0,
        clock_hz: int = TIMER_CLOCK_HZ,
    ) -> None:
        self.power_pin = power_pin
        self.pwm_timer = pwm_timer
        self.pwm_channel = pwm_channel & 0xFFFF
        self.fg_timer = fg_timer
        self.fg_channel = fg_channel & 0xFFFF
        self.clock_hz = clock_hz
        self.power_state = False
        self.pwm_state = False
        self.speed_pwm = 0.0
        self.speed_fg = 0.0
        self.fg_overflows = 0

    def _pin(self) -> _OutputPin:
        if self.power_pin is None:
            raise FanError("power pin is not bound")
        return self.power_pin

    def _pwm(self) -> _PwmTimer:
        if self.pwm_timer is None:
            raise FanError("PWM timer is not bound")
        return self.pwm_timer

    def _fg(self) -> _CaptureTimer:
        if self.fg_timer is None:
            raise FanError("FG timer is not bound")
        return self.fg_timer

    def power_on(self) -> None:
        """Switch the fan's supply on."""
        pin = self._pin()
        self.power_state = True
        pin.write(True)

    def power_off(self) -> None:
        """Switch the fan's supply off."""
        pin = self._pin()
        self.power_state = False
        pin.write(False)

    def pwm_on(self) -> None:
        """Start the PWM speed signal."""
        timer = self._pwm()
        self.pwm_state = True
        timer.start(self.pwm_channel)

    def pwm_off(self) -> None:
        """Stop the PWM speed signal."""
        timer = self._pwm()
        self.pwm_state = False
        timer.stop(self.pwm_channel)

    def set_pwm(self, duty_cycle: float) -> None:
        """Set the duty cycle as a fraction between 0 and 1.

        The PWM frequency follows from the timer setup and is stored in
        :attr:`speed_pwm`; a frequency above what the fan accepts is refused.
        """
        timer = self._pwm()
        self.speed_pwm = self.clock_hz / ((timer.prescaler + 1) * (timer.period + 1))
        if self.speed_pwm > FAN_MAX_PWM_FREQUENCY:
            raise ValueError(f"PWM frequency too high for the fan: {self.speed_pwm} Hz")
        if not 0 <= duty_cycle <= 1:
            raise ValueError(f"duty cycle must lie between 0 and 1: {duty_cycle}")
        timer.set_compare(self.pwm_channel, int(duty_cycle * (timer.period + 1)))

    def capture_on(self) -> None:
        """Start the FG counter and interrupt-driven capture."""
        timer = self._fg()
        timer.start()
        timer.start_capture(self.fg_channel)

    def capture_off(self) -> None:
        """Stop FG capture and clear the measured speed."""
        timer = self._fg()
        timer.stop_capture(self.fg_channel)
        timer.stop()
        self.speed_fg = 0.0

    def record_overflow(self) -> None:
        """Count one overflow of the FG counter since the last capture."""
        self.fg_overflows += 1

    def update_speed(self) -> float:
        """Read the captured FG period, restart the count and return the speed in rpm."""
        timer = self._fg()
        captured = timer.read_capture(self.fg_channel)
        timer.set_counter(0)
        if captured == 0:
            captured = 1
        frequency = CAPTURE_CLOCK_HZ // (captured + COUNTER_SPAN * self.fg_overflows)
        self.fg_overflows = 0
        self.speed_fg = float(RPM_PER_HZ * frequency)
        return self.speed_fg