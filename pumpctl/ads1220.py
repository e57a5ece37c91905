"""Driver for the ADS1220 24-bit delta-sigma analog-to-digital converter.

The converter is reached over a four-wire SPI bus and signals finished
conversions on its DRDY pin.  The bus object offers
``transmit(data, timeout_ms)`` and ``transfer(data, timeout_ms) -> bytes``
(a full-duplex exchange) and raises :class:`TimeoutError` or another
:class:`OSError` on failure.  The DRDY object offers ``read() -> bool``,
true while the pin is high.
"""

from __future__ import annotations

import enum
import math
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol

from .ads1220_registers import (
    DUTY_5SPS,
    BurnoutSource,
    ConversionMode,
    FirFilter,
    Gain,
    IdacCurrent,
    IdacMux,
    Mux,
    OperatingMode,
    PgaBypass,
    Registers,
    RegisterSelect,
    TempSensor,
    VoltageReference,
)

INTERNAL_VREF = 2.048
FULL_SCALE = 0x800000
TEMP_LSB = 0.03125

RESET_SETTLE_MS = 100
POWER_UP_WAIT_MS = 100
MONITOR_WAIT_MS = 1000
INIT_SAMPLES = 5

_COMMAND_TIMEOUT_MS = 100
_READ_REG_TIMEOUT_MS = 1000
_WRITE_REG_TIMEOUT_MS = 200
_DATA_TIMEOUT_MS = 100
_REGISTER_COUNT = 4


class _Command(enum.IntEnum):
    RESET = 0x06
    START = 0x08
    POWERDOWN = 0x02
    RDATA = 0x10
    RREG = 0x20
    WREG = 0x40


class _Monitoring(enum.Enum):
    AVDD = "avdd"
    REF0 = "ref0"
    REF1 = "ref1"
    BIAS = "bias"
    TEMP = "temp"


class _Spi(Protocol):
    def transmit(self, data: bytes, timeout_ms: int) -> None: ...

    def transfer(self, data: bytes, timeout_ms: int) -> bytes: ...


class _InputPin(Protocol):
    def read(self) -> bool: ...


class Ads1220Error(Exception):
    """Raised when the converter cannot be reached or a transfer fails."""


class Ads1220Timeout(Ads1220Error):
    """Raised when the converter does not respond in time."""


@dataclass
class Monitor:
    """Results of the converter's system monitoring."""

    pwr: float = 0.0
    vref: List[float] = field(default_factory=lambda: [0.0, 0.0])
    temp: float = 0.0
    volt_bias: int = 0


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _sleep_1ms() -> None:
    time.sleep(0.001)


class Ads1220:
    """An ADS1220 converter bound to an SPI bus and a DRDY input pin."""

    def __init__(
        self,
        spi: Optional[_Spi] = None,
        drdy: Optional[_InputPin] = None,
        delay_ms: Optional[Callable[[], None]] = None,
    ) -> None:
        self.spi = spi
        self.drdy = drdy
        self.delay_ms = delay_ms if delay_ms is not None else _sleep_1ms
        self.registers = Registers()
        self.monitor = Monitor()

    # -- low level -------------------------------------------------------

    def _bus(self) -> _Spi:
        if self.spi is None:
            raise Ads1220Error("SPI bus is not bound")
        return self.spi

    def _pin(self) -> _InputPin:
        if self.drdy is None:
            raise Ads1220Error("DRDY pin is not bound")
        return self.drdy

    def _call(self, action: Callable, *args):
        try:
            return action(*args)
        except TimeoutError as exc:
            raise Ads1220Timeout(f"SPI transfer timed out: {exc}") from exc
        except OSError as exc:
            raise Ads1220Error(f"SPI transfer failed: {exc}") from exc

    def _send(self, command: _Command) -> None:
        bus = self._bus()
        self._call(bus.transmit, bytes([command]), _COMMAND_TIMEOUT_MS)

    @staticmethod
    def _indices(selection: int) -> List[int]:
        selection = int(selection)
        if selection == 0:
            raise ValueError("no register selected")
        if selection & ~int(RegisterSelect.ALL):
            raise ValueError(f"invalid register selection: {selection:#x}")
        return [index for index in range(_REGISTER_COUNT) if selection & (1 << index)]

    def read_registers(self, selection: int) -> None:
        """Read the selected registers from the chip into :attr:`registers`."""
        indices = self._indices(selection)
        bus = self._bus()
        for index in indices:
            command = bytes([_Command.RREG | (index << 2), 0xFF])
            reply = self._call(bus.transfer, command, _READ_REG_TIMEOUT_MS)
            self.registers.set_byte(index, reply[1])

    def write_registers(self, selection: int) -> None:
        """Write the selected registers from :attr:`registers` to the chip."""
        indices = self._indices(selection)
        bus = self._bus()
        for index in indices:
            command = bytes([_Command.WREG | (index << 2), self.registers.get_byte(index)])
            self._call(bus.transmit, command, _WRITE_REG_TIMEOUT_MS)

    # -- commands --------------------------------------------------------

    def start(self) -> None:
        """Start or restart a conversion."""
        self._send(_Command.START)

    def power_down(self) -> None:
        """Enter power-down mode."""
        self._send(_Command.POWERDOWN)

    def reset(self) -> None:
        """Reset the chip and check that it returned to its default state."""
        pin = self._pin()
        # During power-up DRDY stays high until the first conversion ends.
        for _ in range(POWER_UP_WAIT_MS):
            if not pin.read():
                break
            self.delay_ms()

        self.registers.reg1.cm = ConversionMode.CONTINUE
        self.write_registers(RegisterSelect.REG1)
        self._send(_Command.RESET)
        for _ in range(RESET_SETTLE_MS):
            self.delay_ms()
        self.read_registers(RegisterSelect.REG1)
        if self.registers.reg1.cm != ConversionMode.SINGLE:
            raise Ads1220Timeout("chip did not complete its reset")

    def stop(self) -> None:
        """Stop continuous conversion; single-shot mode stops on its own."""
        self.read_registers(RegisterSelect.REG1)
        if self.registers.reg1.cm == ConversionMode.SINGLE:
            return
        self.power_down()

    def initialize(self, callback: Optional[Callable[[], None]] = None) -> None:
        """Reset the chip, run the monitoring measurements and call ``callback``.

        A failed reset is reported after the monitoring and the callback ran.
        """
        self._bus()
        self._pin()
        self.registers = Registers()
        self.monitor = Monitor()

        reset_error: Optional[Ads1220Error] = None
        try:
            self.reset()
        except Ads1220Error as exc:
            reset_error = exc

        for measure in (self.calibrate_offset, self.measure_supply, self.measure_temperature):
            try:
                measure(INIT_SAMPLES)
            except Ads1220Error:
                pass

        if callback is not None:
            callback()
        if reset_error is not None:
            raise reset_error

    # -- conversion data -------------------------------------------------

    def read_adc(self, max_wait_ms: int) -> int:
        """Wait for DRDY to fall and return the signed 24-bit conversion result."""
        bus = self._bus()
        pin = self._pin()
        if max_wait_ms < 1:
            raise ValueError("max_wait_ms must be at least 1")
        for _ in range(max_wait_ms):
            if not pin.read():
                break
            self.delay_ms()
        else:
            raise Ads1220Timeout(f"DRDY did not fall within {max_wait_ms} ms")

        reply = self._call(bus.transfer, b"\xff\xff\xff", _DATA_TIMEOUT_MS)
        return int.from_bytes(bytes(reply[:3]), "big", signed=True)

    def _reference_voltage(self) -> float:
        vref = self.registers.reg2.vref
        if vref == VoltageReference.INTERNAL:
            return INTERNAL_VREF
        if vref == VoltageReference.REF0:
            return self.monitor.vref[0]
        if vref == VoltageReference.REF1:
            return self.monitor.vref[1]
        if vref == VoltageReference.POWER:
            return self.monitor.pwr
        raise ValueError(f"unknown voltage reference: {vref}")

    def convert(self, raw: int) -> float:
        """Convert a raw conversion result into volts for the current setup."""
        ref_volt = self._reference_voltage()
        value = (raw - self.monitor.volt_bias) * ref_volt / FULL_SCALE

        reg0 = self.registers.reg0
        if Mux.AIN0_AVSS <= reg0.mux <= Mux.AIN3_AVSS:
            # Single-ended inputs run without the PGA: only gains 1, 2 and 4.
            if reg0.gain >= Gain.GAIN_8:
                reg0.gain = Gain.GAIN_4
            elif reg0.gain != Gain.GAIN_1:
                value /= 2 ** int(reg0.gain)
        elif reg0.pga_bypass == PgaBypass.PGA_ON and reg0.gain != Gain.GAIN_1:
            value /= 2 ** int(reg0.gain)
        return value

    # -- system monitoring -----------------------------------------------

    def _configure_monitoring(self, what: _Monitoring) -> None:
        regs = self.registers
        if what is _Monitoring.BIAS:
            regs.reg0.mux = Mux.ALL_MIDDLE
        elif what is _Monitoring.REF0:
            regs.reg0.mux = Mux.REFP_REFN
            regs.reg2.vref = VoltageReference.REF0
        elif what is _Monitoring.REF1:
            regs.reg0.mux = Mux.REFP_REFN
            regs.reg2.vref = VoltageReference.REF1
        elif what is _Monitoring.AVDD:
            regs.reg0.mux = Mux.AVDD_AVSS

        regs.reg1.cm = ConversionMode.CONTINUE
        regs.reg1.mode = OperatingMode.DUTY
        regs.reg1.dr = DUTY_5SPS
        regs.reg1.ts = TempSensor.TS_ON if what is _Monitoring.TEMP else TempSensor.TS_OFF
        regs.reg1.bcs = BurnoutSource.BCS_OFF
        regs.reg2.fir = FirFilter.ALL
        regs.reg2.idac = IdacCurrent.OFF
        regs.reg3.i1mux = IdacMux.OFF
        regs.reg3.i2mux = IdacMux.OFF

    def _restore(self, backup: Registers) -> None:
        self.registers = backup
        try:
            self.write_registers(RegisterSelect.ALL)
        except Ads1220Error:
            pass

    def _monitor(self, what: _Monitoring, samples: int) -> float:
        self._bus()
        if samples < 1:
            raise ValueError("samples must be at least 1")

        backup = self.registers.copy()
        self._configure_monitoring(what)
        try:
            self.write_registers(RegisterSelect.ALL)
            self.start()
        except Ads1220Error:
            self._restore(backup)
            raise

        total = 0.0
        successes = 0
        for _ in range(samples):
            try:
                raw = self.read_adc(MONITOR_WAIT_MS)
            except Ads1220Error:
                continue
            successes += 1
            if what is _Monitoring.BIAS:
                total += raw
            elif what is _Monitoring.TEMP:
                # The temperature is a 14-bit value left-aligned in the result.
                total += (raw >> 10) * TEMP_LSB
            else:
                total += raw * INTERNAL_VREF * 4.0 / FULL_SCALE

        if not successes:
            raise Ads1220Timeout("no monitoring sample could be read")
        if successes > 1:
            total /= successes

        result: float
        if what is _Monitoring.BIAS:
            self.monitor.volt_bias = _round_half_away(total)
            result = self.monitor.volt_bias
        elif what is _Monitoring.REF0:
            self.monitor.vref[0] = result = total
        elif what is _Monitoring.REF1:
            self.monitor.vref[1] = result = total
        elif what is _Monitoring.AVDD:
            self.monitor.pwr = result = total
        else:
            self.monitor.temp = result = total

        self._restore(backup)
        try:
            self.power_down()
        except Ads1220Error:
            pass
        return result

    def measure_supply(self, samples: int) -> float:
        """Measure the analog supply voltage, averaged over ``samples`` readings."""
        return self._monitor(_Monitoring.AVDD, samples)

    def measure_reference(self, samples: int) -> float:
        """Measure the selected external reference voltage."""
        vref = self.registers.reg2.vref
        if vref == VoltageReference.REF0:
            return self._monitor(_Monitoring.REF0, samples)
        if vref == VoltageReference.REF1:
            return self._monitor(_Monitoring.REF1, samples)
        raise ValueError("an external reference must be selected")

    def measure_temperature(self, samples: int) -> float:
        """Measure the chip temperature in degrees Celsius."""
        return self._monitor(_Monitoring.TEMP, samples)

    def calibrate_offset(self, samples: int) -> int:
        """Measure the offset with shorted inputs and store it for :meth:`convert`."""
        return int(self._monitor(_Monitoring.BIAS, samples))