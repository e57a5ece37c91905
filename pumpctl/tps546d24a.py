"""Driver for the TPS546D24A PMBus-controlled buck regulator.

The regulator is reached through an SMBus/PMBus host object offering
``write(address, command, data)`` and ``read(address, command, size) -> bytes``.
Either may raise :class:`OSError`.  Multi-byte values go low byte first.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Optional, Protocol

from .pmbus import (
    VOUT_EXPONENT,
    StatusVout,
    StatusWord,
    decode_ulinear16,
    encode_ulinear16,
    linear11_to_float,
)

SLAVE_ADDRESS = 0x48

VOUT_LIMIT_LOW = 0.25
VOUT_LIMIT_HIGH = 5.5
VOUT_RANGE_LOW = 0.5

FREQUENCY_MIN = 225
FREQUENCY_MAX = 1500

IOUT_GAIN_MAX = 1.984
IOUT_GAIN_DEFAULT = 1.0
IOUT_GAIN_EXPONENT = -6
IOUT_GAIN_HIGH_BYTE = 0xD0

IOUT_OFFSET_MAX = 127.0
IOUT_OFFSET_EXPONENT = -4
IOUT_OFFSET_HIGH_BITS = 0xE0

ON_OFF_CONFIG = b"\x1b"
VOUT_SCALE_LOOP = b"\x01\xe8"
PIN_DETECT_OVERRIDE = b"\x2c\x1f"
OPERATION_ON = b"\x84"
OPERATION_OFF = b"\x04"


class _Bus(Protocol):
    def write(self, address: int, command: int, data: bytes) -> None: ...

    def read(self, address: int, command: int, size: int) -> bytes: ...


@dataclass(frozen=True)
class _Register:
    code: int
    size: int


class _Cmd(enum.Enum):
    ON_OFF_CONFIG = _Register(0x02, 1)
    OPERATION = _Register(0x01, 1)
    PHASE = _Register(0x04, 1)
    VOUT_COMMAND = _Register(0x21, 2)
    VOUT_MAX = _Register(0x24, 2)
    VOUT_SCALE_LOOP = _Register(0x29, 2)
    VOUT_MIN = _Register(0x2B, 2)
    FREQUENCY_SWITCH = _Register(0x33, 2)
    IOUT_CAL_GAIN = _Register(0x38, 2)
    IOUT_CAL_OFFSET = _Register(0x39, 2)
    STATUS_WORD = _Register(0x79, 2)
    STATUS_VOUT = _Register(0x7A, 1)
    READ_VOUT = _Register(0x8B, 2)
    READ_IOUT = _Register(0x8C, 2)
    READ_TEMPERATURE = _Register(0x8D, 2)
    MFR_SPECIFIC_29 = _Register(0xED, 2)
    PIN_DETECT_OVERRIDE = _Register(0xEE, 2)


class Tps546d24aError(Exception):
    """Raised when the bus fails or the chip does not accept its configuration."""


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _word(value: int) -> bytes:
    return (value & 0xFFFF).to_bytes(2, "little")


def _check_limit(name: str, value: float, low: float) -> None:
    if value > VOUT_LIMIT_HIGH or value < low:
        raise ValueError(f"{name} out of range [{low}, {VOUT_LIMIT_HIGH}] V: {value}")


class Tps546d24a:
    """A TPS546D24A regulator on a PMBus host."""

    def __init__(self, bus: Optional[_Bus] = None, address: int = SLAVE_ADDRESS) -> None:
        self.bus = bus
        self.address = address

    def _host(self) -> _Bus:
        if self.bus is None:
            raise Tps546d24aError("PMBus host is not bound")
        return self.bus

    def _write(self, cmd: _Cmd, data: bytes) -> None:
        host = self._host()
        try:
            host.write(self.address, cmd.value.code, bytes(data))
        except OSError as exc:
            raise Tps546d24aError(f"write to {cmd.name} failed: {exc}") from exc

    def _read(self, cmd: _Cmd) -> bytes:
        host = self._host()
        try:
            data = host.read(self.address, cmd.value.code, cmd.value.size)
        except OSError as exc:
            raise Tps546d24aError(f"read of {cmd.name} failed: {exc}") from exc
        return bytes(data)

    def _write_verified(self, cmd: _Cmd, data: bytes) -> bool:
        self._write(cmd, data)
        return self._read(cmd)[: len(data)] == bytes(data)

    def initialize(self, vout_max: float, vout_min: float, vout_default: float) -> None:
        """Configure soft start, loop scale, output limits and default output.

        Every register is read back; a mismatch raises :class:`Tps546d24aError`
        after all registers were written.
        """
        self._host()
        _check_limit("default output voltage", vout_default, VOUT_LIMIT_LOW)
        _check_limit("minimum output voltage", vout_min, VOUT_LIMIT_LOW)
        _check_limit("maximum output voltage", vout_max, VOUT_LIMIT_LOW)

        steps = (
            (_Cmd.ON_OFF_CONFIG, ON_OFF_CONFIG),
            (_Cmd.VOUT_SCALE_LOOP, VOUT_SCALE_LOOP),
            (_Cmd.VOUT_MIN, _word(encode_ulinear16(vout_min, VOUT_EXPONENT))),
            (_Cmd.VOUT_MAX, _word(encode_ulinear16(vout_max, VOUT_EXPONENT))),
            (_Cmd.VOUT_COMMAND, _word(encode_ulinear16(vout_default, VOUT_EXPONENT))),
            (_Cmd.PIN_DETECT_OVERRIDE, PIN_DETECT_OVERRIDE),
        )
        failed = [cmd.name for cmd, data in steps if not self._write_verified(cmd, data)]
        if failed:
            raise Tps546d24aError(f"registers not accepted: {', '.join(failed)}")

    def set_vout(self, vout: float) -> float:
        """Set the output voltage, clamped to the chip's range; return what was set."""
        vout = min(max(vout, VOUT_LIMIT_LOW), VOUT_LIMIT_HIGH)
        self._write(_Cmd.VOUT_COMMAND, _word(encode_ulinear16(vout, VOUT_EXPONENT)))
        return vout

    def get_vout(self) -> float:
        """Return the measured output voltage."""
        raw = int.from_bytes(self._read(_Cmd.READ_VOUT)[:2], "little")
        return decode_ulinear16(raw, VOUT_EXPONENT)

    def get_iout(self) -> float:
        """Return the measured output current in amperes."""
        return linear11_to_float(int.from_bytes(self._read(_Cmd.READ_IOUT)[:2], "little"))

    def get_temperature(self) -> float:
        """Return the chip temperature in degrees Celsius."""
        raw = int.from_bytes(self._read(_Cmd.READ_TEMPERATURE)[:2], "little")
        return linear11_to_float(raw)

    def soft_on(self) -> None:
        """Turn the output on with soft start."""
        self._write(_Cmd.OPERATION, OPERATION_ON)

    def soft_off(self) -> None:
        """Turn the output off with soft stop."""
        self._write(_Cmd.OPERATION, OPERATION_OFF)

    def set_vout_max(self, vout_max: float) -> None:
        """Set the upper output voltage limit."""
        _check_limit("maximum output voltage", vout_max, VOUT_RANGE_LOW)
        self._write(_Cmd.VOUT_MAX, _word(encode_ulinear16(vout_max, VOUT_EXPONENT)))

    def set_vout_min(self, vout_min: float) -> None:
        """Set the lower output voltage limit."""
        _check_limit("minimum output voltage", vout_min, VOUT_RANGE_LOW)
        self._write(_Cmd.VOUT_MIN, _word(encode_ulinear16(vout_min, VOUT_EXPONENT)))

    def set_switching_frequency(self, frequency: float) -> int:
        """Set the switching frequency in kHz, clamped to 225..1500.

        Returns the value the chip reports afterwards.
        """
        frequency = min(max(frequency, FREQUENCY_MIN), FREQUENCY_MAX)
        self._write(_Cmd.FREQUENCY_SWITCH, _word(int(frequency)))
        return int.from_bytes(self._read(_Cmd.FREQUENCY_SWITCH)[:2], "little")

    def set_iout_gain(self, gain: float) -> None:
        """Set the current-sense gain correction; a negative gain selects 1."""
        if gain > IOUT_GAIN_MAX:
            gain = IOUT_GAIN_MAX
        elif gain < 0:
            gain = IOUT_GAIN_DEFAULT
        raw = _round_half_away(math.ldexp(gain, -IOUT_GAIN_EXPONENT))
        self._write(_Cmd.IOUT_CAL_GAIN, bytes([raw & 0xFF, IOUT_GAIN_HIGH_BYTE]))

    def set_iout_offset(self, offset: float) -> None:
        """Set the current-sense offset correction in amperes."""
        offset = min(offset, IOUT_OFFSET_MAX)
        raw = _round_half_away(math.ldexp(offset, -IOUT_OFFSET_EXPONENT)) & 0xFFFF
        high = (IOUT_OFFSET_HIGH_BITS | (raw >> 8)) & 0xFF
        self._write(_Cmd.IOUT_CAL_OFFSET, bytes([raw & 0xFF, high]))

    def query_status(self) -> StatusWord:
        """Read the STATUS_WORD register."""
        return StatusWord(int.from_bytes(self._read(_Cmd.STATUS_WORD)[:2], "little"))

    def query_vout_status(self) -> StatusVout:
        """Read the STATUS_VOUT register."""
        return StatusVout(self._read(_Cmd.STATUS_VOUT)[0])