"""PMBus data formats and status registers used by the TPS546D24A regulator."""

from __future__ import annotations

import enum
import math
from typing import List, Tuple

VOUT_EXPONENT = -9
"""Exponent of the ULINEAR16 format the regulator uses for output voltages."""


class StatusWord(enum.IntFlag):
    """Fault bits of the STATUS_WORD register, numbered from bit 0."""

    NONE_OF_THE_ABOVE = 1 << 0
    CML = 1 << 1
    TEMP = 1 << 2
    VIN_UV = 1 << 3
    IOUT_OC = 1 << 4
    VOUT_OV = 1 << 5
    OFF = 1 << 6
    BUSY = 1 << 7
    OTHER = 1 << 8
    MANUFACTURER = 1 << 9
    INPUT = 1 << 10
    IOUT = 1 << 11
    VOUT = 1 << 12


class StatusVout(enum.IntFlag):
    """Fault bits of the STATUS_VOUT register."""

    VOUT_OVF = 1 << 0
    VOUT_OVW = 1 << 1
    VOUT_UVW = 1 << 2
    VOUT_UVF = 1 << 3
    VOUT_MIN_MAX = 1 << 4
    TON_MAX = 1 << 5
    UNSUPPORTED = 1 << 6


_STATUS_WORD_MESSAGES: Tuple[Tuple[StatusWord, str], ...] = (
    (StatusWord.NONE_OF_THE_ABOVE, "Other above fault: "),
    (StatusWord.CML, "Communication, memory, logic faults"),
    (StatusWord.TEMP, "Temperature failure/warning"),
    (StatusWord.VIN_UV, "Input undervoltage fault"),
    (StatusWord.IOUT_OC, "Output overcurrent fault"),
    (StatusWord.VOUT_OV, "Input vout overvoltage fault"),
    (StatusWord.OFF, "Convert fault"),
    (StatusWord.BUSY, "Busy and non respone"),
    (StatusWord.OTHER, "Other fault"),
    (StatusWord.MANUFACTURER, "Manufacturer defined faults"),
    (StatusWord.INPUT, "Input faults"),
    (StatusWord.IOUT, "Out current fault"),
    (StatusWord.VOUT, "Out voltage fault"),
)

_STATUS_VOUT_MESSAGES: Tuple[Tuple[StatusVout, str], ...] = (
    (StatusVout.VOUT_OVF, "Output overvoltage fault"),
    (StatusVout.VOUT_OVW, "Output overvoltage warning"),
    (StatusVout.VOUT_UVW, "Output undervoltage warning"),
    (StatusVout.VOUT_UVF, "Output undervoltage fault"),
    (StatusVout.VOUT_MIN_MAX, "Output voltage minimum/maximum fault"),
    (StatusVout.TON_MAX, "Maximum on-time fault"),
)

NO_FAULT = "No fault"


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _check_word(value: int, bits: int) -> int:
    value = int(value)
    if not 0 <= value < (1 << bits):
        raise ValueError(f"value does not fit in {bits} bits: {value}")
    return value


def linear11_to_float(value: int) -> float:
    """Decode a LINEAR11 word: an 11-bit signed mantissa and a 5-bit signed exponent."""
    value = _check_word(value, 16)
    mantissa = value & 0x7FF
    if mantissa & 0x400:
        mantissa -= 0x800
    exponent = (value >> 11) & 0x1F
    if exponent & 0x10:
        exponent -= 0x20
    return math.ldexp(float(mantissa), exponent)


def encode_ulinear16(value: float, exponent: int = VOUT_EXPONENT) -> int:
    """Encode ``value`` as an unsigned 16-bit mantissa scaled by ``2 ** exponent``."""
    raw = _round_half_away(value / math.ldexp(1.0, exponent))
    if not 0 <= raw <= 0xFFFF:
        raise ValueError(f"{value} cannot be encoded with exponent {exponent}")
    return raw


def decode_ulinear16(value: int, exponent: int = VOUT_EXPONENT) -> float:
    """Decode an unsigned 16-bit mantissa scaled by ``2 ** exponent``."""
    return math.ldexp(float(_check_word(value, 16)), exponent)


def describe_status_word(status: int) -> List[str]:
    """Return a message for every fault set in a STATUS_WORD value."""
    status = _check_word(status, 16)
    if status == 0:
        return [NO_FAULT]
    return [message for flag, message in _STATUS_WORD_MESSAGES if status & flag]


def describe_vout_status(status: int) -> List[str]:
    """Return a message for every fault set in a STATUS_VOUT value."""
    status = _check_word(status, 8)
    if status == 0:
        return [NO_FAULT]
    return [message for flag, message in _STATUS_VOUT_MESSAGES if status & flag]