"""Configuration register layout of the ADS1220 analog-to-digital converter.

The converter has four 8-bit configuration registers.  Each register is
modelled as a dataclass whose fields hold the individual bit fields; ``pack``
produces the register byte and ``unpack`` decodes one.  Fields are numbered
from the least significant bit.
"""

from __future__ import annotations

import copy as _copy
import enum
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional, Tuple, Type, Union


class RegisterSelect(enum.IntFlag):
    """Selection of registers for a read or write; members may be combined."""

    REG0 = 0x01
    REG1 = 0x02
    REG2 = 0x04
    REG3 = 0x08
    ALL = 0x0F


class Mux(enum.IntEnum):
    """Input multiplexer configuration (positive input, negative input)."""

    AIN0_AIN1 = 0x0
    AIN0_AIN2 = 0x1
    AIN0_AIN3 = 0x2
    AIN1_AIN2 = 0x3
    AIN1_AIN3 = 0x4
    AIN2_AIN3 = 0x5
    AIN1_AIN0 = 0x6
    AIN3_AIN2 = 0x7
    AIN0_AVSS = 0x8
    AIN1_AVSS = 0x9
    AIN2_AVSS = 0xA
    AIN3_AVSS = 0xB
    REFP_REFN = 0xC
    AVDD_AVSS = 0xD
    ALL_MIDDLE = 0xE


class Gain(enum.IntEnum):
    """Gain setting; the actual gain is two to the power of the value."""

    GAIN_1 = 0
    GAIN_2 = 1
    GAIN_4 = 2
    GAIN_8 = 3
    GAIN_16 = 4
    GAIN_32 = 5
    GAIN_64 = 6
    GAIN_128 = 7


class PgaBypass(enum.IntEnum):
    """Whether the internal programmable gain amplifier is used."""

    PGA_ON = 0
    PGA_OFF = 1


class OperatingMode(enum.IntEnum):
    NORMAL = 0
    DUTY = 1
    TURBO = 2


class ConversionMode(enum.IntEnum):
    SINGLE = 0
    CONTINUE = 1


class TempSensor(enum.IntEnum):
    TS_OFF = 0
    TS_ON = 1


class BurnoutSource(enum.IntEnum):
    BCS_OFF = 0
    BCS_ON = 1


class VoltageReference(enum.IntEnum):
    INTERNAL = 0
    REF0 = 1
    REF1 = 2
    POWER = 3


class FirFilter(enum.IntEnum):
    """50/60 Hz rejection filter."""

    OFF = 0
    ALL = 1
    HZ_50 = 2
    HZ_60 = 3


class PowerSwitch(enum.IntEnum):
    PSW_OFF = 0
    PSW_ON = 1


class IdacCurrent(enum.IntEnum):
    OFF = 0
    UA_10 = 1
    UA_50 = 2
    UA_100 = 3
    UA_250 = 4
    UA_500 = 5
    UA_1000 = 6
    UA_1500 = 7


class IdacMux(enum.IntEnum):
    """Pin an excitation current source is routed to."""

    OFF = 0
    AIN0 = 1
    AIN1 = 2
    AIN2 = 3
    AIN3 = 4
    REFP0 = 5
    REFN0 = 6


class DrdyMode(enum.IntEnum):
    ONLY = 0
    BOTH = 1


# Data rate codes; their meaning depends on the operating mode.
NORMAL_20SPS = 0
NORMAL_45SPS = 1
NORMAL_90SPS = 2
NORMAL_175SPS = 3
NORMAL_330SPS = 4
NORMAL_600SPS = 5
NORMAL_1000SPS = 6

DUTY_5SPS = 0
DUTY_11_25SPS = 1
DUTY_22_5SPS = 2
DUTY_44SPS = 3
DUTY_82_5SPS = 4
DUTY_150SPS = 5
DUTY_250SPS = 6

TURBO_40SPS = 0
TURBO_90SPS = 1
TURBO_180SPS = 2
TURBO_350SPS = 3
TURBO_660SPS = 4
TURBO_1200SPS = 5
TURBO_2000SPS = 6


_Layout = Tuple[Tuple[str, int, int, Optional[Type[enum.IntEnum]]], ...]


def _coerce(kind: Optional[Type[enum.IntEnum]], value: int) -> Union[int, enum.IntEnum]:
    if kind is None:
        return value
    try:
        return kind(value)
    except ValueError:
        return value


def _pack_fields(register: Any, layout: _Layout) -> int:
    byte = 0
    for name, shift, width, _ in layout:
        value = int(getattr(register, name))
        if not 0 <= value < (1 << width):
            raise ValueError(f"{name}={value} does not fit in {width} bits")
        byte |= value << shift
    return byte


def _unpack_fields(layout: _Layout, value: int) -> Dict[str, Any]:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"register value out of range: {value}")
    return {
        name: _coerce(kind, (value >> shift) & ((1 << width) - 1))
        for name, shift, width, kind in layout
    }


@dataclass
class Reg0:
    """Register 0: input multiplexer, gain and PGA bypass."""

    mux: Union[Mux, int] = Mux.AIN0_AIN1
    gain: Union[Gain, int] = Gain.GAIN_1
    pga_bypass: Union[PgaBypass, int] = PgaBypass.PGA_ON

    _LAYOUT: ClassVar[_Layout] = (
        ("pga_bypass", 0, 1, PgaBypass),
        ("gain", 1, 3, Gain),
        ("mux", 4, 4, Mux),
    )

    def pack(self) -> int:
        """Return the register byte."""
        return _pack_fields(self, self._LAYOUT)

    @classmethod
    def unpack(cls, value: int) -> "Reg0":
        """Decode a register byte."""
        return cls(**_unpack_fields(cls._LAYOUT, value))


@dataclass
class Reg1:
    """Register 1: data rate, operating mode, conversion mode, sensors."""

    dr: int = NORMAL_20SPS
    mode: Union[OperatingMode, int] = OperatingMode.NORMAL
    cm: Union[ConversionMode, int] = ConversionMode.SINGLE
    ts: Union[TempSensor, int] = TempSensor.TS_OFF
    bcs: Union[BurnoutSource, int] = BurnoutSource.BCS_OFF

    _LAYOUT: ClassVar[_Layout] = (
        ("bcs", 0, 1, BurnoutSource),
        ("ts", 1, 1, TempSensor),
        ("cm", 2, 1, ConversionMode),
        ("mode", 3, 2, OperatingMode),
        ("dr", 5, 3, None),
    )

    def pack(self) -> int:
        """Return the register byte."""
        return _pack_fields(self, self._LAYOUT)

    @classmethod
    def unpack(cls, value: int) -> "Reg1":
        """Decode a register byte."""
        return cls(**_unpack_fields(cls._LAYOUT, value))


@dataclass
class Reg2:
    """Register 2: reference, FIR filter, low-side switch, IDAC current."""

    vref: Union[VoltageReference, int] = VoltageReference.INTERNAL
    fir: Union[FirFilter, int] = FirFilter.OFF
    psw: Union[PowerSwitch, int] = PowerSwitch.PSW_OFF
    idac: Union[IdacCurrent, int] = IdacCurrent.OFF

    _LAYOUT: ClassVar[_Layout] = (
        ("idac", 0, 3, IdacCurrent),
        ("psw", 3, 1, PowerSwitch),
        ("fir", 4, 2, FirFilter),
        ("vref", 6, 2, VoltageReference),
    )

    def pack(self) -> int:
        """Return the register byte."""
        return _pack_fields(self, self._LAYOUT)

    @classmethod
    def unpack(cls, value: int) -> "Reg2":
        """Decode a register byte."""
        return cls(**_unpack_fields(cls._LAYOUT, value))


@dataclass
class Reg3:
    """Register 3: IDAC routing and DRDY mode; bit 0 is reserved."""

    i1mux: Union[IdacMux, int] = IdacMux.OFF
    i2mux: Union[IdacMux, int] = IdacMux.OFF
    drdym: Union[DrdyMode, int] = DrdyMode.ONLY
    reserved: int = 0

    _LAYOUT: ClassVar[_Layout] = (
        ("reserved", 0, 1, None),
        ("drdym", 1, 1, DrdyMode),
        ("i2mux", 2, 3, IdacMux),
        ("i1mux", 5, 3, IdacMux),
    )

    def pack(self) -> int:
        """Return the register byte."""
        return _pack_fields(self, self._LAYOUT)

    @classmethod
    def unpack(cls, value: int) -> "Reg3":
        """Decode a register byte."""
        return cls(**_unpack_fields(cls._LAYOUT, value))


_REGISTER_NAMES = ("reg0", "reg1", "reg2", "reg3")
_REGISTER_TYPES = (Reg0, Reg1, Reg2, Reg3)


@dataclass
class Registers:
    """The four configuration registers together."""

    reg0: Reg0
    reg1: Reg1
    reg2: Reg2
    reg3: Reg3

    def __init__(
        self,
        reg0: Optional[Reg0] = None,
        reg1: Optional[Reg1] = None,
        reg2: Optional[Reg2] = None,
        reg3: Optional[Reg3] = None,
    ) -> None:
        self.reg0 = reg0 if reg0 is not None else Reg0()
        self.reg1 = reg1 if reg1 is not None else Reg1()
        self.reg2 = reg2 if reg2 is not None else Reg2()
        self.reg3 = reg3 if reg3 is not None else Reg3()

    @staticmethod
    def _check_index(index: int) -> None:
        if not 0 <= index < len(_REGISTER_NAMES):
            raise IndexError(f"register index out of range: {index}")

    def get_byte(self, index: int) -> int:
        """Return the packed byte of register ``index`` (0 to 3)."""
        self._check_index(index)
        return getattr(self, _REGISTER_NAMES[index]).pack()

    def set_byte(self, index: int, value: int) -> None:
        """Replace register ``index`` (0 to 3) with the decoded ``value``."""
        self._check_index(index)
        setattr(self, _REGISTER_NAMES[index], _REGISTER_TYPES[index].unpack(value))

    def copy(self) -> "Registers":
        """Return an independent copy."""
        return _copy.deepcopy(self)