"""Periodic constant-current regulation step."""

from __future__ import annotations

import math
from typing import Callable, Protocol

from .ads1220 import FULL_SCALE, Ads1220, Ads1220Error
from .ads1220_registers import Mux, RegisterSelect
from .pid import PidController
from .protocol import CURVES_CH1, Command, encode_frame, pack_ints

SENSE_FACTOR = 4.0
ADC_WAIT_MS = 100


class _Regulator(Protocol):
    def set_vout(self, vout: float) -> float: ...


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def pump_driver(
    regulator: _Regulator,
    adc: Ads1220,
    controller: PidController,
    send: Callable[[bytes], None],
) -> float:
    """Measure the output current, report it to the host and adjust the regulator.

    The current is sampled on AIN1 against AVSS across the sense resistor; it is
    sent in milliamperes on curve channel 1, fed to ``controller`` and the
    controller output becomes the regulator's output voltage.  Returns the
    measured current in amperes.
    """
    adc.registers.reg0.mux = Mux.AIN1_AVSS
    adc.write_registers(RegisterSelect.REG0)
    adc.start()
    try:
        raw = adc.read_adc(ADC_WAIT_MS)
    except Ads1220Error:
        # A missed conversion counts as a zero reading for this period.
        raw = 0

    current = raw * adc.monitor.vref[0] / FULL_SCALE * SENSE_FACTOR
    send(encode_frame(Command.SEND_FACT, CURVES_CH1, pack_ints([_round_half_away(current * 1000)])))

    controller.actual = current
    regulator.set_vout(controller.update(current))
    return current