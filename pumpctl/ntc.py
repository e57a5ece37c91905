"""Conversion between NTC thermistor resistance and temperature (beta model)."""

from __future__ import annotations

import math
from dataclasses import dataclass

KELVIN_OFFSET = 273.15


def _to_kelvin(celsius: float) -> float:
    return celsius + KELVIN_OFFSET


def _to_celsius(kelvin: float) -> float:
    return kelvin - KELVIN_OFFSET


@dataclass
class Ntc:
    """An NTC thermistor described by the beta equation.

    ``r0`` is the resistance in kilo-ohms at the reference temperature ``t0``
    (degrees Celsius); ``coef_temp`` is the beta coefficient in kelvin.
    """

    r0: float
    t0: float
    coef_temp: float

    def to_temperature(self, rt: float) -> float:
        """Return the temperature in degrees Celsius for a resistance in kilo-ohms."""
        if rt <= 0 or self.r0 <= 0:
            raise ValueError("resistances must be positive")
        t0_k = _to_kelvin(self.t0)
        kelvin = (self.coef_temp * t0_k) / (t0_k * math.log(rt / self.r0) + self.coef_temp)
        return _to_celsius(kelvin)

    def to_resistance(self, temp: float) -> float:
        """Return the resistance in kilo-ohms for a temperature in degrees Celsius."""
        rt_k = _to_kelvin(temp)
        r0_k = _to_kelvin(self.t0)
        if rt_k <= 0:
            raise ValueError("temperature is below absolute zero")
        return self.r0 * math.exp(self.coef_temp * (r0_k - rt_k) / (rt_k * r0_k))