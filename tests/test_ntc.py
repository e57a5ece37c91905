import pytest
from hypothesis import given
from hypothesis import strategies as st

from pumpctl.ntc import Ntc


@pytest.fixture
def ntc():
    return Ntc(r0=10.0, t0=25.0, coef_temp=3950.0)


def test_reference_resistance_gives_reference_temperature(ntc):
    assert ntc.to_temperature(10.0) == pytest.approx(25.0)


def test_reference_temperature_gives_reference_resistance(ntc):
    assert ntc.to_resistance(25.0) == pytest.approx(10.0)


def test_resistance_falls_as_temperature_rises(ntc):
    assert ntc.to_resistance(0.0) > ntc.to_resistance(25.0) > ntc.to_resistance(80.0)


def test_temperature_falls_as_resistance_rises(ntc):
    assert ntc.to_temperature(30.0) < ntc.to_temperature(10.0) < ntc.to_temperature(2.0)


@given(st.floats(min_value=-40.0, max_value=150.0))
def test_round_trip_temperature(temp):
    ntc = Ntc(r0=10.0, t0=25.0, coef_temp=3950.0)
    assert ntc.to_temperature(ntc.to_resistance(temp)) == pytest.approx(temp, abs=1e-6)


@given(st.floats(min_value=0.1, max_value=500.0))
def test_round_trip_resistance(rt):
    ntc = Ntc(r0=100.0, t0=20.0, coef_temp=4250.0)
    assert ntc.to_resistance(ntc.to_temperature(rt)) == pytest.approx(rt, rel=1e-9)


@pytest.mark.parametrize("rt", [0.0, -5.0])
def test_non_positive_resistance_rejected(ntc, rt):
    with pytest.raises(ValueError):
        ntc.to_temperature(rt)


def test_temperature_below_absolute_zero_rejected(ntc):
    with pytest.raises(ValueError):
        ntc.to_resistance(-300.0)