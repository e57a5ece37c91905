import math

import pytest
from hypothesis import given
from hypothesis import strategies as st

from pumpctl.pmbus import (
    StatusVout,
    StatusWord,
    decode_ulinear16,
    describe_status_word,
    describe_vout_status,
    encode_ulinear16,
    linear11_to_float,
)


def test_linear11_zero_exponent_returns_mantissa():
    assert linear11_to_float(5) == 5.0


def test_linear11_negative_mantissa():
    assert linear11_to_float(0x7FF) == -1.0


@given(st.integers(min_value=0, max_value=0x3FF))
def test_linear11_positive_exponent_doubles(mantissa):
    assert linear11_to_float((1 << 11) | mantissa) == 2 * linear11_to_float(mantissa)


def test_linear11_rejects_out_of_range():
    with pytest.raises(ValueError):
        linear11_to_float(0x10000)


def test_encode_one_volt():
    assert encode_ulinear16(1.0, -9) == 512


@given(st.floats(min_value=0.0, max_value=100.0, allow_nan=False))
def test_ulinear16_round_trip(value):
    decoded = decode_ulinear16(encode_ulinear16(value, -9), -9)
    assert math.isclose(decoded, value, abs_tol=2 ** -10)


def test_encode_rejects_negative():
    with pytest.raises(ValueError):
        encode_ulinear16(-1.0, -9)


def test_encode_rejects_too_large():
    with pytest.raises(ValueError):
        encode_ulinear16(200.0, -9)


def test_status_word_no_fault():
    assert describe_status_word(0) == ["No fault"]


def test_status_word_single_fault():
    assert describe_status_word(StatusWord.CML) == ["Communication, memory, logic faults"]


def test_status_word_ordered_faults():
    status = StatusWord.VOUT | StatusWord.TEMP
    assert describe_status_word(status) == ["Temperature failure/warning", "Out voltage fault"]


def test_status_word_rejects_wide_value():
    with pytest.raises(ValueError):
        describe_status_word(1 << 16)


def test_vout_status_no_fault():
    assert describe_vout_status(0) == ["No fault"]


def test_vout_status_faults():
    status = StatusVout.VOUT_OVF | StatusVout.TON_MAX
    assert describe_vout_status(status) == ["Output overvoltage fault", "Maximum on-time fault"]


@given(st.integers(min_value=1, max_value=0x3F))
def test_vout_status_message_count_matches_bits(status):
    assert len(describe_vout_status(status)) == bin(status).count("1")