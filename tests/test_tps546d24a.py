import pytest

from pumpctl.pmbus import (
    StatusVout,
    StatusWord,
    decode_ulinear16,
    describe_status_word,
    encode_ulinear16,
    linear11_to_float,
)
from pumpctl.tps546d24a import SLAVE_ADDRESS, Tps546d24a, Tps546d24aError


class FakeBus:
    def __init__(self, ignore=()):
        self.registers = {}
        self.writes = []
        self.ignore = set(ignore)

    def write(self, address, command, data):
        assert address == SLAVE_ADDRESS
        self.writes.append((command, bytes(data)))
        if command not in self.ignore:
            self.registers[command] = bytes(data)

    def read(self, address, command, size):
        return self.registers.get(command, bytes(size))[:size].ljust(size, b"\0")


class BrokenBus:
    def write(self, address, command, data):
        raise OSError("bus error")

    def read(self, address, command, size):
        raise OSError("bus error")


def _word(data):
    return int.from_bytes(data, "little")


@pytest.fixture
def bus():
    return FakeBus()


@pytest.fixture
def chip(bus):
    return Tps546d24a(bus)


def test_initialize_writes_configuration(chip, bus):
    chip.initialize(5.0, 0.5, 1.0)
    assert bus.registers[0x02] == b"\x1b"
    assert bus.registers[0x29] == b"\x01\xe8"
    assert bus.registers[0xEE] == b"\x2c\x1f"
    assert decode_ulinear16(_word(bus.registers[0x2B])) == 0.5
    assert decode_ulinear16(_word(bus.registers[0x24])) == 5.0
    assert decode_ulinear16(_word(bus.registers[0x21])) == 1.0


@pytest.mark.parametrize("args", [(5.0, 0.5, 6.0), (5.0, 0.1, 1.0), (5.6, 0.5, 1.0)])
def test_initialize_rejects_out_of_range(chip, bus, args):
    with pytest.raises(ValueError):
        chip.initialize(*args)
    assert bus.writes == []


def test_initialize_reports_readback_mismatch():
    bus = FakeBus(ignore={0x29})
    with pytest.raises(Tps546d24aError):
        Tps546d24a(bus).initialize(5.0, 0.5, 1.0)
    assert bus.registers[0x21] == (encode_ulinear16(1.0)).to_bytes(2, "little")


def test_unbound_bus_raises():
    with pytest.raises(Tps546d24aError):
        Tps546d24a().soft_on()


def test_bus_failure_raises():
    with pytest.raises(Tps546d24aError):
        Tps546d24a(BrokenBus()).get_vout()


@pytest.mark.parametrize("requested, expected", [(10.0, 5.5), (0.0, 0.25), (3.0, 3.0)])
def test_set_vout_clamps(chip, bus, requested, expected):
    assert chip.set_vout(requested) == expected
    assert decode_ulinear16(_word(bus.registers[0x21])) == expected


def test_get_vout_round_trip(chip, bus):
    bus.registers[0x8B] = encode_ulinear16(3.3).to_bytes(2, "little")
    assert chip.get_vout() == pytest.approx(3.3, abs=2**-9)


def test_get_iout_and_temperature_decode_linear11(chip, bus):
    word = ((-1 & 0x1F) << 11) | 3
    bus.registers[0x8C] = word.to_bytes(2, "little")
    bus.registers[0x8D] = word.to_bytes(2, "little")
    assert chip.get_iout() == linear11_to_float(word)
    assert chip.get_temperature() == linear11_to_float(word)


def test_soft_on_and_off(chip, bus):
    chip.soft_on()
    chip.soft_off()
    assert bus.writes == [(0x01, b"\x84"), (0x01, b"\x04")]
    with pytest.raises(Tps546d24aError):
        Tps546d24a().soft_off()


def test_vout_limits(chip, bus):
    with pytest.raises(ValueError):
        chip.set_vout_max(0.3)
    with pytest.raises(ValueError):
        chip.set_vout_min(6.0)
    chip.set_vout_max(5.5)
    chip.set_vout_min(0.5)
    assert decode_ulinear16(_word(bus.registers[0x24])) == 5.5
    assert decode_ulinear16(_word(bus.registers[0x2B])) == 0.5


@pytest.mark.parametrize("requested, expected", [(2000, 1500), (100, 225), (500, 500)])
def test_switching_frequency_clamps(chip, bus, requested, expected):
    assert chip.set_switching_frequency(requested) == expected
    assert bus.registers[0x33] == expected.to_bytes(2, "little")


def test_iout_gain(chip, bus):
    chip.set_iout_gain(1.0)
    assert bus.registers[0x38] == bytes([64, 0xD0])
    chip.set_iout_gain(-2.0)
    assert bus.registers[0x38] == bytes([64, 0xD0])
    chip.set_iout_gain(5.0)
    clamped = bus.registers[0x38]
    chip.set_iout_gain(1.984)
    assert bus.registers[0x38] == clamped
    with pytest.raises(Tps546d24aError):
        Tps546d24a().set_iout_gain(1.0)


def test_iout_offset(chip, bus):
    chip.set_iout_offset(500)
    clamped = bus.registers[0x39]
    chip.set_iout_offset(127)
    assert bus.registers[0x39] == clamped
    assert clamped[1] & 0xE0 == 0xE0
    chip.set_iout_offset(0)
    assert bus.registers[0x39] == bytes([0, 0xE0])
    with pytest.raises(Tps546d24aError):
        Tps546d24a().set_iout_offset(0)


def test_query_status(chip, bus):
    bus.registers[0x79] = (StatusWord.CML | StatusWord.VOUT).to_bytes(2, "little")
    status = chip.query_status()
    assert status == StatusWord.CML | StatusWord.VOUT
    bus.registers[0x79] = b"\0\0"
    assert describe_status_word(chip.query_status()) == ["No fault"]


def test_query_vout_status(chip, bus):
    bus.registers[0x7A] = bytes([StatusVout.VOUT_UVF | StatusVout.TON_MAX])
    assert chip.query_vout_status() == StatusVout.VOUT_UVF | StatusVout.TON_MAX