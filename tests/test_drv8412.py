import pytest

from pumpctl.drv8412 import Drv8412, Drv8412Error, PwmChannel


class FakePin:
    def __init__(self):
        self.levels = []

    def write(self, level):
        self.levels.append(level)


class FakeTimer:
    def __init__(self, period=999):
        self.period = period
        self.running = set()
        self.compare = {}

    def start(self, channel):
        self.running.add(channel)

    def stop(self, channel):
        self.running.discard(channel)

    def set_compare(self, channel, value):
        self.compare[channel] = value


@pytest.fixture
def bridge():
    pin = FakePin()
    timer_a = FakeTimer()
    timer_b = FakeTimer()
    dev = Drv8412(pin, timer_a, 1, timer_b, 2)
    return dev, pin, timer_a, timer_b


def test_power_on_drives_nsleep_high(bridge):
    dev, pin, _, _ = bridge
    dev.power_on()
    assert pin.levels == [True]


def test_power_off_drives_nsleep_low(bridge):
    dev, pin, _, _ = bridge
    dev.power_on()
    dev.power_off()
    assert pin.levels == [True, False]


def test_power_without_pin_raises():
    dev = Drv8412(None, FakeTimer(), 1, FakeTimer(), 2)
    with pytest.raises(Drv8412Error):
        dev.power_on()


def test_pwm_without_timers_raises():
    dev = Drv8412(FakePin())
    with pytest.raises(Drv8412Error):
        dev.pwm_on(PwmChannel.A)


def test_pwm_on_starts_selected_channel(bridge):
    dev, _, timer_a, timer_b = bridge
    dev.pwm_on(PwmChannel.B)
    assert timer_b.running == {2}
    assert timer_a.running == set()


def test_set_pwm_half_duty(bridge):
    dev, _, timer_a, _ = bridge
    dev.set_pwm(PwmChannel.A, 50)
    assert timer_a.compare[1] == (timer_a.period + 1) // 2


@pytest.mark.parametrize("duty", [0, 100, -5, 150])
def test_set_pwm_rejects_out_of_range(bridge, duty):
    dev, _, timer_a, _ = bridge
    with pytest.raises(ValueError):
        dev.set_pwm(PwmChannel.A, duty)
    assert timer_a.compare == {}


def test_set_pwm_is_monotonic(bridge):
    dev, _, timer_a, _ = bridge
    values = []
    for duty in (10, 20, 40, 80):
        dev.set_pwm(PwmChannel.A, duty)
        values.append(timer_a.compare[1])
    assert values == sorted(values)


def test_pwm_off_stops_and_minimises(bridge):
    dev, _, timer_a, _ = bridge
    dev.pwm_on(PwmChannel.A)
    dev.set_pwm(PwmChannel.A, 60)
    dev.pwm_off(PwmChannel.A)
    assert timer_a.running == set()
    assert timer_a.compare[1] == 0


def test_set_voltage_positive_direction(bridge):
    dev, _, timer_a, timer_b = bridge
    dev.set_voltage(6.0)
    assert timer_a.compare[1] == (timer_a.period + 1) // 2
    assert timer_b.compare[2] == 0


def test_set_voltage_negative_direction(bridge):
    dev, _, timer_a, timer_b = bridge
    dev.set_voltage(-6.0)
    assert timer_a.compare[1] == (timer_a.period + 1) // 2
    assert timer_b.compare[2] == timer_b.period + 1


def test_set_voltage_symmetric_magnitude(bridge):
    dev, _, timer_a, _ = bridge
    dev.set_voltage(3.0)
    positive = timer_a.compare[1]
    dev.set_voltage(-3.0)
    assert timer_a.compare[1] == positive


@pytest.mark.parametrize("supply", [0.0, -1.0, 60.0])
def test_set_voltage_rejects_bad_supply(supply):
    dev = Drv8412(FakePin(), FakeTimer(), 1, FakeTimer(), 2, supply_voltage=supply)
    with pytest.raises(ValueError):
        dev.set_voltage(1.0)