import pytest

from pumpctl.fan import Fan, FanError


class FakePin:
    def __init__(self):
        self.levels = []

    def write(self, level):
        self.levels.append(level)


class FakePwmTimer:
    def __init__(self, prescaler=0, period=6799):
        self.prescaler = prescaler
        self.period = period
        self.running = set()
        self.compare = {}

    def start(self, channel):
        self.running.add(channel)

    def stop(self, channel):
        self.running.discard(channel)

    def set_compare(self, channel, value):
        self.compare[channel] = value


class FakeCaptureTimer:
    def __init__(self, captured=0):
        self.captured = captured
        self.counting = False
        self.capturing = set()
        self.counter = None

    def start(self):
        self.counting = True

    def stop(self):
        self.counting = False

    def start_capture(self, channel):
        self.capturing.add(channel)

    def stop_capture(self, channel):
        self.capturing.discard(channel)

    def read_capture(self, channel):
        return self.captured

    def set_counter(self, value):
        self.counter = value


def make_fan(**kwargs):
    return Fan(FakePin(), FakePwmTimer(**kwargs), 2, FakeCaptureTimer(), 1)


def test_power_on_and_off_drive_pin():
    fan = make_fan()
    fan.power_on()
    assert fan.power_state is True
    fan.power_off()
    assert fan.power_state is False
    assert fan.power_pin.levels == [True, False]


def test_power_without_pin_raises():
    with pytest.raises(FanError):
        Fan().power_on()


def test_pwm_on_off_controls_timer():
    fan = make_fan()
    fan.pwm_on()
    assert fan.pwm_timer.running == {2}
    fan.pwm_off()
    assert fan.pwm_timer.running == set()
    assert fan.pwm_state is False


def test_pwm_without_timer_raises():
    with pytest.raises(FanError):
        Fan(power_pin=FakePin()).pwm_on()


def test_set_pwm_full_duty_uses_whole_period():
    fan = make_fan(prescaler=0, period=6799)
    fan.set_pwm(1.0)
    assert fan.pwm_timer.compare[2] == 6800
    assert fan.speed_pwm == 25000


def test_set_pwm_zero_duty():
    fan = make_fan()
    fan.set_pwm(0.0)
    assert fan.pwm_timer.compare[2] == 0


def test_set_pwm_rejects_high_frequency():
    fan = make_fan(prescaler=0, period=99)
    with pytest.raises(ValueError):
        fan.set_pwm(0.5)
    assert fan.pwm_timer.compare == {}


def test_set_pwm_rejects_bad_duty():
    fan = make_fan()
    with pytest.raises(ValueError):
        fan.set_pwm(1.5)


def test_capture_on_and_off():
    fan = make_fan()
    fan.capture_on()
    assert fan.fg_timer.counting is True
    assert fan.fg_timer.capturing == {1}
    fan.speed_fg = 1200.0
    fan.capture_off()
    assert fan.fg_timer.counting is False
    assert fan.fg_timer.capturing == set()
    assert fan.speed_fg == 0.0


def test_capture_without_timer_raises():
    with pytest.raises(FanError):
        Fan().capture_on()


def test_update_speed_one_hertz():
    fan = make_fan()
    fan.fg_timer.captured = 1_000_000
    assert fan.update_speed() == 30.0
    assert fan.fg_timer.counter == 0


def test_zero_capture_counts_as_one():
    fan = make_fan()
    fan.fg_timer.captured = 0
    zero_speed = fan.update_speed()
    fan.fg_timer.captured = 1
    assert fan.update_speed() == zero_speed


def test_overflows_extend_period_and_reset():
    fan = make_fan()
    fan.fg_timer.captured = 1000
    fan.record_overflow()
    with_overflow = fan.update_speed()
    assert fan.fg_overflows == 0
    fan.fg_timer.captured = 1000 + 65535
    assert fan.update_speed() == with_overflow
    assert fan.speed_fg == with_overflow