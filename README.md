# pumpctl

`pumpctl` models the devices and control logic of a pump and thermoelectric
cooler driver board. Every device takes its bus or pin access as plain Python
objects passed to its constructor, so the same code runs against hardware
adapters you provide or against simulated objects in tests.

## Modules

| Module | Purpose |
| --- | --- |
| `pumpctl.ntc` | `Ntc(r0, t0, coef_temp)` converts NTC thermistor resistance (kΩ) to temperature (°C) with `to_temperature`, and back with `to_resistance`, using the beta equation. Non-positive resistances and temperatures below absolute zero raise `ValueError`. |
| `pumpctl.pid` | `PidController(id, out_max, out_min, ...)`: an incremental PID whose output is clamped to `out_min`..`out_max`. `set_gains` sets the gains, `update(measured)` runs one step, `set_user_target` sets the active set point `target`, and `ramp_target` moves `target` one step towards `user_target` at a speed chosen by `Ratio` (`LOW`, `MEDIUM`, `HIGH`) through `set_ratio`. `KalmanFilter(q, r, a, b, h, p, x_hat)` is a scalar Kalman filter with `update(z, u)`. |
| `pumpctl.ring_buffer` | `RingBuffer(capacity)`: a bounded FIFO with `push`, `pop`, `discard`, `peek_head`, `peek_tail`, `clear`, `is_empty`, `is_full` and `free_space`. It raises `BufferFullError` or `BufferEmptyError` (both `RingBufferError`). |
| `pumpctl.protocol` | The framed serial protocol of the PID tuning host: `Command`, `encode_frame`, `checksum`, `pack_floats`, `pack_ints`, `send_pid_params`, the decoded `Frame`, a streaming `FrameParser` (`feed`, `next_frame`, `frames`) and `process_commands`, which applies received host commands to a `PidController`. |
| `pumpctl.ads1220_registers` | Bit-exact models of the four ADS1220 configuration registers (`Reg0` … `Reg3` with `pack`/`unpack`, and `Registers` with `get_byte`, `set_byte`, `copy`), `RegisterSelect` and every field value as an enum. |
| `pumpctl.ads1220` | `Ads1220`: register reads and writes, `start`, `stop`, `power_down`, `reset`, `initialize`, `read_adc` for a signed 24-bit sample, `convert` to volts, and the chip's built-in monitors: `measure_supply`, `measure_reference`, `measure_temperature` and `calibrate_offset`, whose results are kept in `monitor`. |
| `pumpctl.drv8412` | `Drv8412`: sleep control (`power_on`, `power_off`), the two PWM channels (`PwmChannel.A`/`B`, `pwm_on`, `pwm_off`, `set_pwm` in percent) and `set_voltage`, whose sign selects the current direction. |
| `pumpctl.fan` | `Fan`: power (`power_on`, `power_off`), PWM duty as a fraction (`set_pwm`, `pwm_on`, `pwm_off`) and tachometer speed in rpm (`capture_on`, `capture_off`, `record_overflow`, `update_speed`). |
| `pumpctl.pmbus` | PMBus number formats (`linear11_to_float`, `encode_ulinear16`, `decode_ulinear16`) and status registers (`StatusWord`, `StatusVout`, `describe_status_word`, `describe_vout_status`). |
| `pumpctl.tps546d24a` | `Tps546d24a`: the PMBus buck regulator that sets the pump current: `initialize` (with read-back verification), `set_vout`, `get_vout`, `get_iout`, `get_temperature`, `soft_on`, `soft_off`, `set_vout_max`, `set_vout_min`, `set_switching_frequency`, `set_iout_gain`, `set_iout_offset`, `query_status` and `query_vout_status`. |
| `pumpctl.control_loop` | `pump_driver(regulator, adc, controller, send)`: one tick of the constant-current loop. It samples AIN1 against AVSS, sends the current in milliamperes to the host as a `SEND_FACT` frame through `send`, runs the PID and sets the regulator output voltage. It returns the measured current in amperes. |

## Hardware interfaces you supply

The drivers only call methods on the objects you pass in:

- `Ads1220(spi, drdy, delay_ms)`: `spi.transmit(data, timeout_ms)` and
  `spi.transfer(data, timeout_ms) -> bytes` (full duplex), raising
  `TimeoutError` or another `OSError` on failure; `drdy.read() -> bool`, true
  while the pin is high; `delay_ms()` waits one millisecond (default
  `time.sleep`).
- `Drv8412(nsleep, pwm_a_timer, pwm_a_channel, pwm_b_timer, pwm_b_channel)`:
  `nsleep.write(level)`; timers with `period`, `start(channel)`,
  `stop(channel)` and `set_compare(channel, value)`.
- `Fan(power_pin, pwm_timer, pwm_channel, fg_timer, fg_channel)`: the PWM timer
  additionally has `prescaler`; the FG timer offers `start()`, `stop()`,
  `start_capture(channel)`, `stop_capture(channel)`, `read_capture(channel)` and
  `set_counter(value)`.
- `Tps546d24a(bus, address=0x48)`: `bus.write(address, command, data)` and
  `bus.read(address, command, size) -> bytes`, raising `OSError` on failure.

## Errors

Failures are raised as exceptions. There are no status codes to check.

- `Ads1220Error` for an unbound interface or a failed transfer, and its
  subclass `Ads1220Timeout` when DRDY does not fall in time, a reset does not
  complete, or no monitoring sample could be read.
- `Drv8412Error`, `FanError` and `Tps546d24aError` for unbound interfaces or
  bus failures. `Tps546d24a.initialize` also raises `Tps546d24aError` when
  registers read back differently from what was written.
- `ValueError` for arguments out of range, such as duty cycles, voltage limits,
  sample counts or register values.

## Example: applying host commands to a controller

```python
from pumpctl.pid import PidController
from pumpctl.protocol import (
    CURVES_CH1, Command, FrameParser, encode_frame, pack_floats, pack_ints,
)

controller = PidController(id=1, out_max=5.5, out_min=0.25)
parser = FrameParser()
parser.feed(encode_frame(Command.SET_PID, CURVES_CH1, pack_floats([1.5, 0.25, 0.0])))
parser.feed(encode_frame(Command.SET_TARGET, CURVES_CH1, pack_ints([2500])))

handled = process_commands(parser, controller)
# handled == [Command.SET_PID, Command.SET_TARGET]
# controller.kp == 1.5, controller.target == 2.5
```

`process_commands` also accepts `on_start`, `on_stop` and `on_reset`
callbacks, each called with the controller when the matching command arrives.
It stops at the first frame that is not a host command.

## What this package does not do

- It ships no hardware adapters. It does not open SPI, I²C/PMBus, GPIO, timer
  or serial devices itself. You provide objects with the methods listed above.
- It has no command-line program, no scheduler and no serial-port handling.
  Calling `pump_driver` periodically and moving bytes between the port and a
  `FrameParser` or `send` callback is left to your application.
- The control loop regulates current only. No temperature loop ties `Ntc`,
  `Drv8412` and a second controller together, although those parts can be
  combined by hand.

## Requirements

Python 3.10 or later. The package has no third-party runtime dependencies.
Tests use `pytest` and `hypothesis` (`pip install .[test]`).