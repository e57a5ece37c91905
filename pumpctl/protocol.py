"""Framed serial protocol spoken with the PID tuning host.

Every frame is laid out little-endian as::

    header (u32 = 0x59485A53) | channel (u8) | length (u32) | command (u8)
    | payload ... | checksum (u8)

``length`` counts the whole frame, checksum included.  The checksum is the
byte-wise sum, modulo 256, of every byte that precedes it.
"""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional

from .pid import PidController

FRAME_HEADER = 0x59485A53
HEADER_BYTES = struct.pack("<I", FRAME_HEADER)
_PREFIX = struct.Struct("<IBIB")
PREFIX_SIZE = _PREFIX.size
CHECKSUM_SIZE = 1
MIN_FRAME_SIZE = PREFIX_SIZE + CHECKSUM_SIZE
RECEIVE_BUFFER_SIZE = 128

CHANNEL_INDEX = 4
LENGTH_INDEX = 5
COMMAND_INDEX = 9

CURVES_CH1 = 0x01
CURVES_CH2 = 0x02
CURVES_CH3 = 0x03
CURVES_CH4 = 0x04
CURVES_CH5 = 0x05


class Command(enum.IntEnum):
    """Frame commands, device-to-host (0x0_) and host-to-device (0x1_)."""

    SEND_TARGET = 0x01
    SEND_FACT = 0x02
    SEND_PID = 0x03
    SEND_START = 0x04
    SEND_STOP = 0x05
    SEND_PERIOD = 0x06

    SET_PID = 0x10
    SET_TARGET = 0x11
    START = 0x12
    STOP = 0x13
    RESET = 0x14
    SET_PERIOD = 0x15

    NONE = 0xFF


def checksum(data: bytes, init: int = 0) -> int:
    """Return the 8-bit additive checksum of ``data`` starting from ``init``."""
    return (init + sum(data)) & 0xFF


def pack_floats(values: Iterable[float]) -> bytes:
    """Pack values as little-endian 32-bit floats."""
    values = list(values)
    return struct.pack(f"<{len(values)}f", *values)


def pack_ints(values: Iterable[int]) -> bytes:
    """Pack values as little-endian signed 32-bit integers."""
    values = list(values)
    return struct.pack(f"<{len(values)}i", *values)


def encode_frame(command: int, channel: int, payload: bytes = b"") -> bytes:
    """Build a complete frame carrying ``payload``."""
    if not 0 <= int(command) <= 0xFF:
        raise ValueError(f"command out of range: {command}")
    if not 0 <= channel <= 0xFF:
        raise ValueError(f"channel out of range: {channel}")
    length = MIN_FRAME_SIZE + len(payload)
    body = _PREFIX.pack(FRAME_HEADER, channel, length, int(command)) + bytes(payload)
    return body + bytes([checksum(body)])


def send_pid_params(controller: PidController, channel: int) -> bytes:
    """Return the frame that reports the controller's gains to the host."""
    return encode_frame(
        Command.SEND_PID, channel, pack_floats((controller.kp, controller.ki, controller.kd))
    )


@dataclass(frozen=True)
class Frame:
    """A decoded frame."""

    command: int
    channel: int
    payload: bytes = b""

    def floats(self) -> List[float]:
        """Decode the payload as little-endian 32-bit floats."""
        count = len(self.payload) // 4
        return list(struct.unpack_from(f"<{count}f", self.payload))

    def ints(self) -> List[int]:
        """Decode the payload as little-endian signed 32-bit integers."""
        count = len(self.payload) // 4
        return list(struct.unpack_from(f"<{count}i", self.payload))

    def encode(self) -> bytes:
        """Return the wire form of this frame."""
        return encode_frame(self.command, self.channel, self.payload)


class FrameParser:
    """Accumulates received bytes and extracts checksummed frames.

    At most ``capacity`` unparsed bytes are held; when more arrive the oldest
    are dropped.  A frame longer than ``capacity`` can never be received.
    """

    def __init__(self, capacity: int = RECEIVE_BUFFER_SIZE) -> None:
        if capacity < MIN_FRAME_SIZE:
            raise ValueError(f"capacity must be at least {MIN_FRAME_SIZE}")
        self.capacity = capacity
        self._buffer = bytearray()

    def __len__(self) -> int:
        return len(self._buffer)

    def feed(self, data: bytes) -> None:
        """Append received bytes."""
        self._buffer.extend(data)
        overflow = len(self._buffer) - self.capacity
        if overflow > 0:
            del self._buffer[:overflow]

    def next_frame(self) -> Optional[Frame]:
        """Return the next valid frame, or ``None`` if none is complete yet."""
        buf = self._buffer
        while True:
            index = buf.find(HEADER_BYTES)
            if index < 0:
                # The tail may hold the start of a header split across reads.
                keep = len(HEADER_BYTES) - 1
                if len(buf) > keep:
                    del buf[: len(buf) - keep]
                return None
            del buf[:index]
            if len(buf) < PREFIX_SIZE:
                return None
            _, channel, length, command = _PREFIX.unpack_from(buf)
            if length < MIN_FRAME_SIZE or length > self.capacity:
                del buf[:1]
                continue
            if len(buf) < length:
                return None
            raw = bytes(buf[:length])
            if checksum(raw[:-1]) != raw[-1]:
                # The header was a chance match inside other data.
                del buf[:1]
                continue
            del buf[:length]
            try:
                command = Command(command)
            except ValueError:
                pass
            return Frame(command, channel, raw[PREFIX_SIZE:-1])

    def frames(self) -> Iterator[Frame]:
        """Yield every complete frame currently buffered."""
        while (frame := self.next_frame()) is not None:
            yield frame


Callback = Optional[Callable[[PidController], None]]


def process_commands(
    parser: FrameParser,
    controller: PidController,
    on_start: Callback = None,
    on_stop: Callback = None,
    on_reset: Callback = None,
) -> List[int]:
    """Apply host commands from ``parser`` to ``controller``.

    Processing stops at the first frame whose command is not a host command.
    Returns the commands that were handled, in order.
    """
    handled: List[int] = []
    for frame in parser.frames():
        command = frame.command
        if command == Command.SET_PID:
            gains = frame.floats()
            if len(gains) < 3:
                raise ValueError("SET_PID frame carries fewer than three gains")
            controller.set_gains(*gains[:3])
        elif command == Command.SET_TARGET:
            values = frame.ints()
            if not values:
                raise ValueError("SET_TARGET frame carries no value")
            controller.target = values[0] / 1000
        elif command == Command.START:
            if on_start is not None:
                on_start(controller)
        elif command == Command.STOP:
            if on_stop is not None:
                on_stop(controller)
        elif command == Command.RESET:
            if on_reset is not None:
                on_reset(controller)
        elif command == Command.SET_PERIOD:
            pass
        else:
            break
        handled.append(command)
    return handled