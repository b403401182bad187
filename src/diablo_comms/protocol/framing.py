"""Packet header codec and shared layout helpers.

Packet layout::

    +-------------+---------+-----------+---------------------------------+
    | Packet Type | Version | Timestamp |              Body               |
    | 1 byte      | 1 byte  | 4 bytes   | type-specific, possibly variable|
    +-------------+---------+-----------+---------------------------------+

- Packet Type: :class:`~diablo_comms.protocol.enums.PacketType` tag
- Version: protocol version the sender used
- Timestamp: sender-local monotonic counter, opaque to receivers
- Fields are tightly packed; there is no padding anywhere in a packet

Multi-byte fields use the byte order chosen in
:class:`~diablo_comms.protocol.config.CodecConfig`, one order for the whole
protocol.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from functools import lru_cache
from typing import Union

from .config import DEFAULT_CONFIG, CodecConfig
from .enums import MAX_U8, MAX_U32, PacketType
from .errors import ErrorKind, Failure, fail

Buffer = Union[bytes, bytearray, memoryview]

# struct formats, without byte-order prefix
HEADER_FMT = "BBI"
BOARD_HEARTBEAT_FMT = "BBBB"   # board_type, board_id, engine_state, board_state
SERVER_HEARTBEAT_FMT = "B"     # engine_state
SENSOR_DATA_FMT = "BB"         # num_chunks, num_sensors
CHUNK_FMT = "I"                # chunk timestamp
DATAPOINT_FMT = "BI"           # sensor_id, value
ACTUATOR_COMMAND_FMT = "B"     # num_commands
COMMAND_FMT = "BB"             # actuator_id, actuator_state
ACTUATOR_CONFIG_FMT = "B"      # is_abort_controller
LOCATION_FMT = "IBB"           # ip, local id, purpose
COUNT_FMT = "B"
FLAG_FMT = "B"
IP_FMT = "I"


def size_of(fmt: str) -> int:
    """Packed size of ``fmt``; identical for either byte order."""
    return struct.calcsize("<" + fmt)


HEADER_SIZE = size_of(HEADER_FMT)                        # 6
BOARD_HEARTBEAT_SIZE = size_of(BOARD_HEARTBEAT_FMT)      # 4
SERVER_HEARTBEAT_SIZE = size_of(SERVER_HEARTBEAT_FMT)    # 1
SENSOR_DATA_SIZE = size_of(SENSOR_DATA_FMT)              # 2
CHUNK_SIZE = size_of(CHUNK_FMT)                          # 4
DATAPOINT_SIZE = size_of(DATAPOINT_FMT)                  # 5
ACTUATOR_COMMAND_SIZE = size_of(ACTUATOR_COMMAND_FMT)    # 1
COMMAND_SIZE = size_of(COMMAND_FMT)                      # 2
ACTUATOR_CONFIG_SIZE = size_of(ACTUATOR_CONFIG_FMT)      # 1
LOCATION_SIZE = size_of(LOCATION_FMT)                    # 6
COUNT_SIZE = size_of(COUNT_FMT)                          # 1
FLAG_SIZE = size_of(FLAG_FMT)                            # 1
IP_SIZE = size_of(IP_FMT)                                # 4


@lru_cache(maxsize=None)
def layout(fmt: str, byte_order: str) -> struct.Struct:
    """Compiled, padding-free ``struct.Struct`` for ``fmt``."""
    prefix = ">" if byte_order == "big" else "<"
    return struct.Struct(prefix + fmt)


@dataclass(frozen=True)
class Header:
    """The fixed leading bytes of every packet.

    ``packet_type`` is a :class:`PacketType` once the packet has been
    decoded by its typed decoder; :func:`unpack_header` leaves it as the raw
    byte so that any byte pattern can be represented.
    """

    packet_type: int
    version: int
    timestamp: int

    def to_dict(self) -> dict:
        try:
            type_name = PacketType(self.packet_type).name
        except ValueError:
            type_name = f"0x{self.packet_type:02X}"
        return {
            "packet_type": type_name,
            "version": self.version,
            "timestamp": self.timestamp,
        }


class Writer:
    """Forward-only packer over a caller-owned buffer.

    Callers confirm the whole packet fits before creating a writer, so the
    writer itself never sees a short buffer.
    """

    def __init__(self, buffer: Buffer, config: CodecConfig) -> None:
        self._buffer = buffer
        self._order = config.byte_order
        self.offset = 0

    def write(self, fmt: str, *values: int) -> None:
        packer = layout(fmt, self._order)
        packer.pack_into(self._buffer, self.offset, *values)
        self.offset += packer.size


class Reader:
    """Forward-only unpacker. Each field is read exactly once."""

    def __init__(self, buffer: Buffer, config: CodecConfig, offset: int = 0) -> None:
        self._buffer = buffer
        self._order = config.byte_order
        self.offset = offset

    def read(self, fmt: str) -> tuple:
        unpacker = layout(fmt, self._order)
        values = unpacker.unpack_from(self._buffer, self.offset)
        self.offset += unpacker.size
        return values

    def read_one(self, fmt: str) -> int:
        return self.read(fmt)[0]


def pack_header(
    buffer: Buffer,
    packet_type: PacketType,
    timestamp: int,
    config: CodecConfig = DEFAULT_CONFIG,
) -> Writer:
    """Write a header at offset 0 and return a writer positioned after it."""
    writer = Writer(buffer, config)
    writer.write(HEADER_FMT, int(packet_type), config.version, timestamp)
    return writer


def unpack_header(buffer: Buffer, config: CodecConfig = DEFAULT_CONFIG) -> Header:
    """Read the header of a buffer already known to hold ``HEADER_SIZE`` bytes."""
    packet_type, version, timestamp = layout(HEADER_FMT, config.byte_order).unpack_from(
        buffer, 0
    )
    return Header(packet_type=packet_type, version=version, timestamp=timestamp)


def peek_header(
    buffer: Buffer | None, config: CodecConfig = DEFAULT_CONFIG
) -> Header | Failure:
    """Inspect the header of any packet without decoding its body.

    Returns:
        The :class:`Header` with ``packet_type`` as a :class:`PacketType`,
        or a :class:`Failure` if the buffer cannot hold a header or its
        first byte is not a known packet type.
    """
    if buffer is None or len(buffer) < HEADER_SIZE:
        return fail(
            ErrorKind.BUFFER_TOO_SMALL,
            f"need {HEADER_SIZE} bytes for a header, "
            f"got {0 if buffer is None else len(buffer)}",
        )
    header = unpack_header(buffer, config)
    try:
        packet_type = PacketType(header.packet_type)
    except ValueError:
        return fail(
            ErrorKind.UNKNOWN_TAG, f"unknown packet type 0x{header.packet_type:02X}"
        )
    return Header(packet_type, header.version, header.timestamp)


def check_u8(name: str, value: int) -> Failure | None:
    if not 0 <= value <= MAX_U8:
        return fail(ErrorKind.FIELD_OUT_OF_RANGE, f"{name} must be 0-255, got {value}")
    return None


def check_u32(name: str, value: int) -> Failure | None:
    if not 0 <= value <= MAX_U32:
        return fail(
            ErrorKind.FIELD_OUT_OF_RANGE, f"{name} must fit in 32 bits, got {value}"
        )
    return None
