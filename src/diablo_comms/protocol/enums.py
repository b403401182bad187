"""Tag sets and protocol-wide constants.

Every enumeration is carried on the wire as a single unsigned byte. The
integer values are part of the protocol and must never be renumbered.
"""

from __future__ import annotations

from enum import IntEnum

PROTOCOL_VERSION = 1

# Board provisioning ceilings. The codec does not reject packets that exceed
# them; boards use chunks_per_packet() to size their SENSOR_DATA batches.
MAX_SENSORS_PER_BOARD = 10
MAX_ACTUATORS_PER_BOARD = 10
MAX_CHUNKS_PER_PACKET = 10
MAX_PACKET_SIZE = 512

MAX_COUNT = 0xFF  # every count field is one byte wide
MAX_U8 = 0xFF
MAX_U32 = 0xFFFFFFFF


class PacketType(IntEnum):
    """Packet type tag, the first byte of every packet."""

    BOARD_HEARTBEAT = 1
    SERVER_HEARTBEAT = 2
    SENSOR_DATA = 3
    ACTUATOR_COMMAND = 4
    SENSOR_CONFIG = 5
    ACTUATOR_CONFIG = 6
    ABORT = 7
    ABORT_DONE = 8
    CLEAR_ABORT = 9


class BoardType(IntEnum):
    """Physical kind of field board, reported in its heartbeat."""

    UNKNOWN = 0
    PRESSURE_TRANSDUCER = 1
    LOAD_CELL = 2
    RTD = 3
    THERMOCOUPLE = 4
    ACTUATOR = 5


class BoardState(IntEnum):
    """Operational state of a single board."""

    SETUP = 1
    ACTIVE = 2
    ABORT = 3
    ABORT_DONE = 4


class EngineState(IntEnum):
    """Overall engine state, broadcast by the coordinator."""

    SAFE = 0
    PRESSURIZING = 1
    LOX_FILL = 2
    FIRING = 3
    POST_FIRE = 4


class ActuatorPurpose(IntEnum):
    """Role an actuator plays in the abort sequence."""

    UNKNOWN = 0
    FUEL_MAIN = 1
    LOX_MAIN = 2
    FUEL_VENT = 3
    LOX_VENT = 4
    FUEL_PRESS = 5
    LOX_PRESS = 6
    PURGE = 7


class PTPurpose(IntEnum):
    """Role a pressure transducer plays in the abort sequence."""

    UNKNOWN = 0
    FUEL_TANK = 1
    LOX_TANK = 2
    PRESSURANT = 3
    CHAMBER = 4
    FUEL_INJECTOR = 5
    LOX_INJECTOR = 6


def to_enum(enum_cls: type[IntEnum], value: int) -> IntEnum | None:
    """Map a raw wire byte onto ``enum_cls``, or ``None`` if it is unknown."""
    try:
        return enum_cls(value)
    except ValueError:
        return None
