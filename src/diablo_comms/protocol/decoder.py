"""Packet decoders: validated bytes -> typed bodies.

Decoding is type-directed: the caller names the packet type it expects,
usually after one :func:`~diablo_comms.protocol.framing.peek_header`. Every
decoder follows the same order of checks:

1. ``None`` or shorter than a header       -> BUFFER_TOO_SMALL
2. header type is not the expected type    -> TYPE_MISMATCH
3. shorter than header + fixed body        -> BUFFER_TOO_SMALL
4. counts imply more bytes than present    -> TRUNCATED
5. unknown enum value / bad flag / count policy -> UNKNOWN_TAG,
   FIELD_OUT_OF_RANGE, COUNT_OUT_OF_RANGE

No field is read before its byte range is known to be inside the buffer.
Bytes past the end of the declared packet are ignored.
"""

from __future__ import annotations

from typing import Callable, Union

from ..models.actuator import (
    AbortActuatorLocation,
    AbortPTLocation,
    ActuatorCommand,
    ActuatorCommandBatch,
    ActuatorConfig,
)
from ..models.heartbeat import Abort, AbortDone, BoardHeartbeat, ClearAbort, ServerHeartbeat
from ..models.packet import Packet
from ..models.sensor_config import SensorConfig
from ..models.sensor_data import SensorData, SensorDataChunk, SensorDatapoint
from .config import DEFAULT_CONFIG, CodecConfig
from .enums import (
    ActuatorPurpose,
    BoardState,
    BoardType,
    EngineState,
    PacketType,
    PTPurpose,
    to_enum,
)
from .errors import ErrorKind, Failure, fail
from .framing import (
    ACTUATOR_COMMAND_FMT,
    ACTUATOR_COMMAND_SIZE,
    ACTUATOR_CONFIG_FMT,
    ACTUATOR_CONFIG_SIZE,
    BOARD_HEARTBEAT_FMT,
    BOARD_HEARTBEAT_SIZE,
    CHUNK_FMT,
    CHUNK_SIZE,
    COMMAND_FMT,
    COMMAND_SIZE,
    COUNT_FMT,
    COUNT_SIZE,
    DATAPOINT_FMT,
    DATAPOINT_SIZE,
    FLAG_FMT,
    FLAG_SIZE,
    HEADER_SIZE,
    IP_FMT,
    IP_SIZE,
    LOCATION_FMT,
    LOCATION_SIZE,
    SENSOR_DATA_FMT,
    SENSOR_DATA_SIZE,
    SERVER_HEARTBEAT_FMT,
    SERVER_HEARTBEAT_SIZE,
    Buffer,
    Header,
    Reader,
    peek_header,
    unpack_header,
)

Opened = Union[tuple[Header, Reader], Failure]


def _open(
    buffer: Buffer | None,
    expected: PacketType,
    body_size: int,
    config: CodecConfig,
) -> Opened:
    """Run the checks shared by every decoder and position a reader on the body."""
    available = 0 if buffer is None else len(buffer)
    if available < HEADER_SIZE:
        return fail(
            ErrorKind.BUFFER_TOO_SMALL,
            f"need {HEADER_SIZE} bytes for a header, got {available}",
        )

    header = unpack_header(buffer, config)
    if header.packet_type != expected:
        return fail(
            ErrorKind.TYPE_MISMATCH,
            f"expected {expected.name}, header says 0x{header.packet_type:02X}",
        )

    needed = HEADER_SIZE + body_size
    if available < needed:
        return fail(
            ErrorKind.BUFFER_TOO_SMALL,
            f"{expected.name} needs at least {needed} bytes, got {available}",
        )

    header = Header(expected, header.version, header.timestamp)
    return header, Reader(buffer, config, offset=HEADER_SIZE)


def _require(buffer: Buffer, needed: int, what: str) -> Failure | None:
    if len(buffer) < needed:
        return fail(
            ErrorKind.TRUNCATED,
            f"{what} implies {needed} bytes, buffer holds {len(buffer)}",
        )
    return None


def _enum_field(enum_cls, name: str, raw: int):
    value = to_enum(enum_cls, raw)
    if value is None:
        return fail(ErrorKind.UNKNOWN_TAG, f"{name}=0x{raw:02X} is not a {enum_cls.__name__}")
    return value


def _flag_field(name: str, raw: int) -> bool | Failure:
    if raw not in (0, 1):
        return fail(ErrorKind.FIELD_OUT_OF_RANGE, f"{name} must be 0 or 1, got {raw}")
    return bool(raw)


def decode_board_heartbeat(
    buffer: Buffer | None, *, config: CodecConfig = DEFAULT_CONFIG
) -> Packet | Failure:
    opened = _open(buffer, PacketType.BOARD_HEARTBEAT, BOARD_HEARTBEAT_SIZE, config)
    if not opened:
        return opened
    header, reader = opened

    raw_type, board_id, raw_engine, raw_state = reader.read(BOARD_HEARTBEAT_FMT)
    board_type = _enum_field(BoardType, "board_type", raw_type)
    engine_state = _enum_field(EngineState, "engine_state", raw_engine)
    board_state = _enum_field(BoardState, "board_state", raw_state)
    for value in (board_type, engine_state, board_state):
        if isinstance(value, Failure):
            return value

    body = BoardHeartbeat(
        board_type=board_type,
        board_id=board_id,
        engine_state=engine_state,
        board_state=board_state,
    )
    return Packet(header=header, body=body)


def decode_server_heartbeat(
    buffer: Buffer | None, *, config: CodecConfig = DEFAULT_CONFIG
) -> Packet | Failure:
    opened = _open(buffer, PacketType.SERVER_HEARTBEAT, SERVER_HEARTBEAT_SIZE, config)
    if not opened:
        return opened
    header, reader = opened

    engine_state = _enum_field(EngineState, "engine_state", reader.read_one(SERVER_HEARTBEAT_FMT))
    if isinstance(engine_state, Failure):
        return engine_state
    return Packet(header=header, body=ServerHeartbeat(engine_state=engine_state))


def decode_sensor_data(
    buffer: Buffer | None, *, config: CodecConfig = DEFAULT_CONFIG
) -> Packet | Failure:
    """Decode a SENSOR_DATA packet into its chunks.

    The declared ``num_chunks`` and ``num_sensors`` are trusted only after
    the buffer is confirmed to hold every chunk they imply.
    """
    opened = _open(buffer, PacketType.SENSOR_DATA, SENSOR_DATA_SIZE, config)
    if not opened:
        return opened
    header, reader = opened

    num_chunks, num_sensors = reader.read(SENSOR_DATA_FMT)
    per_chunk = CHUNK_SIZE + num_sensors * DATAPOINT_SIZE
    failure = _require(
        buffer,
        HEADER_SIZE + SENSOR_DATA_SIZE + num_chunks * per_chunk,
        f"{num_chunks} chunks of {num_sensors} sensors",
    )
    if failure is not None:
        return failure
    if num_chunks == 0 and not config.allow_empty_sensor_data:
        return fail(ErrorKind.COUNT_OUT_OF_RANGE, "sensor data packet has no chunks")

    body = SensorData(num_sensors=num_sensors)
    for _ in range(num_chunks):
        chunk = SensorDataChunk(
            timestamp=reader.read_one(CHUNK_FMT), capacity=num_sensors
        )
        for _ in range(num_sensors):
            sensor_id, value = reader.read(DATAPOINT_FMT)
            chunk.datapoints.append(SensorDatapoint(sensor_id, value))
        body.chunks.append(chunk)
    return Packet(header=header, body=body)


def decode_actuator_command(
    buffer: Buffer | None, *, config: CodecConfig = DEFAULT_CONFIG
) -> Packet | Failure:
    """Decode an ACTUATOR_COMMAND packet.

    A zero count is rejected unless ``config.allow_empty_actuator_command``.
    """
    opened = _open(buffer, PacketType.ACTUATOR_COMMAND, ACTUATOR_COMMAND_SIZE, config)
    if not opened:
        return opened
    header, reader = opened

    num_commands = reader.read_one(ACTUATOR_COMMAND_FMT)
    failure = _require(
        buffer,
        HEADER_SIZE + ACTUATOR_COMMAND_SIZE + num_commands * COMMAND_SIZE,
        f"{num_commands} actuator commands",
    )
    if failure is not None:
        return failure
    if num_commands == 0 and not config.allow_empty_actuator_command:
        return fail(ErrorKind.COUNT_OUT_OF_RANGE, "actuator command packet has no commands")

    commands = [ActuatorCommand(*reader.read(COMMAND_FMT)) for _ in range(num_commands)]
    return Packet(header=header, body=ActuatorCommandBatch(commands=commands))


def decode_actuator_config(
    buffer: Buffer | None, *, config: CodecConfig = DEFAULT_CONFIG
) -> Packet | Failure:
    """Decode an ACTUATOR_CONFIG packet.

    Table sizes are not on the wire; both ends use the slot counts from
    ``config``.
    """
    opened = _open(buffer, PacketType.ACTUATOR_CONFIG, ACTUATOR_CONFIG_SIZE, config)
    if not opened:
        return opened
    header, reader = opened

    records = config.abort_actuator_slots + config.abort_pt_slots
    failure = _require(
        buffer,
        HEADER_SIZE + ACTUATOR_CONFIG_SIZE + records * LOCATION_SIZE,
        f"{records} abort location records",
    )
    if failure is not None:
        return failure
    if records == 0 and not config.allow_empty_actuator_config:
        return fail(ErrorKind.COUNT_OUT_OF_RANGE, "actuator config has no records")

    is_controller = _flag_field("is_abort_controller", reader.read_one(ACTUATOR_CONFIG_FMT))
    if isinstance(is_controller, Failure):
        return is_controller

    body = ActuatorConfig(is_abort_controller=is_controller)
    for _ in range(config.abort_actuator_slots):
        ip, actuator_id, raw_purpose = reader.read(LOCATION_FMT)
        purpose = _enum_field(ActuatorPurpose, "actuator purpose", raw_purpose)
        if isinstance(purpose, Failure):
            return purpose
        body.actuator_locations.append(AbortActuatorLocation(ip, actuator_id, purpose))
    for _ in range(config.abort_pt_slots):
        ip, sensor_id, raw_purpose = reader.read(LOCATION_FMT)
        purpose = _enum_field(PTPurpose, "PT purpose", raw_purpose)
        if isinstance(purpose, Failure):
            return purpose
        body.pt_locations.append(AbortPTLocation(ip, sensor_id, purpose))
    return Packet(header=header, body=body)


def decode_sensor_config(
    buffer: Buffer | None, *, config: CodecConfig = DEFAULT_CONFIG
) -> Packet | Failure:
    opened = _open(buffer, PacketType.SENSOR_CONFIG, COUNT_SIZE, config)
    if not opened:
        return opened
    header, reader = opened

    num_sensors = reader.read_one(COUNT_FMT)
    needed = HEADER_SIZE + COUNT_SIZE + num_sensors + FLAG_SIZE
    failure = _require(buffer, needed, f"{num_sensors} sensor ids")
    if failure is not None:
        return failure

    sensor_ids = [reader.read_one(COUNT_FMT) for _ in range(num_sensors)]
    necessary = _flag_field("necessary_for_abort", reader.read_one(FLAG_FMT))
    if isinstance(necessary, Failure):
        return necessary

    controller_ip = 0
    if necessary:
        failure = _require(buffer, needed + IP_SIZE, "abort controller address")
        if failure is not None:
            return failure
        controller_ip = reader.read_one(IP_FMT)

    body = SensorConfig(
        sensor_ids=sensor_ids,
        necessary_for_abort=necessary,
        controller_ip=controller_ip,
    )
    return Packet(header=header, body=body)


def _signal_decoder(packet_type: PacketType, body_cls: type):
    def decode_signal(
        buffer: Buffer | None, *, config: CodecConfig = DEFAULT_CONFIG
    ) -> Packet | Failure:
        opened = _open(buffer, packet_type, 0, config)
        if not opened:
            return opened
        header, _ = opened
        return Packet(header=header, body=body_cls())

    decode_signal.__name__ = f"decode_{packet_type.name.lower()}"
    decode_signal.__doc__ = f"Decode a header-only {packet_type.name} packet."
    return decode_signal


decode_abort = _signal_decoder(PacketType.ABORT, Abort)
decode_abort_done = _signal_decoder(PacketType.ABORT_DONE, AbortDone)
decode_clear_abort = _signal_decoder(PacketType.CLEAR_ABORT, ClearAbort)


DECODERS: dict[PacketType, Callable[..., Union[Packet, Failure]]] = {
    PacketType.BOARD_HEARTBEAT: decode_board_heartbeat,
    PacketType.SERVER_HEARTBEAT: decode_server_heartbeat,
    PacketType.SENSOR_DATA: decode_sensor_data,
    PacketType.ACTUATOR_COMMAND: decode_actuator_command,
    PacketType.SENSOR_CONFIG: decode_sensor_config,
    PacketType.ACTUATOR_CONFIG: decode_actuator_config,
    PacketType.ABORT: decode_abort,
    PacketType.ABORT_DONE: decode_abort_done,
    PacketType.CLEAR_ABORT: decode_clear_abort,
}


def decode(
    buffer: Buffer | None,
    expected: PacketType,
    *,
    config: CodecConfig = DEFAULT_CONFIG,
) -> Packet | Failure:
    """Decode ``buffer`` as a packet of type ``expected``."""
    return DECODERS[PacketType(expected)](buffer, config=config)


def decode_any(
    buffer: Buffer | None, *, config: CodecConfig = DEFAULT_CONFIG
) -> Packet | Failure:
    """Read the header once, then decode with the matching typed decoder."""
    header = peek_header(buffer, config)
    if not header:
        return header
    return DECODERS[header.packet_type](buffer, config=config)
