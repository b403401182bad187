"""Packet encoders: typed bodies -> bytes in a caller-supplied buffer.

Every encoder has the same shape::

    encode_x(body, buffer, *, timestamp=None, config=DEFAULT_CONFIG) -> int | Failure

and returns the number of bytes written starting at offset 0. The body is
fully validated, and the buffer checked for room, before the first byte is
written. A rejected encode leaves the buffer untouched.
"""

from __future__ import annotations

from typing import Callable, NamedTuple, Optional

from ..models.actuator import ActuatorCommandBatch, ActuatorConfig
from ..models.heartbeat import Abort, AbortDone, BoardHeartbeat, ClearAbort, ServerHeartbeat
from ..models.packet import Body
from ..models.sensor_config import SensorConfig
from ..models.sensor_data import SensorData
from .config import DEFAULT_CONFIG, CodecConfig
from .enums import (
    MAX_CHUNKS_PER_PACKET,
    MAX_COUNT,
    MAX_PACKET_SIZE,
    MAX_U32,
    ActuatorPurpose,
    BoardState,
    BoardType,
    EngineState,
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
    Writer,
    check_u8,
    check_u32,
    pack_header,
)

Check = Optional[Failure]


class _BodyCodec(NamedTuple):
    validate: Callable[[Body, CodecConfig], Check]
    size: Callable[[Body], int]
    write: Callable[[Writer, Body], None]


def _check_enum(name: str, enum_cls, value) -> Check:
    if to_enum(enum_cls, int(value)) is None:
        return fail(ErrorKind.UNKNOWN_TAG, f"{name}={value} is not a {enum_cls.__name__}")
    return None


def _first_failure(*checks: Check) -> Check:
    for check in checks:
        if check is not None:
            return check
    return None


def _check_flag(name: str, value) -> Check:
    if value not in (0, 1):  # True/False compare equal to 1/0
        return fail(ErrorKind.FIELD_OUT_OF_RANGE, f"{name} must be a boolean, got {value!r}")
    return None


# ─── BOARD HEARTBEAT ──────────────────────────────────────────────────

def _validate_board_heartbeat(body: BoardHeartbeat, config: CodecConfig) -> Check:
    return _first_failure(
        _check_enum("board_type", BoardType, body.board_type),
        check_u8("board_id", body.board_id),
        _check_enum("engine_state", EngineState, body.engine_state),
        _check_enum("board_state", BoardState, body.board_state),
    )


def _write_board_heartbeat(writer: Writer, body: BoardHeartbeat) -> None:
    writer.write(
        BOARD_HEARTBEAT_FMT,
        int(body.board_type),
        body.board_id,
        int(body.engine_state),
        int(body.board_state),
    )


# ─── SERVER HEARTBEAT ─────────────────────────────────────────────────

def _validate_server_heartbeat(body: ServerHeartbeat, config: CodecConfig) -> Check:
    return _check_enum("engine_state", EngineState, body.engine_state)


def _write_server_heartbeat(writer: Writer, body: ServerHeartbeat) -> None:
    writer.write(SERVER_HEARTBEAT_FMT, int(body.engine_state))


# ─── SENSOR DATA ──────────────────────────────────────────────────────

def _validate_sensor_data(body: SensorData, config: CodecConfig) -> Check:
    if not 0 <= body.num_sensors <= MAX_COUNT:
        return fail(
            ErrorKind.COUNT_OUT_OF_RANGE,
            f"num_sensors must be 0-{MAX_COUNT}, got {body.num_sensors}",
        )
    if body.num_chunks > MAX_COUNT:
        return fail(
            ErrorKind.COUNT_OUT_OF_RANGE,
            f"at most {MAX_COUNT} chunks per packet, got {body.num_chunks}",
        )
    if body.num_chunks == 0 and not config.allow_empty_sensor_data:
        return fail(ErrorKind.COUNT_OUT_OF_RANGE, "sensor data packet has no chunks")

    for index, chunk in enumerate(body.chunks):
        if chunk.size() != body.num_sensors:
            return fail(
                ErrorKind.COUNT_OUT_OF_RANGE,
                f"chunk {index} holds {chunk.size()} datapoints, "
                f"packet declares {body.num_sensors}",
            )
        failure = check_u32(f"chunk {index} timestamp", chunk.timestamp)
        if failure is not None:
            return failure
        for dp in chunk.datapoints:
            failure = _first_failure(
                check_u8("sensor_id", dp.sensor_id),
                check_u32(f"sensor {dp.sensor_id} value", dp.value),
            )
            if failure is not None:
                return failure
    return None


def sensor_data_size(num_chunks: int, num_sensors: int) -> int:
    """Encoded size of a SENSOR_DATA packet with the given counts."""
    per_chunk = CHUNK_SIZE + num_sensors * DATAPOINT_SIZE
    return HEADER_SIZE + SENSOR_DATA_SIZE + num_chunks * per_chunk


def chunks_per_packet(
    num_sensors: int,
    max_packet_size: int = MAX_PACKET_SIZE,
    max_chunks: int = MAX_CHUNKS_PER_PACKET,
) -> int:
    """How many chunks of ``num_sensors`` readings fit one SENSOR_DATA packet.

    Bounded by ``max_packet_size``, ``max_chunks`` and the one-byte count.
    Returns 0 when not even a single chunk fits.
    """
    per_chunk = CHUNK_SIZE + num_sensors * DATAPOINT_SIZE
    room = max_packet_size - HEADER_SIZE - SENSOR_DATA_SIZE
    if room < per_chunk:
        return 0
    return min(room // per_chunk, max_chunks, MAX_COUNT)


def _size_sensor_data(body: SensorData) -> int:
    return sensor_data_size(body.num_chunks, body.num_sensors)


def _write_sensor_data(writer: Writer, body: SensorData) -> None:
    writer.write(SENSOR_DATA_FMT, body.num_chunks, body.num_sensors)
    for chunk in body.chunks:
        writer.write(CHUNK_FMT, chunk.timestamp)
        for dp in chunk.datapoints:
            writer.write(DATAPOINT_FMT, dp.sensor_id, dp.value)


# ─── ACTUATOR COMMAND ─────────────────────────────────────────────────

def _validate_actuator_command(body: ActuatorCommandBatch, config: CodecConfig) -> Check:
    count = len(body.commands)
    if not 1 <= count <= MAX_COUNT:
        return fail(
            ErrorKind.COUNT_OUT_OF_RANGE,
            f"actuator command packets carry 1-{MAX_COUNT} commands, got {count}",
        )
    for cmd in body.commands:
        failure = _first_failure(
            check_u8("actuator_id", cmd.actuator_id),
            check_u8(f"actuator {cmd.actuator_id} state", cmd.actuator_state),
        )
        if failure is not None:
            return failure
    return None


def _size_actuator_command(body: ActuatorCommandBatch) -> int:
    return HEADER_SIZE + ACTUATOR_COMMAND_SIZE + len(body.commands) * COMMAND_SIZE


def _write_actuator_command(writer: Writer, body: ActuatorCommandBatch) -> None:
    writer.write(ACTUATOR_COMMAND_FMT, len(body.commands))
    for cmd in body.commands:
        writer.write(COMMAND_FMT, cmd.actuator_id, cmd.actuator_state)


# ─── ACTUATOR (ABORT) CONFIG ──────────────────────────────────────────

def _validate_actuator_config(body: ActuatorConfig, config: CodecConfig) -> Check:
    failure = _check_flag("is_abort_controller", body.is_abort_controller)
    if failure is not None:
        return failure

    tables = (
        ("abort actuator", body.actuator_locations, config.abort_actuator_slots),
        ("abort PT", body.pt_locations, config.abort_pt_slots),
    )
    for name, records, slots in tables:
        if len(records) != slots:
            return fail(
                ErrorKind.COUNT_OUT_OF_RANGE,
                f"{name} table has {len(records)} records, expected {slots}",
            )
    if not body.actuator_locations and not body.pt_locations:
        if not config.allow_empty_actuator_config:
            return fail(ErrorKind.COUNT_OUT_OF_RANGE, "actuator config has no records")

    for loc in body.actuator_locations:
        failure = _first_failure(
            check_u32("actuator ip", loc.ip),
            check_u8("actuator_id", loc.actuator_id),
            _check_enum("actuator purpose", ActuatorPurpose, loc.purpose),
        )
        if failure is not None:
            return failure
    for loc in body.pt_locations:
        failure = _first_failure(
            check_u32("PT ip", loc.ip),
            check_u8("sensor_id", loc.sensor_id),
            _check_enum("PT purpose", PTPurpose, loc.purpose),
        )
        if failure is not None:
            return failure
    return None


def _size_actuator_config(body: ActuatorConfig) -> int:
    records = len(body.actuator_locations) + len(body.pt_locations)
    return HEADER_SIZE + ACTUATOR_CONFIG_SIZE + records * LOCATION_SIZE


def _write_actuator_config(writer: Writer, body: ActuatorConfig) -> None:
    writer.write(ACTUATOR_CONFIG_FMT, int(body.is_abort_controller))
    for loc in body.actuator_locations:
        writer.write(LOCATION_FMT, loc.ip, loc.actuator_id, int(loc.purpose))
    for loc in body.pt_locations:
        writer.write(LOCATION_FMT, loc.ip, loc.sensor_id, int(loc.purpose))


# ─── SENSOR CONFIG ────────────────────────────────────────────────────

def _validate_sensor_config(body: SensorConfig, config: CodecConfig) -> Check:
    if len(body.sensor_ids) > MAX_COUNT:
        return fail(
            ErrorKind.COUNT_OUT_OF_RANGE,
            f"at most {MAX_COUNT} sensors per config, got {len(body.sensor_ids)}",
        )
    for sensor_id in body.sensor_ids:
        failure = check_u8("sensor_id", sensor_id)
        if failure is not None:
            return failure
    failure = _check_flag("necessary_for_abort", body.necessary_for_abort)
    if failure is not None:
        return failure
    if body.necessary_for_abort:
        return check_u32("controller_ip", body.controller_ip)
    if body.controller_ip:
        return fail(
            ErrorKind.FIELD_OUT_OF_RANGE,
            "controller_ip is only sent for sensors necessary for abort",
        )
    return None


def _size_sensor_config(body: SensorConfig) -> int:
    size = HEADER_SIZE + COUNT_SIZE + len(body.sensor_ids) + FLAG_SIZE
    if body.necessary_for_abort:
        size += IP_SIZE
    return size


def _write_sensor_config(writer: Writer, body: SensorConfig) -> None:
    writer.write(COUNT_FMT, len(body.sensor_ids))
    for sensor_id in body.sensor_ids:
        writer.write(COUNT_FMT, sensor_id)
    writer.write(FLAG_FMT, int(body.necessary_for_abort))
    if body.necessary_for_abort:
        writer.write(IP_FMT, body.controller_ip)


# ─── DISPATCH ─────────────────────────────────────────────────────────

def _no_check(body, config: CodecConfig) -> Check:
    return None


def _no_body(writer: Writer, body) -> None:
    pass


def _fixed(size: int) -> Callable[[Body], int]:
    return lambda body: HEADER_SIZE + size


_CODECS: dict[type, _BodyCodec] = {
    BoardHeartbeat: _BodyCodec(
        _validate_board_heartbeat, _fixed(BOARD_HEARTBEAT_SIZE), _write_board_heartbeat
    ),
    ServerHeartbeat: _BodyCodec(
        _validate_server_heartbeat, _fixed(SERVER_HEARTBEAT_SIZE), _write_server_heartbeat
    ),
    SensorData: _BodyCodec(_validate_sensor_data, _size_sensor_data, _write_sensor_data),
    ActuatorCommandBatch: _BodyCodec(
        _validate_actuator_command, _size_actuator_command, _write_actuator_command
    ),
    SensorConfig: _BodyCodec(
        _validate_sensor_config, _size_sensor_config, _write_sensor_config
    ),
    ActuatorConfig: _BodyCodec(
        _validate_actuator_config, _size_actuator_config, _write_actuator_config
    ),
    Abort: _BodyCodec(_no_check, _fixed(0), _no_body),
    AbortDone: _BodyCodec(_no_check, _fixed(0), _no_body),
    ClearAbort: _BodyCodec(_no_check, _fixed(0), _no_body),
}


def _codec_for(body: Body) -> _BodyCodec:
    try:
        return _CODECS[type(body)]
    except KeyError:
        raise TypeError(f"No encoder for {type(body).__name__}") from None


def packet_size(body: Body, config: CodecConfig = DEFAULT_CONFIG) -> int | Failure:
    """Exact encoded size of ``body``, or why it cannot be encoded."""
    codec = _codec_for(body)
    failure = codec.validate(body, config)
    if failure is not None:
        return failure
    return codec.size(body)


def encode(
    body: Body,
    buffer: Buffer | None,
    *,
    timestamp: int | None = None,
    config: CodecConfig = DEFAULT_CONFIG,
) -> int | Failure:
    """Encode any packet body into ``buffer``, dispatching on its type.

    Args:
        body: One of the model dataclasses.
        buffer: Writable buffer (``bytearray`` or writable ``memoryview``).
        timestamp: Header timestamp; ``config.clock()`` when omitted.
        config: Protocol version, byte order and count policies.

    Returns:
        Number of bytes written, or a :class:`Failure`.

    Raises:
        TypeError: If ``body`` is not a known packet body.
    """
    codec = _codec_for(body)
    failure = codec.validate(body, config)
    if failure is not None:
        return failure

    if timestamp is None:
        timestamp = config.clock() & MAX_U32
    failure = check_u32("timestamp", timestamp)
    if failure is not None:
        return failure

    size = codec.size(body)
    available = 0 if buffer is None else len(buffer)
    if available < size:
        return fail(
            ErrorKind.BUFFER_TOO_SMALL,
            f"{body.PACKET_TYPE.name} needs {size} bytes, buffer holds {available}",
        )

    writer = pack_header(buffer, body.PACKET_TYPE, timestamp, config)
    codec.write(writer, body)
    return writer.offset


def encode_to_bytes(
    body: Body,
    *,
    timestamp: int | None = None,
    config: CodecConfig = DEFAULT_CONFIG,
) -> bytes | Failure:
    """Encode ``body`` into a freshly allocated, exactly sized ``bytes``."""
    size = packet_size(body, config)
    if not size:
        return size
    buffer = bytearray(size)
    written = encode(body, buffer, timestamp=timestamp, config=config)
    if not written:
        return written
    return bytes(buffer)


def _encode_as(
    body_cls: type, body: Body, buffer: Buffer | None, timestamp: int | None,
    config: CodecConfig,
) -> int | Failure:
    if not isinstance(body, body_cls):
        raise TypeError(f"Expected {body_cls.__name__}, got {type(body).__name__}")
    return encode(body, buffer, timestamp=timestamp, config=config)


def encode_board_heartbeat(
    body: BoardHeartbeat, buffer: Buffer | None, *, timestamp: int | None = None,
    config: CodecConfig = DEFAULT_CONFIG,
) -> int | Failure:
    """Encode a BOARD_HEARTBEAT (always 10 bytes)."""
    return _encode_as(BoardHeartbeat, body, buffer, timestamp, config)


def encode_server_heartbeat(
    body: ServerHeartbeat, buffer: Buffer | None, *, timestamp: int | None = None,
    config: CodecConfig = DEFAULT_CONFIG,
) -> int | Failure:
    """Encode a SERVER_HEARTBEAT (always 7 bytes)."""
    return _encode_as(ServerHeartbeat, body, buffer, timestamp, config)


def encode_sensor_data(
    body: SensorData, buffer: Buffer | None, *, timestamp: int | None = None,
    config: CodecConfig = DEFAULT_CONFIG,
) -> int | Failure:
    """Encode a SENSOR_DATA packet.

    Every chunk must hold exactly ``body.num_sensors`` datapoints; the
    encoded size is ``6 + 2 + num_chunks * (4 + num_sensors * 5)``.
    """
    return _encode_as(SensorData, body, buffer, timestamp, config)


def encode_actuator_command(
    body: ActuatorCommandBatch, buffer: Buffer | None, *, timestamp: int | None = None,
    config: CodecConfig = DEFAULT_CONFIG,
) -> int | Failure:
    """Encode an ACTUATOR_COMMAND packet; 1-255 commands are required."""
    return _encode_as(ActuatorCommandBatch, body, buffer, timestamp, config)


def encode_sensor_config(
    body: SensorConfig, buffer: Buffer | None, *, timestamp: int | None = None,
    config: CodecConfig = DEFAULT_CONFIG,
) -> int | Failure:
    return _encode_as(SensorConfig, body, buffer, timestamp, config)


def encode_actuator_config(
    body: ActuatorConfig, buffer: Buffer | None, *, timestamp: int | None = None,
    config: CodecConfig = DEFAULT_CONFIG,
) -> int | Failure:
    """Encode an ACTUATOR_CONFIG packet with its fixed-size abort tables."""
    return _encode_as(ActuatorConfig, body, buffer, timestamp, config)


def encode_abort(
    buffer: Buffer | None, *, timestamp: int | None = None,
    config: CodecConfig = DEFAULT_CONFIG,
) -> int | Failure:
    return encode(Abort(), buffer, timestamp=timestamp, config=config)


def encode_abort_done(
    buffer: Buffer | None, *, timestamp: int | None = None,
    config: CodecConfig = DEFAULT_CONFIG,
) -> int | Failure:
    return encode(AbortDone(), buffer, timestamp=timestamp, config=config)


def encode_clear_abort(
    buffer: Buffer | None, *, timestamp: int | None = None,
    config: CodecConfig = DEFAULT_CONFIG,
) -> int | Failure:
    return encode(ClearAbort(), buffer, timestamp=timestamp, config=config)
