"""Tests for ACTUATOR_COMMAND and ACTUATOR_CONFIG packets."""

from diablo_comms import (
    AbortActuatorLocation,
    AbortPTLocation,
    ActuatorCommand,
    ActuatorCommandBatch,
    ActuatorConfig,
    ActuatorPurpose,
    CodecConfig,
    ErrorKind,
    Failure,
    PTPurpose,
    decode_actuator_command,
    decode_actuator_config,
    encode_actuator_command,
    encode_actuator_config,
)
from diablo_comms.protocol.framing import HEADER_SIZE

IP_A = 0x0A000015  # 10.0.0.21
IP_B = 0x0A00000B  # 10.0.0.11


def _batch(count: int) -> ActuatorCommandBatch:
    return ActuatorCommandBatch(
        commands=[ActuatorCommand(i % 256, i % 2) for i in range(count)]
    )


def _abort_config() -> ActuatorConfig:
    return ActuatorConfig(
        is_abort_controller=True,
        actuator_locations=[
            AbortActuatorLocation(IP_A, 0, ActuatorPurpose.FUEL_MAIN),
            AbortActuatorLocation(IP_A, 1, ActuatorPurpose.LOX_MAIN),
            AbortActuatorLocation(IP_A, 2, ActuatorPurpose.FUEL_VENT),
            AbortActuatorLocation(IP_A, 3, ActuatorPurpose.LOX_VENT),
        ],
        pt_locations=[
            AbortPTLocation(IP_B, 0, PTPurpose.FUEL_TANK),
            AbortPTLocation(IP_B, 1, PTPurpose.LOX_TANK),
        ],
    )


# ─── ACTUATOR COMMAND ─────────────────────────────────────────────────

def test_actuator_command_layout():
    """Count byte followed by packed (id, state) pairs."""
    batch = ActuatorCommandBatch()
    batch.add(4, 1)
    batch.add(9, 0)
    buf = bytearray(11)
    assert encode_actuator_command(batch, buf, timestamp=0) == 11
    assert buf[0] == 4
    assert buf[HEADER_SIZE:] == bytes([2, 4, 1, 9, 0])


def test_actuator_command_roundtrip():
    """Commands come back in order."""
    buf = bytearray(64)
    n = encode_actuator_command(_batch(5), buf, timestamp=3)
    packet = decode_actuator_command(bytes(buf[:n]))
    assert packet.body == _batch(5)


def test_zero_commands_rejected():
    """An empty command list is a caller error."""
    result = encode_actuator_command(_batch(0), bytearray(64), timestamp=0)
    assert result.kind is ErrorKind.COUNT_OUT_OF_RANGE


def test_255_commands_accepted():
    """255 is the largest count the one-byte field can carry."""
    buf = bytearray(HEADER_SIZE + 1 + 255 * 2)
    assert encode_actuator_command(_batch(255), buf, timestamp=0) == len(buf)
    assert len(decode_actuator_command(buf).body.commands) == 255


def test_256_commands_rejected():
    """256 commands do not fit the count field."""
    result = encode_actuator_command(_batch(256), bytearray(1024), timestamp=0)
    assert result.kind is ErrorKind.COUNT_OUT_OF_RANGE


def test_actuator_command_capacity():
    """One byte short fails; the exact size succeeds."""
    assert encode_actuator_command(_batch(3), bytearray(12), timestamp=0).kind is (
        ErrorKind.BUFFER_TOO_SMALL
    )
    assert encode_actuator_command(_batch(3), bytearray(13), timestamp=0) == 13


def test_actuator_command_truncated():
    """A count larger than the records present is truncated."""
    buf = bytearray(13)
    encode_actuator_command(_batch(3), buf, timestamp=0)
    assert decode_actuator_command(bytes(buf[:12])).kind is ErrorKind.TRUNCATED


def test_decode_zero_commands_policy():
    """Zero-count packets decode only when the config permits them."""
    raw = bytes([4, 1, 0, 0, 0, 0, 0])
    assert decode_actuator_command(raw).kind is ErrorKind.COUNT_OUT_OF_RANGE

    lenient = CodecConfig(allow_empty_actuator_command=True)
    packet = decode_actuator_command(raw, config=lenient)
    assert packet.body.commands == []


def test_actuator_state_must_fit_u8():
    """States are one byte."""
    batch = ActuatorCommandBatch(commands=[ActuatorCommand(0, 300)])
    result = encode_actuator_command(batch, bytearray(64), timestamp=0)
    assert result.kind is ErrorKind.FIELD_OUT_OF_RANGE


# ─── ACTUATOR (ABORT) CONFIG ──────────────────────────────────────────

def test_actuator_config_size():
    """Flag byte plus 4 actuator and 2 PT records of 6 bytes."""
    buf = bytearray(64)
    assert encode_actuator_config(_abort_config(), buf, timestamp=0) == 43


def test_actuator_config_roundtrip():
    """Location tables decode with typed purposes."""
    buf = bytearray(43)
    encode_actuator_config(_abort_config(), buf, timestamp=0)
    packet = decode_actuator_config(buf)

    assert packet.body == _abort_config()
    assert packet.body.pt_locations[1].purpose is PTPurpose.LOX_TANK
    assert str(packet.body.actuator_locations[0].ip_address) == "10.0.0.21"


def test_actuator_config_record_layout():
    """Each record is ip:u32, id:u8, purpose:u8."""
    buf = bytearray(43)
    encode_actuator_config(_abort_config(), buf, timestamp=0)
    assert buf[6] == 1
    assert buf[7:13] == bytes([10, 0, 0, 21, 0, ActuatorPurpose.FUEL_MAIN])


def test_actuator_config_wrong_table_size():
    """Tables must fill exactly the configured slots."""
    config = _abort_config()
    config.pt_locations.pop()
    result = encode_actuator_config(config, bytearray(64), timestamp=0)
    assert result.kind is ErrorKind.COUNT_OUT_OF_RANGE


def test_actuator_config_custom_slots():
    """Slot counts come from the codec config."""
    slots = CodecConfig(abort_actuator_slots=1, abort_pt_slots=0)
    body = ActuatorConfig(
        actuator_locations=[AbortActuatorLocation(IP_A, 5, ActuatorPurpose.PURGE)]
    )
    buf = bytearray(13)
    assert encode_actuator_config(body, buf, timestamp=0, config=slots) == 13
    assert decode_actuator_config(buf, config=slots).body == body


def test_actuator_config_empty_policy():
    """Record-free tables are invalid unless explicitly allowed."""
    empty = CodecConfig(abort_actuator_slots=0, abort_pt_slots=0)
    buf = bytearray(7)
    result = encode_actuator_config(ActuatorConfig(), buf, timestamp=0, config=empty)
    assert result.kind is ErrorKind.COUNT_OUT_OF_RANGE

    lenient = empty.replace(allow_empty_actuator_config=True)
    assert encode_actuator_config(ActuatorConfig(), buf, timestamp=0, config=lenient) == 7
    assert decode_actuator_config(buf, config=lenient).body == ActuatorConfig()
    assert decode_actuator_config(buf, config=empty).kind is ErrorKind.COUNT_OUT_OF_RANGE


def test_actuator_config_truncated():
    """Missing table bytes are a truncation."""
    buf = bytearray(43)
    encode_actuator_config(_abort_config(), buf, timestamp=0)
    assert decode_actuator_config(bytes(buf[:42])).kind is ErrorKind.TRUNCATED


def test_actuator_config_bad_flag():
    """The controller flag is strictly 0 or 1."""
    buf = bytearray(43)
    encode_actuator_config(_abort_config(), buf, timestamp=0)
    buf[6] = 2
    assert decode_actuator_config(buf).kind is ErrorKind.FIELD_OUT_OF_RANGE


def test_actuator_config_unknown_purpose():
    """Unknown purpose tags are rejected."""
    buf = bytearray(43)
    encode_actuator_config(_abort_config(), buf, timestamp=0)
    buf[12] = 0xEE
    assert decode_actuator_config(buf).kind is ErrorKind.UNKNOWN_TAG


def test_rejected_batch_leaves_buffer_untouched():
    """A too-long batch is rejected before anything is written."""
    buf = bytearray(1024)
    result = encode_actuator_command(_batch(256), buf, timestamp=0)
    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.COUNT_OUT_OF_RANGE
    assert buf == bytearray(1024)


def test_empty_batch_writes_nothing():
    """Zero commands never produce a packet."""
    buf = bytearray(64)
    result = encode_actuator_command(_batch(0), buf, timestamp=0)
    assert isinstance(result, Failure)
    assert buf == bytearray(64)
