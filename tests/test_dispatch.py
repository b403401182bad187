"""Tests for the generic encode/decode entry points."""

import pytest

from diablo_comms import (
    Abort,
    ActuatorCommandBatch,
    BoardHeartbeat,
    CodecConfig,
    ErrorKind,
    PacketType,
    SensorData,
    ServerHeartbeat,
    decode,
    decode_any,
    encode,
    encode_board_heartbeat,
    encode_to_bytes,
    packet_size,
)


def test_encode_dispatches_on_body_type():
    """encode picks the layout from the body's class."""
    buf = bytearray(16)
    assert encode(ServerHeartbeat(), buf, timestamp=0) == 7
    assert buf[0] == PacketType.SERVER_HEARTBEAT


def test_encode_unknown_body_raises():
    """Unknown body types are programming errors."""
    with pytest.raises(TypeError):
        encode(object(), bytearray(16), timestamp=0)


def test_typed_encoder_rejects_other_bodies():
    """A typed encoder only accepts its own body class."""
    with pytest.raises(TypeError):
        encode_board_heartbeat(ServerHeartbeat(), bytearray(16), timestamp=0)


def test_encode_into_memoryview():
    """Writable memoryviews over larger buffers work as destinations."""
    backing = bytearray(32)
    view = memoryview(backing)[4:]
    assert encode(Abort(), view, timestamp=9) == 6
    assert backing[4] == PacketType.ABORT


def test_packet_size():
    """packet_size reports the exact encoded size or the reason it cannot."""
    assert packet_size(BoardHeartbeat()) == 10
    assert packet_size(SensorData(num_sensors=3)) == 8
    assert packet_size(ActuatorCommandBatch()).kind is ErrorKind.COUNT_OUT_OF_RANGE


def test_encode_to_bytes():
    """encode_to_bytes allocates exactly the needed size."""
    data = encode_to_bytes(BoardHeartbeat(board_id=1), timestamp=0)
    assert isinstance(data, bytes)
    assert len(data) == 10


def test_encode_to_bytes_failure():
    """Validation failures pass straight through."""
    result = encode_to_bytes(ActuatorCommandBatch(), timestamp=0)
    assert not result
    assert result.kind is ErrorKind.COUNT_OUT_OF_RANGE


def test_decode_expected_type():
    """decode is type-directed."""
    data = encode_to_bytes(BoardHeartbeat(board_id=2), timestamp=0)
    assert decode(data, PacketType.BOARD_HEARTBEAT).body.board_id == 2
    assert decode(data, PacketType.ABORT).kind is ErrorKind.TYPE_MISMATCH


def test_decode_any_dispatches():
    """decode_any inspects the header once and decodes the body."""
    data = encode_to_bytes(ServerHeartbeat(), timestamp=0)
    packet = decode_any(data)
    assert packet.header.packet_type is PacketType.SERVER_HEARTBEAT
    assert packet.body == ServerHeartbeat()


def test_decode_any_unknown_type():
    """Unknown packet types are reported, not guessed."""
    assert decode_any(b"\x42\x01\x00\x00\x00\x00").kind is ErrorKind.UNKNOWN_TAG


def test_decode_any_short():
    """Buffers shorter than a header are too small."""
    assert decode_any(b"\x01").kind is ErrorKind.BUFFER_TOO_SMALL


def test_multiple_protocol_versions():
    """Encoders stamp whichever version the config carries."""
    v2 = CodecConfig(version=2)
    data = encode_to_bytes(Abort(), timestamp=0, config=v2)
    assert decode_any(data).header.version == 2


def test_packet_to_dict():
    """Decoded packets render as JSON-friendly dicts."""
    data = encode_to_bytes(BoardHeartbeat(board_id=4), timestamp=12)
    d = decode_any(data).to_dict()
    assert d["header"] == {"packet_type": "BOARD_HEARTBEAT", "version": 1, "timestamp": 12}
    assert d["body"]["board_id"] == 4
