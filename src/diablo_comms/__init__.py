"""Packet codec for the Diablo test-stand control network.

Field boards and the coordinator exchange small, tightly packed binary
packets. This package turns typed packet bodies into bytes and back::

    from diablo_comms import BoardHeartbeat, encode, decode_board_heartbeat

    buf = bytearray(64)
    n = encode(BoardHeartbeat(board_id=3), buf, timestamp=1000)
    packet = decode_board_heartbeat(buf[:n])

Every encode and decode returns either a result or a falsy
:class:`~diablo_comms.protocol.errors.Failure`.
"""

from .protocol import (
    ActuatorPurpose,
    BoardState,
    BoardType,
    CodecConfig,
    DEFAULT_CONFIG,
    EngineState,
    ErrorKind,
    Failure,
    HEADER_SIZE,
    Header,
    PacketType,
    PTPurpose,
    peek_header,
)
from .models import (
    Abort,
    AbortActuatorLocation,
    AbortDone,
    AbortPTLocation,
    ActuatorCommand,
    ActuatorCommandBatch,
    ActuatorConfig,
    BoardHeartbeat,
    ClearAbort,
    Packet,
    SensorConfig,
    SensorData,
    SensorDataChunk,
    SensorDatapoint,
    ServerHeartbeat,
)
from .protocol.encoder import (
    encode,
    encode_abort,
    encode_abort_done,
    encode_actuator_command,
    encode_actuator_config,
    encode_board_heartbeat,
    encode_clear_abort,
    encode_sensor_config,
    encode_sensor_data,
    encode_server_heartbeat,
    encode_to_bytes,
    packet_size,
)
from .protocol.decoder import (
    decode,
    decode_abort,
    decode_abort_done,
    decode_actuator_command,
    decode_actuator_config,
    decode_any,
    decode_board_heartbeat,
    decode_clear_abort,
    decode_sensor_config,
    decode_sensor_data,
    decode_server_heartbeat,
)

__version__ = "0.1.0"
