"""MCP server entry point for inspecting Diablo packets on the bench.

Exposes the codec as tools via the Model Context Protocol using the official
Python MCP SDK with stdio transport. The server only encodes and decodes
hex strings; it never talks to the stand's network.
"""

from __future__ import annotations

import logging
from ipaddress import IPv4Address
from typing import Any

from mcp.server.fastmcp import FastMCP

from .models.actuator import ActuatorCommand, ActuatorCommandBatch
from .models.heartbeat import SIGNAL_CLASSES, BoardHeartbeat, ServerHeartbeat
from .models.provisioning import load_actuator_config
from .models.sensor_config import SensorConfig
from .models.sensor_data import SensorData
from .protocol.config import DEFAULT_CONFIG, CodecConfig
from .protocol.decoder import decode_any
from .protocol.encoder import encode_to_bytes
from .protocol.enums import (
    MAX_ACTUATORS_PER_BOARD,
    MAX_CHUNKS_PER_PACKET,
    MAX_PACKET_SIZE,
    MAX_SENSORS_PER_BOARD,
    PROTOCOL_VERSION,
    BoardState,
    BoardType,
    EngineState,
    PacketType,
)
from .protocol.errors import Failure
from .protocol.framing import (
    BOARD_HEARTBEAT_SIZE,
    HEADER_SIZE,
    SERVER_HEARTBEAT_SIZE,
)

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "diablo-comms",
    instructions="Encode and decode Diablo test-stand packets as hex strings",
)


def _config(byte_order: str) -> CodecConfig:
    return DEFAULT_CONFIG.replace(byte_order=byte_order)


def _lookup(enum_cls, name: str):
    try:
        return enum_cls[name.upper()]
    except KeyError:
        raise ValueError(
            f"Unknown {enum_cls.__name__} '{name}'. Valid: {list(enum_cls.__members__)}"
        ) from None


def _encoded(result: bytes | Failure) -> dict[str, Any]:
    if isinstance(result, Failure):
        return result.to_dict()
    return {"hex": result.hex(" "), "size": len(result)}


# ─── PROTOCOL INFO ────────────────────────────────────────────────────

@mcp.tool()
def describe_protocol() -> dict[str, Any]:
    """Describe packet types, enumerations and fixed sizes."""
    return {
        "version": PROTOCOL_VERSION,
        "header_size": HEADER_SIZE,
        "max_packet_size": MAX_PACKET_SIZE,
        "max_chunks_per_packet": MAX_CHUNKS_PER_PACKET,
        "max_sensors_per_board": MAX_SENSORS_PER_BOARD,
        "max_actuators_per_board": MAX_ACTUATORS_PER_BOARD,
        "packet_types": {t.name: t.value for t in PacketType},
        "board_types": [t.name for t in BoardType],
        "board_states": [s.name for s in BoardState],
        "engine_states": [s.name for s in EngineState],
        "fixed_sizes": {
            "BOARD_HEARTBEAT": HEADER_SIZE + BOARD_HEARTBEAT_SIZE,
            "SERVER_HEARTBEAT": HEADER_SIZE + SERVER_HEARTBEAT_SIZE,
            "ABORT": HEADER_SIZE,
            "ABORT_DONE": HEADER_SIZE,
            "CLEAR_ABORT": HEADER_SIZE,
        },
    }


# ─── DECODING ─────────────────────────────────────────────────────────

@mcp.tool()
def decode_packet(hex_data: str, byte_order: str = "big") -> dict[str, Any]:
    """Decode a captured packet.

    Args:
        hex_data: Packet bytes as hex; spaces and colons are ignored.
        byte_order: "big" (network order) or "little" (legacy boards).
    """
    cleaned = hex_data.replace(" ", "").replace(":", "")
    try:
        data = bytes.fromhex(cleaned)
    except ValueError as e:
        return {"error": "invalid_hex", "detail": str(e)}

    return decode_any(data, config=_config(byte_order)).to_dict()


# ─── ENCODING ─────────────────────────────────────────────────────────

@mcp.tool()
def encode_board_heartbeat(
    board_type: str,
    board_id: int,
    engine_state: str,
    board_state: str,
    timestamp: int = 0,
    byte_order: str = "big",
) -> dict[str, Any]:
    """Build a BOARD_HEARTBEAT packet.

    Args:
        board_type: BoardType name (e.g. "ACTUATOR").
        board_id: Board-local id 0-255.
        engine_state: EngineState name (e.g. "PRESSURIZING").
        board_state: BoardState name (e.g. "ACTIVE").
        timestamp: Header timestamp.
        byte_order: "big" or "little".
    """
    body = BoardHeartbeat(
        board_type=_lookup(BoardType, board_type),
        board_id=board_id,
        engine_state=_lookup(EngineState, engine_state),
        board_state=_lookup(BoardState, board_state),
    )
    return _encoded(encode_to_bytes(body, timestamp=timestamp, config=_config(byte_order)))


@mcp.tool()
def encode_server_heartbeat(
    engine_state: str, timestamp: int = 0, byte_order: str = "big"
) -> dict[str, Any]:
    """Build a SERVER_HEARTBEAT packet broadcasting the engine state."""
    body = ServerHeartbeat(engine_state=_lookup(EngineState, engine_state))
    return _encoded(encode_to_bytes(body, timestamp=timestamp, config=_config(byte_order)))


@mcp.tool()
def encode_abort_signal(
    kind: str, timestamp: int = 0, byte_order: str = "big"
) -> dict[str, Any]:
    """Build a header-only abort packet.

    Args:
        kind: One of "abort", "abort_done", "clear_abort".
    """
    if kind not in SIGNAL_CLASSES:
        return {"error": f"Unknown signal '{kind}'. Valid: {list(SIGNAL_CLASSES)}"}
    body = SIGNAL_CLASSES[kind]()
    return _encoded(encode_to_bytes(body, timestamp=timestamp, config=_config(byte_order)))


@mcp.tool()
def encode_actuator_command(
    commands: list[dict[str, int]], timestamp: int = 0, byte_order: str = "big"
) -> dict[str, Any]:
    """Build an ACTUATOR_COMMAND packet.

    Args:
        commands: List of {"actuator_id": int, "actuator_state": int}.
    """
    try:
        batch = ActuatorCommandBatch(
            commands=[
                ActuatorCommand(c["actuator_id"], c["actuator_state"]) for c in commands
            ]
        )
    except KeyError as e:
        return {"error": f"Command is missing {e}"}
    return _encoded(encode_to_bytes(batch, timestamp=timestamp, config=_config(byte_order)))


@mcp.tool()
def encode_sensor_data(
    num_sensors: int,
    chunks: list[dict[str, Any]],
    timestamp: int = 0,
    byte_order: str = "big",
) -> dict[str, Any]:
    """Build a SENSOR_DATA packet.

    Args:
        num_sensors: Datapoints per chunk.
        chunks: List of {"timestamp": int, "datapoints": [[sensor_id, value], ...]}.
    """
    body = SensorData(num_sensors=num_sensors)
    for index, entry in enumerate(chunks):
        chunk = body.new_chunk(entry.get("timestamp", 0))
        for sensor_id, value in entry.get("datapoints", []):
            if not chunk.add_datapoint(sensor_id, value):
                return {
                    "error": "count_out_of_range",
                    "detail": f"chunk {index} has more than {num_sensors} datapoints",
                }
    return _encoded(encode_to_bytes(body, timestamp=timestamp, config=_config(byte_order)))


@mcp.tool()
def encode_sensor_config(
    sensor_ids: list[int],
    necessary_for_abort: bool = False,
    controller_ip: str = "0.0.0.0",
    timestamp: int = 0,
    byte_order: str = "big",
) -> dict[str, Any]:
    """Build a SENSOR_CONFIG packet."""
    body = SensorConfig(
        sensor_ids=sensor_ids,
        necessary_for_abort=necessary_for_abort,
        controller_ip=int(IPv4Address(controller_ip)),
    )
    return _encoded(encode_to_bytes(body, timestamp=timestamp, config=_config(byte_order)))


@mcp.tool()
def encode_actuator_config_file(
    path: str, timestamp: int = 0, byte_order: str = "big"
) -> dict[str, Any]:
    """Build an ACTUATOR_CONFIG packet from a JSON provisioning file.

    Args:
        path: Path to the abort table JSON file.
    """
    try:
        body = load_actuator_config(path)
    except (OSError, ValueError) as e:
        return {"error": str(e)}
    logger.info("Loaded abort tables from %s", path)
    return _encoded(encode_to_bytes(body, timestamp=timestamp, config=_config(byte_order)))


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
