"""Protocol layer: tag sets, header framing, configuration and failures."""

from .enums import PacketType, BoardType, BoardState, EngineState, ActuatorPurpose, PTPurpose
from .errors import ErrorKind, Failure
from .config import CodecConfig, DEFAULT_CONFIG
from .framing import Header, HEADER_SIZE, peek_header
