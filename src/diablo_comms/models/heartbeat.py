"""Fixed-size packet bodies: heartbeats and abort signals."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from ..protocol.enums import BoardState, BoardType, EngineState, PacketType


@dataclass
class BoardHeartbeat:
    """Periodic board-to-coordinator liveness report (4-byte body)."""

    PACKET_TYPE: ClassVar[PacketType] = PacketType.BOARD_HEARTBEAT

    board_type: BoardType = BoardType.UNKNOWN
    board_id: int = 0
    engine_state: EngineState = EngineState.SAFE
    board_state: BoardState = BoardState.SETUP

    def to_dict(self) -> dict:
        return {
            "board_type": BoardType(self.board_type).name,
            "board_id": self.board_id,
            "engine_state": EngineState(self.engine_state).name,
            "board_state": BoardState(self.board_state).name,
        }


@dataclass
class ServerHeartbeat:
    """Coordinator-to-boards broadcast of the engine state (1-byte body)."""

    PACKET_TYPE: ClassVar[PacketType] = PacketType.SERVER_HEARTBEAT

    engine_state: EngineState = EngineState.SAFE

    def to_dict(self) -> dict:
        return {"engine_state": EngineState(self.engine_state).name}


@dataclass
class Abort:
    """Header-only order to run the abort sequence."""

    PACKET_TYPE: ClassVar[PacketType] = PacketType.ABORT

    def to_dict(self) -> dict:
        return {}


@dataclass
class AbortDone:
    """Header-only acknowledgement that a board finished its abort sequence."""

    PACKET_TYPE: ClassVar[PacketType] = PacketType.ABORT_DONE

    def to_dict(self) -> dict:
        return {}


@dataclass
class ClearAbort:
    """Header-only order to leave the abort state."""

    PACKET_TYPE: ClassVar[PacketType] = PacketType.CLEAR_ABORT

    def to_dict(self) -> dict:
        return {}


SIGNAL_CLASSES: dict[str, type] = {
    "abort": Abort,
    "abort_done": AbortDone,
    "clear_abort": ClearAbort,
}
