"""Decoded packet container."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ..protocol.framing import Header
from .actuator import ActuatorCommandBatch, ActuatorConfig
from .heartbeat import Abort, AbortDone, BoardHeartbeat, ClearAbort, ServerHeartbeat
from .sensor_config import SensorConfig
from .sensor_data import SensorData

Body = Union[
    BoardHeartbeat,
    ServerHeartbeat,
    SensorData,
    ActuatorCommandBatch,
    SensorConfig,
    ActuatorConfig,
    Abort,
    AbortDone,
    ClearAbort,
]


@dataclass
class Packet:
    """A fully validated packet: its header and typed body."""

    header: Header
    body: Body

    def to_dict(self) -> dict:
        return {"header": self.header.to_dict(), "body": self.body.to_dict()}

    def __repr__(self) -> str:
        return f"Packet({self.header.to_dict()['packet_type']}, {self.body!r})"
