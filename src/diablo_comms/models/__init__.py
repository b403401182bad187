"""Typed packet bodies exchanged between field boards and the coordinator."""

from .heartbeat import Abort, AbortDone, BoardHeartbeat, ClearAbort, ServerHeartbeat
from .sensor_data import SensorData, SensorDataChunk, SensorDatapoint
from .actuator import (
    AbortActuatorLocation,
    AbortPTLocation,
    ActuatorCommand,
    ActuatorCommandBatch,
    ActuatorConfig,
)
from .sensor_config import SensorConfig
from .packet import Body, Packet
