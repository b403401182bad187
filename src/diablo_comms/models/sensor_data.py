"""Sensor data model: timestamped chunks of per-sensor readings.

A SENSOR_DATA packet carries ``num_chunks`` chunks, and every chunk carries
exactly ``num_sensors`` datapoints. :class:`SensorDataChunk` enforces the
per-chunk bound while readings are being collected, so a chunk built through
:meth:`SensorData.new_chunk` can never hold more datapoints than the packet
declares.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from ..protocol.enums import MAX_COUNT, PacketType


@dataclass
class SensorDatapoint:
    """A single reading: board-local sensor id and raw 32-bit value."""

    sensor_id: int
    value: int

    def to_dict(self) -> dict:
        return {"sensor_id": self.sensor_id, "value": self.value}


@dataclass
class SensorDataChunk:
    """One timestamped group of readings.

    ``capacity`` bounds :meth:`add_datapoint`; it is not transmitted and is
    ignored when comparing chunks.
    """

    timestamp: int = 0
    capacity: int = field(default=MAX_COUNT, compare=False)
    datapoints: list[SensorDatapoint] = field(default_factory=list)

    def add_datapoint(self, sensor_id: int, value: int) -> bool:
        """Append a reading; returns ``False`` if the chunk is already full."""
        if self.full():
            return False
        self.datapoints.append(SensorDatapoint(sensor_id, value))
        return True

    def size(self) -> int:
        return len(self.datapoints)

    def empty(self) -> bool:
        return not self.datapoints

    def full(self) -> bool:
        return len(self.datapoints) >= self.capacity

    def clear(self) -> None:
        self.datapoints.clear()

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "datapoints": [dp.to_dict() for dp in self.datapoints],
        }


@dataclass
class SensorData:
    """Body of a SENSOR_DATA packet."""

    PACKET_TYPE: ClassVar[PacketType] = PacketType.SENSOR_DATA

    num_sensors: int = 0
    chunks: list[SensorDataChunk] = field(default_factory=list)

    @property
    def num_chunks(self) -> int:
        return len(self.chunks)

    def new_chunk(self, timestamp: int) -> SensorDataChunk:
        """Start a chunk sized for ``num_sensors`` readings and append it."""
        chunk = SensorDataChunk(timestamp=timestamp, capacity=self.num_sensors)
        self.chunks.append(chunk)
        return chunk

    def to_dict(self) -> dict:
        return {
            "num_chunks": self.num_chunks,
            "num_sensors": self.num_sensors,
            "chunks": [chunk.to_dict() for chunk in self.chunks],
        }

    def __repr__(self) -> str:
        return f"SensorData(num_sensors={self.num_sensors}, num_chunks={self.num_chunks})"
