"""Sensor configuration model.

Body layout::

    +-------------+--------------------+---------------------+---------------+
    | Num Sensors | Sensor IDs         | Necessary For Abort | Controller IP |
    | 1 byte      | num_sensors bytes  | 1 byte (0/1)        | 4 bytes, only |
    |             |                    |                     | if flag is 1  |
    +-------------+--------------------+---------------------+---------------+
"""

from __future__ import annotations

from dataclasses import dataclass, field
from ipaddress import IPv4Address
from typing import ClassVar

from ..protocol.enums import PacketType


@dataclass
class SensorConfig:
    """Body of a SENSOR_CONFIG packet.

    ``controller_ip`` is only transmitted when ``necessary_for_abort`` is
    set, and must be 0 otherwise.
    """

    PACKET_TYPE: ClassVar[PacketType] = PacketType.SENSOR_CONFIG

    sensor_ids: list[int] = field(default_factory=list)
    necessary_for_abort: bool = False
    controller_ip: int = 0

    def to_dict(self) -> dict:
        d: dict = {
            "sensor_ids": list(self.sensor_ids),
            "necessary_for_abort": self.necessary_for_abort,
        }
        if self.necessary_for_abort:
            d["controller_ip"] = str(IPv4Address(self.controller_ip))
        return d
