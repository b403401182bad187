"""Actuator command and abort configuration models."""

from __future__ import annotations

from dataclasses import dataclass, field
from ipaddress import IPv4Address
from typing import ClassVar

from ..protocol.enums import ActuatorPurpose, PacketType, PTPurpose


@dataclass
class ActuatorCommand:
    """Target state for one board-local actuator."""

    actuator_id: int
    actuator_state: int

    def to_dict(self) -> dict:
        return {"actuator_id": self.actuator_id, "actuator_state": self.actuator_state}


@dataclass
class ActuatorCommandBatch:
    """Body of an ACTUATOR_COMMAND packet (1-255 commands)."""

    PACKET_TYPE: ClassVar[PacketType] = PacketType.ACTUATOR_COMMAND

    commands: list[ActuatorCommand] = field(default_factory=list)

    def add(self, actuator_id: int, actuator_state: int) -> None:
        self.commands.append(ActuatorCommand(actuator_id, actuator_state))

    def to_dict(self) -> dict:
        return {
            "num_commands": len(self.commands),
            "commands": [cmd.to_dict() for cmd in self.commands],
        }


@dataclass
class AbortActuatorLocation:
    """Where an abort-relevant actuator lives and what it is for."""

    ip: int
    actuator_id: int
    purpose: ActuatorPurpose = ActuatorPurpose.UNKNOWN

    @property
    def ip_address(self) -> IPv4Address:
        return IPv4Address(self.ip)

    def to_dict(self) -> dict:
        return {
            "ip": str(self.ip_address),
            "actuator_id": self.actuator_id,
            "purpose": ActuatorPurpose(self.purpose).name,
        }


@dataclass
class AbortPTLocation:
    """Where an abort-relevant pressure transducer lives and what it is for."""

    ip: int
    sensor_id: int
    purpose: PTPurpose = PTPurpose.UNKNOWN

    @property
    def ip_address(self) -> IPv4Address:
        return IPv4Address(self.ip)

    def to_dict(self) -> dict:
        return {
            "ip": str(self.ip_address),
            "sensor_id": self.sensor_id,
            "purpose": PTPurpose(self.purpose).name,
        }


@dataclass
class ActuatorConfig:
    """Body of an ACTUATOR_CONFIG packet.

    The two location tables have a fixed number of slots, set by
    ``CodecConfig.abort_actuator_slots`` and ``CodecConfig.abort_pt_slots``.
    They are filled once at provisioning time, not per control cycle.
    """

    PACKET_TYPE: ClassVar[PacketType] = PacketType.ACTUATOR_CONFIG

    is_abort_controller: bool = False
    actuator_locations: list[AbortActuatorLocation] = field(default_factory=list)
    pt_locations: list[AbortPTLocation] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "is_abort_controller": self.is_abort_controller,
            "actuators": [loc.to_dict() for loc in self.actuator_locations],
            "pts": [loc.to_dict() for loc in self.pt_locations],
        }
