"""Abort table provisioning files.

Abort location tables are written once per test campaign, not per control
cycle, so they live in a small JSON document next to the stand's other
configuration::

    {
      "is_abort_controller": true,
      "actuators": [{"ip": "10.0.0.21", "actuator_id": 0, "purpose": "FUEL_MAIN"}],
      "pts": [{"ip": "10.0.0.11", "sensor_id": 3, "purpose": "FUEL_TANK"}]
    }

This is the same shape :meth:`ActuatorConfig.to_dict` produces.
"""

from __future__ import annotations

import json
from ipaddress import AddressValueError, IPv4Address
from pathlib import Path

from ..protocol.enums import ActuatorPurpose, PTPurpose
from .actuator import AbortActuatorLocation, AbortPTLocation, ActuatorConfig


def _parse_ip(value) -> int:
    try:
        return int(IPv4Address(value))
    except (AddressValueError, ValueError) as e:
        raise ValueError(f"Invalid IPv4 address {value!r}: {e}") from e


def _parse_purpose(enum_cls, value):
    if isinstance(value, int):
        try:
            return enum_cls(value)
        except ValueError:
            pass
    elif isinstance(value, str) and value.upper() in enum_cls.__members__:
        return enum_cls[value.upper()]
    raise ValueError(
        f"Unknown {enum_cls.__name__} {value!r}. Valid: {list(enum_cls.__members__)}"
    )


def _parse_id(entry: dict, key: str) -> int:
    if key not in entry:
        raise ValueError(f"Location entry is missing '{key}': {entry!r}")
    value = entry[key]
    if not isinstance(value, int) or not 0 <= value <= 255:
        raise ValueError(f"'{key}' must be an integer 0-255, got {value!r}")
    return value


def actuator_config_from_dict(data: dict) -> ActuatorConfig:
    """Build an :class:`ActuatorConfig` from its JSON representation.

    Raises:
        ValueError: If a field is missing or malformed.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Actuator config must be a JSON object, got {type(data).__name__}")

    actuators = [
        AbortActuatorLocation(
            ip=_parse_ip(entry.get("ip")),
            actuator_id=_parse_id(entry, "actuator_id"),
            purpose=_parse_purpose(ActuatorPurpose, entry.get("purpose", "UNKNOWN")),
        )
        for entry in data.get("actuators", [])
    ]
    pts = [
        AbortPTLocation(
            ip=_parse_ip(entry.get("ip")),
            sensor_id=_parse_id(entry, "sensor_id"),
            purpose=_parse_purpose(PTPurpose, entry.get("purpose", "UNKNOWN")),
        )
        for entry in data.get("pts", [])
    ]
    return ActuatorConfig(
        is_abort_controller=bool(data.get("is_abort_controller", False)),
        actuator_locations=actuators,
        pt_locations=pts,
    )


def load_actuator_config(path: str | Path) -> ActuatorConfig:
    """Load an abort configuration from a JSON provisioning file.

    Raises:
        ValueError: If the file is not valid JSON or a field is malformed.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise ValueError(f"{path} is not valid JSON: {e}") from e
    return actuator_config_from_dict(data)


def dump_actuator_config(config: ActuatorConfig, path: str | Path) -> Path:
    """Write an abort configuration as a JSON provisioning file."""
    path = Path(path)
    path.write_text(json.dumps(config.to_dict(), indent=2) + "\n")
    return path
