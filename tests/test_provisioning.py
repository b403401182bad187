"""Tests for abort table provisioning files."""

import json

import pytest

from diablo_comms import (
    AbortActuatorLocation,
    ActuatorConfig,
    ActuatorPurpose,
    PTPurpose,
    encode_to_bytes,
)
from diablo_comms.models.provisioning import (
    actuator_config_from_dict,
    dump_actuator_config,
    load_actuator_config,
)

DOC = {
    "is_abort_controller": True,
    "actuators": [
        {"ip": "10.0.0.21", "actuator_id": 0, "purpose": "FUEL_MAIN"},
        {"ip": "10.0.0.21", "actuator_id": 1, "purpose": "lox_main"},
        {"ip": "10.0.0.22", "actuator_id": 0, "purpose": 3},
        {"ip": "10.0.0.22", "actuator_id": 1, "purpose": "LOX_VENT"},
    ],
    "pts": [
        {"ip": "10.0.0.11", "sensor_id": 3, "purpose": "FUEL_TANK"},
        {"ip": "10.0.0.11", "sensor_id": 4, "purpose": "LOX_TANK"},
    ],
}


def test_from_dict():
    """Names, lower-case names and raw values all map onto purposes."""
    config = actuator_config_from_dict(DOC)
    assert config.is_abort_controller is True
    assert config.actuator_locations[0] == AbortActuatorLocation(
        0x0A000015, 0, ActuatorPurpose.FUEL_MAIN
    )
    assert config.actuator_locations[1].purpose is ActuatorPurpose.LOX_MAIN
    assert config.actuator_locations[2].purpose is ActuatorPurpose.FUEL_VENT
    assert config.pt_locations[1].purpose is PTPurpose.LOX_TANK


def test_loaded_config_encodes():
    """A provisioning file fills the default table slots."""
    data = encode_to_bytes(actuator_config_from_dict(DOC), timestamp=0)
    assert len(data) == 43


def test_dump_and_load(tmp_path):
    """Dumped files load back to the same tables."""
    config = actuator_config_from_dict(DOC)
    path = dump_actuator_config(config, tmp_path / "abort.json")
    assert json.loads(path.read_text())["actuators"][0]["ip"] == "10.0.0.21"
    assert load_actuator_config(path) == config


def test_invalid_json(tmp_path):
    """Unparseable files raise ValueError."""
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    with pytest.raises(ValueError):
        load_actuator_config(path)


def test_invalid_ip():
    """Addresses must be IPv4."""
    with pytest.raises(ValueError):
        actuator_config_from_dict(
            {"actuators": [{"ip": "not-an-ip", "actuator_id": 0}]}
        )


def test_unknown_purpose():
    """Purpose names must belong to the tag set."""
    with pytest.raises(ValueError):
        actuator_config_from_dict(
            {"pts": [{"ip": "10.0.0.1", "sensor_id": 0, "purpose": "COFFEE"}]}
        )


def test_missing_id():
    """Every location names its local id."""
    with pytest.raises(ValueError):
        actuator_config_from_dict({"pts": [{"ip": "10.0.0.1"}]})


def test_id_out_of_range():
    """Local ids are one byte."""
    with pytest.raises(ValueError):
        actuator_config_from_dict(
            {"actuators": [{"ip": "10.0.0.1", "actuator_id": 256}]}
        )


def test_empty_document():
    """An empty document yields empty tables."""
    assert actuator_config_from_dict({}) == ActuatorConfig()
