"""Codec configuration.

A :class:`CodecConfig` is immutable and passed explicitly to every encode
and decode call. ``DEFAULT_CONFIG`` matches the boards as provisioned today.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from typing import Callable, Literal

from .enums import MAX_U32, MAX_U8, PROTOCOL_VERSION

ByteOrder = Literal["big", "little"]

DEFAULT_ABORT_ACTUATOR_SLOTS = 4
DEFAULT_ABORT_PT_SLOTS = 2


def monotonic_ms() -> int:
    """Board-local millisecond counter, wrapping at 32 bits."""
    return int(time.monotonic() * 1000) & MAX_U32


@dataclass(frozen=True)
class CodecConfig:
    """Settings shared by the encoder and decoder.

    Attributes:
        version: Protocol version written into every header.
        byte_order: Byte order of every multi-byte field. ``"big"`` is
            network order; ``"little"`` matches the legacy ESP32 firmware,
            which copied packed structs straight onto the wire.
        clock: Returns the header timestamp when the caller passes none.
        allow_empty_sensor_data: Accept SENSOR_DATA with zero chunks.
        allow_empty_actuator_command: Accept a decoded ACTUATOR_COMMAND
            whose count is zero. Encoding zero commands is always rejected.
        allow_empty_actuator_config: Accept ACTUATOR_CONFIG tables with no
            records at all.
        abort_actuator_slots: Fixed record count of the abort actuator table.
        abort_pt_slots: Fixed record count of the abort PT table.
    """

    version: int = PROTOCOL_VERSION
    byte_order: ByteOrder = "big"
    clock: Callable[[], int] = field(default=monotonic_ms, compare=False)
    allow_empty_sensor_data: bool = True
    allow_empty_actuator_command: bool = False
    allow_empty_actuator_config: bool = False
    abort_actuator_slots: int = DEFAULT_ABORT_ACTUATOR_SLOTS
    abort_pt_slots: int = DEFAULT_ABORT_PT_SLOTS

    def __post_init__(self) -> None:
        if not 0 <= self.version <= MAX_U8:
            raise ValueError(f"Protocol version must be 0-255, got {self.version}")
        if self.byte_order not in ("big", "little"):
            raise ValueError(
                f"byte_order must be 'big' or 'little', got {self.byte_order!r}"
            )
        for name in ("abort_actuator_slots", "abort_pt_slots"):
            slots = getattr(self, name)
            if not 0 <= slots <= MAX_U8:
                raise ValueError(f"{name} must be 0-255, got {slots}")

    def replace(self, **changes) -> CodecConfig:
        return replace(self, **changes)


DEFAULT_CONFIG = CodecConfig()
