"""Failure results returned by every encode and decode operation.

Codec operations never raise for malformed input or short buffers. They
return a :class:`Failure`, which is falsy, so callers check with::

    result = decode_board_heartbeat(buf)
    if not result:
        ...  # result.kind says why
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Why an encode or decode was rejected."""

    BUFFER_TOO_SMALL = "buffer_too_small"
    TYPE_MISMATCH = "type_mismatch"
    COUNT_OUT_OF_RANGE = "count_out_of_range"
    TRUNCATED = "truncated"
    UNKNOWN_TAG = "unknown_tag"
    FIELD_OUT_OF_RANGE = "field_out_of_range"


@dataclass(frozen=True)
class Failure:
    """A rejected codec operation."""

    kind: ErrorKind
    detail: str = ""

    def __bool__(self) -> bool:
        return False

    def to_dict(self) -> dict:
        return {"error": self.kind.value, "detail": self.detail}

    def __repr__(self) -> str:
        return f"Failure({self.kind.name}: {self.detail})"


def fail(kind: ErrorKind, detail: str) -> Failure:
    """Build a :class:`Failure` and log it at DEBUG."""
    logger.debug("codec rejected packet (%s): %s", kind.value, detail)
    return Failure(kind=kind, detail=detail)
