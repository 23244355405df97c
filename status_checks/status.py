from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class Status(str, Enum):
    UP = "UP"
    DEGRADED = "DEGRADED"
    DOWN = "DOWN"

    @property
    def label(self) -> str:
        """Uppercase display label used in notification titles."""
        if self is Status.DEGRADED:
            return "POTENTIAL PROBLEM"
        return self.value


# Older status_cache.json files stored the DEGRADED state under its Czech label.
LEGACY_LABELS = {
    "POTENCIÁLNÍ PROBLÉM": Status.DEGRADED,
}


def parse_status(raw: object) -> Status | None:
    if not isinstance(raw, str):
        return None
    s = raw.strip()
    if s in LEGACY_LABELS:
        return LEGACY_LABELS[s]
    try:
        return Status(s.upper())
    except ValueError:
        return None


def describe_previous(previous: Status | None) -> str:
    return previous.value if previous is not None else "UNKNOWN"


@dataclass(frozen=True)
class Reachable:
    status_code: int
    elapsed_ms: float | None = None


@dataclass(frozen=True)
class Unreachable:
    error_code: str | None
    error_message: str
    elapsed_ms: float | None = None


Observation = Union[Reachable, Unreachable]


def classify(observation: Observation, expected_status: int) -> Status:
    """
    Reachable with the expected code is UP, any other code is DEGRADED
    (4xx/5xx included), and a transport failure is DOWN.
    """
    if isinstance(observation, Reachable):
        if observation.status_code == expected_status:
            return Status.UP
        return Status.DEGRADED
    return Status.DOWN
