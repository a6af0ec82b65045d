from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class DatagramReceived:
    data: bytes
    now: float


@dataclass(frozen=True)
class RateTick:
    now: float


@dataclass(frozen=True)
class DisplayTick:
    now: float


@dataclass(frozen=True)
class StalenessCheck:
    now: float


MonitorEvent = Union[DatagramReceived, RateTick, DisplayTick, StalenessCheck]
