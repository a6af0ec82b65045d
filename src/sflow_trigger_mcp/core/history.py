from __future__ import annotations

from collections import deque
from typing import Deque, List

from .models import RateSnapshot


class HistoryWindow:
    """
    Fixed capacity history of accepted rates, one series for pps and one for mbps.

    A deque with maxlen evicts the oldest entry on push once full.
    The renderer reads copies, it never mutates the window.
    """

    def __init__(self, capacity: int = 60):
        if capacity < 1:
            raise ValueError("history capacity must be at least 1")
        self.capacity = int(capacity)
        self._pps: Deque[float] = deque(maxlen=self.capacity)
        self._mbps: Deque[float] = deque(maxlen=self.capacity)

    def push(self, snapshot: RateSnapshot) -> None:
        self._pps.append(float(snapshot.pps))
        self._mbps.append(float(snapshot.mbps))

    def pps(self) -> List[float]:
        return list(self._pps)

    def mbps(self) -> List[float]:
        return list(self._mbps)

    def __len__(self) -> int:
        return len(self._pps)
