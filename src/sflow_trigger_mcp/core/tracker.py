from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from .models import CounterRecord

logger = logging.getLogger(__name__)


class TrackMode(str, Enum):
    UNSET = "unset"
    COUNTER = "counter"
    FLOW_FALLBACK = "flow_fallback"


class InterfaceTracker:
    """
    Pins the first interface seen in a counter record and gates the flow fallback.

    Rules:
      The first counter record sets if_index, write once.
      Counter records for any other interface are rejected.
      The first accepted counter record latches counter mode for good.
      Flow records are accepted only while counter mode was never latched.
    """

    def __init__(self) -> None:
        self.if_index: Optional[int] = None
        self.mode = TrackMode.UNSET

    @property
    def counter_mode(self) -> bool:
        return self.mode == TrackMode.COUNTER

    def accept_counter(self, record: CounterRecord) -> bool:
        if self.if_index is None:
            self.if_index = record.if_index
            logger.info("Tracking interface with ifIndex %s", self.if_index)

        if record.if_index != self.if_index:
            return False

        self.mode = TrackMode.COUNTER
        return True

    def accept_flow(self) -> bool:
        if self.mode == TrackMode.COUNTER:
            return False
        self.mode = TrackMode.FLOW_FALLBACK
        return True
