from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


class Severity(str, Enum):
    """
    Load status, ordered by increasing load ratio.
    """

    OK = "OK"
    WARNING = "WARNING"
    ABNORMAL = "ABNORMAL"
    CRITICAL = "CRITICAL"


class SampleKind(str, Enum):
    COUNTER = "counter"
    FLOW = "flow"
    OTHER = "other"


@dataclass
class CounterRecord:
    """
    One poll of the generic interface counters of an interface.

    Fields:
      if_index
        Interface identifier reported by the agent.

      in_octets, out_octets
        Cumulative 64 bit byte counters.

      in_packets, out_packets
        Sum of the unicast, multicast and broadcast packet counters
        for the direction.
    """

    if_index: int
    in_octets: int
    out_octets: int
    in_packets: int
    out_packets: int

    def octets(self, direction: str = "in") -> int:
        if direction == "out":
            return self.out_octets
        if direction == "both":
            return self.in_octets + self.out_octets
        return self.in_octets

    def packets(self, direction: str = "in") -> int:
        if direction == "out":
            return self.out_packets
        if direction == "both":
            return self.in_packets + self.out_packets
        return self.in_packets


@dataclass
class FlowRecord:
    """
    One sampled packet. It stands for sampling_rate real packets.

    frame_length is the sum of the frame lengths of every raw packet
    header record carried by the sample, 0 if there was none.
    """

    sampling_rate: int
    frame_length: int = 0

    @property
    def packets(self) -> int:
        return self.sampling_rate

    @property
    def bytes(self) -> int:
        return self.frame_length * self.sampling_rate


Record = Union[CounterRecord, FlowRecord]


@dataclass
class Sample:
    """
    One sample of a datagram as found on the wire.

    record is the interpreted counter or flow record, None for
    other kinds and for samples without an interpretable record.
    """

    kind: SampleKind
    length: int
    payload: bytes
    record: Optional[Record] = None


@dataclass(frozen=True)
class RateSnapshot:
    pps: float = 0.0
    mbps: float = 0.0
    ts: float = field(default_factory=time.time)
