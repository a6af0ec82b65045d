from __future__ import annotations

import logging
import time
from typing import Optional, Tuple

from .models import CounterRecord, FlowRecord, RateSnapshot

logger = logging.getLogger(__name__)

MIN_COUNTER_INTERVAL = 0.9
MIN_FLOW_INTERVAL = 1.0


class RateEngine:
    """
    Turns counter polls or flow samples into smoothed pps and mbps.

    Two paths, never both for the same update:

      counter delta
        Each accepted CounterRecord is compared with the last baseline
        record. At least MIN_COUNTER_INTERVAL seconds must have passed.

      flow accumulation
        Flow samples add sampling_rate packets and frame_length * sampling_rate
        bytes to running totals. A periodic tick compares totals with the
        baseline totals once MIN_FLOW_INTERVAL seconds have passed.

    Both paths share the bias multiplier and the spike guard. A rejected
    spike leaves the baseline where it was, so the next computation spans
    the rejected interval too.

    The caller decides which path is active. The engine does not know about
    interface tracking.
    """

    def __init__(self, bias_factor: float = 1.0, spike_factor: float = 0.0, direction: str = "in"):
        self.bias_factor = float(bias_factor)
        self.spike_factor = float(spike_factor)
        self.direction = direction

        self._last_counters: Optional[CounterRecord] = None
        self._last_counter_ts: Optional[float] = None

        self.total_packets = 0
        self.total_bytes = 0
        self._last_total_packets = 0
        self._last_total_bytes = 0
        self._last_flow_ts: Optional[float] = None

        self.prev_pps = 0.0
        self.prev_mbps = 0.0

        self.spikes_rejected = 0

    def _rates(self, packets_delta: int, bytes_delta: int, elapsed: float) -> Tuple[float, float]:
        # Counter resets show up as negative deltas, clamp instead of reporting negative load.
        packets_delta = max(0, packets_delta)
        bytes_delta = max(0, bytes_delta)
        pps = (packets_delta / elapsed) * self.bias_factor
        mbps = ((bytes_delta * 8) / (elapsed * 1_000_000)) * self.bias_factor
        return pps, mbps

    def _is_spike(self, pps: float, mbps: float) -> bool:
        if self.spike_factor <= 0 or self.prev_mbps <= 0:
            return False
        return mbps > self.prev_mbps * self.spike_factor or pps > self.prev_pps * self.spike_factor

    def _accept(self, pps: float, mbps: float) -> RateSnapshot:
        self.prev_pps = pps
        self.prev_mbps = mbps
        return RateSnapshot(pps=pps, mbps=mbps, ts=time.time())

    def on_counters(self, record: CounterRecord, now: float) -> Optional[RateSnapshot]:
        """
        Feed one accepted counter record. now is a monotonic timestamp in seconds.

        Returns a snapshot when a new rate was accepted, else None.
        """
        if self._last_counters is None or self._last_counter_ts is None:
            self._last_counters = record
            self._last_counter_ts = now
            return None

        elapsed = now - self._last_counter_ts
        if elapsed < MIN_COUNTER_INTERVAL:
            return None

        prev = self._last_counters
        pps, mbps = self._rates(
            record.packets(self.direction) - prev.packets(self.direction),
            record.octets(self.direction) - prev.octets(self.direction),
            elapsed,
        )

        if self._is_spike(pps, mbps):
            self.spikes_rejected += 1
            logger.debug("spike rejected pps=%.0f mbps=%.2f", pps, mbps)
            return None

        self._last_counters = record
        self._last_counter_ts = now
        return self._accept(pps, mbps)

    def add_flow(self, record: FlowRecord) -> None:
        self.total_packets += record.packets
        self.total_bytes += record.bytes

    def on_flow_tick(self, now: float) -> Optional[RateSnapshot]:
        """
        Periodic evaluation of the flow totals. The first tick only sets the baseline.
        """
        if self._last_flow_ts is None:
            self._last_flow_ts = now
            self._last_total_packets = self.total_packets
            self._last_total_bytes = self.total_bytes
            return None

        elapsed = now - self._last_flow_ts
        if elapsed < MIN_FLOW_INTERVAL:
            return None

        pps, mbps = self._rates(
            self.total_packets - self._last_total_packets,
            self.total_bytes - self._last_total_bytes,
            elapsed,
        )

        if self._is_spike(pps, mbps):
            self.spikes_rejected += 1
            logger.debug("spike rejected pps=%.0f mbps=%.2f", pps, mbps)
            return None

        self._last_total_packets = self.total_packets
        self._last_total_bytes = self.total_bytes
        self._last_flow_ts = now
        return self._accept(pps, mbps)
