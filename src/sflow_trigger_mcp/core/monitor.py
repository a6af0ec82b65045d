from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .classifier import classify, usage_ratio
from .config import MonitorConfig
from .events import DatagramReceived, DisplayTick, MonitorEvent, RateTick, StalenessCheck
from .history import HistoryWindow
from .models import CounterRecord, FlowRecord, RateSnapshot, Sample, Severity
from .rates import RateEngine
from .tracker import InterfaceTracker, TrackMode
from .trigger import (
    CommandExecutor,
    LoopScheduler,
    Scheduler,
    SubprocessExecutor,
    TriggerDispatcher,
    TriggerLog,
)

logger = logging.getLogger(__name__)

Decoder = Callable[[bytes], List[Sample]]


@dataclass
class MonitorView:
    """
    Read only picture of the monitor for renderers and tools.
    """

    interface: str
    if_index: Optional[int]
    mode: str
    rates: RateSnapshot
    severity: Severity
    usage: float
    pps_threshold: float
    mbps_threshold: float
    window: int
    pps_history: List[float]
    mbps_history: List[float]
    stale: bool


@dataclass
class MonitorState:
    """
    All mutable monitor state in one place.

    Only TrafficMonitor.handle touches it, always from the same event loop.
    """

    tracker: InterfaceTracker
    engine: RateEngine
    history: HistoryWindow
    dispatcher: TriggerDispatcher
    rates: RateSnapshot = field(default_factory=lambda: RateSnapshot(ts=0.0))
    last_update: Optional[float] = None
    stale: bool = False
    datagrams: int = 0
    dropped: int = 0
    counter_samples: int = 0
    flow_samples: int = 0
    snapshots: int = 0


class TrafficMonitor:
    """
    Protocol neutral traffic monitor.

    It never parses wire formats itself, the collector hands it a decoder.

    Main concepts:
      tracked interface
        First interface seen in a counter record. Others are ignored.

      rates
        Counter deltas when counters exist, flow sample totals otherwise.

      status
        max(pps / pps_threshold, mbps / mbps_threshold) mapped to a Severity.

      triggers
        Handler scripts fired on status changes, with a delayed OK.
    """

    def __init__(
        self,
        cfg: Optional[MonitorConfig] = None,
        decoder: Optional[Decoder] = None,
        base_dir: Optional[Path] = None,
        executor: Optional[CommandExecutor] = None,
        scheduler: Optional[Scheduler] = None,
    ):
        self.cfg = cfg or MonitorConfig()
        self.decoder = decoder
        base_dir = base_dir or Path.cwd()

        dispatcher = TriggerDispatcher(
            table=self.cfg.trigger_table(base_dir),
            executor=executor or SubprocessExecutor(),
            scheduler=scheduler or LoopScheduler(),
            trigger_log=TriggerLog(base_dir / self.cfg.trigger_log),
            pps_threshold=self.cfg.pps_threshold,
            mbps_threshold=self.cfg.mbps_threshold,
            ok_delay=self.cfg.ok_delay_secs,
            interface=self.cfg.interface,
        )

        self.state = MonitorState(
            tracker=InterfaceTracker(),
            engine=RateEngine(
                bias_factor=self.cfg.bias_factor,
                spike_factor=self.cfg.spike_factor,
                direction=self.cfg.direction,
            ),
            history=HistoryWindow(capacity=self.cfg.window),
            dispatcher=dispatcher,
        )

    def handle(self, event: MonitorEvent) -> Optional[MonitorView]:
        """
        Single entry point for the event loop.

        Returns a view when the screen should be repainted, else None.
        """
        if isinstance(event, DatagramReceived):
            self.on_datagram(event.data, event.now)
            return None
        if isinstance(event, RateTick):
            self.on_rate_tick(event.now)
            return None
        if isinstance(event, DisplayTick):
            return self.on_display_tick(event.now)
        if isinstance(event, StalenessCheck):
            return self.on_staleness_check(event.now)
        raise TypeError(f"unknown event {event!r}")

    def on_datagram(self, data: bytes, now: float) -> int:
        """
        Decode one datagram and feed its records. Returns the number of samples decoded.
        """
        if self.decoder is None:
            raise RuntimeError("monitor has no decoder")

        self.state.datagrams += 1
        samples = self.decoder(data)
        if not samples:
            self.state.dropped += 1
            logger.debug("dropped datagram of %d bytes", len(data))
            return 0

        for sample in samples:
            record = sample.record
            if isinstance(record, CounterRecord):
                self.state.counter_samples += 1
                self.on_counters(record, now)
            elif isinstance(record, FlowRecord):
                self.state.flow_samples += 1
                self.on_flow(record)

        return len(samples)

    def on_counters(self, record: CounterRecord, now: float) -> Optional[RateSnapshot]:
        if not self.state.tracker.accept_counter(record):
            return None
        snap = self.state.engine.on_counters(record, now)
        if snap is not None:
            self._publish(snap, now)
        return snap

    def on_flow(self, record: FlowRecord) -> None:
        if self.state.tracker.accept_flow():
            self.state.engine.add_flow(record)

    def on_rate_tick(self, now: float) -> Optional[RateSnapshot]:
        if self.state.tracker.mode != TrackMode.FLOW_FALLBACK:
            return None
        snap = self.state.engine.on_flow_tick(now)
        if snap is not None:
            self._publish(snap, now)
        return snap

    def on_display_tick(self, now: float) -> MonitorView:
        self._evaluate()
        return self.view()

    def on_staleness_check(self, now: float) -> Optional[MonitorView]:
        last = self.state.last_update
        self.state.stale = last is None or (now - last) > self.cfg.stale_after_secs
        if self.state.stale:
            return self.view()
        return None

    def _publish(self, snap: RateSnapshot, now: float) -> None:
        self.state.rates = snap
        self.state.last_update = now
        self.state.stale = False
        self.state.snapshots += 1
        self.state.history.push(snap)
        self._evaluate()

    def _evaluate(self) -> Severity:
        severity = self.severity()
        self.state.dispatcher.evaluate(severity, self.state.rates)
        return severity

    def severity(self) -> Severity:
        return classify(self.state.rates, self.cfg.pps_threshold, self.cfg.mbps_threshold)

    def view(self) -> MonitorView:
        st = self.state
        return MonitorView(
            interface=self.cfg.interface,
            if_index=st.tracker.if_index,
            mode=st.tracker.mode.value,
            rates=st.rates,
            severity=self.severity(),
            usage=usage_ratio(st.rates, self.cfg.pps_threshold, self.cfg.mbps_threshold),
            pps_threshold=self.cfg.pps_threshold,
            mbps_threshold=self.cfg.mbps_threshold,
            window=self.cfg.window,
            pps_history=st.history.pps(),
            mbps_history=st.history.mbps(),
            stale=st.stale,
        )

    def set_thresholds(
        self,
        pps_threshold: Optional[float] = None,
        mbps_threshold: Optional[float] = None,
        spike_factor: Optional[float] = None,
        bias_factor: Optional[float] = None,
        ok_delay_secs: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Update thresholds and rate knobs at runtime.
        Exposed as an MCP tool by the core server.
        """
        updates: Dict[str, Any] = {}
        if pps_threshold is not None:
            updates["pps_threshold"] = float(pps_threshold)
        if mbps_threshold is not None:
            updates["mbps_threshold"] = float(mbps_threshold)
        if spike_factor is not None:
            updates["spike_factor"] = float(spike_factor)
        if bias_factor is not None:
            updates["bias_factor"] = float(bias_factor)
        if ok_delay_secs is not None:
            updates["ok_delay_secs"] = float(ok_delay_secs)

        self.cfg = MonitorConfig(**{**self.cfg.model_dump(), **updates})

        engine = self.state.engine
        engine.spike_factor = self.cfg.spike_factor
        engine.bias_factor = self.cfg.bias_factor

        dispatcher = self.state.dispatcher
        dispatcher.pps_threshold = self.cfg.pps_threshold
        dispatcher.mbps_threshold = self.cfg.mbps_threshold
        dispatcher.ok_delay = self.cfg.ok_delay_secs

        return {
            "pps_threshold": self.cfg.pps_threshold,
            "mbps_threshold": self.cfg.mbps_threshold,
            "spike_factor": self.cfg.spike_factor,
            "bias_factor": self.cfg.bias_factor,
            "ok_delay_secs": self.cfg.ok_delay_secs,
        }

    def status(self) -> Dict[str, Any]:
        st = self.state
        return {
            "interface": self.cfg.interface,
            "if_index": st.tracker.if_index,
            "mode": st.tracker.mode.value,
            "severity": self.severity().value,
            "last_fired": st.dispatcher.last_fired.value if st.dispatcher.last_fired else None,
            "recovery_pending": st.dispatcher.recovery_pending,
            "stale": st.stale,
            "datagrams": st.datagrams,
            "dropped": st.dropped,
            "counter_samples": st.counter_samples,
            "flow_samples": st.flow_samples,
            "snapshots": st.snapshots,
            "spikes_rejected": st.engine.spikes_rejected,
            "triggers_fired": st.dispatcher.fired_count,
            "handlers": st.dispatcher.table.as_dict(),
        }
