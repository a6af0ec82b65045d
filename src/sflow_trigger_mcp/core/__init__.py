"""
Core modules that must remain protocol neutral.

Keep datagram parsing and exporter quirks out of this package.
"""

from .models import CounterRecord, FlowRecord, RateSnapshot, Severity
from .history import HistoryWindow
from .monitor import TrafficMonitor
from .server import MonitorMCPServer

__all__ = [
    "CounterRecord",
    "FlowRecord",
    "RateSnapshot",
    "Severity",
    "HistoryWindow",
    "TrafficMonitor",
    "MonitorMCPServer",
]
