from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol

from .monitor import MonitorView, TrafficMonitor


@dataclass
class CapabilityContext:
    """
    Shared runtime objects provided to a collector capability.

    monitor
      The TrafficMonitor that receives every event the collector produces.

    log
      Logging function for collector lifecycle messages.

    render
      Optional callback fed with a MonitorView whenever the screen should
      be repainted. None when nothing is drawn, for example in MCP mode
      where stdout belongs to the transport.
    """

    monitor: TrafficMonitor
    log: Callable[[str], None]
    render: Optional[Callable[[MonitorView], None]] = None


class Capability(Protocol):
    """
    Required interface for a collector capability.

    A capability is responsible for
    1. Registering MCP tools, like start_collection and stop_collection
    2. Receiving datagrams and driving the periodic timers
    3. Handing every event to ctx.monitor
    """

    name: str

    def register_tools(self, mcp: Any, ctx: CapabilityContext) -> None:
        """
        Called once at server startup. Capabilities should register tools here.
        """
        ...

    def status(self) -> Dict[str, Any]:
        """
        Return quick health and counters. Must be fast and side effect free.
        """
        ...

    async def start(self, host: str, port: int) -> str:
        ...

    async def stop(self) -> str:
        ...
