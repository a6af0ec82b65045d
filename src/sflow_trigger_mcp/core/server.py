from __future__ import annotations
import logging
from dataclasses import asdict
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from .capability_base import Capability, CapabilityContext
from .monitor import TrafficMonitor

logger = logging.getLogger(__name__)


class MonitorMCPServer:
    """
    MCP server around one TrafficMonitor.

    Responsibilities:
      Register the collector capability tools
      Expose rates, history and status as read only tools
      Allow thresholds to be tuned at runtime

    The renderer side is read only. Tools never touch monitor state
    except set_thresholds.
    """

    def __init__(self, monitor: TrafficMonitor, capability: Capability):
        self.monitor = monitor
        self.capability = capability
        self.mcp = FastMCP("sflow_trigger_mcp")

        ctx = CapabilityContext(monitor=self.monitor, log=self._log)
        self.capability.register_tools(self.mcp, ctx)
        self._register_core_tools()

    def _log(self, msg: str) -> None:
        logger.info(msg)

    def _register_core_tools(self) -> None:
        @self.mcp.tool()
        def capability_status() -> Dict[str, Any]:
            return self.capability.status()

        @self.mcp.tool()
        def current_rates() -> Dict[str, Any]:
            return asdict(self.monitor.state.rates)

        @self.mcp.tool()
        def rate_history() -> Dict[str, Any]:
            view = self.monitor.view()
            return {
                "window": view.window,
                "pps": view.pps_history,
                "mbps": view.mbps_history,
            }

        @self.mcp.tool()
        def monitor_status() -> Dict[str, Any]:
            return self.monitor.status()

        @self.mcp.tool()
        def set_thresholds(
            pps_threshold: Optional[float] = None,
            mbps_threshold: Optional[float] = None,
            spike_factor: Optional[float] = None,
            bias_factor: Optional[float] = None,
            ok_delay_secs: Optional[float] = None,
        ) -> Dict[str, Any]:
            return self.monitor.set_thresholds(
                pps_threshold=pps_threshold,
                mbps_threshold=mbps_threshold,
                spike_factor=spike_factor,
                bias_factor=bias_factor,
                ok_delay_secs=ok_delay_secs,
            )

    def run(self) -> None:
        self.mcp.run()
