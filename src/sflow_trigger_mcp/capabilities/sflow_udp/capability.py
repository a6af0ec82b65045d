from __future__ import annotations

import asyncio
import socket
import time
from typing import Any, Callable, Dict, List, Optional

from sflow_trigger_mcp.core.capability_base import Capability, CapabilityContext
from sflow_trigger_mcp.core.events import (
    DatagramReceived,
    DisplayTick,
    MonitorEvent,
    RateTick,
    StalenessCheck,
)
from .decoder import decode_sflow


class SflowUdpCapability:
    """
    sFlow v5 UDP capability.

    One receive task plus three periodic tasks, all on the same event loop:
      rate tick       flow fallback rate computation
      display tick    status re-evaluation and repaint
      staleness check repaint when no rate arrived for a while

    Every event goes through ctx.monitor.handle and runs to completion
    before the next one, so monitor state needs no locking.
    """

    name = "sflow_udp"

    def __init__(self):
        self._ctx: Optional[CapabilityContext] = None
        self._tasks: List[asyncio.Task] = []
        self._stop = asyncio.Event()
        self._running = False
        self._sock: Optional[socket.socket] = None

        self._host = "0.0.0.0"
        self._port = 6343

        self._received = 0

    def register_tools(self, mcp: Any, ctx: CapabilityContext) -> None:
        self._ctx = ctx
        if ctx.monitor.decoder is None:
            ctx.monitor.decoder = decode_sflow

        if mcp is None:
            # Allows direct use without an MCP server object.
            return

        @mcp.tool()
        async def start_collection(capability: str, host: Optional[str] = None, port: Optional[int] = None) -> str:
            if capability != self.name:
                return f"wrong capability, expected {self.name}"
            cfg = ctx.monitor.cfg
            return await self.start(host or cfg.host, cfg.port if port is None else port)

        @mcp.tool()
        async def stop_collection(capability: str) -> str:
            if capability != self.name:
                return f"wrong capability, expected {self.name}"
            return await self.stop()

    async def start(self, host: str, port: int) -> str:
        if self._running:
            return "already running"
        if not self._ctx:
            return "no context, call register_tools first"

        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        if hasattr(socket, "SO_REUSEPORT"):
            # Lets a service and a CLI instance listen on the same port.
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)
        sock.setblocking(False)
        sock.bind((host, int(port)))

        self._sock = sock
        self._host, self._port = sock.getsockname()[:2]
        self._stop.clear()

        cfg = self._ctx.monitor.cfg
        self._tasks = [
            asyncio.create_task(self._run()),
            asyncio.create_task(self._every(cfg.rate_interval_secs, RateTick)),
            asyncio.create_task(self._every(cfg.display_interval_secs, DisplayTick)),
            asyncio.create_task(self._every(cfg.staleness_interval_secs, StalenessCheck)),
        ]
        self._running = True

        msg = f"sFlow collector listening on {self._host}:{self._port}"
        self._ctx.log(msg)
        self._dispatch(DisplayTick(now=time.monotonic()))
        return msg

    async def stop(self) -> str:
        if not self._running:
            return "not running"
        self._stop.set()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        if self._sock is not None:
            self._sock.close()
            self._sock = None
        self._running = False
        return "stopped"

    def _dispatch(self, event: MonitorEvent) -> None:
        if not self._ctx:
            return
        view = self._ctx.monitor.handle(event)
        if view is not None and self._ctx.render is not None:
            self._ctx.render(view)

    async def _every(self, period: float, make_event: Callable[..., MonitorEvent]) -> None:
        while not self._stop.is_set():
            await asyncio.sleep(period)
            self._dispatch(make_event(now=time.monotonic()))

    async def _run(self) -> None:
        if not self._ctx or self._sock is None:
            return

        loop = asyncio.get_running_loop()
        while not self._stop.is_set():
            try:
                data, _ = await loop.sock_recvfrom(self._sock, 65535)
            except OSError:
                await asyncio.sleep(0.05)
                continue

            self._received += 1
            self._dispatch(DatagramReceived(data=data, now=time.monotonic()))

    def status(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "running": self._running,
            "host": self._host,
            "port": self._port,
            "received": self._received,
            "dropped": self._ctx.monitor.state.dropped if self._ctx else 0,
        }


def build_capability(ctx: Optional[CapabilityContext] = None) -> Capability:
    cap = SflowUdpCapability()
    if ctx is not None:
        cap.register_tools(None, ctx)
    return cap
