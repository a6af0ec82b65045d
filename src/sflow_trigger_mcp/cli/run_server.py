from __future__ import annotations
import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from sflow_trigger_mcp.capabilities.sflow_udp.capability import SflowUdpCapability, build_capability
from sflow_trigger_mcp.core.capability_base import CapabilityContext
from sflow_trigger_mcp.core.config import ConfigError, MonitorConfig, load_config
from sflow_trigger_mcp.core.monitor import MonitorView, TrafficMonitor
from sflow_trigger_mcp.core.render import render_screen
from sflow_trigger_mcp.core.server import MonitorMCPServer

logger = logging.getLogger("sflow_trigger_mcp")

DEFAULT_CONFIG_PATHS = [Path("/opt/net-monitor/config.json"), Path("config.json")]


def find_config(explicit: Optional[str]) -> Optional[Path]:
    """
    --config wins, then NET_MONITOR_CONFIG, then the first default path that exists.
    """
    chosen = explicit or os.environ.get("NET_MONITOR_CONFIG")
    if chosen:
        return Path(chosen)
    for candidate in DEFAULT_CONFIG_PATHS:
        if candidate.exists():
            return candidate
    return None


def resolve_config(path: Optional[Path]) -> Tuple[MonitorConfig, Path]:
    """
    Return the config and the directory handler and log paths are relative to.

    An invalid file is reported and replaced by the defaults.
    """
    if path is None:
        return MonitorConfig(), Path.cwd()

    base_dir = path.resolve().parent
    try:
        return load_config(path), base_dir
    except ConfigError as exc:
        logger.error("Invalid config %s, using defaults: %s", path, exc)
        return MonitorConfig(), base_dir


def _print_screen(view: MonitorView) -> None:
    sys.stdout.write(render_screen(view) + "\n")
    sys.stdout.flush()


async def run_console(monitor: TrafficMonitor) -> None:
    ctx = CapabilityContext(monitor=monitor, log=logger.info, render=_print_screen)
    cap = build_capability(ctx)
    await cap.start(monitor.cfg.host, monitor.cfg.port)
    try:
        await asyncio.Event().wait()
    finally:
        await cap.stop()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sflow-trigger",
        description="sFlow traffic monitor with threshold triggers.",
    )
    parser.add_argument("--config", help="path to config.json")
    parser.add_argument("--mcp", action="store_true", help="serve MCP tools over stdio instead of drawing the console")
    parser.add_argument("--port", type=int, help="override the configured UDP port")
    parser.add_argument("--log-level", default="INFO")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """
    Console mode:
      sflow-trigger --config /opt/net-monitor/config.json

    MCP mode, collection is started with the start_collection tool:
      sflow-trigger --mcp
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    cfg, base_dir = resolve_config(find_config(args.config))
    if args.port is not None:
        cfg = cfg.model_copy(update={"port": args.port})

    monitor = TrafficMonitor(cfg, base_dir=base_dir)

    if args.mcp:
        server = MonitorMCPServer(monitor=monitor, capability=SflowUdpCapability())
        server.run()
        return

    try:
        asyncio.run(run_console(monitor))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
