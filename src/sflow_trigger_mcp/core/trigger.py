from __future__ import annotations

import asyncio
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional, Protocol, Set

from .config import TriggerTable
from .models import RateSnapshot, Severity

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """
    Anything that can run a callback later. asyncio event loops already fit.
    """

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class CommandExecutor(Protocol):
    """
    Starts an external command and returns at once. The caller never waits.
    """

    def run(self, argv: List[str], env: Dict[str, str]) -> None:
        ...


class LoopScheduler:
    """
    Scheduler bound to whichever asyncio loop is running at call time.
    """

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


class SubprocessExecutor:
    """
    Fire and forget process runner on the running asyncio loop.

    The exit status is logged when the process ends. No timeout is applied.
    """

    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()

    def run(self, argv: List[str], env: Dict[str, str]) -> None:
        task = asyncio.get_running_loop().create_task(self._exec(argv, env))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _exec(self, argv: List[str], env: Dict[str, str]) -> None:
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                env=env,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
            _, err = await proc.communicate()
        except OSError as exc:
            logger.warning("Trigger script error: %s", exc)
            return

        if proc.returncode != 0:
            detail = err.decode("utf-8", errors="replace").strip() if err else ""
            logger.warning("Trigger script %s exited with %s %s", argv[-1], proc.returncode, detail)


class TriggerLog:
    """
    Append only log of fired triggers.

    Line format:
      <ISO-8601 UTC> | <SEVERITY> | <pps> PPS | <mbps> Mbps
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    @staticmethod
    def format_line(severity: Severity, rates: RateSnapshot, when: Optional[datetime] = None) -> str:
        when = when or datetime.now(timezone.utc)
        stamp = when.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
        return f"{stamp} | {severity.value} | {rates.pps:.0f} PPS | {rates.mbps:.2f} Mbps\n"

    def append(self, severity: Severity, rates: RateSnapshot) -> None:
        try:
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(self.format_line(severity, rates))
        except OSError as exc:
            logger.warning("Cannot write trigger log %s: %s", self.path, exc)


class TriggerDispatcher:
    """
    Runs handler scripts when the load status changes.

    Escalation or any move between non OK severities fires at once, but
    never twice in a row for the same severity. A return to OK starts a
    recovery timer of ok_delay seconds. The OK handler fires only if the
    timer runs out. Any non OK evaluation before that cancels it.

    last_fired moves on every firing, even when the handler is missing
    or fails.
    """

    def __init__(
        self,
        table: TriggerTable,
        executor: CommandExecutor,
        scheduler: Scheduler,
        trigger_log: TriggerLog,
        pps_threshold: float,
        mbps_threshold: float,
        ok_delay: float = 60.0,
        interface: str = "",
    ):
        self.table = table
        self.executor = executor
        self.scheduler = scheduler
        self.trigger_log = trigger_log
        self.pps_threshold = float(pps_threshold)
        self.mbps_threshold = float(mbps_threshold)
        self.ok_delay = float(ok_delay)
        self.interface = interface

        self.current: Optional[Severity] = None
        self.last_fired: Optional[Severity] = None
        self.fired_count = 0
        self._rates = RateSnapshot(ts=0.0)
        self._recovery: Optional[TimerHandle] = None

    @property
    def recovery_pending(self) -> bool:
        return self._recovery is not None

    def evaluate(self, severity: Severity, rates: RateSnapshot) -> None:
        self.current = severity
        self._rates = rates
        handler = self.table.handler_for(severity)

        if severity == Severity.OK and handler is not None:
            if self._recovery is None:
                self._recovery = self.scheduler.call_later(self.ok_delay, self._recover)
            return

        self._cancel_recovery()

        if handler is not None and severity != self.last_fired:
            self._fire(severity, handler)

    def _cancel_recovery(self) -> None:
        if self._recovery is not None:
            self._recovery.cancel()
            self._recovery = None

    def _recover(self) -> None:
        self._recovery = None
        handler = self.table.handler_for(Severity.OK)
        if handler is not None:
            self._fire(Severity.OK, handler)

    def handler_env(self, severity: Severity) -> Dict[str, str]:
        env = dict(os.environ)
        env.update(
            {
                "PPS": f"{self._rates.pps:.0f}",
                "MBPS": f"{self._rates.mbps:.2f}",
                "THRESHOLD_PPS": f"{self.pps_threshold:g}",
                "THRESHOLD_MBPS": f"{self.mbps_threshold:g}",
                "SEVERITY": severity.value,
                "INTERFACE": self.interface,
            }
        )
        return env

    def _fire(self, severity: Severity, handler: Path) -> None:
        self.trigger_log.append(severity, self._rates)
        logger.info("Trigger %s -> %s", severity.value, handler)

        if handler.exists():
            try:
                self.executor.run(["bash", str(handler)], self.handler_env(severity))
            except Exception as exc:
                logger.warning("Trigger script error: %s", exc)
        else:
            logger.warning("Trigger script not found: %s", handler)

        self.last_fired = severity
        self.fired_count += 1
