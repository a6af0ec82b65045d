"""
Configuration for the monitor.

The file format is JSON that tolerates // and /* */ comments, merged over
the defaults below. Unknown keys are ignored so older files keep loading.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .models import Severity

_BLOCK_COMMENT = re.compile(r"/\*[\s\S]*?\*/")
_LINE_COMMENT = re.compile(r"//.*$", re.MULTILINE)


class ConfigError(ValueError):
    """
    Raised when a config file cannot be read, parsed or validated.
    """


class MonitorConfig(BaseModel):
    """
    Validated settings for one monitor process.
    """

    model_config = ConfigDict(extra="ignore")

    # === Display ===
    interface: str = Field(default="eth0", description="Interface label, display only.")

    # === Thresholds ===
    pps_threshold: float = Field(default=100_000, ge=0, description="0 disables the pps ratio.")
    mbps_threshold: float = Field(default=900, ge=0, description="0 disables the mbps ratio.")

    # === Collector ===
    host: str = "0.0.0.0"
    port: int = Field(default=6343, ge=0, le=65535)

    # === Rates ===
    window: int = Field(default=60, ge=1, description="History window length in samples.")
    bias_factor: float = Field(default=1.05, gt=0)
    spike_factor: float = Field(default=0, ge=0, description="0 disables the spike guard.")
    direction: Literal["in", "out", "both"] = Field(
        default="in",
        description="Which interface counters feed the counter-delta rates.",
    )

    # === Triggers ===
    trigger_states: List[Severity] = Field(default_factory=lambda: [Severity.CRITICAL])
    trigger_script: Union[str, Dict[Severity, str], None] = "./scripts/trigger.sh"
    ok_delay_secs: float = Field(default=60, ge=0)
    trigger_log: str = "trigger.log"

    # === Timers ===
    rate_interval_secs: float = Field(default=1.0, gt=0)
    display_interval_secs: float = Field(default=1.0, gt=0)
    staleness_interval_secs: float = Field(default=2.0, gt=0)
    stale_after_secs: float = Field(default=2.0, gt=0)

    def trigger_table(self, base_dir: Optional[Path] = None) -> "TriggerTable":
        return TriggerTable.from_config(self, base_dir or Path.cwd())


class TriggerTable:
    """
    Severity to handler path lookup, resolved once from the config.

    trigger_script as a string is one shared handler, used only for the
    severities listed in trigger_states. As a mapping it gives one handler
    per severity. A severity with no entry has no action.
    """

    def __init__(self, handlers: Dict[Severity, Path]):
        self._handlers = dict(handlers)

    @classmethod
    def from_config(cls, cfg: MonitorConfig, base_dir: Path) -> "TriggerTable":
        handlers: Dict[Severity, Path] = {}
        script = cfg.trigger_script

        if isinstance(script, str):
            for sev in cfg.trigger_states:
                handlers[sev] = base_dir / script
        elif isinstance(script, dict):
            for sev, path in script.items():
                if path:
                    handlers[sev] = base_dir / path

        return cls(handlers)

    def handler_for(self, severity: Severity) -> Optional[Path]:
        return self._handlers.get(severity)

    def as_dict(self) -> Dict[str, str]:
        return {sev.value: str(path) for sev, path in self._handlers.items()}


def strip_comments(raw: str) -> str:
    raw = _BLOCK_COMMENT.sub("", raw)
    return _LINE_COMMENT.sub("", raw)


def parse_config(raw: str) -> MonitorConfig:
    try:
        obj = json.loads(strip_comments(raw))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"invalid JSON: {exc}") from exc

    if not isinstance(obj, dict):
        raise ConfigError("config must be a JSON object")

    try:
        return MonitorConfig(**obj)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc


def load_config(path: Union[str, Path]) -> MonitorConfig:
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read {path}: {exc}") from exc
    return parse_config(raw)
