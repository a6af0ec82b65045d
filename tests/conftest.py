import pytest

from fakes import ManualScheduler, RecordingExecutor
from sflow_trigger_mcp.capabilities.sflow_udp.decoder import decode_sflow
from sflow_trigger_mcp.core.config import MonitorConfig
from sflow_trigger_mcp.core.monitor import TrafficMonitor


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def executor():
    return RecordingExecutor()


@pytest.fixture
def handler(tmp_path):
    path = tmp_path / "trigger.sh"
    path.write_text("#!/bin/bash\nexit 0\n")
    return path


@pytest.fixture
def make_monitor(tmp_path, handler, scheduler, executor):
    def build(**overrides) -> TrafficMonitor:
        settings = {
            "bias_factor": 1.0,
            "pps_threshold": 1000,
            "mbps_threshold": 100,
            "trigger_script": handler.name,
            "trigger_states": ["CRITICAL"],
            "ok_delay_secs": 5,
        }
        settings.update(overrides)
        return TrafficMonitor(
            MonitorConfig(**settings),
            decoder=decode_sflow,
            base_dir=tmp_path,
            executor=executor,
            scheduler=scheduler,
        )

    return build
