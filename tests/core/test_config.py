from pathlib import Path

import pytest

from sflow_trigger_mcp.core.config import ConfigError, MonitorConfig, load_config, parse_config
from sflow_trigger_mcp.core.models import Severity


def test_defaults():
    cfg = MonitorConfig()
    assert cfg.port == 6343
    assert cfg.window == 60
    assert cfg.bias_factor == 1.05
    assert cfg.spike_factor == 0
    assert cfg.trigger_states == [Severity.CRITICAL]
    assert cfg.ok_delay_secs == 60


def test_comments_are_stripped_and_merged_over_defaults():
    raw = """
    {
      // thresholds
      "pps_threshold": 5000, /* inline */
      "sampling": 32,
      "window": 10
    }
    """
    cfg = parse_config(raw)
    assert cfg.pps_threshold == 5000
    assert cfg.window == 10
    assert cfg.mbps_threshold == 900


def test_single_script_table_uses_allowed_states(tmp_path):
    cfg = MonitorConfig(trigger_script="scripts/t.sh", trigger_states=["WARNING", "CRITICAL"])
    table = cfg.trigger_table(tmp_path)
    assert table.handler_for(Severity.CRITICAL) == tmp_path / "scripts/t.sh"
    assert table.handler_for(Severity.WARNING) == tmp_path / "scripts/t.sh"
    assert table.handler_for(Severity.OK) is None
    assert table.handler_for(Severity.ABNORMAL) is None


def test_per_severity_table(tmp_path):
    cfg = MonitorConfig(trigger_script={"OK": "ok.sh", "CRITICAL": "crit.sh"})
    table = cfg.trigger_table(tmp_path)
    assert table.handler_for(Severity.OK) == tmp_path / "ok.sh"
    assert table.handler_for(Severity.CRITICAL) == tmp_path / "crit.sh"
    assert table.handler_for(Severity.WARNING) is None
    assert table.as_dict() == {"OK": str(tmp_path / "ok.sh"), "CRITICAL": str(tmp_path / "crit.sh")}


def test_no_trigger_script(tmp_path):
    table = MonitorConfig(trigger_script=None).trigger_table(tmp_path)
    assert all(table.handler_for(sev) is None for sev in Severity)


def test_invalid_json_raises():
    with pytest.raises(ConfigError):
        parse_config("{ not json")


def test_invalid_values_raise():
    with pytest.raises(ConfigError):
        parse_config('{"pps_threshold": -5}')
    with pytest.raises(ConfigError):
        parse_config('{"trigger_script": {"PANIC": "x.sh"}}')
    with pytest.raises(ConfigError):
        parse_config("[1, 2]")


def test_load_config_from_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text('{"port": 7000, "direction": "both"}')
    cfg = load_config(path)
    assert cfg.port == 7000
    assert cfg.direction == "both"


def test_load_config_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.json")


def test_shipped_example_config_loads():
    root = Path(__file__).resolve().parents[2]
    cfg = load_config(root / "config.json")
    assert set(cfg.trigger_table(root).as_dict()) == {"OK", "WARNING", "ABNORMAL", "CRITICAL"}
