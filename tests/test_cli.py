from pathlib import Path

from sflow_trigger_mcp.cli.run_server import build_parser, find_config, resolve_config


def test_explicit_config_wins(monkeypatch, tmp_path):
    monkeypatch.setenv("NET_MONITOR_CONFIG", str(tmp_path / "env.json"))
    assert find_config("given.json") == Path("given.json")
    assert find_config(None) == tmp_path / "env.json"


def test_invalid_config_falls_back_to_defaults(tmp_path, caplog):
    path = tmp_path / "config.json"
    path.write_text('{"window": 0}')
    cfg, base_dir = resolve_config(path)
    assert cfg.window == 60
    assert base_dir == tmp_path.resolve()
    assert "Invalid config" in caplog.text


def test_valid_config_and_base_dir(tmp_path):
    path = tmp_path / "config.json"
    path.write_text('{"window": 5} // short window')
    cfg, base_dir = resolve_config(path)
    assert cfg.window == 5
    assert base_dir == tmp_path.resolve()


def test_parser_flags():
    args = build_parser().parse_args(["--mcp", "--port", "7000"])
    assert args.mcp is True
    assert args.port == 7000
    assert args.config is None
