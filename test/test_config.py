import pytest

from justification_core.config import DEFAULT_WORKER_ORACLE, EngineConfig


class TestEngineConfig:

    def test_defaults(self):
        cfg = EngineConfig()
        assert cfg.justification_limit == 1
        assert cfg.laconic_limit == 1
        assert cfg.leaf_size == 10
        assert cfg.heavy_threshold == 20
        assert cfg.watchdog_ms == 500
        assert cfg.artifact_dir == "temp"
        assert cfg.worker_oracle == DEFAULT_WORKER_ORACLE
        assert cfg.max_workers >= 1

    def test_laconic_limit_follows_justification_limit(self):
        assert EngineConfig(justification_limit=4).laconic_limit == 4
        assert EngineConfig(justification_limit=4,
                            laconic_limit=2).laconic_limit == 2

    def test_worker_timeout(self):
        cfg = EngineConfig(watchdog_ms=500, spawn_grace_s=2.0)
        assert cfg.worker_timeout_s == pytest.approx(2.5)

    @pytest.mark.parametrize("kwargs", [
        {"justification_limit": 0},
        {"laconic_limit": -1},
        {"leaf_size": 0},
        {"max_workers": 0},
        {"watchdog_ms": 0},
        {"worker_oracle": "no_colon_here"},
        {"log_format": "xml"},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            EngineConfig(**kwargs)

    def test_from_env(self):
        env = {
            "JUSTIFY_JUSTIFICATION_LIMIT": "3",
            "JUSTIFY_MAX_WORKERS": "2",
            "JUSTIFY_SPAWN_GRACE_S": "1.5",
            "JUSTIFY_ARTIFACT_DIR": "scratch",
            "JUSTIFY_LEAF_SIZE": "",
        }
        cfg = EngineConfig.from_env(env, watchdog_ms=250)
        assert cfg.justification_limit == 3
        assert cfg.max_workers == 2
        assert cfg.spawn_grace_s == 1.5
        assert cfg.artifact_dir == "scratch"
        assert cfg.leaf_size == 10
        assert cfg.watchdog_ms == 250


def test_json_logging():
    import io
    import json
    import logging

    import structlog

    from justification_core.telemetry import setup_logging

    stream = io.StringIO()
    setup_logging(level="WARNING", fmt="json", stream=stream)
    try:
        structlog.get_logger("justify.test").warning(
            "justification_lookup_miss", entailment="SubClassOf(ex:A ex:B)")
        structlog.get_logger("justify.test").info("dropped")
    finally:
        logging.getLogger().handlers.clear()
        structlog.reset_defaults()

    lines = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert len(lines) == 1
    assert lines[0]["event"] == "justification_lookup_miss"
    assert lines[0]["level"] == "warning"
    assert lines[0]["entailment"] == "SubClassOf(ex:A ex:B)"


def test_setup_logging_from_config(monkeypatch):
    from justification_core import telemetry

    seen = {}
    monkeypatch.setattr(telemetry, "setup_logging",
                        lambda level, fmt: seen.update(level=level, fmt=fmt))
    telemetry.setup_logging_from_config(
        EngineConfig(log_level="DEBUG", log_format="json"))
    assert seen == {"level": "DEBUG", "fmt": "json"}
