"""Tests for monitor configuration loading."""

import pytest
from pydantic import ValidationError

from ladderlive.live import ConfigurationError, MonitorConfig, MonitorError, load_config


class TestMonitorConfig:
    def test_defaults(self):
        cfg = MonitorConfig()
        assert cfg.interval_ms == 200
        assert cfg.gap_threshold == 64
        assert cfg.max_batch_size == 512
        assert cfg.max_batches_per_tick == 4
        assert cfg.cache_size == 65536
        assert cfg.interval == pytest.approx(0.2)

    def test_rejects_non_positive(self):
        with pytest.raises(ValidationError):
            MonitorConfig(max_batches_per_tick=0)


class TestLoadConfig:
    def test_no_path_gives_defaults(self):
        assert load_config() == MonitorConfig()

    def test_top_level_keys(self, tmp_path):
        path = tmp_path / "monitor.yaml"
        path.write_text("interval_ms: 50\nmax_batches_per_tick: 2\n")
        cfg = load_config(path)
        assert cfg.interval_ms == 50
        assert cfg.max_batches_per_tick == 2
        assert cfg.gap_threshold == 64

    def test_monitor_section(self, tmp_path):
        path = tmp_path / "project.yaml"
        path.write_text("monitor:\n  gap_threshold: 16\nother: 1\n")
        assert load_config(str(path)).gap_threshold == 16

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == MonitorConfig()

    def test_invalid_value(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("interval_ms: 0\n")
        with pytest.raises(ConfigurationError) as excinfo:
            load_config(path)
        assert excinfo.value.config_key == "interval_ms"
        assert "interval_ms" in str(excinfo.value)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ConfigurationError, match="Expected a mapping"):
            load_config(path)

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("interval_ms: [1, 2\n")
        with pytest.raises(ConfigurationError, match="Failed to read"):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(tmp_path / "nope.yaml")

    def test_is_monitor_error(self, tmp_path):
        with pytest.raises(MonitorError):
            load_config(tmp_path / "nope.yaml")
