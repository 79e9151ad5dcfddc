"""
Tests for configuration and logging helpers
===========================================
"""

from __future__ import annotations

import pytest

from qnets.utils.config import DEFAULT_CONFIG, AttrDict, load_config, merge_configs, read_yaml
from qnets.utils.logger import configure_logging, get_logger


class TestConfig:
    def test_default_config_ships_with_package(self):
        assert DEFAULT_CONFIG.is_file()
        assert DEFAULT_CONFIG.parent.parent.name == "qnets"

    def test_default_config(self):
        config = load_config()
        assert config.network.input_dim == 4
        assert config.initialization.std == pytest.approx(0.001)
        assert isinstance(config.network, AttrDict)

    def test_user_file_layers_over_defaults(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("network:\n  h1: 16\nseed: 1\n")
        config = load_config(path)
        assert config.network.h1 == 16
        assert config.seed == 1
        # keys the file leaves out come from the packaged defaults
        assert config.network.h2 == 32
        assert config.optimizer.step_size == pytest.approx(0.001)

    def test_overrides_applied_last(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("network:\n  output_dim: 3\n")
        config = load_config(path, overrides={"network": {"output_dim": 6}})
        assert config.network.output_dim == 6

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError):
            read_yaml(path)

    def test_missing_key(self):
        with pytest.raises(AttributeError):
            AttrDict({"a": 1}).b

    def test_nested_attribute_assignment(self):
        config = AttrDict()
        config.network = {"h1": 8}
        assert config.network.h1 == 8

    def test_merge_is_deep_and_non_destructive(self):
        base = {"network": {"h1": 64, "h2": 32}, "seed": 42}
        merged = merge_configs(base, {"network": {"h2": 8}})
        assert merged.network.h1 == 64
        assert merged.network.h2 == 8
        assert base["network"]["h2"] == 32


class TestLogging:
    def test_file_sink(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        configure_logging("DEBUG", log_file)
        get_logger("tests").info("hello from tests")
        assert log_file.exists()
        configure_logging("WARNING")
