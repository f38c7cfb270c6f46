import json

import pytest

from temporal_cognition.utils.config import (
    ConfigError,
    EstimatorConfig,
    MemoryConfig,
    SchedulerConfig,
    StorageConfig,
    get_default_config,
    load_config,
)


def test_defaults_match_default_config():
    config = get_default_config()

    assert EstimatorConfig.from_dict(config) == EstimatorConfig()
    assert SchedulerConfig.from_dict(config) == SchedulerConfig()
    assert MemoryConfig.from_dict(config) == MemoryConfig()
    assert StorageConfig.from_dict(config) == StorageConfig()


def test_missing_sections_fall_back_to_defaults():
    assert SchedulerConfig.from_dict({}) == SchedulerConfig()
    assert MemoryConfig.from_dict(None).decay_half_life_days == 7


def test_partial_section_overrides():
    config = MemoryConfig.from_dict({'temporal_memory': {'decay_half_life_days': 14}})
    assert config.decay_half_life_days == 14
    assert config.relevance_boost_recent == 1.5


def test_weights_must_sum_to_one():
    with pytest.raises(ConfigError):
        SchedulerConfig.from_dict({'priority_scheduler': {'urgency_weight': 0.9}})


@pytest.mark.parametrize("factory, kwargs", [
    (EstimatorConfig, {'learning_rate': 0}),
    (EstimatorConfig, {'confidence_decay_days': -1}),
    (MemoryConfig, {'decay_half_life_days': 0}),
])
def test_invalid_values_are_rejected(factory, kwargs):
    with pytest.raises(ConfigError):
        factory(**kwargs)


def test_load_yaml_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("task_estimator:\n  learning_rate: 0.2\n")

    config = load_config(str(path))

    assert config == {'task_estimator': {'learning_rate': 0.2}}
    assert EstimatorConfig.from_dict(config).learning_rate == 0.2


def test_load_json_config(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({'storage': {'path': '/tmp/state.json'}}))
    assert StorageConfig.from_dict(load_config(str(path))).path == '/tmp/state.json'


def test_load_config_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.yaml"))

    path = tmp_path / "config.toml"
    path.write_text("")
    with pytest.raises(ValueError):
        load_config(str(path))


def test_storage_path_expands_home():
    assert "~" not in str(StorageConfig().resolved_path())
