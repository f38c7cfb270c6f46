"""Configuration management."""

import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


class ConfigError(ValueError):
    """Raised when a configuration value is out of range."""


def load_config(config_path: str) -> Dict[str, Any]:
    """Load configuration from YAML or JSON file."""
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, 'r') as f:
        if path.suffix.lower() in ['.yaml', '.yml']:
            return yaml.safe_load(f) or {}
        elif path.suffix.lower() == '.json':
            return json.load(f)
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")


def get_default_config() -> Dict[str, Any]:
    """Get default configuration."""
    return {
        'task_estimator': {
            'enabled': True,
            'learning_rate': 0.1,
            'confidence_decay_days': 30,
            'min_samples_for_estimate': 3,
        },
        'priority_scheduler': {
            'enabled': True,
            'urgency_weight': 0.4,
            'importance_weight': 0.3,
            'effort_weight': 0.2,
            'deadline_proximity_weight': 0.1,
        },
        'temporal_memory': {
            'enabled': True,
            'decay_half_life_days': 7,
            'relevance_boost_recent': 1.5,
            'include_temporal_context': True,
        },
        'storage': {
            'path': '~/.temporal-cognition/state.json',
        },
    }


def _section(config: Optional[Dict[str, Any]], name: str) -> Dict[str, Any]:
    defaults = get_default_config()[name]
    overrides = (config or {}).get(name) or {}
    return {key: overrides.get(key, value) for key, value in defaults.items()}


def _require_positive(name: str, value: float):
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")


@dataclass(frozen=True)
class EstimatorConfig:
    """Duration estimator settings."""

    enabled: bool = True
    learning_rate: float = 0.1
    confidence_decay_days: float = 30
    min_samples_for_estimate: int = 3

    def __post_init__(self):
        if not 0 < self.learning_rate <= 1:
            raise ConfigError(f"learning_rate must be in (0, 1], got {self.learning_rate}")
        _require_positive('confidence_decay_days', self.confidence_decay_days)
        _require_positive('min_samples_for_estimate', self.min_samples_for_estimate)

    @classmethod
    def from_dict(cls, config: Optional[Dict[str, Any]]) -> 'EstimatorConfig':
        section = _section(config, 'task_estimator')
        return cls(
            enabled=bool(section['enabled']),
            learning_rate=float(section['learning_rate']),
            confidence_decay_days=float(section['confidence_decay_days']),
            min_samples_for_estimate=int(section['min_samples_for_estimate']),
        )


@dataclass(frozen=True)
class SchedulerConfig:
    """Priority scheduler weights. The four weights must sum to 1.0."""

    enabled: bool = True
    urgency_weight: float = 0.4
    importance_weight: float = 0.3
    effort_weight: float = 0.2
    deadline_proximity_weight: float = 0.1

    def __post_init__(self):
        weights = self.weights()
        for key, value in weights.items():
            if not 0.0 <= value <= 1.0:
                raise ConfigError(f"{key} weight must be in [0, 1], got {value}")
        if not math.isclose(sum(weights.values()), 1.0, abs_tol=1e-6):
            raise ConfigError(f"priority weights must sum to 1.0, got {sum(weights.values())}")

    def weights(self) -> Dict[str, float]:
        return {
            'urgency': self.urgency_weight,
            'importance': self.importance_weight,
            'effort': self.effort_weight,
            'deadline': self.deadline_proximity_weight,
        }

    @classmethod
    def from_dict(cls, config: Optional[Dict[str, Any]]) -> 'SchedulerConfig':
        section = _section(config, 'priority_scheduler')
        return cls(
            enabled=bool(section['enabled']),
            urgency_weight=float(section['urgency_weight']),
            importance_weight=float(section['importance_weight']),
            effort_weight=float(section['effort_weight']),
            deadline_proximity_weight=float(section['deadline_proximity_weight']),
        )


@dataclass(frozen=True)
class MemoryConfig:
    """Temporal memory index settings."""

    enabled: bool = True
    decay_half_life_days: float = 7
    relevance_boost_recent: float = 1.5
    include_temporal_context: bool = True

    def __post_init__(self):
        _require_positive('decay_half_life_days', self.decay_half_life_days)
        _require_positive('relevance_boost_recent', self.relevance_boost_recent)

    @classmethod
    def from_dict(cls, config: Optional[Dict[str, Any]]) -> 'MemoryConfig':
        section = _section(config, 'temporal_memory')
        return cls(
            enabled=bool(section['enabled']),
            decay_half_life_days=float(section['decay_half_life_days']),
            relevance_boost_recent=float(section['relevance_boost_recent']),
            include_temporal_context=bool(section['include_temporal_context']),
        )


@dataclass(frozen=True)
class StorageConfig:
    """Where the state document lives."""

    path: str = '~/.temporal-cognition/state.json'

    def resolved_path(self) -> Path:
        return Path(self.path).expanduser()

    @classmethod
    def from_dict(cls, config: Optional[Dict[str, Any]]) -> 'StorageConfig':
        section = _section(config, 'storage')
        return cls(path=str(section['path']))
