"""Utility functions."""

from .config import (
    ConfigError,
    EstimatorConfig,
    MemoryConfig,
    SchedulerConfig,
    StorageConfig,
    get_default_config,
    load_config,
)
from .time_math import exponential_decay, round_half_up

__all__ = [
    'ConfigError',
    'EstimatorConfig',
    'MemoryConfig',
    'SchedulerConfig',
    'StorageConfig',
    'exponential_decay',
    'get_default_config',
    'load_config',
    'round_half_up',
]
