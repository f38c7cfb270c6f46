"""Duration estimation, priority scheduling and temporal memory for agents."""

__version__ = '1.0.0'
