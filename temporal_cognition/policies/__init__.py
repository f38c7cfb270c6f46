"""Priority policy implementations."""

from .base import PriorityPolicy
from .weighted import WeightedPriorityPolicy

__all__ = ['PriorityPolicy', 'WeightedPriorityPolicy']
