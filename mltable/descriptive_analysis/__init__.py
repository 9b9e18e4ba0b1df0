"""Descriptive and reliability statistics for survey scales."""

from .scale_statistics import ScaleStatistics

__all__ = [
    'ScaleStatistics'
]
