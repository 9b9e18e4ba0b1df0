"""Correlation analysis module for composite survey variables."""

from .correlation_engine import CorrelationEngine

__all__ = [
    'CorrelationEngine'
]
