"""
mltable

Correlation tables for multilevel survey data: individual-level and
group-aggregated correlation matrices annotated with means, standard
deviations, Cronbach's alpha and within-group agreement (rwg.j), formatted
for publication and export.
"""

__version__ = "0.1.0"

from .correlation_tables import (
    MultilevelTableTool,
    Level1TableBuilder,
    Level2TableBuilder,
    corr_level1,
    corr_level2,
    corr_table,
    export_table
)
from .data_processing.composite_builder import columns
from .data_processing.models import (
    CorrelationMethod,
    MissingDataStrategy,
    Triangle,
    RwgMethod,
    Level1Config,
    Level2Config
)
from .exceptions import MltableError, ValidationError, ComputationError

__all__ = [
    'MultilevelTableTool',
    'Level1TableBuilder',
    'Level2TableBuilder',
    'corr_level1',
    'corr_level2',
    'corr_table',
    'export_table',
    'columns',
    'CorrelationMethod',
    'MissingDataStrategy',
    'Triangle',
    'RwgMethod',
    'Level1Config',
    'Level2Config',
    'MltableError',
    'ValidationError',
    'ComputationError'
]
