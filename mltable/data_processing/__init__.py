"""Data processing module for multilevel correlation tables."""

from .data_loader import DataLoader
from .composite_builder import CompositeVariableBuilder, columns, validate_dataset
from .aggregation import GroupAggregator
from .models import (
    CorrelationMethod,
    MissingDataStrategy,
    Triangle,
    RwgMethod,
    LevelPolicy,
    LEVEL1_POLICY,
    LEVEL2_POLICY,
    TableConfig,
    Level1Config,
    Level2Config,
    VariableGroup,
    VariableSpec,
    CorrelationMatrices,
    load_config_file
)

__all__ = [
    'DataLoader',
    'CompositeVariableBuilder',
    'columns',
    'validate_dataset',
    'GroupAggregator',
    'CorrelationMethod',
    'MissingDataStrategy',
    'Triangle',
    'RwgMethod',
    'LevelPolicy',
    'LEVEL1_POLICY',
    'LEVEL2_POLICY',
    'TableConfig',
    'Level1Config',
    'Level2Config',
    'VariableGroup',
    'VariableSpec',
    'CorrelationMatrices',
    'load_config_file'
]
