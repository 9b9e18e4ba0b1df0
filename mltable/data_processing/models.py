"""
Core data models and configuration for multilevel correlation tables.

This module defines the option enumerations accepted by the table builders,
the per-level formatting policies, the validated configuration containers,
and the result container produced by the correlation engine.
"""

import json
import numbers
from collections.abc import Iterable
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Callable, ClassVar, Dict, List, Optional, Sequence, Union
import pandas as pd
import numpy as np

from ..exceptions import ValidationError


class _OptionEnum(Enum):
    """Enum whose members are parsed from their exact string value."""

    @classmethod
    def parse(cls, value: Union[str, '_OptionEnum'], option: str) -> '_OptionEnum':
        """Return the member matching ``value`` or raise ValidationError."""
        if isinstance(value, cls):
            return value
        for member in cls:
            if isinstance(value, str) and value == member.value:
                return member
        choices = ", ".join(repr(member.value) for member in cls)
        raise ValidationError(
            f"Invalid value {value!r} for {option}; expected one of: {choices}"
        )


class CorrelationMethod(_OptionEnum):
    """Enumeration of correlation methods."""
    PEARSON = "pearson"
    SPEARMAN = "spearman"
    KENDALL = "kendall"


class MissingDataStrategy(_OptionEnum):
    """Enumeration of missing-data handling strategies for correlations."""
    ALL_OBS = "all.obs"
    COMPLETE_OBS = "complete.obs"
    PAIRWISE_COMPLETE_OBS = "pairwise.complete.obs"


class Triangle(_OptionEnum):
    """Which part of the correlation matrix is displayed."""
    BOTH = "both"
    UPPER = "upper"
    LOWER = "lower"


class RwgMethod(_OptionEnum):
    """How per-group rwg.j values are summarised."""
    MEAN = "mean"
    MEDIAN = "median"


def _mask_lower_triangle(i: int, j: int, replace_diagonal: bool) -> bool:
    return i > j or (replace_diagonal and i == j)


def _mask_upper_triangle(i: int, j: int, replace_diagonal: bool) -> bool:
    return i < j or (replace_diagonal and i == j)


def _mask_diagonal(i: int, j: int, replace_diagonal: bool) -> bool:
    return replace_diagonal and i == j


MaskPredicate = Callable[[int, int, bool], bool]


@dataclass(frozen=True)
class LevelPolicy:
    """Formatting policy that differs between the level-1 and level-2 tables."""
    name: str
    marginal_marker: str
    alpha_header: str
    masks: Dict[Triangle, MaskPredicate]

    def is_masked(self, triangle: Triangle, i: int, j: int, replace_diagonal: bool) -> bool:
        """Check whether cell (i, j) is cleared for the given triangle selection."""
        return self.masks[triangle](i, j, replace_diagonal)


LEVEL1_POLICY = LevelPolicy(
    name="level1",
    marginal_marker="\u00a0",
    alpha_header="Cronbach's alpha",
    masks={
        Triangle.UPPER: _mask_lower_triangle,
        Triangle.LOWER: _mask_upper_triangle,
        Triangle.BOTH: _mask_upper_triangle,
    },
)

LEVEL2_POLICY = LevelPolicy(
    name="level2",
    marginal_marker="†",
    alpha_header="Cronbach's Alpha",
    masks={
        Triangle.UPPER: _mask_lower_triangle,
        Triangle.LOWER: _mask_upper_triangle,
        Triangle.BOTH: _mask_diagonal,
    },
)


def _is_flag(value: Any) -> bool:
    return isinstance(value, (bool, np.bool_))


@dataclass
class TableConfig:
    """Validated options shared by both table builders."""
    policy: ClassVar[LevelPolicy] = LEVEL1_POLICY
    _aliases: ClassVar[Dict[str, str]] = {
        'decimal.mark': 'decimal_mark',
        'lead.decimal': 'lead_decimal',
    }

    type: CorrelationMethod = CorrelationMethod.PEARSON
    digits: int = 3
    decimal_mark: str = "."
    triangle: Triangle = Triangle.BOTH
    use: MissingDataStrategy = MissingDataStrategy.PAIRWISE_COMPLETE_OBS
    show_significance: bool = True
    replace_diagonal: bool = True
    replacement: Optional[Any] = None
    lead_decimal: bool = False
    var_labels: Optional[List[str]] = None
    mean: bool = True
    sd: bool = True
    alpha: bool = True

    def __post_init__(self):
        self.type = CorrelationMethod.parse(self.type, 'type')
        self.triangle = Triangle.parse(self.triangle, 'triangle')
        self.use = MissingDataStrategy.parse(self.use, 'use')

        if (not isinstance(self.digits, numbers.Integral) or _is_flag(self.digits)
                or self.digits < 0):
            raise ValidationError("digits must be a non-negative integer")
        self.digits = int(self.digits)

        if not isinstance(self.decimal_mark, str) or not self.decimal_mark:
            raise ValidationError("decimal_mark must be a non-empty string")

        for name in self._flag_names():
            if not _is_flag(getattr(self, name)):
                raise ValidationError(f"{name} must be a logical (True/False) value")
            setattr(self, name, bool(getattr(self, name)))

        if self.var_labels is not None:
            if isinstance(self.var_labels, str) or not isinstance(self.var_labels, Iterable):
                raise ValidationError("var_labels must be a sequence of labels")
            self.var_labels = [str(label) for label in self.var_labels]

    def _flag_names(self) -> List[str]:
        return ['show_significance', 'replace_diagonal', 'lead_decimal',
                'mean', 'sd', 'alpha']

    def summary_flags(self) -> Dict[str, bool]:
        """Return which summary columns are enabled, in display order."""
        return {'mean': self.mean, 'sd': self.sd, 'alpha': self.alpha}

    @classmethod
    def from_dict(cls, options: Dict[str, Any]) -> 'TableConfig':
        """Build a configuration from a mapping of option names to values."""
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in options.items():
            name = cls._aliases.get(key, key)
            if name not in known:
                raise ValidationError(f"Unknown option for {cls.__name__}: {key!r}")
            kwargs[name] = value
        return cls(**kwargs)

    def merged(self, **overrides) -> 'TableConfig':
        """Return a new configuration with ``overrides`` applied on top of this one."""
        options = {f.name: getattr(self, f.name) for f in fields(self)}
        options.update(overrides)
        return self.from_dict(options)


@dataclass
class Level1Config(TableConfig):
    """Options for individual-level correlation tables."""
    policy: ClassVar[LevelPolicy] = LEVEL1_POLICY


@dataclass
class Level2Config(TableConfig):
    """Options for group-level (aggregated) correlation tables."""
    policy: ClassVar[LevelPolicy] = LEVEL2_POLICY

    triangle: Triangle = Triangle.LOWER
    lead_decimal: bool = True
    rwg: bool = True
    rwg_scale: float = 7
    rwg_method: RwgMethod = RwgMethod.MEAN

    def __post_init__(self):
        super().__post_init__()
        self.rwg_method = RwgMethod.parse(self.rwg_method, 'rwg_method')
        if (not isinstance(self.rwg_scale, numbers.Real) or _is_flag(self.rwg_scale)
                or not self.rwg_scale > 1):
            raise ValidationError("rwg_scale must be a number of response options greater than 1")

    def _flag_names(self) -> List[str]:
        return super()._flag_names() + ['rwg']

    def summary_flags(self) -> Dict[str, bool]:
        flags = super().summary_flags()
        flags['rwg'] = self.rwg
        return flags

    @property
    def expected_random_variance(self) -> float:
        """Variance of a uniform null distribution over the response scale."""
        return (self.rwg_scale ** 2 - 1) / 12


def load_config_file(config_path: Union[str, Path]) -> Dict[str, Dict[str, Any]]:
    """Read a JSON file with optional ``level1`` and ``level2`` option sections."""
    with open(config_path, 'r', encoding='utf-8') as f:
        raw = json.load(f)
    if not isinstance(raw, dict):
        raise ValidationError("Configuration file must contain a JSON object")
    unknown = set(raw) - {'level1', 'level2'}
    if unknown:
        raise ValidationError(f"Unknown configuration sections: {sorted(unknown)}")
    return {
        'level1': dict(raw.get('level1', {})),
        'level2': dict(raw.get('level2', {})),
    }


@dataclass
class VariableGroup:
    """A composite variable and the item columns it averages."""
    name: str
    columns: List[str] = field(default_factory=list)

    @property
    def n_items(self) -> int:
        return len(self.columns)

    def is_multi_item(self) -> bool:
        """Check if reliability and agreement can be computed for this group."""
        return self.n_items > 1


@dataclass
class CorrelationMatrices:
    """Container for a correlation matrix and its matching p-values."""
    correlations: pd.DataFrame
    p_values: pd.DataFrame
    method: CorrelationMethod
    use: MissingDataStrategy
    n_observations: int

    @property
    def variables(self) -> List[str]:
        return list(self.correlations.columns)

    def has_negative(self) -> bool:
        """Check if any coefficient in the matrix is negative."""
        values = self.correlations.to_numpy(dtype=float)
        return bool(np.any(values[~np.isnan(values)] < 0))


# Type aliases for convenience
ColumnReference = Union[int, str]
VariableSpec = Dict[str, Union[ColumnReference, Sequence[ColumnReference], range]]
