"""
Composite variable construction for multi-item survey scales.

A variable group specification maps a composite name to one or more item
columns, addressed by name or by 1-based position. Each composite is the
row mean of its items, ignoring missing responses.
"""

import logging
import numbers
from collections.abc import Mapping
from typing import List
import pandas as pd
import numpy as np

from ..exceptions import ValidationError
from .models import ColumnReference, VariableGroup, VariableSpec


def columns(start: int, stop: int) -> List[int]:
    """Inclusive 1-based position range, e.g. ``columns(5, 14)`` for items 5 to 14."""
    if stop < start:
        raise ValidationError(f"Invalid column range {start}:{stop}")
    return list(range(start, stop + 1))


def validate_dataset(data: pd.DataFrame) -> None:
    """Check that ``data`` is a DataFrame with at least one row."""
    if not isinstance(data, pd.DataFrame) or len(data) == 0:
        raise ValidationError("The data frame has no rows or is not a data frame.")


class CompositeVariableBuilder:
    """
    Builds one averaged column per variable group.

    Features:
    - Column references by name, 1-based position or position range
    - Numeric-only validation across all groups before any averaging
    - Missing-value tolerant row means
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def resolve_groups(self, data: pd.DataFrame, var_list: VariableSpec) -> List[VariableGroup]:
        """
        Resolve a variable group specification against the dataset columns.

        Parameters
        ----------
        data : pd.DataFrame
            Item-level survey data
        var_list : dict
            Ordered mapping of composite name to column reference(s)

        Returns
        -------
        list of VariableGroup
            Groups with column names resolved, in specification order
        """
        if not isinstance(var_list, Mapping) or len(var_list) == 0:
            raise ValidationError("var_list must be a non-empty mapping of names to columns")

        groups = []
        for name, spec in var_list.items():
            references = self._as_reference_list(name, spec)
            resolved = [self._resolve_reference(data, ref) for ref in references]
            groups.append(VariableGroup(name=str(name), columns=resolved))

        return groups

    def build(self, data: pd.DataFrame, groups: List[VariableGroup]) -> pd.DataFrame:
        """
        Average each group's items into a composite column.

        Parameters
        ----------
        data : pd.DataFrame
            Item-level survey data
        groups : list of VariableGroup
            Resolved variable groups

        Returns
        -------
        pd.DataFrame
            One column per group, same index and row order as ``data``
        """
        selections = [data.loc[:, group.columns] for group in groups]

        # Every group is checked before any composite is computed
        for selection in selections:
            if not all(self._is_numeric(selection.iloc[:, k]) for k in range(selection.shape[1])):
                raise ValidationError("All columns used for calculating new variables must be numeric.")
            if len(selection) != len(data):
                raise ValidationError("All columns must have the same number of rows.")

        composites = pd.DataFrame(index=data.index)
        for group, selection in zip(groups, selections):
            composites[group.name] = selection.astype(float).mean(axis=1, skipna=True)

        self.logger.info(
            f"Built {len(groups)} composite variables from {len(data)} observations"
        )
        return composites

    def _as_reference_list(self, name, spec) -> List[ColumnReference]:
        if isinstance(spec, (str, numbers.Integral)):
            references = [spec]
        elif isinstance(spec, (list, tuple, range, pd.Index, np.ndarray)):
            references = list(spec)
        else:
            raise ValidationError(
                f"Variable group '{name}' must be a column name, a position, or a sequence of them"
            )

        if len(references) == 0:
            raise ValidationError(f"Variable group '{name}' must reference at least one column")
        return references

    def _resolve_reference(self, data: pd.DataFrame, ref) -> str:
        if isinstance(ref, (bool, np.bool_)):
            raise ValidationError(f"Invalid column reference: {ref!r}")
        if isinstance(ref, numbers.Integral):
            position = int(ref)
            if position < 1 or position > data.shape[1]:
                raise ValidationError(
                    f"Column position {position} is out of range for data with {data.shape[1]} columns"
                )
            return data.columns[position - 1]
        if isinstance(ref, str):
            if ref not in data.columns:
                raise ValidationError(f"Column '{ref}' does not exist in the data.")
            return ref
        raise ValidationError(f"Invalid column reference: {ref!r}")

    @staticmethod
    def _is_numeric(series: pd.Series) -> bool:
        return (pd.api.types.is_numeric_dtype(series)
                and not pd.api.types.is_bool_dtype(series))
