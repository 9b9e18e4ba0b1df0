"""
Scale-level summary statistics for correlation tables.

Provides the descriptive columns that accompany a correlation table: the
mean and standard deviation of each composite, standardized Cronbach's
alpha of its items, and within-group agreement (rwg.j) for group-level
tables.
"""

import logging
from typing import Hashable, List
import pandas as pd
import numpy as np
import pingouin as pg

from ..exceptions import ComputationError
from ..data_processing.models import RwgMethod, VariableGroup


class ScaleStatistics:
    """
    Summary statistics for multi-item survey scales.

    Features:
    - Means and standard deviations of composite variables
    - Standardized Cronbach's alpha (items z-scored before pingouin's alpha)
    - rwg.j agreement index per group against a uniform null distribution
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def means(self, composites: pd.DataFrame) -> pd.Series:
        """Column means ignoring missing values."""
        return composites.mean(skipna=True)

    def standard_deviations(self, composites: pd.DataFrame) -> pd.Series:
        """Sample standard deviations (ddof=1) ignoring missing values."""
        return composites.std(ddof=1, skipna=True)

    def cronbach_alphas(self, data: pd.DataFrame, groups: List[VariableGroup]) -> pd.Series:
        """Standardized alpha for every group; NaN for single-item groups."""
        return pd.Series(
            [self.cronbach_alpha(data, group) for group in groups],
            index=[group.name for group in groups],
            dtype=float,
        )

    def cronbach_alpha(self, data: pd.DataFrame, group: VariableGroup) -> float:
        """
        Standardized Cronbach's alpha of one group's item columns.

        Parameters
        ----------
        data : pd.DataFrame
            Item-level data
        group : VariableGroup
            Group whose items are assessed

        Returns
        -------
        float
            Alpha based on the inter-item correlations, NaN when the group
            has fewer than two items
        """
        if not group.is_multi_item():
            return np.nan

        items = data.loc[:, group.columns].astype(float)
        spread = items.std(ddof=1)
        if (spread.isna() | (spread == 0)).any():
            raise ComputationError(
                f"Cannot compute Cronbach's alpha for '{group.name}': an item has no variance"
            )
        standardized = (items - items.mean()) / spread

        try:
            alpha, _ = pg.cronbach_alpha(data=standardized, nan_policy='pairwise')
        except Exception as e:
            raise ComputationError(
                f"Cronbach's alpha could not be computed for '{group.name}': {e}"
            ) from e

        return float(alpha)

    def rwg_j(self,
              data: pd.DataFrame,
              group: VariableGroup,
              groupid: Hashable,
              expected_variance: float) -> pd.Series:
        """
        rwg.j of one group's items for every level-2 unit.

        Parameters
        ----------
        data : pd.DataFrame
            Item-level data
        group : VariableGroup
            Scale whose within-group agreement is computed
        groupid : hashable
            Column identifying group membership
        expected_variance : float
            Variance expected under random responding

        Returns
        -------
        pd.Series
            One value per group (sorted by group id), clipped to [0, 1];
            NaN for groups with a single complete respondent
        """
        items = data.loc[:, group.columns].astype(float)
        keys = data[groupid]
        complete = items.notna().all(axis=1) & keys.notna()
        items, keys = items[complete], keys[complete]

        n_items = items.shape[1]
        values = {}
        for key, members in items.groupby(keys.to_numpy(), sort=True):
            if len(members) < 2:
                values[key] = np.nan
                continue
            ratio = members.var(ddof=1).mean() / expected_variance
            if ratio >= 1:
                values[key] = 0.0
                continue
            agreement = n_items * (1 - ratio)
            values[key] = float(min(agreement / (agreement + ratio), 1.0))

        return pd.Series(values, dtype=float, name=group.name)

    def summarize_rwg(self,
                      data: pd.DataFrame,
                      groups: List[VariableGroup],
                      groupid: Hashable,
                      expected_variance: float,
                      method: RwgMethod = RwgMethod.MEAN) -> pd.Series:
        """Mean or median rwg.j across groups for every multi-item scale."""
        summaries = {}
        for group in groups:
            if not group.is_multi_item():
                summaries[group.name] = np.nan
                continue

            per_group = self.rwg_j(data, group, groupid, expected_variance)
            if per_group.isna().all():
                self.logger.warning(f"rwg.j is undefined for every group of '{group.name}'")

            if method == RwgMethod.MEDIAN:
                summaries[group.name] = per_group.median(skipna=True)
            else:
                summaries[group.name] = per_group.mean(skipna=True)

        return pd.Series(summaries, dtype=float)
