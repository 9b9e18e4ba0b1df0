"""
Correlation and significance engine for composite survey variables.

This module computes the full correlation matrix of a set of composite (or
group-aggregated composite) variables with pandas, and a matching matrix of
two-sided p-values with scipy, under a chosen missing-data strategy.
"""

import itertools
import logging
from typing import Optional
import pandas as pd
import numpy as np
from scipy import stats

from ..exceptions import ComputationError
from ..data_processing.models import (
    CorrelationMatrices, CorrelationMethod, MissingDataStrategy
)


class CorrelationEngine:
    """
    Pairwise correlation and significance testing.

    Features:
    - Pearson, Spearman and Kendall correlation matrices
    - All-observation, listwise and pairwise missing-data handling
    - Symmetric two-sided p-value matrices
    - Fatal errors for degenerate pairs, never silently blank cells
    """

    _TESTS = {
        CorrelationMethod.PEARSON: stats.pearsonr,
        CorrelationMethod.SPEARMAN: stats.spearmanr,
        CorrelationMethod.KENDALL: stats.kendalltau,
    }

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def compute(self,
                data: pd.DataFrame,
                method: CorrelationMethod = CorrelationMethod.PEARSON,
                use: MissingDataStrategy = MissingDataStrategy.PAIRWISE_COMPLETE_OBS,
                show_significance: bool = True,
                p_value_use: Optional[MissingDataStrategy] = None) -> CorrelationMatrices:
        """
        Compute correlations and, optionally, their p-values.

        Parameters
        ----------
        data : pd.DataFrame
            Numeric matrix; rows are observations or groups, columns are variables
        method : CorrelationMethod, default PEARSON
            Correlation coefficient to compute
        use : MissingDataStrategy, default PAIRWISE_COMPLETE_OBS
            Missing-data handling for the correlation matrix
        show_significance : bool, default True
            Whether to run a significance test for every pair of variables
        p_value_use : MissingDataStrategy, optional
            Missing-data handling for the tests. Defaults to ``use``

        Returns
        -------
        CorrelationMatrices
            Correlation matrix and symmetric p-value matrix (NaN on the
            diagonal, all NaN when significance is disabled)
        """
        values = self._apply_strategy(data.astype(float), use)
        correlations = values.corr(method=method.value)

        variables = list(data.columns)
        p_values = pd.DataFrame(np.nan, index=variables, columns=variables)

        if show_significance:
            test_data = values
            if p_value_use is not None and p_value_use != use:
                test_data = self._apply_strategy(data.astype(float), p_value_use)
            p_values = self.significance_matrix(test_data, method)

        self.logger.info(
            f"Computed {method.value} correlations for {len(variables)} variables "
            f"({len(values)} observations, use={use.value})"
        )

        return CorrelationMatrices(
            correlations=correlations,
            p_values=p_values,
            method=method,
            use=use,
            n_observations=len(values),
        )

    def significance_matrix(self, data: pd.DataFrame, method: CorrelationMethod) -> pd.DataFrame:
        """Two-sided p-value for every unordered pair of columns, stored symmetrically."""
        variables = list(data.columns)
        p_values = pd.DataFrame(np.nan, index=variables, columns=variables)

        for i, j in itertools.combinations(range(len(variables)), 2):
            p_value = self._test_pair(data.iloc[:, i], data.iloc[:, j], method)
            p_values.iat[i, j] = p_value
            p_values.iat[j, i] = p_value

        return p_values

    def _apply_strategy(self, data: pd.DataFrame, use: MissingDataStrategy) -> pd.DataFrame:
        if use == MissingDataStrategy.ALL_OBS:
            if data.isna().to_numpy().any():
                raise ComputationError("missing observations in cov/cor")
            return data
        if use == MissingDataStrategy.COMPLETE_OBS:
            complete = data.dropna()
            if complete.empty:
                raise ComputationError("no complete element pairs")
            return complete
        return data

    def _test_pair(self, x: pd.Series, y: pd.Series, method: CorrelationMethod) -> float:
        pair = f"'{x.name}' and '{y.name}'"
        valid_mask = x.notna() & y.notna()
        n_valid = int(valid_mask.sum())

        minimum = 3 if method == CorrelationMethod.PEARSON else 2
        if n_valid < minimum:
            raise ComputationError(
                f"Not enough finite observations to test the correlation between {pair} "
                f"(n={n_valid})"
            )

        x_clean = x[valid_mask].to_numpy()
        y_clean = y[valid_mask].to_numpy()
        if np.ptp(x_clean) == 0 or np.ptp(y_clean) == 0:
            raise ComputationError(
                f"Cannot test the correlation between {pair}: the standard deviation is zero"
            )

        try:
            result = self._TESTS[method](x_clean, y_clean)
        except Exception as e:
            raise ComputationError(
                f"{method.value} correlation test failed for {pair}: {e}"
            ) from e

        p_value = float(result.pvalue)
        if not np.isfinite(p_value):
            raise ComputationError(f"{method.value} correlation test for {pair} returned no p-value")
        return p_value
