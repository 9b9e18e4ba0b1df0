"""
Tests for the correlation and significance engine.
"""

import unittest
import pandas as pd
import numpy as np
from scipy import stats

from mltable.correlation_analysis.correlation_engine import CorrelationEngine
from mltable.data_processing.models import CorrelationMethod, MissingDataStrategy
from mltable.exceptions import ComputationError


class TestCorrelationEngine(unittest.TestCase):
    """Test cases for CorrelationEngine."""

    def setUp(self):
        """Set up test fixtures."""
        rng = np.random.default_rng(7)
        x = rng.normal(0, 1, 60)
        self.data = pd.DataFrame({
            'x': x,
            'y': 0.6 * x + rng.normal(0, 1, 60),
            'z': -0.4 * x + rng.normal(0, 1, 60),
        })
        self.data.loc[0:4, 'y'] = np.nan
        self.data.loc[10:12, 'z'] = np.nan
        self.engine = CorrelationEngine()

    def test_pairwise_matrix_matches_pandas(self):
        result = self.engine.compute(self.data)

        pd.testing.assert_frame_equal(result.correlations, self.data.corr())
        np.testing.assert_allclose(np.diag(result.correlations), 1.0)
        self.assertEqual(result.variables, ['x', 'y', 'z'])

    def test_p_values_are_symmetric_with_empty_diagonal(self):
        result = self.engine.compute(self.data)
        p_values = result.p_values.to_numpy()

        self.assertTrue(np.all(np.isnan(np.diag(p_values))))
        np.testing.assert_allclose(p_values, p_values.T)

        mask = self.data['x'].notna() & self.data['y'].notna()
        expected = stats.pearsonr(self.data.loc[mask, 'x'], self.data.loc[mask, 'y']).pvalue
        self.assertAlmostEqual(p_values[0, 1], expected)

    def test_rank_methods(self):
        for method, test in [(CorrelationMethod.SPEARMAN, stats.spearmanr),
                             (CorrelationMethod.KENDALL, stats.kendalltau)]:
            result = self.engine.compute(self.data, method=method)
            mask = self.data['x'].notna() & self.data['z'].notna()
            expected = test(self.data.loc[mask, 'x'], self.data.loc[mask, 'z'])

            self.assertAlmostEqual(result.correlations.loc['x', 'z'], expected.statistic)
            self.assertAlmostEqual(result.p_values.loc['z', 'x'], expected.pvalue)

    def test_significance_disabled(self):
        result = self.engine.compute(self.data, show_significance=False)

        self.assertTrue(result.p_values.isna().all().all())
        self.assertEqual(result.p_values.shape, (3, 3))

    def test_complete_observations(self):
        result = self.engine.compute(self.data, use=MissingDataStrategy.COMPLETE_OBS)
        complete = self.data.dropna()

        pd.testing.assert_frame_equal(result.correlations, complete.corr())
        self.assertEqual(result.n_observations, len(complete))
        expected = stats.pearsonr(complete['y'], complete['z']).pvalue
        self.assertAlmostEqual(result.p_values.loc['y', 'z'], expected)

    def test_p_value_strategy_override(self):
        result = self.engine.compute(
            self.data,
            use=MissingDataStrategy.COMPLETE_OBS,
            p_value_use=MissingDataStrategy.PAIRWISE_COMPLETE_OBS,
        )
        mask = self.data['x'].notna() & self.data['y'].notna()
        expected = stats.pearsonr(self.data.loc[mask, 'x'], self.data.loc[mask, 'y']).pvalue

        self.assertAlmostEqual(result.p_values.loc['x', 'y'], expected)

    def test_all_observations_with_missing_values(self):
        with self.assertRaisesRegex(ComputationError, "missing observations"):
            self.engine.compute(self.data, use=MissingDataStrategy.ALL_OBS)

        complete = self.data.dropna()
        result = self.engine.compute(complete, use=MissingDataStrategy.ALL_OBS)
        self.assertEqual(result.n_observations, len(complete))

    def test_constant_column_is_fatal(self):
        data = self.data.assign(c=1.0)

        with self.assertRaisesRegex(ComputationError, "standard deviation is zero"):
            self.engine.compute(data)

    def test_too_few_observations_is_fatal(self):
        data = pd.DataFrame({'a': [1.0, 2.0], 'b': [2.0, 1.0]})

        with self.assertRaisesRegex(ComputationError, "Not enough finite observations"):
            self.engine.compute(data)

    def test_has_negative(self):
        self.assertTrue(self.engine.compute(self.data).has_negative())
        positive = self.data[['x', 'y']]
        self.assertFalse(self.engine.compute(positive).has_negative())


if __name__ == '__main__':
    unittest.main()
