"""
Tests for rendering correlation matrices as display tables.
"""

import unittest
import pandas as pd
import numpy as np

from mltable.data_processing.models import (
    CorrelationMatrices, CorrelationMethod, MissingDataStrategy,
    LEVEL1_POLICY, LEVEL2_POLICY, Level1Config, Level2Config, VariableGroup
)
from mltable.formatting.matrix_formatter import MatrixFormatter
from mltable.exceptions import ValidationError

NBSP = "\u00a0"


def make_matrices(correlations, p_values=None):
    names = ['a', 'b', 'c']
    if p_values is None:
        p_values = np.full((3, 3), np.nan)
    return CorrelationMatrices(
        correlations=pd.DataFrame(correlations, index=names, columns=names, dtype=float),
        p_values=pd.DataFrame(p_values, index=names, columns=names, dtype=float),
        method=CorrelationMethod.PEARSON,
        use=MissingDataStrategy.PAIRWISE_COMPLETE_OBS,
        n_observations=100,
    )


class TestNumberFormatting(unittest.TestCase):
    """Fixed-decimal rendering and leading-zero handling."""

    def setUp(self):
        """Set up test fixtures."""
        self.formatter = MatrixFormatter(LEVEL1_POLICY)

    def test_half_with_and_without_leading_zero(self):
        text = self.formatter.format_number(0.5, 3)
        self.assertEqual(text, "0.500")
        self.assertEqual(self.formatter.strip_leading_zero(text), ".500")

    def test_negative_leading_zero(self):
        text = self.formatter.format_number(-0.1234, 2)
        self.assertEqual(text, "-0.12")
        self.assertEqual(self.formatter.strip_leading_zero(text), "-.12")

    def test_values_above_one_keep_their_digits(self):
        self.assertEqual(self.formatter.strip_leading_zero("10.500"), "10.500")
        self.assertEqual(self.formatter.strip_leading_zero("1.000"), "1.000")

    def test_decimal_mark(self):
        text = self.formatter.format_number(0.5, 3, ",")
        self.assertEqual(text, "0,500")
        self.assertEqual(self.formatter.strip_leading_zero(text, ","), ",500")

    def test_missing_value_is_blank(self):
        self.assertEqual(self.formatter.format_number(np.nan, 3), "")
        self.assertEqual(self.formatter.format_number(None, 3), "")

    def test_significance_thresholds(self):
        self.assertEqual(self.formatter.significance_marker(0.0005), "***")
        self.assertEqual(self.formatter.significance_marker(0.005), "**")
        self.assertEqual(self.formatter.significance_marker(0.03), "*")
        self.assertEqual(self.formatter.significance_marker(0.07), NBSP)
        self.assertEqual(self.formatter.significance_marker(0.10), "")
        self.assertEqual(self.formatter.significance_marker(np.nan), "")
        self.assertEqual(MatrixFormatter(LEVEL2_POLICY).significance_marker(0.07), "†")


class TestCorrelationCells(unittest.TestCase):
    """Sign alignment, stars and triangle masking."""

    def setUp(self):
        """Set up test fixtures."""
        self.matrices = make_matrices(
            [[1.0, 0.5, -0.25], [0.5, 1.0, 0.1], [-0.25, 0.1, 1.0]],
            [[np.nan, 0.0005, 0.03], [0.0005, np.nan, 0.08], [0.03, 0.08, np.nan]],
        )

    def test_level1_upper_triangle(self):
        formatter = MatrixFormatter(LEVEL1_POLICY)
        config = Level1Config(triangle="upper", replace_diagonal=False)
        cells = formatter.format_correlations(self.matrices, config)

        self.assertEqual(cells[0], [" 1.000", " .500***", "-.250*"])
        self.assertEqual(cells[1], ["", " 1.000", " .100" + NBSP])
        self.assertEqual(cells[2], ["", "", " 1.000"])

    def test_level2_lower_triangle(self):
        formatter = MatrixFormatter(LEVEL2_POLICY)
        cells = formatter.format_correlations(self.matrices, Level2Config())

        self.assertEqual(cells[0], ["", "", ""])
        self.assertEqual(cells[1], [" 0.500***", "", ""])
        self.assertEqual(cells[2], ["-0.250*", " 0.100†", ""])

    def test_no_alignment_without_negatives(self):
        matrices = make_matrices([[1.0, 0.5, 0.2], [0.5, 1.0, 0.1], [0.2, 0.1, 1.0]])
        formatter = MatrixFormatter(LEVEL1_POLICY)
        cells = formatter.format_correlations(matrices, Level1Config())

        self.assertEqual(cells[1], [".500", "", ""])
        self.assertEqual(cells[2], [".200", ".100", ""])

    def test_significance_disabled(self):
        formatter = MatrixFormatter(LEVEL2_POLICY)
        cells = formatter.format_correlations(self.matrices, Level2Config(show_significance=False))

        self.assertEqual(cells[1][0], " 0.500")

    def test_masking_never_changes_shape(self):
        for policy, config_class in [(LEVEL1_POLICY, Level1Config), (LEVEL2_POLICY, Level2Config)]:
            formatter = MatrixFormatter(policy)
            for triangle in ("both", "upper", "lower"):
                for replace_diagonal in (True, False):
                    config = config_class(triangle=triangle, replace_diagonal=replace_diagonal)
                    cells = formatter.format_correlations(self.matrices, config)
                    self.assertEqual(len(cells), 3)
                    self.assertTrue(all(len(row) == 3 for row in cells))

    def test_level2_both_keeps_off_diagonal(self):
        formatter = MatrixFormatter(LEVEL2_POLICY)
        cells = formatter.format_correlations(self.matrices, Level2Config(triangle="both"))

        self.assertEqual([cells[i][i] for i in range(3)], ["", "", ""])
        self.assertTrue(all(cells[i][j] for i in range(3) for j in range(3) if i != j))

    def test_custom_replacement(self):
        formatter = MatrixFormatter(LEVEL1_POLICY)
        cells = formatter.format_correlations(self.matrices, Level1Config(replacement="-"))

        self.assertEqual(cells[0], ["-", "-", "-"])
        self.assertEqual(cells[2][2], "-")


class TestBuildTable(unittest.TestCase):
    """Assembly of summary and correlation columns."""

    def setUp(self):
        """Set up test fixtures."""
        self.groups = [
            VariableGroup('a', ['x1', 'x2']),
            VariableGroup('b', ['y']),
            VariableGroup('c', ['z1', 'z2', 'z3']),
        ]
        self.matrices = make_matrices(
            [[1.0, 0.3, 0.2], [0.3, 1.0, 0.4], [0.2, 0.4, 1.0]],
            [[np.nan, 0.2, 0.5], [0.2, np.nan, 0.005], [0.5, 0.005, np.nan]],
        )
        names = ['a', 'b', 'c']
        self.summaries = {
            'mean': pd.Series([3.14159, 0.5, 4.0], index=names),
            'sd': pd.Series([1.0, 0.25, 0.8], index=names),
            'alpha': pd.Series([0.8123, np.nan, 0.7], index=names),
            'rwg': pd.Series([0.91, np.nan, 0.85], index=names),
        }

    def test_level1_headers_and_cells(self):
        formatter = MatrixFormatter(LEVEL1_POLICY)
        table = formatter.build_table(self.matrices, Level1Config(), self.groups, self.summaries)

        self.assertEqual(list(table.columns), ["Mean", "SD", "Cronbach's alpha", "a", "b", "c"])
        self.assertEqual(list(table.index), ["a", "b", "c"])
        self.assertEqual(table.loc['a', 'Mean'], "3.142")
        self.assertEqual(table.loc['b', 'Mean'], "0.500")
        self.assertEqual(table.loc['a', "Cronbach's alpha"], ".812")
        self.assertEqual(table.loc['b', "Cronbach's alpha"], "")
        self.assertEqual(table.loc['c', 'b'], ".400**")
        self.assertEqual(table.loc['a', 'a'], "")

    def test_level2_headers_follow_labels(self):
        formatter = MatrixFormatter(LEVEL2_POLICY)
        labels = ["Team A", "Team B", "Team C"]

        table = formatter.build_table(self.matrices, Level2Config(var_labels=labels),
                                      self.groups, self.summaries)
        self.assertEqual(list(table.columns),
                         ["Mean", "SD", "Cronbach's Alpha", "rwg.j"] + labels)
        self.assertEqual(list(table.index), labels)
        self.assertEqual(table.loc["Team A", "rwg.j"], ".910")

        table = formatter.build_table(self.matrices, Level2Config(rwg_method="median"),
                                      self.groups, self.summaries)
        self.assertEqual(list(table.columns)[3], "Median rwg.j")

    def test_disabled_summaries_are_left_out(self):
        formatter = MatrixFormatter(LEVEL2_POLICY)
        config = Level2Config(mean=False, alpha=False, rwg=False)
        table = formatter.build_table(self.matrices, config, self.groups, {'sd': self.summaries['sd']})

        self.assertEqual(list(table.columns), ["SD", "a", "b", "c"])

    def test_label_count_mismatch(self):
        formatter = MatrixFormatter(LEVEL1_POLICY)
        with self.assertRaisesRegex(ValidationError, "number of variable labels"):
            formatter.build_table(self.matrices, Level1Config(var_labels=["only one"]),
                                  self.groups, self.summaries)

    def test_all_cells_are_strings(self):
        formatter = MatrixFormatter(LEVEL2_POLICY)
        table = formatter.build_table(self.matrices, Level2Config(), self.groups, self.summaries)

        self.assertTrue(all(isinstance(cell, str) for cell in table.to_numpy().ravel()))


if __name__ == '__main__':
    unittest.main()
