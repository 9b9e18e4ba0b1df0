"""
Publication-style rendering of correlation matrices.

Turns a numeric correlation matrix and its p-values into a table of display
strings: fixed-decimal coefficients, optional leading-zero suppression, sign
alignment, significance stars, triangle masking and leading summary columns.
"""

import logging
from typing import Dict, List, Optional
import pandas as pd
import numpy as np

from ..exceptions import ValidationError
from ..data_processing.models import (
    CorrelationMatrices, LevelPolicy, TableConfig, VariableGroup
)

# (upper bound, marker); the p < .10 marker comes from the level policy
SIGNIFICANCE_LEVELS = [(0.001, "***"), (0.01, "**"), (0.05, "*")]
MARGINAL_LEVEL = 0.10


def check_labels(config: TableConfig, groups: List[VariableGroup]) -> None:
    """Raise ValidationError unless there is exactly one label per variable group."""
    if config.var_labels is not None and len(config.var_labels) != len(groups):
        raise ValidationError(
            "The number of variable labels must match the number of variable groups."
        )


class MatrixFormatter:
    """
    Renders correlation results as a table of display strings.

    The formatter is parameterised by a LevelPolicy, which supplies the
    triangle masking rules, the p < .10 marker and the alpha column header
    of the table level being produced.
    """

    def __init__(self, policy: LevelPolicy):
        self.policy = policy
        self.logger = logging.getLogger(__name__)

    def format_number(self, value: float, digits: int, decimal_mark: str = ".") -> str:
        """Fixed-decimal rendering; missing values become an empty string."""
        if value is None or pd.isna(value):
            return ""
        text = f"{float(value):.{digits}f}"
        if decimal_mark != ".":
            text = text.replace(".", decimal_mark)
        return text

    @staticmethod
    def strip_leading_zero(text: str, decimal_mark: str = ".") -> str:
        """Turn '0.123' into '.123' and '-0.123' into '-.123'."""
        if text.startswith("0" + decimal_mark):
            return text[1:]
        if text.startswith("-0" + decimal_mark):
            return "-" + text[2:]
        return text

    def significance_marker(self, p_value: float) -> str:
        """Star annotation for a two-sided p-value."""
        if pd.isna(p_value):
            return ""
        for threshold, marker in SIGNIFICANCE_LEVELS:
            if p_value < threshold:
                return marker
        if p_value < MARGINAL_LEVEL:
            return self.policy.marginal_marker
        return ""

    def format_correlations(self,
                            matrices: CorrelationMatrices,
                            config: TableConfig) -> List[List[str]]:
        """
        Render and mask the correlation matrix.

        Parameters
        ----------
        matrices : CorrelationMatrices
            Correlation and p-value matrices
        config : TableConfig
            Formatting options

        Returns
        -------
        list of list of str
            Square grid of display strings; masked cells hold the replacement
        """
        correlations = matrices.correlations.to_numpy(dtype=float)
        p_values = matrices.p_values.to_numpy(dtype=float)
        align_signs = matrices.has_negative()
        replacement = self._replacement_text(config.replacement)

        size = correlations.shape[0]
        cells = []
        for i in range(size):
            row = []
            for j in range(size):
                if self.policy.is_masked(config.triangle, i, j, config.replace_diagonal):
                    row.append(replacement)
                    continue
                row.append(self._format_coefficient(
                    correlations[i, j], p_values[i, j], align_signs, config
                ))
            cells.append(row)

        return cells

    def build_table(self,
                    matrices: CorrelationMatrices,
                    config: TableConfig,
                    groups: List[VariableGroup],
                    summaries: Dict[str, pd.Series]) -> pd.DataFrame:
        """
        Assemble the final table: summary columns followed by correlations.

        Parameters
        ----------
        matrices : CorrelationMatrices
            Correlation and p-value matrices, ordered like ``groups``
        config : TableConfig
            Formatting options, including which summaries are enabled
        groups : list of VariableGroup
            Variable groups in display order
        summaries : dict
            Summary values keyed by 'mean', 'sd', 'alpha' and 'rwg'; only
            keys enabled in ``config`` are rendered

        Returns
        -------
        pd.DataFrame
            Table of strings indexed by variable label
        """
        check_labels(config, groups)
        labels = list(config.var_labels) if config.var_labels is not None else [g.name for g in groups]

        summary_headers = self._summary_headers(config)
        summary_columns = []
        for key, header in summary_headers.items():
            values = summaries[key].reindex([g.name for g in groups])
            summary_columns.append((header, self._format_summary(key, values, config)))

        cells = self.format_correlations(matrices, config)
        rows = []
        for i in range(len(groups)):
            summary_cells = [column[i] for _, column in summary_columns]
            rows.append(summary_cells + cells[i])

        headers = [header for header, _ in summary_columns] + labels
        table = pd.DataFrame(rows, index=labels, columns=headers, dtype=object)

        self.logger.info(f"Formatted {self.policy.name} table with shape {table.shape}")
        return table

    def _format_coefficient(self,
                            value: float,
                            p_value: float,
                            align_signs: bool,
                            config: TableConfig) -> str:
        text = self.format_number(value, config.digits, config.decimal_mark)
        if not config.lead_decimal:
            text = self.strip_leading_zero(text, config.decimal_mark)
        if align_signs and not np.isnan(value) and value > 0:
            text = " " + text
        if config.show_significance:
            text += self.significance_marker(p_value)
        return text

    def _format_summary(self, key: str, values: pd.Series, config: TableConfig) -> List[str]:
        rendered = [self.format_number(v, config.digits, config.decimal_mark) for v in values]
        if key in ('alpha', 'rwg'):
            rendered = [self.strip_leading_zero(text, config.decimal_mark) for text in rendered]
        return rendered

    def _summary_headers(self, config: TableConfig) -> Dict[str, str]:
        flags = config.summary_flags()
        headers = {}
        if flags.get('mean'):
            headers['mean'] = "Mean"
        if flags.get('sd'):
            headers['sd'] = "SD"
        if flags.get('alpha'):
            headers['alpha'] = self.policy.alpha_header
        if flags.get('rwg'):
            if config.var_labels is not None:
                headers['rwg'] = "rwg.j"
            else:
                headers['rwg'] = f"{config.rwg_method.value.capitalize()} rwg.j"
        return headers

    @staticmethod
    def _replacement_text(replacement: Optional[object]) -> str:
        if replacement is None or pd.isna(replacement):
            return ""
        return str(replacement)
