"""
Level-1 and level-2 correlation tables for multilevel survey data.

This module provides the primary interface of the package: builders that
turn item-level survey data and a variable group specification into
publication-ready correlation tables, the ``corr_level1`` / ``corr_level2``
convenience functions, and the ``MultilevelTableTool`` facade that adds
data loading, configuration files and export.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Hashable, List, Optional, Sequence, Union
import pandas as pd

from .data_processing import (
    CompositeVariableBuilder, DataLoader, GroupAggregator,
    Level1Config, Level2Config, MissingDataStrategy, TableConfig,
    VariableGroup, VariableSpec, load_config_file, validate_dataset
)
from .correlation_analysis import CorrelationEngine
from .descriptive_analysis import ScaleStatistics
from .formatting import MatrixFormatter, check_labels


class Level1TableBuilder:
    """
    Individual-level correlation table.

    Composite variables are correlated across all observations and
    annotated with their mean, SD and Cronbach's alpha.
    """

    config_class = Level1Config

    def __init__(self, defaults: Optional[Dict[str, Any]] = None):
        """
        Initialize the builder.

        Parameters
        ----------
        defaults : dict, optional
            Option values used when a call does not set them explicitly
        """
        self.logger = logging.getLogger(__name__)
        self.defaults = dict(defaults or {})
        self.composite_builder = CompositeVariableBuilder()
        self.correlation_engine = CorrelationEngine()
        self.scale_statistics = ScaleStatistics()
        self.formatter = MatrixFormatter(self.config_class.policy)

    def make_config(self, config: Optional[TableConfig] = None, **options) -> TableConfig:
        """Combine builder defaults, an optional config object and keyword overrides."""
        if config is None:
            merged = dict(self.defaults)
            merged.update(options)
            return self.config_class.from_dict(merged)
        if not isinstance(config, self.config_class):
            raise TypeError(f"config must be a {self.config_class.__name__}")
        return config.merged(**options) if options else config

    def build(self,
              data: pd.DataFrame,
              var_list: VariableSpec,
              config: Optional[Level1Config] = None,
              **options) -> pd.DataFrame:
        """
        Build the individual-level correlation table.

        Parameters
        ----------
        data : pd.DataFrame
            Item-level survey data
        var_list : dict
            Ordered mapping of composite name to column reference(s)
        config : Level1Config, optional
            Complete set of options
        **options
            Individual options overriding ``config`` or the builder defaults

        Returns
        -------
        pd.DataFrame
            Table of display strings
        """
        config = self.make_config(config, **options)
        validate_dataset(data)

        groups = self.composite_builder.resolve_groups(data, var_list)
        check_labels(config, groups)

        composites = self.composite_builder.build(data, groups)
        matrices = self.correlation_engine.compute(
            composites,
            method=config.type,
            use=config.use,
            show_significance=config.show_significance,
        )

        summaries = self._summaries(data, composites, groups, config)
        return self.formatter.build_table(matrices, config, groups, summaries)

    def _summaries(self,
                   data: pd.DataFrame,
                   composites: pd.DataFrame,
                   groups: List[VariableGroup],
                   config: TableConfig) -> Dict[str, pd.Series]:
        summaries = {}
        if config.mean:
            summaries['mean'] = self.scale_statistics.means(composites)
        if config.sd:
            summaries['sd'] = self.scale_statistics.standard_deviations(composites)
        if config.alpha:
            summaries['alpha'] = self.scale_statistics.cronbach_alphas(data, groups)
        return summaries


class Level2TableBuilder(Level1TableBuilder):
    """
    Group-level correlation table.

    Composite variables are averaged within groups before correlating.
    Means and SDs describe the aggregated composites; Cronbach's alpha and
    rwg.j are computed from the individual-level items.
    """

    config_class = Level2Config

    def build(self,
              data: pd.DataFrame,
              var_list: VariableSpec,
              groupid: Optional[Hashable] = None,
              config: Optional[Level2Config] = None,
              **options) -> pd.DataFrame:
        """
        Build the group-level correlation table.

        Parameters
        ----------
        data : pd.DataFrame
            Item-level survey data
        var_list : dict
            Ordered mapping of composite name to column reference(s)
        groupid : hashable
            Column of ``data`` identifying group membership
        config : Level2Config, optional
            Complete set of options
        **options
            Individual options overriding ``config`` or the builder defaults

        Returns
        -------
        pd.DataFrame
            Table of display strings, one row per composite
        """
        config = self.make_config(config, **options)
        validate_dataset(data)
        GroupAggregator.check_groupid(data, groupid)

        groups = self.composite_builder.resolve_groups(data, var_list)
        check_labels(config, groups)

        composites = self.composite_builder.build(data, groups)
        aggregated = GroupAggregator().aggregate(composites, data, groupid)

        # p-values always use pairwise deletion at the group level
        matrices = self.correlation_engine.compute(
            aggregated,
            method=config.type,
            use=config.use,
            show_significance=config.show_significance,
            p_value_use=MissingDataStrategy.PAIRWISE_COMPLETE_OBS,
        )

        summaries = self._summaries(data, aggregated, groups, config)
        if config.rwg:
            summaries['rwg'] = self.scale_statistics.summarize_rwg(
                data, groups, groupid,
                expected_variance=config.expected_random_variance,
                method=config.rwg_method,
            )
        return self.formatter.build_table(matrices, config, groups, summaries)


def corr_level1(data: pd.DataFrame,
                var_list: VariableSpec,
                type: str = "pearson",
                digits: int = 3,
                decimal_mark: str = ".",
                triangle: str = "both",
                use: str = "pairwise.complete.obs",
                show_significance: bool = True,
                replace_diagonal: bool = True,
                replacement: Optional[Any] = None,
                lead_decimal: bool = False,
                var_labels: Optional[Sequence[str]] = None,
                mean: bool = True,
                sd: bool = True,
                alpha: bool = True) -> pd.DataFrame:
    """
    Calculate and format an individual-level correlation table.

    Parameters
    ----------
    data : pd.DataFrame
        Item-level survey data
    var_list : dict
        Ordered mapping of composite name to a column name, a 1-based column
        position, or a sequence/range of them
    type : {'pearson', 'spearman', 'kendall'}, default 'pearson'
        Correlation coefficient
    digits : int, default 3
        Decimal places of every rendered number
    decimal_mark : str, default '.'
        Decimal separator
    triangle : {'both', 'upper', 'lower'}, default 'both'
        Part of the matrix to display; 'upper' clears the lower triangle,
        'both' and 'lower' clear the upper triangle
    use : {'all.obs', 'complete.obs', 'pairwise.complete.obs'}
        Missing-data handling, default pairwise deletion
    show_significance : bool, default True
        Append significance stars (p < .10 is marked with a no-break space)
    replace_diagonal : bool, default True
        Clear the diagonal
    replacement : optional
        Value written into cleared cells; None renders as an empty string
    lead_decimal : bool, default False
        Keep the leading zero of coefficients (0.123 rather than .123)
    var_labels : sequence of str, optional
        Labels replacing the group names, one per group
    mean, sd, alpha : bool, default True
        Include the Mean, SD and Cronbach's alpha columns

    Returns
    -------
    pd.DataFrame
        Table of display strings, exportable with ``export_table``

    Examples
    --------
    >>> var_list = {'var1': 3, 'var2': 4, 'var3': columns(5, 14),
    ...             'var4': columns(15, 24), 'var5': columns(25, 28)}
    >>> corr_level1(teamstate, var_list,
    ...             var_labels=["Gender", "Age", "Positive affect",
    ...                         "Negative affect", "Psychological safety"])
    """
    config = Level1Config(
        type=type, digits=digits, decimal_mark=decimal_mark, triangle=triangle,
        use=use, show_significance=show_significance,
        replace_diagonal=replace_diagonal, replacement=replacement,
        lead_decimal=lead_decimal, var_labels=var_labels,
        mean=mean, sd=sd, alpha=alpha,
    )
    return Level1TableBuilder().build(data, var_list, config=config)


corr_table = corr_level1


def export_table(table: pd.DataFrame, file_path: Union[str, Path], **kwargs) -> Path:
    """Write a formatted table to CSV with its row labels as the first column."""
    return DataLoader().export_table(table, file_path, **kwargs)


def corr_level2(data: pd.DataFrame,
                var_list: VariableSpec,
                groupid: Hashable,
                type: str = "pearson",
                digits: int = 3,
                decimal_mark: str = ".",
                triangle: str = "lower",
                use: str = "pairwise.complete.obs",
                show_significance: bool = True,
                replace_diagonal: bool = True,
                replacement: Optional[Any] = None,
                lead_decimal: bool = True,
                var_labels: Optional[Sequence[str]] = None,
                mean: bool = True,
                sd: bool = True,
                alpha: bool = True,
                rwg: bool = True,
                rwg_scale: float = 7,
                rwg_method: str = "mean") -> pd.DataFrame:
    """
    Calculate and format a group-level correlation table.

    Parameters
    ----------
    data : pd.DataFrame
        Item-level survey data
    var_list : dict
        Ordered mapping of composite name to column reference(s)
    groupid : hashable
        Column identifying group membership (e.g. "Team")
    type, digits, decimal_mark, use, show_significance, replace_diagonal,
    replacement, var_labels
        As in ``corr_level1``; p < .10 is marked with a dagger
    triangle : {'lower', 'both', 'upper'}, default 'lower'
        'lower' clears the upper triangle, 'upper' the lower one, 'both'
        only the diagonal
    lead_decimal : bool, default True
        Keep the leading zero of coefficients
    mean, sd : bool, default True
        Mean and SD of the aggregated composites
    alpha : bool, default True
        Cronbach's alpha of the individual-level items
    rwg : bool, default True
        Include the summarised rwg.j column
    rwg_scale : float, default 7
        Number of response options (more than 1), giving the random
        variance (A² - 1) / 12
    rwg_method : {'mean', 'median'}, default 'mean'
        How per-group rwg.j values are summarised. Without ``var_labels``
        the column header names the summary, "Mean rwg.j" or
        "Median rwg.j"; with labels it is always "rwg.j"

    Returns
    -------
    pd.DataFrame
        Table of display strings, one row per composite

    Examples
    --------
    >>> var_list2 = {'var1': columns(5, 14), 'var2': columns(15, 24),
    ...              'var3': columns(25, 28)}
    >>> corr_level2(teamstate, var_list2, groupid="Team",
    ...             var_labels=["Team PA", "Team NA", "Team PS"])
    """
    config = Level2Config(
        type=type, digits=digits, decimal_mark=decimal_mark, triangle=triangle,
        use=use, show_significance=show_significance,
        replace_diagonal=replace_diagonal, replacement=replacement,
        lead_decimal=lead_decimal, var_labels=var_labels,
        mean=mean, sd=sd, alpha=alpha,
        rwg=rwg, rwg_scale=rwg_scale, rwg_method=rwg_method,
    )
    return Level2TableBuilder().build(data, var_list, groupid, config=config)


class MultilevelTableTool:
    """
    Workflow interface for multilevel correlation tables.

    Loads a dataset once, builds any number of level-1 and level-2 tables
    from it with defaults taken from an optional JSON configuration file,
    keeps the produced tables by name and exports them to CSV.
    """

    def __init__(self,
                 config_path: Optional[str] = None,
                 log_level: str = 'INFO'):
        """
        Initialize the tool.

        Parameters
        ----------
        config_path : str, optional
            JSON file with optional "level1" and "level2" option sections
        log_level : str, default 'INFO'
            Logging level
        """
        logging.basicConfig(
            level=getattr(logging, log_level.upper()),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        self.logger = logging.getLogger(__name__)

        self.config = self._load_config(config_path) if config_path else {'level1': {}, 'level2': {}}

        self.data_loader = DataLoader()
        self.level1_builder = Level1TableBuilder(defaults=self.config['level1'])
        self.level2_builder = Level2TableBuilder(defaults=self.config['level2'])

        self.data = None
        self.tables = {}

    def load_data(self, file_path: Union[str, Path], **kwargs) -> pd.DataFrame:
        """Load the item-level dataset used by subsequent table calls."""
        self.logger.info(f"Loading survey data from {file_path}")

        try:
            self.data = self.data_loader.load_data(file_path, **kwargs)
            return self.data
        except Exception as e:
            self.logger.error(f"Failed to load survey data: {e}")
            raise

    def corr_level1(self,
                    var_list: VariableSpec,
                    data: Optional[pd.DataFrame] = None,
                    name: str = 'level1',
                    **options) -> pd.DataFrame:
        """
        Build and store an individual-level table.

        Parameters
        ----------
        var_list : dict
            Ordered mapping of composite name to column reference(s)
        data : pd.DataFrame, optional
            Dataset to use instead of the loaded one
        name : str, default 'level1'
            Key under which the table is stored
        **options
            Level-1 options, see ``corr_level1``
        """
        data = self._resolve_data(data)
        self.logger.info(f"Building level-1 correlation table '{name}'")

        try:
            table = self.level1_builder.build(data, var_list, **options)
        except Exception as e:
            self.logger.error(f"Level-1 table '{name}' failed: {e}")
            raise

        self.tables[name] = table
        return table

    def corr_level2(self,
                    var_list: VariableSpec,
                    groupid: Hashable,
                    data: Optional[pd.DataFrame] = None,
                    name: str = 'level2',
                    **options) -> pd.DataFrame:
        """
        Build and store a group-level table.

        Parameters
        ----------
        var_list : dict
            Ordered mapping of composite name to column reference(s)
        groupid : hashable
            Column identifying group membership
        data : pd.DataFrame, optional
            Dataset to use instead of the loaded one
        name : str, default 'level2'
            Key under which the table is stored
        **options
            Level-2 options, see ``corr_level2``
        """
        data = self._resolve_data(data)
        self.logger.info(f"Building level-2 correlation table '{name}' grouped by '{groupid}'")

        try:
            table = self.level2_builder.build(data, var_list, groupid, **options)
        except Exception as e:
            self.logger.error(f"Level-2 table '{name}' failed: {e}")
            raise

        self.tables[name] = table
        return table

    def export_table(self,
                     table: Union[str, pd.DataFrame],
                     file_path: Union[str, Path],
                     **kwargs) -> Path:
        """Write a stored (by name) or given table to CSV."""
        if isinstance(table, str):
            if table not in self.tables:
                raise ValueError(f"No table named '{table}' has been built")
            table = self.tables[table]
        return self.data_loader.export_table(table, file_path, **kwargs)

    def get_analysis_summary(self) -> Dict[str, Any]:
        """
        Get summary of the loaded data and the tables built so far.

        Returns
        -------
        dict
            Summary of the session
        """
        return {
            'data_loaded': self.data is not None,
            'n_records': len(self.data) if self.data is not None else 0,
            'n_variables': len(self.data.columns) if self.data is not None else 0,
            'tables_built': list(self.tables.keys()),
            'table_shapes': {name: table.shape for name, table in self.tables.items()},
        }

    def _resolve_data(self, data: Optional[pd.DataFrame]) -> pd.DataFrame:
        if data is not None:
            return data
        if self.data is None:
            raise ValueError("No data loaded. Call load_data() first.")
        return self.data

    def _load_config(self, config_path: str) -> Dict[str, Dict[str, Any]]:
        """Load and validate builder defaults from a JSON file."""
        try:
            config = load_config_file(config_path)
            Level1Config.from_dict(config['level1'])
            Level2Config.from_dict(config['level2'])
            self.logger.info(f"Configuration loaded from {config_path}")
            return config
        except (OSError, ValueError) as e:
            self.logger.warning(f"Failed to load configuration: {e}")
            return {'level1': {}, 'level2': {}}
