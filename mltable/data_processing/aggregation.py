"""Group-level aggregation of composite variables."""

import logging
from typing import Hashable
import pandas as pd

from ..exceptions import ValidationError


class GroupAggregator:
    """Collapses composite variables to one row per group by group-wise mean."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def check_groupid(data: pd.DataFrame, groupid: Hashable) -> None:
        """Raise ValidationError if ``groupid`` is not a column of ``data``."""
        if (groupid is None or not pd.api.types.is_hashable(groupid)
                or groupid not in data.columns):
            raise ValidationError("The specified groupid does not exist in the data.")

    def aggregate(self,
                  composites: pd.DataFrame,
                  data: pd.DataFrame,
                  groupid: Hashable) -> pd.DataFrame:
        """
        Average each composite within groups.

        Parameters
        ----------
        composites : pd.DataFrame
            Composite variables, aligned row-for-row with ``data``
        data : pd.DataFrame
            Original dataset holding the group identifier
        groupid : hashable
            Column of ``data`` identifying group membership

        Returns
        -------
        pd.DataFrame
            One row per distinct group value in ascending order, one column
            per composite; the index is named ``groupid``
        """
        self.check_groupid(data, groupid)

        keys = pd.Categorical(data[groupid].to_numpy())
        n_missing = int(pd.isna(data[groupid]).sum())
        if n_missing:
            self.logger.warning(
                f"{n_missing} observations without a value in '{groupid}' were excluded"
            )

        aggregated = (
            composites.groupby(keys, sort=True, observed=True)
            .mean()
            .rename_axis('groupid')
        )

        self.logger.info(
            f"Aggregated {len(composites)} observations into {len(aggregated)} groups by '{groupid}'"
        )
        return aggregated
