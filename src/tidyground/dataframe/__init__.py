"""Dataframe API built on top of the tidyground compute engine.

Building plans by nesting nodes gets verbose quickly,
especially when the same multi-value column has to go
through a split, an unnest and a pivot.

The :class:`Dataframe` object exposes each step as a method
returning a new Dataframe, so that transformations can be
chained in the order they are applied::

    Dataframe.open_csv("SAFI_clean.csv", na="NULL") \\
        .spread("items_owned", missing_column="no_listed_items") \\
        .spread("months_lack_food") \\
        .row_sums("number_items", "bicycle", "television") \\
        .write_csv("interviews_plotting.csv")
"""

from ..compute import col, colrange
from .dataframe import Dataframe, GroupedDataframe

__all__ = ("Dataframe", "GroupedDataframe", "col", "colrange")
