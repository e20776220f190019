"""tidyground

Reshaping of tabular data for analysis, built on Apache Arrow.

Survey exports frequently store multiple answers in a single cell,
joined by a delimiter, like ``"bicycle;radio;cow_cart"``.
tidyground turns those columns into one boolean indicator column
for each answer and computes summaries over the indicators,
producing a table where every cell holds a single value.

The library is constituted by multiple components, each isolated
within its own package:

* The Compute Engine, the plan nodes that split, unnest and pivot the data.
* The Dataframe API, which provides an high level API for the compute engine.
* The Pipeline, which runs a reshaping described by its configuration.

For the user guide and code documentation of each component, refer to the
component itself.
"""

from . import compute
from .pipeline import ReshapePipeline, RowSum, Spread

__all__ = ("compute", "ReshapePipeline", "RowSum", "Spread")
