from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pandas as pd

from src.core.statistics.order.histogram import DerivedHistogram, RawHistogram
from src.core.statistics.order.quantiles import QuantileColumn, QuantileDefinition
from src.service.constants import QUANTILE_LABEL_COLUMN, QUANTILES_TABLE_NAME


@dataclass
class OrderStatisticsModel:
    """
    Learned and derived state of an order statistics run.

    ``histograms`` holds one histogram per learned variable, raw after the learn
    phase and derived after the derive phase. ``quantiles`` is filled by the
    derive phase and is the part of the model consumed by test and assess.
    """

    histograms: Dict[str, RawHistogram | DerivedHistogram] = field(default_factory=dict)
    labels: List[str] = field(default_factory=list)
    quantiles: Dict[str, QuantileColumn] = field(default_factory=dict)
    number_of_intervals: Optional[int] = None
    quantile_definition: Optional[QuantileDefinition] = None

    @property
    def is_derived(self) -> bool:
        return bool(self.labels)

    def quantile_frame(self) -> Optional[pd.DataFrame]:
        """Render the shared quantile table, one row per breakpoint."""
        if not self.is_derived:
            return None
        data = {QUANTILE_LABEL_COLUMN: list(self.labels)}
        for variable, column in self.quantiles.items():
            dtype = "float64" if column.value_type.supports_midpoint else "object"
            data[variable] = pd.Series(list(column.values), dtype=dtype)
        return pd.DataFrame(data)

    def to_frames(self) -> Dict[str, pd.DataFrame]:
        """
        Render the model as host tables: one histogram table per variable, plus
        the quantile table once the model is derived.
        """
        frames = {variable: histogram.to_frame() for variable, histogram in self.histograms.items()}
        quantile_frame = self.quantile_frame()
        if quantile_frame is not None:
            frames[QUANTILES_TABLE_NAME] = quantile_frame
        return frames

    def to_dict(self) -> dict:
        """Summary used in service responses."""
        definition = self.quantile_definition
        return {
            "numberOfIntervals": self.number_of_intervals,
            "quantileDefinition": definition.display_name if definition is not None else None,
            "labels": list(self.labels),
            "cardinalities": {
                variable: histogram.cardinality for variable, histogram in self.histograms.items()
            },
            "quantiles": {
                variable: {
                    "type": column.value_type.value,
                    "values": list(column.values),
                }
                for variable, column in self.quantiles.items()
            },
        }
