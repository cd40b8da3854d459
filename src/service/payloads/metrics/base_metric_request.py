from typing import Any, Dict, List, Optional

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.core.statistics.order.value_types import ValueType


class BaseMetricRequest(BaseModel):
    """
    Base class for order statistics requests carrying inline column data.
    """

    # Use field aliases to accept camelCase from API while keeping snake_case internally
    model_config = ConfigDict(populate_by_name=True)

    model_id: str = Field(alias="modelId")
    data: Dict[str, List[Any]] = Field(default_factory=dict)
    columns: List[str] = Field(default_factory=list)
    value_types: Dict[str, ValueType] = Field(default_factory=dict, alias="valueTypes")

    @field_validator("data")
    @classmethod
    def columns_have_equal_length(cls, data: Dict[str, List[Any]]) -> Dict[str, List[Any]]:
        lengths = {len(values) for values in data.values()}
        if len(lengths) > 1:
            raise ValueError("All data columns must have the same number of rows")
        return data

    def to_dataframe(self) -> pd.DataFrame:
        """Build the input table, keeping Python objects in mixed columns."""
        return pd.DataFrame(
            {name: pd.Series(values, dtype=_series_dtype(values)) for name, values in self.data.items()}
        )


def _series_dtype(values: List[Any]) -> Optional[str]:
    # Mixed numbers and strings must stay objects rather than be coerced
    has_string = any(isinstance(v, str) for v in values)
    return "object" if has_string else None
