# pylint: disable=line-too-long
"""
Order statistics pipeline.

Drives the order statistics engine over the columns of a pandas DataFrame in
four phases:

- learn: one histogram per requested column,
- derive: cardinalities, probability masses and the shared quantile table,
- test: Kolmogorov-Smirnov goodness-of-fit of a dataset against the quantiles,
- assess: quantile bucket of every row.

Each requested column is processed independently. Problems with one column
are reported as diagnostics on the phase result and never abort the others.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from src.core.statistics.order.exceptions import OrderStatisticsError, UnsupportedValueTypeError
from src.core.statistics.order.goodness_of_fit import GoodnessOfFitResult, goodness_of_fit
from src.core.statistics.order.histogram import RawHistogram, build_histogram
from src.core.statistics.order.quantiles import QuantileDefinition, derive_quantiles, quantile_labels
from src.core.statistics.order.quantizer import Quantizer
from src.core.statistics.order.value_types import ValueType
from src.service.config import get_service_config
from src.service.constants import (
    ASSESS_PREFIX,
    KOLMOGOROV_SMIRNOV_COLUMN,
    MAXIMUM_DISTANCE_COLUMN,
    NUMBER_OF_INTERVALS_PARAMETER,
    QUANTILE_DEFINITION_PARAMETER,
    VARIABLE_COLUMN,
)
from src.service.data.columns import Column, get_column
from src.service.diagnostics import Diagnostic
from src.service.order_statistics_model import OrderStatisticsModel
from src.service.utils.logging_utils import log_column_error, log_column_warning, log_skipped_column

logger: logging.Logger = logging.getLogger(__name__)


@dataclass
class LearnResult:
    model: OrderStatisticsModel
    diagnostics: List[Diagnostic] = field(default_factory=list)


@dataclass
class DeriveResult:
    model: OrderStatisticsModel
    diagnostics: List[Diagnostic] = field(default_factory=list)


@dataclass
class GoodnessOfFitReport:
    results: Dict[str, GoodnessOfFitResult] = field(default_factory=dict)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                VARIABLE_COLUMN: pd.Series(list(self.results.keys()), dtype="object"),
                MAXIMUM_DISTANCE_COLUMN: pd.Series([r.maximum_distance for r in self.results.values()], dtype="float64"),
                KOLMOGOROV_SMIRNOV_COLUMN: pd.Series([r.statistic for r in self.results.values()], dtype="float64"),
            }
        )


@dataclass
class AssessResult:
    data: Optional[pd.DataFrame] = None
    assessed: List[str] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)


def assess_column_name(variable: str) -> str:
    return f"{ASSESS_PREFIX}({variable})"


def _parse_number_of_intervals(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    # Reject fractional values such as 2.5
    if not isinstance(value, str) and number != value:
        return None
    return number if number >= 1 else None


class OrderStatistics:
    """
    Histograms, quantiles, goodness-of-fit and quantization of single columns.

    Example usage:
        >>> stats = OrderStatistics()
        >>> stats.add_column("age")
        >>> stats.set_parameter("NumberOfIntervals", 10)
        >>> model = stats.fit(df).model
        >>> test_table = stats.test(new_df, model).to_frame()
        >>> buckets = stats.assess(new_df, model).data
    """

    def __init__(
        self,
        number_of_intervals: Optional[int] = None,
        quantile_definition: Optional[QuantileDefinition] = None,
    ) -> None:
        config = get_service_config()
        self._number_of_intervals: int = config["number_of_intervals"]
        self._quantile_definition: QuantileDefinition = config["quantile_definition"]
        self._requests: List[str] = []

        if number_of_intervals is not None:
            self.number_of_intervals = number_of_intervals
        if quantile_definition is not None:
            self.quantile_definition = quantile_definition

    # PARAMETERS

    @property
    def number_of_intervals(self) -> int:
        return self._number_of_intervals

    @number_of_intervals.setter
    def number_of_intervals(self, value: Any) -> None:
        number = _parse_number_of_intervals(value)
        if number is None:
            logger.warning(f"Incorrect number of intervals: {value}. Ignoring it.")
            return
        self._number_of_intervals = number

    @property
    def quantile_definition(self) -> QuantileDefinition:
        return self._quantile_definition

    @quantile_definition.setter
    def quantile_definition(self, value: Any) -> None:
        try:
            self._quantile_definition = QuantileDefinition.parse(value)
        except (TypeError, ValueError):
            logger.warning(f"Incorrect type of quantile definition: {value}. Ignoring it.")

    def set_parameter(self, parameter: str, value: Any) -> bool:
        """
        Set a parameter by name.

        Invalid values are ignored with a warning and the previous value is kept.

        :param parameter: ``NumberOfIntervals`` or ``QuantileDefinition``
        :param value: The new value
        :return: True if the parameter name is known
        """
        if parameter == NUMBER_OF_INTERVALS_PARAMETER:
            self.number_of_intervals = value
            return True
        if parameter == QUANTILE_DEFINITION_PARAMETER:
            self.quantile_definition = value
            return True
        return False

    # REQUESTS

    @property
    def requests(self) -> List[str]:
        return list(self._requests)

    def add_column(self, name: str) -> None:
        """Request a column of interest."""
        if name not in self._requests:
            self._requests.append(name)

    def add_column_set(self, names: Iterable[str]) -> None:
        """
        Request a set of columns.

        Order statistics are univariate: only the first column of the set is
        used, the others are ignored with a warning.
        """
        names = list(names)
        if not names:
            return
        if len(names) > 1:
            logger.warning(f"Column set {names} has more than one column, only {names[0]} is used")
        self.add_column(names[0])

    def reset_requests(self) -> None:
        self._requests = []

    # PHASES

    def _read_column(
        self,
        table: pd.DataFrame,
        variable: str,
        diagnostics: List[Diagnostic],
        value_types: Optional[Dict[str, ValueType]],
    ) -> Optional[Column]:
        try:
            column = get_column(table, variable, (value_types or {}).get(variable))
        except UnsupportedValueTypeError:
            log_skipped_column(logger, diagnostics, variable, "Unsupported data type for column")
            return None
        if column is None:
            log_skipped_column(logger, diagnostics, variable, "Input table does not have a column")
        return column

    def learn(self, table: pd.DataFrame, value_types: Optional[Dict[str, ValueType]] = None) -> LearnResult:
        """
        Build the histogram of every requested column.

        :param table: Input data
        :param value_types: Optional types forced onto some columns instead of inferring them
        :return: A model holding one raw histogram per learned column
        """
        result = LearnResult(model=OrderStatisticsModel())
        if table is None:
            return result

        for variable in self._requests:
            column = self._read_column(table, variable, result.diagnostics, value_types)
            if column is None:
                continue

            try:
                histogram = build_histogram(column.values, column.value_type)
            except UnsupportedValueTypeError:
                log_skipped_column(logger, result.diagnostics, variable, "Unsupported data type for column")
                continue

            if histogram.n_missing:
                log_column_warning(
                    logger,
                    result.diagnostics,
                    variable,
                    f"Dropped {histogram.n_missing} missing values",
                )
            result.model.histograms[variable] = histogram

        return result

    def derive(self, model: OrderStatisticsModel) -> DeriveResult:
        """
        Complete the histograms of a learned model and compute its quantile table.

        The input model is left untouched: a new model is returned.
        """
        derived = OrderStatisticsModel(
            number_of_intervals=self._number_of_intervals,
            quantile_definition=self._quantile_definition,
        )
        result = DeriveResult(model=derived)
        if model is None or not model.histograms:
            return result

        derived.labels = quantile_labels(self._number_of_intervals)
        for variable, histogram in model.histograms.items():
            raw = histogram if isinstance(histogram, RawHistogram) else histogram.raw
            if raw.is_empty:
                continue

            try:
                derived_histogram, quantiles = derive_quantiles(
                    raw, self._number_of_intervals, self._quantile_definition
                )
            except OrderStatisticsError as e:
                log_column_error(logger, result.diagnostics, variable, e)
                continue

            derived.histograms[variable] = derived_histogram
            derived.quantiles[variable] = quantiles

        return result

    def fit(self, table: pd.DataFrame, value_types: Optional[Dict[str, ValueType]] = None) -> DeriveResult:
        """Learn then derive, with the diagnostics of both phases."""
        learned = self.learn(table, value_types)
        result = self.derive(learned.model)
        result.diagnostics = learned.diagnostics + result.diagnostics
        return result

    def test(
        self,
        table: pd.DataFrame,
        model: OrderStatisticsModel,
        value_types: Optional[Dict[str, ValueType]] = None,
    ) -> GoodnessOfFitReport:
        """
        Kolmogorov-Smirnov goodness-of-fit of every requested column against the model quantiles.
        """
        result = GoodnessOfFitReport()
        if table is None or model is None or not model.quantiles:
            return result

        for variable in self._requests:
            column = self._read_column(table, variable, result.diagnostics, value_types)
            if column is None:
                continue

            quantiles = model.quantiles.get(variable)
            if quantiles is None:
                log_skipped_column(logger, result.diagnostics, variable, "Quantile table does not have a column")
                continue

            if column.value_type is not quantiles.value_type:
                log_skipped_column(
                    logger,
                    result.diagnostics,
                    variable,
                    f"Data type {column.value_type.value} does not match quantiles type {quantiles.value_type.value} for column",
                )
                continue

            try:
                fit = goodness_of_fit(quantiles, column.values)
            except UnsupportedValueTypeError:
                log_skipped_column(logger, result.diagnostics, variable, "Unsupported data type for column")
                continue
            except OrderStatisticsError as e:
                log_column_error(logger, result.diagnostics, variable, e)
                continue

            if fit is not None:
                result.results[variable] = fit

        return result

    def assess(
        self,
        table: pd.DataFrame,
        model: OrderStatisticsModel,
        value_types: Optional[Dict[str, ValueType]] = None,
    ) -> AssessResult:
        """
        Quantile bucket of every row, for every requested column.

        :return: A copy of the table with one ``Quantile(<variable>)`` column per assessed variable
        """
        result = AssessResult()
        if table is None or model is None or not model.quantiles:
            return result

        data = table.copy()
        for variable in self._requests:
            column = self._read_column(table, variable, result.diagnostics, value_types)
            if column is None:
                continue

            quantiles = model.quantiles.get(variable)
            if quantiles is None:
                log_skipped_column(logger, result.diagnostics, variable, "Quantile table does not have a column")
                continue

            try:
                quantizer = Quantizer.for_column(quantiles, column.value_type)
                buckets = [quantizer(value) for value in column.values]
            except UnsupportedValueTypeError:
                log_skipped_column(
                    logger,
                    result.diagnostics,
                    variable,
                    f"Unsupported (data, quantiles) types ({column.value_type.value}, {quantiles.value_type.value}) for column",
                )
                continue

            data[assess_column_name(variable)] = pd.array(buckets, dtype="Int64")
            result.assessed.append(variable)

        result.data = data
        return result
