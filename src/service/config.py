import logging
import os
from typing import Dict

from src.core.statistics.order.quantiles import QuantileDefinition
from src.service.constants import (
    DEFAULT_NUMBER_OF_INTERVALS,
    DEFAULT_QUANTILE_DEFINITION,
    NUMBER_OF_INTERVALS_ENV,
    QUANTILE_DEFINITION_ENV,
)

logger: logging.Logger = logging.getLogger(__name__)


def get_service_config() -> Dict:
    """Get service configuration from environment variables."""

    raw_intervals = os.getenv(NUMBER_OF_INTERVALS_ENV, str(DEFAULT_NUMBER_OF_INTERVALS))
    try:
        number_of_intervals = int(raw_intervals)
        if number_of_intervals < 1:
            raise ValueError(raw_intervals)
    except ValueError:
        logger.warning(
            f"Invalid {NUMBER_OF_INTERVALS_ENV}={raw_intervals}, "
            f"using the default of {DEFAULT_NUMBER_OF_INTERVALS}"
        )
        number_of_intervals = DEFAULT_NUMBER_OF_INTERVALS

    raw_definition = os.getenv(QUANTILE_DEFINITION_ENV, DEFAULT_QUANTILE_DEFINITION)
    try:
        quantile_definition = QuantileDefinition.parse(raw_definition)
    except ValueError:
        logger.warning(
            f"Invalid {QUANTILE_DEFINITION_ENV}={raw_definition}, "
            f"using the default of {DEFAULT_QUANTILE_DEFINITION}"
        )
        quantile_definition = QuantileDefinition.parse(DEFAULT_QUANTILE_DEFINITION)

    return {
        "number_of_intervals": number_of_intervals,
        "quantile_definition": quantile_definition,
        "http_port": int(os.getenv("HTTP_PORT", "8080")),
    }
