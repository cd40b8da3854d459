# table names
QUANTILES_TABLE_NAME = "Quantiles"
QUANTILE_LABEL_COLUMN = "Quantile"

# test output columns
VARIABLE_COLUMN = "Variable"
MAXIMUM_DISTANCE_COLUMN = "Maximum Distance"
KOLMOGOROV_SMIRNOV_COLUMN = "Kolmogorov-Smirnov"

# assess output columns are named ASSESS_PREFIX(<variable>)
ASSESS_PREFIX = "Quantile"

# parameter names
NUMBER_OF_INTERVALS_PARAMETER = "NumberOfIntervals"
QUANTILE_DEFINITION_PARAMETER = "QuantileDefinition"

# configuration
DEFAULT_NUMBER_OF_INTERVALS = 4
DEFAULT_QUANTILE_DEFINITION = "AveragedSteps"
NUMBER_OF_INTERVALS_ENV = "ORDER_STATISTICS_NUMBER_OF_INTERVALS"
QUANTILE_DEFINITION_ENV = "ORDER_STATISTICS_QUANTILE_DEFINITION"

# Prometheus
PROMETHEUS_METRIC_PREFIX = "order_statistics_"
