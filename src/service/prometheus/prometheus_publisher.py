import hashlib
import logging
import threading
import uuid
from typing import Dict

from prometheus_client import CollectorRegistry, Gauge, REGISTRY
from src.core.statistics.order.goodness_of_fit import GoodnessOfFitResult
from src.service.constants import PROMETHEUS_METRIC_PREFIX

logger: logging.Logger = logging.getLogger(__name__)

KOLMOGOROV_SMIRNOV_METRIC = "kolmogorov_smirnov"
MAXIMUM_DISTANCE_METRIC = "maximum_distance"


class PrometheusPublisher:
    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        self.registry: CollectorRegistry = registry
        self.values: Dict[uuid.UUID, float] = {}
        self._values_lock: threading.RLock = threading.RLock()
        # Track gauges by metric name to avoid re-creating them
        # This is because prometheus_client doesn't expose
        # public methods to retrieve them with name.
        self._gauges: Dict[str, Gauge] = {}
        self._gauges_lock: threading.RLock = threading.RLock()

    def _get_value(self, id: uuid.UUID) -> float:
        with self._values_lock:
            return self.values[id]

    def _set_value(self, id: uuid.UUID, value: float) -> None:
        with self._values_lock:
            self.values[id] = value

    def _remove_value(self, id: uuid.UUID) -> None:
        with self._values_lock:
            if id in self.values:
                del self.values[id]

    def _create_or_update_gauge(self, name: str, tags: Dict[str, str], id: uuid.UUID) -> None:
        with self._gauges_lock:
            if name not in self._gauges:
                gauge = Gauge(
                    name=name,
                    documentation=f"Order statistics metric: {name}",
                    labelnames=list(tags.keys()),
                    registry=self.registry,
                )
                self._gauges[name] = gauge

            gauge = self._gauges[name]

            gauge.labels(**tags).set(self._get_value(id))

    def gauge(self, model_name: str, variable: str, metric_name: str, value: float) -> None:
        """
        Set the gauge of one metric for one variable of a model.
        """
        full_metric_name = self._get_full_metric_name(metric_name)
        id = self.generate_uuid(f"{model_name}{variable}{full_metric_name}")
        self._set_value(id, value)

        tags = {"model": model_name, "variable": variable}
        self._create_or_update_gauge(name=full_metric_name, tags=tags, id=id)
        logger.debug(f"Published {metric_name} for model={model_name}, variable={variable}, value={value}")

    def publish_goodness_of_fit(self, model_name: str, results: Dict[str, GoodnessOfFitResult]) -> None:
        """Publish the distance and statistic of every tested variable."""
        for variable, result in results.items():
            self.gauge(model_name, variable, KOLMOGOROV_SMIRNOV_METRIC, result.statistic)
            self.gauge(model_name, variable, MAXIMUM_DISTANCE_METRIC, result.maximum_distance)

    def remove_model(self, model_name: str) -> None:
        """Remove every published series of a model."""
        with self._gauges_lock:
            for full_name, gauge in self._gauges.items():
                labels_to_remove = []
                for labels, _ in gauge._metrics.items():
                    labels_dict = dict(zip(gauge._labelnames, labels))
                    if labels_dict.get("model") == model_name:
                        labels_to_remove.append(labels)

                for to_remove in labels_to_remove:
                    gauge.remove(*to_remove)
                    variable = dict(zip(gauge._labelnames, to_remove))["variable"]
                    self._remove_value(self.generate_uuid(f"{model_name}{variable}{full_name}"))

    def _get_full_metric_name(self, metric_name: str) -> str:
        return f"{PROMETHEUS_METRIC_PREFIX}{metric_name.lower()}"

    @staticmethod
    def generate_uuid(content: str) -> uuid.UUID:
        """
        Generates a name-based UUID from the MD5 digest of the content
        """
        md5_hash = hashlib.md5(content.encode("utf-8")).digest()
        return uuid.UUID(bytes=md5_hash, version=3)
