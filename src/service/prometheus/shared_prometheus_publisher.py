"""
Shared PrometheusPublisher singleton, publishing to the default registry served at /q/metrics.
"""

from src.service.prometheus.prometheus_publisher import PrometheusPublisher

_shared_prometheus_publisher = None


def get_shared_prometheus_publisher() -> PrometheusPublisher:
    """
    Get the shared PrometheusPublisher instance.

    Returns:
        The singleton PrometheusPublisher instance
    """
    global _shared_prometheus_publisher
    if _shared_prometheus_publisher is None:
        _shared_prometheus_publisher = PrometheusPublisher()
    return _shared_prometheus_publisher
