"""Prometheus metrics implementation using prometheus_client."""

from __future__ import annotations

from typing import Any

from bulk_platform.services.metrics.interface import MetricsInterface
from bulk_platform.services.secrets.interface import SecretsInterface


def _label_names(tags: dict[str, str] | None) -> list[str]:
    return sorted(tags.keys()) if tags else []


class PrometheusMetrics(MetricsInterface):
    """Exposes bulk job metrics for scraping.

    Config (via secrets):
        BULK_METRICS_PORT - port for the /metrics endpoint. Default 0 leaves
                            the HTTP server off, for runs where metrics are
                            pushed or scraped from the default registry.

    Dashes and dots in metric names become underscores.
    """

    def __init__(self, secrets: SecretsInterface) -> None:
        import prometheus_client as prom

        self._prom = prom
        self._series: dict[str, Any] = {}

        port_str = secrets.get_or_default("BULK_METRICS_PORT", "0")
        port = int(port_str) if port_str else 0
        if port:
            prom.start_http_server(port)

    @staticmethod
    def _sanitize(name: str) -> str:
        return name.replace("-", "_").replace(".", "_")

    def _metric(self, factory: Any, name: str, tags: dict[str, str] | None) -> Any:
        safe = self._sanitize(name)
        label_names = _label_names(tags)
        key = f"{factory.__name__}:{safe}:{','.join(label_names)}"
        if key not in self._series:
            self._series[key] = factory(safe, safe, label_names)
        metric = self._series[key]
        if label_names:
            return metric.labels(*[tags[n] for n in label_names])
        return metric

    def counter(self, name: str, value: float = 1, tags: dict[str, str] | None = None) -> None:
        self._metric(self._prom.Counter, name, tags).inc(value)

    def gauge(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        self._metric(self._prom.Gauge, name, tags).set(value)

    def histogram(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        self._metric(self._prom.Histogram, name, tags).observe(value)
