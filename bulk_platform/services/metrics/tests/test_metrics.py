import itertools

import prometheus_client

from bulk_platform.services.metrics.memory_metrics import MemoryMetrics
from bulk_platform.services.metrics.noop_metrics import NoopMetrics
from bulk_platform.services.metrics.prometheus_metrics import PrometheusMetrics
from bulk_platform.services.secrets.env_secrets import EnvSecrets

# prometheus_client registers globally, so every test uses fresh names.
_ids = itertools.count()


def _name(base: str) -> str:
    return f"{base}_{next(_ids)}"


def test_counter_increments():
    m = MemoryMetrics()
    m.counter("bulk_rows_read_total")
    m.counter("bulk_rows_read_total", value=3)
    assert m.counters["bulk_rows_read_total"] == 4


def test_tagged_values_are_kept_per_series_and_in_total():
    m = MemoryMetrics()
    m.counter("bulk_status_polls_total", tags={"kind": "download"})
    m.counter("bulk_status_polls_total", tags={"kind": "upload"})
    m.counter("bulk_status_polls_total", tags={"kind": "upload"})
    assert m.counters["bulk_status_polls_total"] == 3
    assert m.counters["bulk_status_polls_total{kind=upload}"] == 2


def test_gauge_and_histogram():
    m = MemoryMetrics()
    m.gauge("bulk_upload_rejected_entities", 2)
    m.gauge("bulk_upload_rejected_entities", 0)
    m.histogram("bulk_poll_seconds", 0.5, tags={"kind": "report"})
    assert m.gauges["bulk_upload_rejected_entities"] == 0
    assert m.histograms["bulk_poll_seconds{kind=report}"] == [0.5]


def test_noop_accepts_everything():
    m = NoopMetrics()
    m.counter("x", tags={"a": "b"})
    m.gauge("x", 1)
    m.histogram("x", 1)


def test_prometheus_counter_with_labels():
    name = _name("bulk_files_transferred")
    metrics = PrometheusMetrics(EnvSecrets(overrides={"BULK_METRICS_PORT": "0"}))
    metrics.counter(name, tags={"direction": "upload"})
    metrics.counter(name, value=2, tags={"direction": "upload"})
    value = prometheus_client.REGISTRY.get_sample_value(f"{name}_total", {"direction": "upload"})
    assert value == 3


def test_prometheus_sanitizes_names_and_sets_gauges():
    name = _name("bulk-download.entities")
    metrics = PrometheusMetrics(EnvSecrets(overrides={}))
    metrics.gauge(name, 7)
    safe = name.replace("-", "_").replace(".", "_")
    assert prometheus_client.REGISTRY.get_sample_value(safe) == 7
