import logging
from typing import Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram

from abstractions.metrics_sink import MetricsSink
from contracts.probe_outcome import ProbeOutcome

logger = logging.getLogger(__name__)

LATENCY_BUCKETS = (0.01, 0.05, 0.1, 0.2, 0.3, 0.4, 0.5, 1.0, 2.5, 5.0)


class MetricsManager(MetricsSink):
    """
    Prometheus-backed metrics sink for probe outcomes.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """
        Initialize the MetricsManager and register the Prometheus metrics.

        Args:
            registry: Collector registry to register into. Defaults to the
                process-wide prometheus_client REGISTRY; tests pass a private
                CollectorRegistry so instances do not collide.
        """
        self.registry = registry if registry is not None else REGISTRY
        self.LATENCY = Histogram(
            "latency_seconds",
            "Probe round-trip latency in seconds",
            ["target", "status", "error_reason"],
            namespace="netpulse",
            buckets=LATENCY_BUCKETS,
            registry=self.registry,
        )
        self.REQUESTS = Counter(
            "netpulse_requests_total",
            "Total number of pings sent",
            ["target"],
            registry=self.registry,
        )
        self.ERRORS = Counter(
            "probe_errors_total",
            "Total number of probe errors by error reason",
            ["error_reason"],
            registry=self.registry,
        )
        self.IN_FLIGHT = Gauge(
            "in_flight_gauge",
            "Gauge of currently running probes",
            registry=self.registry,
        )
        logger.info("MetricsManager initialized.")

    def probe_started(self, target: str) -> None:
        self.IN_FLIGHT.inc()
        self.REQUESTS.labels(target=target).inc()

    def probe_finished(self) -> None:
        self.IN_FLIGHT.dec()

    def record_outcome(self, outcome: ProbeOutcome) -> None:
        if outcome.is_error:
            self.ERRORS.labels(error_reason=outcome.reason.value).inc()
        self.LATENCY.labels(
            target=outcome.target,
            status=outcome.status.value,
            error_reason=outcome.reason.value,
        ).observe(outcome.duration_seconds)
        logger.debug(
            f"Recorded outcome for {outcome.target}: {outcome.status.value}/{outcome.reason.value}"
        )

    def get_in_flight(self) -> float:
        """
        Get the current number of probes in flight.

        Returns:
            float: Current value of the in-flight gauge.
        """
        return self.registry.get_sample_value("in_flight_gauge") or 0.0
