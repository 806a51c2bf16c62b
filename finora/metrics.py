"""Advisor custom metrics for Prometheus.

Tracks request latency and outcomes of calls to the model provider, plus
responses that came back empty or unparsable.
"""

import time
from contextlib import contextmanager

from prometheus_client import (
    Counter,
    Histogram,
    Info,
    REGISTRY,
    CollectorRegistry,
)

from finora.logging_config import get_logger

logger = get_logger(__name__)


class AdvisorMetrics:
    """Custom Prometheus metrics for the advisor service."""

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        """Initialize advisor metrics.

        Args:
            registry: Prometheus registry to use
        """
        self.registry = registry

        self.request_duration = Histogram(
            "finora_advisor_request_duration_seconds",
            "Time spent waiting on the model provider",
            labelnames=["operation", "status"],
            buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0, 120.0],
            registry=registry,
        )

        self.request_total = Counter(
            "finora_advisor_requests_total",
            "Total number of model provider requests",
            labelnames=["operation", "status"],
            registry=registry,
        )

        self.errors_total = Counter(
            "finora_advisor_errors_total",
            "Model provider errors by exception type",
            labelnames=["operation", "error_type"],
            registry=registry,
        )

        self.malformed_responses = Counter(
            "finora_advisor_malformed_responses_total",
            "Responses that were empty or not valid JSON",
            labelnames=["operation"],
            registry=registry,
        )

        self.model_info = Info(
            "finora_advisor_model",
            "Generative model in use",
            registry=registry,
        )

    def set_model_info(self, model_name: str) -> None:
        """Record the configured model name."""
        self.model_info.info({"model_name": model_name})

    @contextmanager
    def track_request(self, operation: str):
        """Context manager to time a provider call and count its outcome.

        Example:
            with advisor_metrics.track_request("advice"):
                response = await client.aio.models.generate_content(...)
        """
        start_time = time.perf_counter()
        status = "success"

        try:
            yield
        except Exception as e:
            status = "error"
            self.errors_total.labels(
                operation=operation,
                error_type=type(e).__name__,
            ).inc()
            raise
        finally:
            duration = time.perf_counter() - start_time
            self.request_duration.labels(operation=operation, status=status).observe(duration)
            self.request_total.labels(operation=operation, status=status).inc()

    def record_malformed_response(self, operation: str) -> None:
        """Count an empty or unparsable provider response."""
        self.malformed_responses.labels(operation=operation).inc()


# Singleton instance
advisor_metrics = AdvisorMetrics()
