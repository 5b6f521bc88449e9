import logging
from typing import Optional

from prometheus_client import Counter, Gauge, Histogram, Info, generate_latest
from prometheus_client.core import CollectorRegistry

logger = logging.getLogger(__name__)

# Prometheus Registry
REGISTRY = CollectorRegistry()

validation_requests_total = Counter(
    'answer_validation_requests_total',
    'Total validation service calls',
    ['status', 'service', 'method'],
    registry=REGISTRY
)

validation_duration_seconds = Histogram(
    'answer_validation_duration_seconds',
    'Validation service call duration in seconds',
    ['service', 'method'],
    buckets=[0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0],
    registry=REGISTRY
)

validation_results_total = Counter(
    'answer_validation_results_total',
    'Validation results by shape and result type',
    ['shape', 'result_type', 'outcome'],
    registry=REGISTRY
)

batch_size = Histogram(
    'answer_validation_batch_size',
    'Number of items per batch validation',
    buckets=[1, 5, 10, 25, 50, 100],
    registry=REGISTRY
)

inflight_validations = Gauge(
    'answer_validation_inflight',
    'Validations currently in progress',
    registry=REGISTRY
)

system_info = Info(
    'answer_validation_info',
    'System information',
    registry=REGISTRY
)


def outcome_label(ok: Optional[bool]) -> str:
    if ok is None:
        return 'empty'
    return 'correct' if ok else 'incorrect'


class PrometheusMetricsCollector:
    """Prometheus metrics for the validation service"""

    def __init__(self):
        system_info.info({
            'version': '1.0.0',
            'service': 'answer-validation'
        })

    def record_request(
        self,
        service_name: str,
        method_name: str,
        duration_seconds: float,
        success: bool
    ):
        """Record one service call"""
        status = 'success' if success else 'error'

        validation_requests_total.labels(
            status=status,
            service=service_name,
            method=method_name
        ).inc()

        validation_duration_seconds.labels(
            service=service_name,
            method=method_name
        ).observe(duration_seconds)

    def record_result(self, shape: str, result_type: Optional[str], ok: Optional[bool]):
        """Count a validation result by shape, metadata type and outcome"""
        validation_results_total.labels(
            shape=shape,
            result_type=result_type or 'unknown',
            outcome=outcome_label(ok)
        ).inc()

    def record_batch(self, size: int):
        batch_size.observe(size)

    def get_prometheus_metrics(self) -> bytes:
        """Get Prometheus metrics in text format"""
        return generate_latest(REGISTRY)


# Global instance
prometheus_collector = PrometheusMetricsCollector()
