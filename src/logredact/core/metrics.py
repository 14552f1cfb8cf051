"""
Prometheus metrics for redaction.

In-memory counters; Prometheus handles storage. The engine fills a
RedactionStats per call (stack-local, no locking) and flushes it into the
shared collector once the call is done.
"""

import time
from dataclasses import dataclass, field
from typing import Dict, Optional

import structlog
from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram, Info

from .. import __version__

logger = structlog.get_logger(__name__)


@dataclass
class RedactionStats:
    """Per-call tallies collected while redacting one value."""

    pattern_matches: Dict[str, int] = field(default_factory=dict)
    fields_masked: Dict[str, int] = field(default_factory=dict)

    def record_field(self, strategy: str) -> None:
        self.fields_masked[strategy] = self.fields_masked.get(strategy, 0) + 1

    @property
    def changed(self) -> bool:
        return bool(self.pattern_matches or self.fields_masked)


class RedactionMetrics:
    """
    Centralized metrics collection for the redaction engine.

    Label cardinality is bounded: operations and strategies are fixed sets,
    pattern names come from the policy.
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        self.registry = registry
        self.service_info = Info(
            "logredact_service",
            "logredact service information",
            registry=registry,
        )
        self.service_info.info({
            "version": __version__,
            "service": "logredact",
        })

        self.operations_total = Counter(
            "redaction_operations_total",
            "Total redaction calls by entry point",
            ["operation"],
            registry=registry,
        )

        self.fields_masked_total = Counter(
            "redaction_fields_masked_total",
            "Total sensitive fields masked by strategy",
            ["strategy"],
            registry=registry,
        )

        self.pattern_matches_total = Counter(
            "redaction_pattern_matches_total",
            "Total content pattern replacements by pattern",
            ["pattern"],
            registry=registry,
        )

        self.errors_total = Counter(
            "redaction_errors_total",
            "Total redaction failures that fell back to degraded output",
            ["operation"],
            registry=registry,
        )

        self.duration = Histogram(
            "redaction_duration_seconds",
            "Redaction call duration in seconds",
            ["operation"],
            buckets=[0.00001, 0.00005, 0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1],
            registry=registry,
        )

    def record_operation(
        self,
        operation: str,
        stats: Optional[RedactionStats],
        started_at: float,
    ) -> None:
        """Record one completed redaction call."""
        self.operations_total.labels(operation=operation).inc()
        self.duration.labels(operation=operation).observe(time.perf_counter() - started_at)

        if stats is None:
            return

        for pattern, count in stats.pattern_matches.items():
            self.pattern_matches_total.labels(pattern=pattern).inc(count)

        for strategy, count in stats.fields_masked.items():
            self.fields_masked_total.labels(strategy=strategy).inc(count)

    def record_error(self, operation: str) -> None:
        """Record a redaction failure."""
        self.errors_total.labels(operation=operation).inc()


# Global metrics instance
_redaction_metrics: Optional[RedactionMetrics] = None


def get_redaction_metrics() -> RedactionMetrics:
    """Get or create the process-wide metrics collector on the default registry."""
    global _redaction_metrics

    if _redaction_metrics is None:
        _redaction_metrics = RedactionMetrics()
        logger.debug("Redaction metrics registered")

    return _redaction_metrics
