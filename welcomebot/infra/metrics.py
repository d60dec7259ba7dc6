from __future__ import annotations
import time
from collections import defaultdict, deque
from threading import Lock
from typing import Dict
from dataclasses import dataclass, field
from welcomebot.infra.logging_config import get_logger

logger = get_logger(__name__)

# Samples kept per histogram; stats describe this most recent window.
HISTOGRAM_WINDOW = 1000


@dataclass
class Counter:
    """Simple counter metric"""
    value: int = 0

    def inc(self, amount: int = 1) -> None:
        self.value += amount


@dataclass
class Histogram:
    """Track distribution of values (e.g., turn durations)"""
    values: deque = field(default_factory=lambda: deque(maxlen=HISTOGRAM_WINDOW))
    total: int = 0

    def observe(self, value: float) -> None:
        self.values.append(value)
        self.total += 1

    def get_stats(self) -> dict:
        if not self.values:
            return {"count": 0, "window": 0, "min": 0, "max": 0, "avg": 0, "p95": 0, "p99": 0}

        sorted_values = sorted(self.values)
        window = len(sorted_values)

        def percentile(p: float) -> float:
            idx = int(window * p)
            return sorted_values[min(idx, window - 1)]

        return {
            "count": self.total,
            "window": window,
            "min": sorted_values[0],
            "max": sorted_values[-1],
            "avg": sum(sorted_values) / window,
            "p95": percentile(0.95),
            "p99": percentile(0.99),
        }


class MetricsCollector:
    """
    Lightweight in-process metrics collection.
    For production, consider Prometheus client or similar.
    """

    def __init__(self):
        self._counters: Dict[str, Counter] = defaultdict(Counter)
        self._histograms: Dict[str, Histogram] = defaultdict(Histogram)
        self._lock = Lock()

    def inc_counter(self, name: str, amount: int = 1, labels: dict | None = None) -> None:
        key = self._make_key(name, labels)
        with self._lock:
            self._counters[key].inc(amount)

    def observe_histogram(self, name: str, value: float, labels: dict | None = None) -> None:
        key = self._make_key(name, labels)
        with self._lock:
            self._histograms[key].observe(value)

    def get_metrics(self) -> dict:
        with self._lock:
            counters = {k: v.value for k, v in self._counters.items()}
            histograms = {k: v.get_stats() for k, v in self._histograms.items()}

        return {
            "counters": counters,
            "histograms": histograms,
        }

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._histograms.clear()
        logger.info("Metrics reset")

    @staticmethod
    def _make_key(name: str, labels: dict | None) -> str:
        """Create a metric key from name and labels"""
        if not labels:
            return name
        label_str = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"


# Global metrics collector
_metrics = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    """Get the global metrics collector"""
    return _metrics


def inc_counter(name: str, amount: int = 1, **labels) -> None:
    _metrics.inc_counter(name, amount, labels or None)


def observe_histogram(name: str, value: float, **labels) -> None:
    _metrics.observe_histogram(name, value, labels or None)


class Timer:
    """Context manager to time operations"""

    def __init__(self, metric_name: str, **labels):
        self.metric_name = metric_name
        self.labels = labels
        self.start_time: float | None = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time is not None:
            duration = time.perf_counter() - self.start_time
            observe_histogram(self.metric_name, duration, **self.labels)


class AppMetrics:
    """Turn pipeline metrics"""

    @staticmethod
    def turn_received(activity_type: str) -> None:
        inc_counter("bot_turns_total", activity_type=activity_type)

    @staticmethod
    def turn_failed(stage: str) -> None:
        inc_counter("bot_turn_failures_total", stage=stage)

    @staticmethod
    def activities_sent(count: int) -> None:
        if count:
            inc_counter("bot_activities_sent_total", count)

    @staticmethod
    def state_committed(result: str) -> None:
        """result: written, skipped (unchanged record) or noop (nothing loaded in the turn)"""
        inc_counter("user_state_commits_total", result=result)

    @staticmethod
    def state_conflict(backend: str) -> None:
        inc_counter("user_state_conflicts_total", backend=backend)

    @staticmethod
    def storage_error(backend: str, operation: str) -> None:
        inc_counter("storage_errors_total", backend=backend, operation=operation)

    @staticmethod
    def track_turn_time(activity_type: str) -> Timer:
        return Timer("turn_processing_seconds", activity_type=activity_type)
