"""
Metrics Collector
==================
In-process counters and latency histograms for the API service.
Summarised on /health; nothing is exported or flushed anywhere.
"""

import time
from collections import defaultdict, deque
from typing import Any, Dict


class Counter:
    """Monotonically increasing counter with an optional label breakdown."""

    def __init__(self, name: str):
        self.name = name
        self.value = 0
        self._per_label: Dict[str, int] = defaultdict(int)

    def inc(self, label: str = "__total__", amount: int = 1):
        self.value += amount
        self._per_label[label] += amount

    def to_dict(self) -> dict:
        return {"name": self.name, "total": self.value, "by_label": dict(self._per_label)}


class Histogram:
    """Bounded sample window (latencies in ms)."""

    def __init__(self, name: str, max_samples: int = 500):
        self.name = name
        self._samples: deque = deque(maxlen=max_samples)

    def observe(self, value: float):
        self._samples.append(value)

    @property
    def count(self) -> int:
        return len(self._samples)

    @property
    def avg(self) -> float:
        return sum(self._samples) / len(self._samples) if self._samples else 0.0

    def percentile(self, pct: int) -> float:
        if not self._samples:
            return 0.0
        ordered = sorted(self._samples)
        idx = min(int(len(ordered) * pct / 100), len(ordered) - 1)
        return ordered[idx]

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "count": self.count,
            "avg": round(self.avg, 1),
            "p95": round(self.percentile(95), 1),
        }


class MetricsCollector:
    """
    Metrics tracked:
    - requests_total      (Counter)   — by "METHOD path"
    - request_latency_ms  (Histogram)
    - llm_latency_ms      (Histogram)
    - llm_failures_total  (Counter)
    - extractions_total   (Counter)   — by upload kind
    - errors_total        (Counter)   — by error class
    """

    def __init__(self, buffer_size: int = 1000):
        self._start_time = time.monotonic()
        self.requests_total = Counter("requests_total")
        self.llm_failures = Counter("llm_failures_total")
        self.extractions = Counter("extractions_total")
        self.errors_total = Counter("errors_total")
        self.request_latency = Histogram("request_latency_ms", buffer_size)
        self.llm_latency = Histogram("llm_latency_ms", buffer_size)

    def record_request(self, method: str, path: str, latency_ms: float):
        self.requests_total.inc(f"{method} {path}")
        self.request_latency.observe(latency_ms)

    def record_llm_call(self, latency_ms: float, success: bool):
        self.llm_latency.observe(latency_ms)
        if not success:
            self.llm_failures.inc()

    def record_extraction(self, kind: str):
        self.extractions.inc(kind)

    def record_error(self, error_type: str):
        self.errors_total.inc(error_type)

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self._start_time

    def summary(self) -> Dict[str, Any]:
        return {
            "uptime_seconds": round(self.uptime_seconds, 1),
            "requests": self.requests_total.to_dict(),
            "request_latency": self.request_latency.to_dict(),
            "llm_latency": self.llm_latency.to_dict(),
            "llm_failures": self.llm_failures.to_dict(),
            "extractions": self.extractions.to_dict(),
            "errors": self.errors_total.to_dict(),
        }

    def health_summary(self) -> Dict[str, Any]:
        """Compact summary for the health endpoint."""
        return {
            "uptime_s": round(self.uptime_seconds, 0),
            "total_requests": self.requests_total.value,
            "avg_latency_ms": round(self.request_latency.avg, 1),
            "llm_calls": self.llm_latency.count,
            "llm_failures": self.llm_failures.value,
            "error_rate": round(self.errors_total.value / max(self.requests_total.value, 1), 4),
        }
