"""
Request Metrics
===============
In-process request counters and latencies, exposed on /monitoring/metrics.

Requests are grouped by route template ("GET /api/customers/{customer_id}"),
so every customer id lands in the same bucket. Requests that match no route
share the UNMATCHED_ROUTE bucket, and only the latest LATENCY_SAMPLES
latencies are kept per route.
"""

import threading
import time
from collections import Counter, defaultdict, deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, Iterable

UNMATCHED_ROUTE = "<unmatched>"
LATENCY_SAMPLES = 1000


class MetricsCollector:
    """Thread-safe request metrics"""

    def __init__(self, latency_samples: int = LATENCY_SAMPLES):
        self._lock = threading.Lock()
        self.latency_samples = latency_samples
        self.reset_metrics()

    def reset_metrics(self):
        """Starts counting from zero (handy in tests)"""
        with self._lock:
            self.requests_by_route: Counter = Counter()
            self.errors_by_route: Counter = Counter()
            self.status_classes: Counter = Counter()
            self.latencies_ms: Dict[str, Deque[float]] = defaultdict(
                lambda: deque(maxlen=self.latency_samples)
            )
            self.started_at = time.monotonic()
            self.last_reset = datetime.now(timezone.utc)

    def track_request(self, route: str, method: str, duration_ms: float, status_code: int):
        key = route if route == UNMATCHED_ROUTE else f"{method} {route}"
        with self._lock:
            self.requests_by_route[key] += 1
            self.latencies_ms[key].append(duration_ms)
            self.status_classes[f"{status_code // 100}xx"] += 1
            if status_code >= 400:
                self.errors_by_route[key] += 1

    def get_metrics_summary(self) -> Dict[str, Any]:
        with self._lock:
            requests = dict(self.requests_by_route)
            errors = dict(self.errors_by_route)
            status_classes = dict(self.status_classes)
            latencies = {key: self._latency_stats(values) for key, values in self.latencies_ms.items()}

        total = sum(requests.values())
        failed = sum(errors.values())

        return {
            "system": {
                "uptime_seconds": round(time.monotonic() - self.started_at, 2),
                "last_reset": self.last_reset.isoformat(),
            },
            "requests": {
                "total": total,
                "by_route": requests,
                "by_status": status_classes,
                "errors": failed,
                "error_rate": round(failed / total * 100, 2) if total else 0,
                "latencies": latencies,
            },
        }

    @staticmethod
    def _latency_stats(values: Iterable[float]) -> Dict[str, float]:
        ordered = sorted(values)
        p95 = ordered[min(int(len(ordered) * 0.95), len(ordered) - 1)]
        return {
            "avg_ms": round(sum(ordered) / len(ordered), 2),
            "min_ms": round(ordered[0], 2),
            "max_ms": round(ordered[-1], 2),
            "p95_ms": round(p95, 2),
        }


# Global instance
metrics = MetricsCollector()
