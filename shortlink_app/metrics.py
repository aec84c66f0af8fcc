"""
Request metrics collector.

One RequestMetrics instance per app (created in create_app and stored on
app.state), never a module-level global.
"""

import threading
from typing import Dict


class RequestMetrics:
    """Counts requests, failures, latency and hits per path"""

    def __init__(self):
        self.total_requests = 0
        self.successful_requests = 0
        self.failed_requests = 0
        self.average_latency = 0.0  # seconds
        self.path_counts: Dict[str, int] = {}
        self._lock = threading.Lock()

    def record(self, path: str, status_code: int, duration: float) -> None:
        with self._lock:
            self.total_requests += 1
            self.path_counts[path] = self.path_counts.get(path, 0) + 1

            if status_code >= 400:
                self.failed_requests += 1
            else:
                self.successful_requests += 1

            # Simple moving average
            if self.average_latency == 0:
                self.average_latency = duration
            else:
                self.average_latency = (self.average_latency + duration) / 2

    def snapshot(self) -> dict:
        with self._lock:
            success_rate = 0.0
            if self.total_requests > 0:
                success_rate = self.successful_requests / self.total_requests * 100

            return {
                "total_requests": self.total_requests,
                "successful_requests": self.successful_requests,
                "failed_requests": self.failed_requests,
                "success_rate": success_rate,
                "average_latency": self.average_latency,
                "path_counts": dict(self.path_counts),
            }

    def render(self) -> str:
        """Plain-text report served by /api/metrics"""
        data = self.snapshot()
        lines = [
            "# URL Shortener Metrics",
            "",
            f"Total Requests: {data['total_requests']}",
            f"Successful Requests: {data['successful_requests']}",
            f"Failed Requests: {data['failed_requests']}",
            f"Success Rate: {data['success_rate']:.2f}%",
            f"Average Latency: {data['average_latency'] * 1000:.3f}ms",
            "",
            "# Requests by Path",
            "",
        ]
        lines.extend(f"{path}: {count}" for path, count in sorted(data["path_counts"].items()))
        return "\n".join(lines) + "\n"
