"""
Probe Result Consumer

Drains URLProcessor.results() on its own thread and logs every result.
It exits by itself once the processor has stopped and the result stream
is closed, so shutdown is deterministic (stop processor, then join).
"""

import logging
import threading
from typing import Optional

from shortlink_app.logging_config import get_logger
from shortlink_app.processor.models import ProbeResult
from shortlink_app.processor.url_processor import URLProcessor


class ResultConsumer:
    """
    Explicit consumer task for probe results.

    Features:
    - One daemon thread reading until the stream closes
    - Counts processed and failed probes
    - Logs through an injected logger
    """

    def __init__(self, processor: URLProcessor, logger: Optional[logging.Logger] = None):
        self.processor = processor
        self.logger = logger or get_logger(__name__)
        self.processed_count = 0
        self.failed_count = 0
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self.run, name="probe-results", daemon=True)
        self._thread.start()

    def run(self) -> None:
        """Consume until the processor's result stream closes"""
        for result in self.processor.results():
            self.handle(result)
        self.logger.info(
            "Probe result stream closed (processed=%d, failed=%d)",
            self.processed_count,
            self.failed_count
        )

    def handle(self, result: ProbeResult) -> None:
        self.processed_count += 1
        if result.ok:
            self.logger.info(
                "URL %s processed: status=%d, content-type=%s, time=%.3fs",
                result.url, result.status_code, result.content_type, result.elapsed
            )
        else:
            self.failed_count += 1
            self.logger.warning("URL processing error for %s: %s", result.url, result.error)

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the consumer thread (call after processor.stop())"""
        if self._thread is not None:
            self._thread.join(timeout)
