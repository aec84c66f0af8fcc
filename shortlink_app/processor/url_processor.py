"""
URL Processor Worker Pool

Probes submitted URLs in the background (HEAD request) and emits one
ProbeResult per processed job. Shortening never waits on it.

Architecture:
- Fixed pool of worker threads
- Bounded job queue (submit never deadlocks the caller)
- Bounded result queue drained through results()
- stop() cancels workers; results() ends once every worker has exited
"""

import queue
import threading
import time
from typing import Callable, Iterator, List, Optional
from urllib.parse import urlsplit, urlunsplit

import requests

from shortlink_app.config import Settings
from shortlink_app.exceptions import ProbeFailure
from shortlink_app.logging_config import get_logger
from shortlink_app.processor.models import ProbeResult

logger = get_logger(__name__)


class URLProcessor:
    """
    Bounded worker pool for background URL probes.

    Features:
    - worker_count threads, each with its own HTTP session
    - per-request timeout, so a worker never hangs on a slow target
    - cancellation takes priority over delivering a result
    - no retries: every failure is reported as data in the result
    """

    def __init__(
        self,
        worker_count: int = 4,
        queue_size: Optional[int] = None,
        timeout: float = 5.0,
        user_agent: str = "URLShortener/1.0",
        session_factory: Callable[[], requests.Session] = requests.Session,
        poll_interval: float = 0.1
    ):
        """
        Initialize the pool (workers are launched by start()).

        Args:
            worker_count: Number of worker threads
            queue_size: Capacity of the job and result queues (default worker_count * 2)
            timeout: Seconds allowed per HEAD request
            user_agent: User-Agent header sent with every probe
            session_factory: Builds one HTTP session per worker (injectable for tests)
            poll_interval: How often blocked threads re-check for shutdown
        """
        if worker_count < 1:
            raise ValueError("worker_count must be at least 1")

        self.worker_count = worker_count
        self.timeout = timeout
        self.user_agent = user_agent
        self.session_factory = session_factory
        self.poll_interval = poll_interval

        capacity = queue_size or worker_count * 2
        self._jobs: queue.Queue = queue.Queue(maxsize=capacity)
        self._results: queue.Queue = queue.Queue(maxsize=capacity)

        self._stop_event = threading.Event()
        self._finished = threading.Event()
        self._lock = threading.Lock()
        self._workers: List[threading.Thread] = []
        self._alive = 0
        self._started = False
        self._closed = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "URLProcessor":
        """Build and start a processor from application settings"""
        processor = cls(
            worker_count=settings.worker_count,
            queue_size=settings.probe_queue_size,
            timeout=settings.probe_timeout,
            user_agent=settings.probe_user_agent
        )
        processor.start()
        return processor

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Launch the worker threads"""
        with self._lock:
            if self._closed:
                raise RuntimeError("URL processor has been stopped")
            if self._started:
                return
            self._started = True
            self._alive = self.worker_count

            for worker_id in range(self.worker_count):
                thread = threading.Thread(
                    target=self._worker,
                    args=(worker_id,),
                    name=f"url-processor-{worker_id}",
                    daemon=True
                )
                self._workers.append(thread)
                thread.start()

        logger.info("Starting URL processor with %d workers", self.worker_count)

    def submit(self, url: str, block: bool = True) -> bool:
        """
        Queue a URL for probing.

        Args:
            url: URL to probe
            block: Wait for queue capacity (True) or drop when full (False)

        Returns:
            True if the job was queued, False if dropped or stopped
        """
        if self._closed:
            return False

        if not block:
            try:
                self._jobs.put_nowait(url)
                return True
            except queue.Full:
                logger.debug("Probe queue full, dropping %s", url)
                return False

        # Wake up regularly so a stop() never leaves the caller stuck
        while not self._stop_event.is_set():
            try:
                self._jobs.put(url, timeout=self.poll_interval)
                return True
            except queue.Full:
                continue
        return False

    def results(self) -> Iterator[ProbeResult]:
        """
        Yield probe results as they become available.

        The iterator ends once every worker has exited and all delivered
        results were consumed; that is pool termination, not an error.
        """
        while True:
            try:
                yield self._results.get(timeout=self.poll_interval)
            except queue.Empty:
                if self._finished.is_set() and self._results.empty():
                    return

    def stop(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """
        Cancel all workers and reject further submissions.

        Safe to call more than once; only the first call has an effect.

        Args:
            wait: Join the worker threads before returning
            timeout: Per-thread join timeout when waiting
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            started = self._started

        self._stop_event.set()

        if not started:
            self._finished.set()
            return

        if wait:
            for thread in self._workers:
                thread.join(timeout)

        logger.info("URL processor stopped")

    def process_url(self, url: str, session: requests.Session) -> ProbeResult:
        """Probe one URL; every failure is captured in the result"""
        start_time = time.monotonic()

        try:
            target = self._normalize(url)
            response = session.head(
                target,
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent},
                allow_redirects=True
            )
            try:
                status_code = response.status_code
                content_type = response.headers.get("Content-Type", "")
            finally:
                response.close()

        except (ProbeFailure, requests.RequestException, ValueError) as e:
            return ProbeResult(
                url=url,
                error=str(e) or e.__class__.__name__,
                elapsed=time.monotonic() - start_time
            )

        return ProbeResult(
            url=url,
            status_code=status_code,
            content_type=content_type,
            elapsed=time.monotonic() - start_time
        )

    @staticmethod
    def _normalize(url: str) -> str:
        """Parse the URL and default the scheme to http"""
        try:
            parts = urlsplit(url)
        except ValueError as e:
            raise ProbeFailure(f"invalid URL {url!r}: {e}") from e

        if parts.scheme:
            return url
        if parts.netloc:
            return urlunsplit(parts._replace(scheme="http"))
        return f"http://{url}"

    def _worker(self, worker_id: int) -> None:
        """Worker loop: Running -> Stopping -> Exited"""
        session = self.session_factory()
        logger.info("URL processor worker %d started", worker_id)

        try:
            while not self._stop_event.is_set():
                try:
                    url = self._jobs.get(timeout=self.poll_interval)
                except queue.Empty:
                    continue

                try:
                    result = self.process_url(url, session)
                except Exception as e:
                    logger.exception("URL processor worker %d failed on %s", worker_id, url)
                    result = ProbeResult(url=url, error=str(e) or e.__class__.__name__)

                if not self._deliver(result):
                    break

            logger.info("URL processor worker %d stopping due to cancellation", worker_id)

        finally:
            session.close()
            with self._lock:
                self._alive -= 1
                if self._alive == 0:
                    self._finished.set()

    def _deliver(self, result: ProbeResult) -> bool:
        """Hand a result to consumers; False (result dropped) once stopping"""
        while not self._stop_event.is_set():
            try:
                self._results.put(result, timeout=self.poll_interval)
                return True
            except queue.Full:
                continue
        return False
