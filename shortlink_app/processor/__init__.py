"""
Background URL processing module.
Probes shortened URLs with a bounded worker pool, off the request path.
"""

from .models import ProbeResult
from .url_processor import URLProcessor
from .result_consumer import ResultConsumer

__all__ = [
    "ProbeResult",
    "URLProcessor",
    "ResultConsumer",
]
