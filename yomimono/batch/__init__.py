"""
Yomimono Batch Module
=====================

Batch orchestration, per-feed processing and run logging.
"""

from .log_recorder import BatchLogRecorder
from .feed_processor import FeedProcessor, FeedResult
from .orchestrator import BatchOrchestrator, BatchRunSummary, run_scheduled_batch

__all__ = [
    "BatchLogRecorder",
    "FeedProcessor",
    "FeedResult",
    "BatchOrchestrator",
    "BatchRunSummary",
    "run_scheduled_batch",
]
