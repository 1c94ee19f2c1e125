import threading
from datetime import datetime
from collections import deque
from typing import List, Optional, Tuple
from wbc.domain.models import ConversionJob

class UIState:
    """Thread-safe state manager for the progress dashboard."""

    def __init__(self, recent_failures_max_items: int = 5):
        self._lock = threading.RLock()

        # Counters
        self.total_files = 0
        self.completed_count = 0
        self.failed_count = 0
        self.total_output_bytes = 0

        # Job lists
        self.active_jobs: List[ConversionJob] = []
        self.recent_failures: deque = deque(maxlen=recent_failures_max_items)  # (filename, message)

        # Global Status
        self.ui_title = "WBC"
        self.config_lines: List[str] = []
        self.status_message = "Ready"
        self.discovery_finished = False
        self.processing_start_time: Optional[datetime] = None
        self.finished = False
        self.error_message: Optional[str] = None

    @property
    def processed_count(self) -> int:
        with self._lock:
            return self.completed_count + self.failed_count

    def set_total(self, total: int):
        with self._lock:
            self.total_files = total
            self.discovery_finished = True

    def set_progress(self, completed: int, total: int):
        with self._lock:
            # Progress reports are serialized upstream; never move backwards
            self.completed_count = max(self.completed_count, completed)
            self.total_files = total

    def set_status(self, message: str):
        with self._lock:
            self.status_message = message

    def add_active_job(self, job: ConversionJob):
        with self._lock:
            if self.processing_start_time is None:
                self.processing_start_time = datetime.now()
            if job not in self.active_jobs:
                self.active_jobs.append(job)

    def remove_active_job(self, job: ConversionJob):
        with self._lock:
            if job in self.active_jobs:
                self.active_jobs.remove(job)

    def add_completed_job(self, job: ConversionJob, output_size: int):
        with self._lock:
            self.total_output_bytes += output_size
            self.remove_active_job(job)

    def add_failed_job(self, job: ConversionJob, message: str):
        with self._lock:
            self.failed_count += 1
            self.recent_failures.appendleft((job.input_path.name, message))
            self.remove_active_job(job)

    def mark_finished(self, error_message: Optional[str] = None):
        with self._lock:
            self.finished = True
            self.error_message = error_message

    def snapshot_failures(self) -> List[Tuple[str, str]]:
        with self._lock:
            return list(self.recent_failures)

    def elapsed_seconds(self) -> Optional[float]:
        with self._lock:
            if self.processing_start_time is None:
                return None
            return (datetime.now() - self.processing_start_time).total_seconds()
