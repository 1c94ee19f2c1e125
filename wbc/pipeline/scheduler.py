"""Bounded-concurrency conversion of a batch of jobs.

The dispatcher admits at most ``settings.max_concurrency`` jobs at a time (a
condition variable guarding an active-job counter) and submits each admitted job
to a thread pool. Workers release their slot in a ``finally`` block, so a failing
job can never starve the dispatcher.

Shared state (completed/failed counters, the first error and calls into the
progress sink) is only touched under ``_stats_lock``. Each successful job
therefore produces exactly one increment and exactly one progress report, and
the first recorded error is never overwritten.

A failure does not cancel siblings: every admitted job runs to completion and
the first error is raised only after all of them have finished.
"""

import concurrent.futures
import logging
import threading
import time
from typing import Iterable, List, Optional
from wbc.domain.errors import ConversionError, ConversionIOError, NoInputFilesError
from wbc.domain.events import JobCompleted, JobFailed, JobStarted
from wbc.domain.models import BatchResult, ConversionJob, ConversionSettings
from wbc.infrastructure.codec import PillowCodec
from wbc.infrastructure.event_bus import EventBus
from wbc.infrastructure.progress import ProgressSink


class ConversionScheduler:
    """Runs conversion jobs on a bounded worker pool.

    Args:
        codec: Adapter providing format_hint/decode/encode.
        event_bus: Optional EventBus for per-job lifecycle events.
    """

    def __init__(self, codec: PillowCodec, event_bus: Optional[EventBus] = None):
        self.codec = codec
        self.event_bus = event_bus
        self.logger = logging.getLogger(__name__)

        # Admission gate
        self._thread_lock = threading.Condition()
        self._active_threads = 0
        self._max_threads = 1

        # Stats (counters, first error, sink calls)
        self._stats_lock = threading.Lock()
        self.last_result: Optional[BatchResult] = None

    def run_batch(
        self,
        jobs: Iterable[ConversionJob],
        settings: ConversionSettings,
        progress_sink: ProgressSink,
    ) -> BatchResult:
        """Converts every job and returns the BatchResult.

        Raises:
            NoInputFilesError: if ``jobs`` is empty (nothing is dispatched).
            ConversionError: the first per-job error, after all jobs finished.
        """
        jobs = list(jobs)
        if not jobs:
            raise NoInputFilesError()

        total = len(jobs)
        result = BatchResult(total_files=total)
        self._max_threads = settings.max_concurrency
        self.logger.info(
            f"Batch started: files={total}, threads={settings.max_concurrency}, "
            f"quality={settings.quality}, lossless={settings.lossless}"
        )

        futures: List[concurrent.futures.Future] = []
        with concurrent.futures.ThreadPoolExecutor(
            max_workers=settings.max_concurrency,
            thread_name_prefix="wbc-worker",
        ) as executor:
            for job in jobs:
                self._acquire_slot()
                try:
                    futures.append(executor.submit(self._process_job, job, settings, result, progress_sink))
                except BaseException:
                    self._release_slot()
                    raise

            concurrent.futures.wait(futures)

        for job, future in zip(jobs, futures):
            # Conversion failures are recorded by the worker; this is a sink or subscriber failing after success
            exc = future.exception()
            if exc is not None:
                self.logger.error(f"Worker crashed after converting {job.input_path}: {exc!r}")
                with self._stats_lock:
                    if result.first_error is None:
                        result.first_error = self._unexpected_error(job, exc)

        self.last_result = result
        self.logger.info(
            f"Batch finished: completed={result.completed_count}, "
            f"failed={result.failed_count}, total={total}"
        )
        if result.first_error is not None:
            raise result.first_error
        return result

    def _acquire_slot(self):
        with self._thread_lock:
            while self._active_threads >= self._max_threads:
                self._thread_lock.wait()
            self._active_threads += 1

    def _release_slot(self):
        with self._thread_lock:
            self._active_threads -= 1
            self._thread_lock.notify_all()

    def _process_job(
        self,
        job: ConversionJob,
        settings: ConversionSettings,
        result: BatchResult,
        progress_sink: ProgressSink,
    ):
        """Converts a single file; always releases its concurrency slot."""
        filename = job.input_path.name
        start_time = time.monotonic()
        try:
            self.logger.debug(f"PROCESS_START: {filename} (thread {threading.get_ident()})")
            self._publish(JobStarted(job=job))
            output_size = self._convert(job, settings)
        except ConversionError as e:
            self._record_failure(job, e, result)
            self.logger.debug(f"PROCESS_END: {filename} status=failed elapsed={time.monotonic() - start_time:.2f}s")
        except Exception as e:
            self.logger.exception(f"Unexpected error converting {job.input_path}")
            self._record_failure(job, self._unexpected_error(job, e), result)
            self.logger.debug(f"PROCESS_END: {filename} status=failed elapsed={time.monotonic() - start_time:.2f}s")
        else:
            self._record_success(job, output_size, result, progress_sink)
            self.logger.debug(f"PROCESS_END: {filename} status=ok elapsed={time.monotonic() - start_time:.2f}s")
        finally:
            self._release_slot()

    def _convert(self, job: ConversionJob, settings: ConversionSettings) -> int:
        format_hint = self.codec.format_hint(job.input_path)
        try:
            data = job.input_path.read_bytes()
        except OSError as exc:
            raise ConversionIOError(f"Cannot read input file {job.input_path}: {exc}", path=job.input_path) from exc

        try:
            image = self.codec.decode(data, format_hint)
        except ConversionError as exc:
            exc.path = exc.path or job.input_path
            raise
        try:
            encoded = self.codec.encode(image, settings.quality, settings.lossless)
        except ConversionError as exc:
            exc.path = exc.path or job.input_path
            raise

        try:
            job.output_path.write_bytes(encoded)
        except OSError as exc:
            raise ConversionIOError(f"Cannot write output file {job.output_path}: {exc}", path=job.output_path) from exc
        return len(encoded)

    def _record_success(self, job: ConversionJob, output_size: int, result: BatchResult, progress_sink: ProgressSink):
        with self._stats_lock:
            result.completed_count += 1
            completed = result.completed_count
            progress_sink.on_progress(completed, result.total_files)
            progress_sink.on_status(f"Processed {completed}/{result.total_files} files")
        self.logger.info(f"Converted: {job.input_path} -> {job.output_path} ({output_size} bytes)")
        self._publish(JobCompleted(job=job, output_size_bytes=output_size))

    def _record_failure(self, job: ConversionJob, error: ConversionError, result: BatchResult):
        with self._stats_lock:
            result.failed_count += 1
            if result.first_error is None:
                result.first_error = error
        self.logger.error(f"Failed: {job.input_path}: {error}")
        self._publish(JobFailed(job=job, error_message=str(error)))

    @staticmethod
    def _unexpected_error(job: ConversionJob, exc: BaseException) -> ConversionError:
        error = ConversionError(f"Unexpected error converting {job.input_path}: {exc!r}", path=job.input_path)
        error.__cause__ = exc
        return error

    def _publish(self, event):
        if self.event_bus is not None:
            self.event_bus.publish(event)
