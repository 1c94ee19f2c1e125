"""Directory-level conversion run.

Creates the output root, discovers eligible images, maps each one to a
ConversionJob and hands the batch to the ConversionScheduler. Batch-level
failures (output root, discovery, path mapping, no input files) abort before
anything is dispatched. Anything else that escapes is reported as a
ConversionError chained from the original, so the sink always receives a
terminal status line.
"""

import logging
from pathlib import Path
from typing import List, Optional
from wbc.domain.errors import ConversionError
from wbc.domain.events import DiscoveryFinished, DiscoveryStarted, ProcessingFinished
from wbc.domain.models import BatchResult, ConversionJob, ConversionSettings
from wbc.infrastructure.event_bus import EventBus
from wbc.infrastructure.file_scanner import FileScanner
from wbc.infrastructure.path_mapper import ensure_output_root, map_output_path
from wbc.infrastructure.progress import ProgressSink
from wbc.pipeline.scheduler import ConversionScheduler

STATUS_CONVERTING = "Converting..."
STATUS_DONE = "Done"


class Orchestrator:
    """Converts every supported image under an input directory to WebP.

    Args:
        settings: Quality, lossless flag and worker limit for the run.
        file_scanner: FileScanner used for discovery.
        scheduler: ConversionScheduler that runs the jobs.
        progress_sink: Receives progress counts and status lines.
        event_bus: Optional EventBus for discovery/finish events.
    """

    def __init__(
        self,
        settings: ConversionSettings,
        file_scanner: FileScanner,
        scheduler: ConversionScheduler,
        progress_sink: ProgressSink,
        event_bus: Optional[EventBus] = None,
    ):
        self.settings = settings
        self.file_scanner = file_scanner
        self.scheduler = scheduler
        self.progress_sink = progress_sink
        self.event_bus = event_bus
        self.logger = logging.getLogger(__name__)

    def run(self, input_dir: Path, output_dir: Path) -> BatchResult:
        input_dir = Path(input_dir)
        try:
            output_root = ensure_output_root(output_dir)
            self.progress_sink.on_status(STATUS_CONVERTING)
            jobs = self._build_jobs(input_dir, output_root)
            result = self.scheduler.run_batch(jobs, self.settings, self.progress_sink)
        except ConversionError as e:
            self.logger.error(f"Conversion failed: {e}")
            self.progress_sink.on_status(f"Error: {e}")
            self._publish(ProcessingFinished(success=False, error_message=str(e)))
            raise
        except Exception as e:
            self.logger.exception("Conversion crashed")
            error = ConversionError(f"Unexpected error: {e!r}")
            self.progress_sink.on_status(f"Error: {error}")
            self._publish(ProcessingFinished(success=False, error_message=str(error)))
            raise error from e

        self.logger.info(f"Conversion finished: {result.completed_count}/{result.total_files} files")
        self.progress_sink.on_status(STATUS_DONE)
        self._publish(ProcessingFinished(success=True))
        return result

    def _build_jobs(self, input_dir: Path, output_root: Path) -> List[ConversionJob]:
        self.logger.info(f"Discovery started: {input_dir}")
        self._publish(DiscoveryStarted(directory=input_dir))

        scanner = self.file_scanner
        if output_root not in scanner.exclude_dirs and self._is_nested(output_root, input_dir):
            # Output written inside the input tree must not be rescanned
            scanner = FileScanner(
                extensions=sorted(scanner.extensions),
                exclude_dirs=[*scanner.exclude_dirs, output_root],
            )
        files = scanner.scan(input_dir)

        self.logger.info(f"Discovery finished: found={len(files)}")
        self._publish(DiscoveryFinished(files_found=len(files)))

        return [
            ConversionJob(input_path=path, output_path=map_output_path(input_dir, output_root, path))
            for path in files
        ]

    @staticmethod
    def _is_nested(path: Path, root: Path) -> bool:
        try:
            Path(path).resolve().relative_to(Path(root).resolve())
        except ValueError:
            return False
        return True

    def _publish(self, event):
        if self.event_bus is not None:
            self.event_bus.publish(event)
