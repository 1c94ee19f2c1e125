import logging
from wbc.infrastructure.event_bus import EventBus
from wbc.ui.state import UIState
from wbc.domain.events import (
    DiscoveryFinished, BatchProgress, StatusMessage,
    JobStarted, JobCompleted, JobFailed, ProcessingFinished,
)

class UIManager:
    """Subscribes to EventBus and updates UIState."""

    def __init__(self, bus: EventBus, state: UIState):
        self.bus = bus
        self.state = state
        self.logger = logging.getLogger(__name__)
        self._setup_subscriptions()

    def _setup_subscriptions(self):
        self.bus.subscribe(DiscoveryFinished, self.on_discovery_finished)
        self.bus.subscribe(BatchProgress, self.on_batch_progress)
        self.bus.subscribe(StatusMessage, self.on_status_message)
        self.bus.subscribe(JobStarted, self.on_job_started)
        self.bus.subscribe(JobCompleted, self.on_job_completed)
        self.bus.subscribe(JobFailed, self.on_job_failed)
        self.bus.subscribe(ProcessingFinished, self.on_processing_finished)

    def on_discovery_finished(self, event: DiscoveryFinished):
        self.logger.debug(f"UI: discovery finished, files_found={event.files_found}")
        self.state.set_total(event.files_found)

    def on_batch_progress(self, event: BatchProgress):
        self.state.set_progress(event.completed, event.total)

    def on_status_message(self, event: StatusMessage):
        self.state.set_status(event.message)

    def on_job_started(self, event: JobStarted):
        self.state.add_active_job(event.job)

    def on_job_completed(self, event: JobCompleted):
        self.state.add_completed_job(event.job, event.output_size_bytes)

    def on_job_failed(self, event: JobFailed):
        self.state.add_failed_job(event.job, event.error_message)

    def on_processing_finished(self, event: ProcessingFinished):
        self.state.mark_finished(event.error_message)
