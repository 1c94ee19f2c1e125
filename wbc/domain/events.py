"""Domain events for the image conversion pipeline.

Events flow through the EventBus and decouple the pipeline (orchestrator and
scheduler) from the UI layer. Worker threads publish job events concurrently,
so subscribers must be thread-safe.

See `infrastructure/event_bus.py` for the pub/sub mechanism.
"""

from pathlib import Path
from typing import Optional
from pydantic import BaseModel
from .models import ConversionJob


class Event(BaseModel):
    """Base class for all domain events."""

    pass


class JobEvent(Event):
    """Base class for events related to a single conversion job."""

    job: ConversionJob


class JobStarted(JobEvent):
    """Emitted when a worker begins converting a file."""

    pass


class JobCompleted(JobEvent):
    """Emitted when a WebP file has been written."""

    output_size_bytes: int = 0


class JobFailed(JobEvent):
    """Emitted when a job fails; the batch keeps running."""

    error_message: str


class DiscoveryStarted(Event):
    """Emitted when file discovery begins."""

    directory: Path


class DiscoveryFinished(Event):
    """Emitted after discovery with the number of eligible files."""

    files_found: int


class BatchProgress(Event):
    """Completed/total counter, published once per successful job."""

    completed: int
    total: int


class StatusMessage(Event):
    """Human-readable status line."""

    message: str


class ProcessingFinished(Event):
    """Emitted once a run ends, successfully or not."""

    success: bool = True
    error_message: Optional[str] = None
