from typing import Protocol
from wbc.infrastructure.event_bus import EventBus
from wbc.domain.events import BatchProgress, StatusMessage


class ProgressSink(Protocol):
    """Receives completed/total counts and status lines from a batch run."""

    def on_progress(self, completed: int, total: int) -> None: ...

    def on_status(self, message: str) -> None: ...


class EventBusProgressSink:
    """Forwards progress and status to the EventBus for the UI layer."""

    def __init__(self, bus: EventBus):
        self.bus = bus

    def on_progress(self, completed: int, total: int) -> None:
        self.bus.publish(BatchProgress(completed=completed, total=total))

    def on_status(self, message: str) -> None:
        self.bus.publish(StatusMessage(message=message))
