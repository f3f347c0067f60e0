"""Domain events for the audio conversion pipeline.

Events are published on the EventBus by the dispatcher and its workers, and
consumed by the console reporter. Workers publish from pool threads, so
subscribers must tolerate concurrent callbacks.

See `infrastructure/event_bus.py` for the pub/sub mechanism.
"""

from pathlib import Path
from typing import Optional
from pydantic import BaseModel
from .models import ConversionResult, SourceTrack, BatchSummary


class Event(BaseModel):
    """Base class for all domain events."""

    pass


class DiscoveryStarted(Event):
    """Emitted when file discovery begins."""

    directory: Path


class DiscoveryFinished(Event):
    """Emitted after discovery with the number of tracks queued and the pool size."""

    files_found: int
    workers: int


class TrackStarted(Event):
    """Emitted when a worker picks up a track."""

    track: SourceTrack


class TrackFinished(Event):
    """Emitted once per track with its final result (converted, skipped or failed)."""

    result: ConversionResult


class CoverArtWarning(Event):
    """Non-fatal cover art problem (copy, extraction or resample failure)."""

    album_dir: Path
    message: str


class ProcessingFinished(Event):
    """Emitted when every worker has returned."""

    summary: BatchSummary
    elapsed_seconds: Optional[float] = None
