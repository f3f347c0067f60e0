"""Batch dispatcher for the FLAC -> Opus conversion pipeline.

Discovers source tracks, sizes a worker pool from the host CPU count, and
runs one FileWorker per track on a bounded thread pool. Workers block on
external tools (ffprobe, ffmpeg) and filesystem I/O only; they share no
in-memory state beyond the EventBus.

Results are collected through futures and folded into a BatchSummary.
Per-file failures never abort the batch.
"""

import concurrent.futures
import logging
import os
import time
from pathlib import Path
from typing import Callable, List, Optional
from fbc.config.models import AppConfig
from fbc.domain.models import BatchSummary, ConversionResult, ConversionStatus, SourceTrack
from fbc.domain.events import DiscoveryStarted, DiscoveryFinished, ProcessingFinished
from fbc.infrastructure.event_bus import EventBus
from fbc.infrastructure.file_scanner import FileScanner
from fbc.pipeline.worker import FileWorker


def resolve_worker_count(
    configured: Optional[int],
    fallback: int = 4,
    cpu_count: Optional[Callable[[], Optional[int]]] = None,
) -> int:
    """Configured value wins; otherwise logical CPUs, or fallback when unknown/non-positive."""
    if configured is not None and configured > 0:
        return configured
    detected = (cpu_count or os.cpu_count)()
    if detected is None or detected <= 0:
        return fallback
    return detected


class Orchestrator:
    """Runs a whole batch: discovery -> bounded fan-out -> summary.

    Args:
        config: AppConfig (worker count, extensions, encoder settings).
        event_bus: EventBus for discovery and per-track events.
        file_scanner: FileScanner used to enumerate source tracks.
        worker: FileWorker whose process() is submitted once per track.
    """

    def __init__(
        self,
        config: AppConfig,
        event_bus: EventBus,
        file_scanner: FileScanner,
        worker: FileWorker,
    ):
        self.config = config
        self.event_bus = event_bus
        self.file_scanner = file_scanner
        self.worker = worker
        self.logger = logging.getLogger(__name__)
        self.max_workers = resolve_worker_count(
            config.general.threads, fallback=config.general.fallback_threads
        )

    def discover(self, input_dir: Path) -> List[SourceTrack]:
        self.event_bus.publish(DiscoveryStarted(directory=input_dir))
        tracks = list(self.file_scanner.scan(input_dir))
        self.logger.info(f"Discovery finished: found={len(tracks)} in {input_dir}")
        self.event_bus.publish(DiscoveryFinished(files_found=len(tracks), workers=self.max_workers))
        return tracks

    def run(self, input_dir: Path) -> BatchSummary:
        start_time = time.monotonic()
        tracks = self.discover(input_dir)
        summary = BatchSummary(total=len(tracks))

        if not tracks:
            self.logger.info("No files to process")
            self.event_bus.publish(ProcessingFinished(summary=summary, elapsed_seconds=0.0))
            return summary

        self.logger.info(f"Processing {len(tracks)} files with {self.max_workers} workers")
        with concurrent.futures.ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="fbc-worker"
        ) as executor:
            futures = {executor.submit(self.worker.process, track): track for track in tracks}
            for future in concurrent.futures.as_completed(futures):
                track = futures[future]
                try:
                    result = future.result()
                except Exception as e:
                    # FileWorker.process already converts errors; this is a last resort
                    self.logger.error(f"Worker crashed for {track.path}: {e}")
                    result = ConversionResult(track=track, status=ConversionStatus.FAILED, error_message=str(e))
                self._count(summary, result)

        elapsed = time.monotonic() - start_time
        self.logger.info(
            f"Batch finished: total={summary.total}, converted={summary.converted}, "
            f"skipped={summary.skipped}, failed={summary.failed}, elapsed={elapsed:.1f}s"
        )
        self.event_bus.publish(ProcessingFinished(summary=summary, elapsed_seconds=elapsed))
        return summary

    @staticmethod
    def _count(summary: BatchSummary, result: ConversionResult) -> None:
        if result.status == ConversionStatus.CONVERTED:
            summary.converted += 1
        elif result.status == ConversionStatus.SKIPPED:
            summary.skipped += 1
        else:
            summary.failed += 1
