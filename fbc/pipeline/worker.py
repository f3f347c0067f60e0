import logging
import time
from pathlib import Path
from typing import Optional
from fbc.config.models import AppConfig
from fbc.domain.models import (
    ConversionJob, ConversionResult, ConversionStatus, SourceTrack,
)
from fbc.domain.events import TrackStarted, TrackFinished
from fbc.infrastructure.event_bus import EventBus
from fbc.infrastructure.ffmpeg import FFmpegAdapter
from fbc.pipeline.cover_art import CoverArtResolver
from fbc.pipeline.metadata import MetadataResolver, MetadataError
from fbc.pipeline.paths import build_output_location


class FileWorker:
    """Converts one track end to end: tags -> path -> encode -> cover art.

    process() never raises; every failure becomes a FAILED ConversionResult.
    """

    def __init__(
        self,
        config: AppConfig,
        output_root: Path,
        metadata_resolver: MetadataResolver,
        ffmpeg_adapter: FFmpegAdapter,
        cover_resolver: CoverArtResolver,
        event_bus: Optional[EventBus] = None,
    ):
        self.config = config
        self.output_root = output_root
        self.metadata_resolver = metadata_resolver
        self.ffmpeg_adapter = ffmpeg_adapter
        self.cover_resolver = cover_resolver
        self.event_bus = event_bus
        self.logger = logging.getLogger(__name__)

    def process(self, track: SourceTrack) -> ConversionResult:
        start_time = time.monotonic()
        if self.event_bus:
            self.event_bus.publish(TrackStarted(track=track))
        try:
            result = self._process(track)
        except Exception as e:
            self.logger.exception(f"Unexpected error while converting {track.path}")
            result = ConversionResult(track=track, status=ConversionStatus.FAILED, error_message=str(e))
        result.duration_seconds = time.monotonic() - start_time
        if self.event_bus:
            self.event_bus.publish(TrackFinished(result=result))
        return result

    def _process(self, track: SourceTrack) -> ConversionResult:
        filename = track.path.name
        try:
            metadata = self.metadata_resolver.resolve(track.path)
        except MetadataError as e:
            self.logger.error(f"Metadata failed: {filename} - {e}")
            return ConversionResult(track=track, status=ConversionStatus.FAILED, error_message=str(e))

        location = build_output_location(metadata, self.output_root, self.config.general.output_extension)
        output_path = location.path

        if output_path.exists():
            self.logger.info(f"Skip (exists): {filename} -> {output_path}")
            return ConversionResult(track=track, status=ConversionStatus.SKIPPED, output_path=output_path)

        try:
            location.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.logger.error(f"Cannot create {location.directory}: {e}")
            return ConversionResult(
                track=track, status=ConversionStatus.FAILED, output_path=output_path,
                error_message=f"Cannot create output directory: {e}",
            )

        job = ConversionJob(track=track, output_path=output_path)
        self.ffmpeg_adapter.encode(job, self.config.general)

        if job.status == ConversionStatus.SKIPPED:
            # Another worker finished the same destination first
            self.logger.info(f"Skip (exists): {filename} -> {output_path}")
            return ConversionResult(track=track, status=ConversionStatus.SKIPPED, output_path=output_path)
        if job.status != ConversionStatus.CONVERTED:
            self.logger.error(f"Encode failed: {filename} - {job.error_message}")
            return ConversionResult(
                track=track, status=ConversionStatus.FAILED, output_path=output_path,
                error_message=job.error_message,
            )

        self.logger.info(f"Converted: {filename} -> {output_path}")
        cover_path = None
        try:
            cover_path = self.cover_resolver.resolve(track.path, location.directory, output_path)
        except Exception as e:
            self.logger.warning(f"Cover art step failed for {location.directory}: {e}")

        return ConversionResult(
            track=track, status=ConversionStatus.CONVERTED, output_path=output_path, cover_path=cover_path,
        )
