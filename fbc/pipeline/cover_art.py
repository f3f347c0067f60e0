"""Album artwork placement.

One cover file per album directory. Candidates are prepared in a private temp
file inside the album directory, normalised there, and only then published
under the final name, so concurrent workers of the same album never expose a
partial or twice-resampled cover.
"""

import logging
import os
import shutil
import uuid
from pathlib import Path
from typing import Optional
from fbc.config.models import CoverConfig
from fbc.domain.events import CoverArtWarning
from fbc.infrastructure.event_bus import EventBus
from fbc.infrastructure.ffmpeg import FFmpegAdapter
from fbc.infrastructure.image import ImageResampler


class CoverArtResolver:
    """Finds, extracts and normalises cover art for one album directory.

    Args:
        config: CoverConfig (target file name, sibling candidates, width).
        ffmpeg_adapter: Used to pull the embedded picture out of the source.
        resampler: Rewrites an image in place at the target width.
        extract_timeout: Seconds allowed for picture extraction (None = no limit).
        event_bus: Optional EventBus receiving CoverArtWarning events.
    """

    def __init__(
        self,
        config: CoverConfig,
        ffmpeg_adapter: FFmpegAdapter,
        resampler: ImageResampler,
        extract_timeout: Optional[float] = None,
        event_bus: Optional[EventBus] = None,
    ):
        self.config = config
        self.ffmpeg_adapter = ffmpeg_adapter
        self.resampler = resampler
        self.extract_timeout = extract_timeout
        self.event_bus = event_bus
        self.logger = logging.getLogger(__name__)

    def _warn(self, album_dir: Path, message: str) -> None:
        self.logger.warning(message)
        if self.event_bus:
            self.event_bus.publish(CoverArtWarning(album_dir=album_dir, message=message))

    def find_sibling_cover(self, source_dir: Path) -> Optional[Path]:
        for name in self.config.candidates:
            candidate = source_dir / name
            if candidate.is_file():
                return candidate
        return None

    def resolve(self, source_path: Path, album_dir: Path, output_path: Path) -> Optional[Path]:
        """Returns the album's cover path, or None when the album stays without one."""
        target = album_dir / self.config.file_name
        if target.exists():
            return target

        tmp_path = album_dir / f".cover-{uuid.uuid4().hex}.tmp"
        try:
            obtained = self._copy_sibling(source_path.parent, album_dir, tmp_path)
            if not obtained and output_path.exists():
                obtained = self._extract_embedded(source_path, album_dir, tmp_path)
            if not obtained:
                return None

            try:
                self.resampler.resample(tmp_path)
            except Exception as e:
                self._warn(album_dir, f"Cover resample failed for {album_dir.name}, keeping original size: {e}")

            return self._publish(tmp_path, target)
        finally:
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError as e:
                    self.logger.warning(f"Could not remove cover temp file {tmp_path}: {e}")

    def _copy_sibling(self, source_dir: Path, album_dir: Path, tmp_path: Path) -> bool:
        sibling = self.find_sibling_cover(source_dir)
        if sibling is None:
            return False
        try:
            shutil.copyfile(sibling, tmp_path)
        except OSError as e:
            self._warn(album_dir, f"Cover copy failed ({sibling.name}), trying embedded art: {e}")
            return False
        self.logger.debug(f"Cover from sibling {sibling} -> {album_dir}")
        return True

    def _extract_embedded(self, source_path: Path, album_dir: Path, tmp_path: Path) -> bool:
        if self.ffmpeg_adapter.extract_cover(source_path, tmp_path, timeout=self.extract_timeout):
            self.logger.debug(f"Cover extracted from {source_path.name} -> {album_dir}")
            return True
        self.logger.info(f"No usable embedded cover in {source_path.name}")
        return False

    def _publish(self, tmp_path: Path, target: Path) -> Path:
        """Exclusive publish via hard link; first writer wins."""
        try:
            os.link(tmp_path, target)
        except FileExistsError:
            self.logger.debug(f"Cover already published by another worker: {target}")
        except OSError:
            # Filesystem without hard links: atomic replace, last writer wins
            os.replace(tmp_path, target)
        return target
