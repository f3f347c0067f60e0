import os
import subprocess
import logging
import time
import uuid
from pathlib import Path
from typing import List, Optional
from fbc.domain.models import ConversionJob, ConversionStatus
from fbc.config.models import GeneralConfig

class FFmpegAdapter:
    """Wrapper around ffmpeg for Opus encoding and cover picture extraction."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def temp_path_for(output_path: Path) -> Path:
        """Unique hidden sibling of output_path; one per encode."""
        return output_path.with_name(f".{output_path.stem}-{uuid.uuid4().hex}.tmp")

    def _build_command(self, job: ConversionJob, config: GeneralConfig, tmp_path: Path) -> List[str]:
        """Constructs the ffmpeg command line arguments."""
        return [
            "ffmpeg",
            "-y",  # the .tmp target may exist after a crash
            "-nostdin",
            "-v", "error",
            "-i", str(job.track.path),
            "-vn",  # embedded pictures are handled separately
            "-map_metadata", "0",
            "-c:a", "libopus",
            "-b:a", f"{config.bitrate_kbps}k",
            "-vbr", "on",
            "-compression_level", str(config.compression_level),
            "-application", "audio",
            # Force the Ogg/Opus muxer since .tmp does not indicate format
            "-f", "opus",
            str(tmp_path),
        ]

    def encode(self, job: ConversionJob, config: GeneralConfig) -> None:
        """Encodes job.track into job.output_path and sets job.status.

        Existing destinations are left alone (SKIPPED). Output is written to a
        per-encode .tmp sibling and linked into place on success, so a
        destination that exists is always one finished encode. When two
        tracks resolve to the same destination the first to finish wins and
        the other reports SKIPPED.
        """
        filename = job.track.path.name
        if job.output_path.exists():
            job.status = ConversionStatus.SKIPPED
            return

        tmp_path = self.temp_path_for(job.output_path)
        cmd = self._build_command(job, config, tmp_path)
        start_time = time.monotonic()
        self.logger.debug(f"FFMPEG_CMD: {' '.join(cmd)}")

        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=config.encode_timeout_s)
        except subprocess.TimeoutExpired:
            job.status = ConversionStatus.FAILED
            job.error_message = f"ffmpeg timed out after {config.encode_timeout_s}s"
            self._remove_quietly(tmp_path)
            self.logger.error(f"FFMPEG_TIMEOUT: {filename}")
            return

        elapsed = time.monotonic() - start_time
        if result.returncode != 0:
            job.status = ConversionStatus.FAILED
            stderr = (result.stderr or "").strip().splitlines()
            detail = f": {stderr[-1]}" if stderr else ""
            job.error_message = f"ffmpeg exited with code {result.returncode}{detail}"
            self._remove_quietly(tmp_path)
            self.logger.debug(f"FFMPEG_END: {filename} status=failed code={result.returncode} elapsed={elapsed:.2f}s")
            return

        if not tmp_path.exists():
            job.status = ConversionStatus.FAILED
            job.error_message = "ffmpeg reported success but wrote no output"
            return

        try:
            published = self._publish(tmp_path, job.output_path)
        finally:
            self._remove_quietly(tmp_path)

        if not published:
            # Another track with the same tags finished first
            job.status = ConversionStatus.SKIPPED
            self.logger.info(f"FFMPEG_END: {filename} status=skipped reason=destination appeared during encode")
            return
        job.status = ConversionStatus.CONVERTED
        self.logger.debug(f"FFMPEG_END: {filename} status=converted elapsed={elapsed:.2f}s")

    def _publish(self, tmp_path: Path, output_path: Path) -> bool:
        """Moves a finished encode into place without overwriting; False if the destination already exists."""
        try:
            os.link(tmp_path, output_path)
            return True
        except FileExistsError:
            return False
        except OSError as e:
            self.logger.debug(f"Hard link unavailable for {output_path.name} ({e}), replacing instead")
            os.replace(tmp_path, output_path)
            return True

    def extract_cover(self, source: Path, destination: Path, timeout: Optional[float] = None) -> bool:
        """Copies the first embedded picture stream of source into destination.

        Returns True when a non-empty image was written. Any partial artifact
        is removed on failure.
        """
        cmd = [
            "ffmpeg", "-y", "-nostdin", "-v", "error",
            "-i", str(source),
            "-an",
            "-map", "0:v:0",
            "-c:v", "copy",
            "-frames:v", "1",
            "-f", "image2",
            "-update", "1",
            str(destination),
        ]
        self.logger.debug(f"FFMPEG_EXTRACT_CMD: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
        except subprocess.TimeoutExpired:
            self.logger.warning(f"Cover extraction timed out for {source.name}")
            self._remove_quietly(destination)
            return False

        if result.returncode != 0 or not destination.exists() or destination.stat().st_size == 0:
            self._remove_quietly(destination)
            return False
        return True

    def _remove_quietly(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning(f"Could not remove {path}: {e}")
