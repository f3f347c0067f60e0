import subprocess
import json
from pathlib import Path
from typing import Dict, Any, Optional

class FFprobeAdapter:
    """Wrapper around ffprobe to extract the tag mapping of an audio file."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout

    @staticmethod
    def _merge_tags(target: Dict[str, str], tags: Any) -> None:
        if not isinstance(tags, dict):
            return
        for key, value in tags.items():
            if key not in target and value is not None:
                target[str(key)] = str(value)

    def get_tags(self, file_path: Path) -> Dict[str, str]:
        """Executes ffprobe and returns container tags merged with audio stream tags.

        A file without tags yields an empty dict. A failing ffprobe (non-zero
        exit, timeout, unparsable output) raises RuntimeError.
        """
        cmd = [
            "ffprobe",
            "-v", "quiet",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            str(file_path)
        ]

        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except subprocess.TimeoutExpired:
            raise RuntimeError(f"ffprobe timed out after {self.timeout}s for {file_path}")
        if result.returncode != 0:
            raise RuntimeError(f"ffprobe failed for {file_path}: {result.stderr}")

        try:
            data = json.loads(result.stdout or "{}")
        except json.JSONDecodeError as e:
            raise RuntimeError(f"ffprobe returned invalid JSON for {file_path}: {e}")

        tags: Dict[str, str] = {}
        # Container tags first (FLAC vorbis comments live here), then audio stream tags (Ogg)
        self._merge_tags(tags, (data.get("format") or {}).get("tags"))
        for stream in data.get("streams") or []:
            if stream.get("codec_type") == "audio":
                self._merge_tags(tags, stream.get("tags"))
        return tags
