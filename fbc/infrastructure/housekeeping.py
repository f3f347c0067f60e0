import logging
import os
import re
from pathlib import Path

# Hidden per-write temp names: ".<stem>-<uuid hex>.tmp" for encodes, ".cover-<uuid hex>.tmp" for covers
TEMP_FILE_PATTERN = re.compile(r"^\..+-[0-9a-f]{32}\.tmp$")

class HousekeepingService:
    """Removes leftovers of interrupted runs from the output tree."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def cleanup_temp_files(self, directory: Path) -> int:
        """Recursively removes temp files written by interrupted encodes and cover writes.

        Other .tmp files are left alone.
        """
        removed = 0
        for root, dirs, files in os.walk(directory):
            for file in files:
                if TEMP_FILE_PATTERN.match(file):
                    try:
                        (Path(root) / file).unlink()
                        removed += 1
                    except OSError as e:
                        self.logger.warning(f"Could not remove stale temp file {file}: {e}")
        if removed:
            self.logger.info(f"Removed {removed} stale temp file(s) from {directory}")
        return removed
