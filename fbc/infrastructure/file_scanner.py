import os
from pathlib import Path
from typing import List, Generator, Optional
from fbc.domain.models import SourceTrack

class FileScanner:
    """Recursively scans for lossless audio files in a directory."""

    def __init__(self, extensions: List[str], exclude_dirs: Optional[List[Path]] = None):
        self.extensions = [(ext if ext.startswith(".") else f".{ext}").lower() for ext in extensions]
        self.exclude_dirs = {p.resolve() for p in (exclude_dirs or [])}

    def scan(self, root_dir: Path) -> Generator[SourceTrack, None, None]:
        """Scans the directory and yields SourceTrack objects in sorted order."""
        for root, dirs, files in os.walk(str(root_dir)):
            root_path = Path(root)

            # Output root nested inside the input tree
            if root_path.resolve() in self.exclude_dirs:
                dirs[:] = []
                continue

            dirs.sort()
            files.sort()

            for file_name in files:
                file_path = root_path / file_name
                if file_path.suffix.lower() not in self.extensions:
                    continue
                if not file_path.is_file():
                    continue
                yield SourceTrack(path=file_path)
