"""Tag resolution for source tracks.

Each semantic field has an ordered chain of candidate tag keys covering the
spellings seen in the wild (upper, title and lower case). The first candidate
with a non-blank value wins; otherwise the field default applies.
"""

import logging
import re
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple
from fbc.domain.models import TrackMetadata
from fbc.infrastructure.ffprobe import FFprobeAdapter

FIELD_CHAINS: Dict[str, Tuple[str, ...]] = {
    "artist": ("ARTIST", "Artist", "artist"),
    "album": ("ALBUM", "Album", "album"),
    "title": ("TITLE", "Title", "title"),
    "year": ("DATE", "Date", "date", "YEAR", "Year", "year"),
    "track": ("TRACKNUMBER", "TrackNumber", "tracknumber", "TRACK", "Track", "track"),
    "disc": ("DISCNUMBER", "DiscNumber", "discnumber", "DISC", "Disc", "disc"),
}

FIELD_DEFAULTS: Dict[str, str] = {
    "artist": "Unknown Artist",
    "album": "Unknown Album",
    "title": "Unknown Title",
    "year": "0000",
    "track": "1",
    "disc": "1",
}

_YEAR_PREFIX = re.compile(r"^(\d{4})(?:\D|$)")


class MetadataError(Exception):
    """Raised when the tag probe itself fails for a file."""


def lookup(tags: Mapping[str, str], candidates: Tuple[str, ...]) -> Optional[str]:
    for key in candidates:
        value = tags.get(key)
        if value is None:
            continue
        value = str(value).strip()
        if value:
            return value
    return None


def normalize_number(raw: str) -> str:
    """'3/12' -> '03', '12' -> '12', '123' -> '123', 'A1' -> '01'."""
    value = raw.split("/", 1)[0].strip()
    if not value.isdigit() or not value.isascii():
        value = "1"
    return value.zfill(2) if len(value) == 1 else value


def normalize_year(raw: str) -> str:
    match = _YEAR_PREFIX.match(raw)
    return match.group(1) if match else raw


def metadata_from_tags(tags: Mapping[str, str]) -> TrackMetadata:
    values = {
        field: lookup(tags, chain) or FIELD_DEFAULTS[field]
        for field, chain in FIELD_CHAINS.items()
    }
    values["year"] = normalize_year(values["year"])
    values["track"] = normalize_number(values["track"])
    values["disc"] = normalize_number(values["disc"])
    return TrackMetadata(**values)


class MetadataResolver:
    def __init__(self, ffprobe_adapter: FFprobeAdapter):
        self.ffprobe_adapter = ffprobe_adapter
        self.logger = logging.getLogger(__name__)

    def resolve(self, file_path: Path) -> TrackMetadata:
        try:
            tags = self.ffprobe_adapter.get_tags(file_path)
        except Exception as e:
            raise MetadataError(f"Failed to read tags from {file_path.name}: {e}") from e

        if not tags:
            self.logger.debug(f"No tags in {file_path.name}, using defaults")
        return metadata_from_tags(tags or {})
