import os
from pathlib import Path
from fbc.domain.models import OutputLocation, TrackMetadata

_SEPARATORS = {"/", "\\", os.sep} | ({os.altsep} if os.altsep else set())


def sanitize(value: str) -> str:
    """Replaces path separators so a tag value can never add a directory level."""
    for sep in _SEPARATORS:
        value = value.replace(sep, "_")
    return value


def build_output_location(metadata: TrackMetadata, output_root: Path, extension: str) -> OutputLocation:
    """<root>/<Artist>/<Year> - <Album>/<Disc>-<Track> - <Title><extension>"""
    directory = (
        Path(output_root)
        / sanitize(metadata.artist)
        / sanitize(f"{metadata.year} - {metadata.album}")
    )
    filename = sanitize(f"{metadata.disc}-{metadata.track} - {metadata.title}") + extension
    return OutputLocation(directory=directory, filename=filename)
