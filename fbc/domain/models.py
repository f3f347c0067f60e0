from enum import Enum
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, ConfigDict

class ConversionStatus(str, Enum):
    PENDING = "PENDING"
    CONVERTED = "CONVERTED"
    SKIPPED = "SKIPPED"  # destination already existed
    FAILED = "FAILED"

class SourceTrack(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: Path

class TrackMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    artist: str = "Unknown Artist"
    album: str = "Unknown Album"
    title: str = "Unknown Title"
    year: str = "0000"
    track: str = "01"
    disc: str = "01"

class OutputLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    directory: Path
    filename: str

    @property
    def path(self) -> Path:
        return self.directory / self.filename

class ConversionJob(BaseModel):
    track: SourceTrack
    output_path: Path
    status: ConversionStatus = ConversionStatus.PENDING
    error_message: Optional[str] = None

class ConversionResult(BaseModel):
    track: SourceTrack
    status: ConversionStatus
    output_path: Optional[Path] = None
    error_message: Optional[str] = None
    cover_path: Optional[Path] = None
    duration_seconds: Optional[float] = None

class BatchSummary(BaseModel):
    total: int = 0
    converted: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def all_failed(self) -> bool:
        return self.total > 0 and self.failed == self.total
