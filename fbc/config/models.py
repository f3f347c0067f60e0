from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

DEFAULT_COVER_CANDIDATES = [
    "cover.jpg",
    "folder.jpg",
    "Cover.jpg",
    "Folder.jpg",
    "cover.png",
    "folder.png",
    "albumart.jpg",
    "front.jpg",
]

def _normalize_extension(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Extension must not be empty")
    return (value if value.startswith(".") else f".{value}").lower()

class GeneralConfig(BaseModel):
    threads: Optional[int] = Field(default=None, gt=0)  # None = detect from CPU count
    fallback_threads: int = Field(default=4, gt=0)
    extensions: List[str] = Field(default_factory=lambda: [".flac"])
    output_extension: str = ".opus"
    bitrate_kbps: int = Field(default=128, ge=6, le=510)
    compression_level: int = Field(default=10, ge=0, le=10)
    probe_timeout_s: Optional[float] = Field(default=None, gt=0)
    encode_timeout_s: Optional[float] = Field(default=None, gt=0)
    extract_timeout_s: Optional[float] = Field(default=None, gt=0)
    fail_on_all_failed: bool = False
    log_path: Optional[str] = None
    debug: bool = False

    @field_validator("extensions")
    @classmethod
    def validate_extensions(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("At least one input extension is required")
        return [_normalize_extension(ext) for ext in v]

    @field_validator("output_extension")
    @classmethod
    def validate_output_extension(cls, v: str) -> str:
        return _normalize_extension(v)

class CoverConfig(BaseModel):
    """Album artwork placement and normalisation."""
    file_name: str = "cover.jpg"
    candidates: List[str] = Field(default_factory=lambda: list(DEFAULT_COVER_CANDIDATES))
    width: int = Field(default=500, gt=0)

    @field_validator("file_name")
    @classmethod
    def validate_file_name(cls, v: str) -> str:
        if not v or "/" in v or "\\" in v:
            raise ValueError(f"Invalid cover file name: {v!r}")
        return v

class AppConfig(BaseModel):
    general: GeneralConfig = Field(default_factory=GeneralConfig)
    cover: CoverConfig = Field(default_factory=CoverConfig)
