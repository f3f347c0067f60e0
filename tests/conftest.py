import threading
import pytest
import yaml
from pathlib import Path
from PIL import Image
from fbc.config.models import AppConfig
from fbc.domain.models import ConversionStatus
from fbc.infrastructure.event_bus import EventBus

# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def sample_config():
    """Returns a sample AppConfig object for testing."""
    return AppConfig(
        general={
            "threads": 2,
            "fallback_threads": 4,
            "extensions": [".flac"],
            "output_extension": ".opus",
            "bitrate_kbps": 128,
            "compression_level": 10,
            "fail_on_all_failed": False,
            "debug": False,
        },
        cover={
            "file_name": "cover.jpg",
            "width": 50,
        }
    )

@pytest.fixture
def config_yaml_path(tmp_path):
    """Creates a temporary YAML config file."""
    conf_dir = tmp_path / "conf"
    conf_dir.mkdir()
    conf_file = conf_dir / "fbc.yaml"

    content = {
        'general': {
            'threads': 3,
            'extensions': ['flac', '.FLA'],
            'bitrate_kbps': 96,
            'encode_timeout_s': 600,
            'fail_on_all_failed': True,
        },
        'cover': {
            'width': 300,
            'candidates': ['folder.jpg', 'cover.jpg'],
        }
    }

    with open(conf_file, 'w') as f:
        yaml.dump(content, f)

    return conf_file

# ============================================================================
# EventBus Fixtures
# ============================================================================

@pytest.fixture
def event_bus():
    """Returns a fresh EventBus instance."""
    return EventBus()

# ============================================================================
# Fake external tools
# ============================================================================

class FakeProbe:
    """Stands in for FFprobeAdapter: tags keyed by source file name."""

    def __init__(self, tags_by_name=None, failing=()):
        self.tags_by_name = tags_by_name or {}
        self.failing = set(failing)
        self.calls = []

    def get_tags(self, file_path: Path):
        self.calls.append(file_path)
        if file_path.name in self.failing:
            raise RuntimeError(f"ffprobe failed for {file_path}")
        return dict(self.tags_by_name.get(file_path.name, {}))


class FakeFFmpeg:
    """Stands in for FFmpegAdapter: writes dummy output, counts concurrency."""

    def __init__(self, failing=(), embedded_art=None, delay=0.0):
        self.failing = set(failing)
        self.embedded_art = embedded_art or {}
        self.delay = delay
        self.encoded = []
        self.extract_calls = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def encode(self, job, config):
        if job.output_path.exists():
            job.status = ConversionStatus.SKIPPED
            return
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                threading.Event().wait(self.delay)
            if job.track.path.name in self.failing:
                job.status = ConversionStatus.FAILED
                job.error_message = "ffmpeg exited with code 1"
                return
            job.output_path.write_bytes(b"OggS fake opus")
            job.status = ConversionStatus.CONVERTED
            with self._lock:
                self.encoded.append(job.track.path)
        finally:
            with self._lock:
                self.active -= 1

    def extract_cover(self, source, destination, timeout=None):
        self.extract_calls.append(source)
        image = self.embedded_art.get(source.name)
        if image is None:
            return False
        Image.new("RGB", image, (200, 10, 10)).save(destination, format="PNG")
        return True


@pytest.fixture
def fake_probe():
    return FakeProbe()


@pytest.fixture
def fake_ffmpeg():
    return FakeFFmpeg()


# ============================================================================
# File System Fixtures
# ============================================================================

@pytest.fixture
def make_image():
    """Returns a helper writing a solid-colour image file."""
    def _make(path: Path, size=(100, 80), fmt="JPEG"):
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new("RGB", size, (10, 120, 200)).save(path, format=fmt)
        return path
    return _make


@pytest.fixture
def make_flac():
    """Returns a helper writing a dummy .flac file (content is never decoded)."""
    def _make(path: Path, payload: bytes = b"fLaC dummy"):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(payload)
        return path
    return _make


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
