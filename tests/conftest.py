import threading
import time
import pytest
import yaml
from pathlib import Path
from PIL import Image
from wbc.config.models import AppConfig
from wbc.domain.errors import DecodeError
from wbc.domain.models import ConversionJob
from wbc.infrastructure.event_bus import EventBus

# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def sample_config():
    """Returns a sample AppConfig object for testing."""
    return AppConfig(
        general={
            "threads": 4,
            "quality": 75,
            "lossless": False,
            "debug": False,
        },
        ui={
            "enabled": False,
        },
    )

@pytest.fixture
def config_yaml_path(tmp_path):
    """Creates a temporary YAML config file."""
    conf_dir = tmp_path / "conf"
    conf_dir.mkdir()
    conf_file = conf_dir / "wbc.yaml"

    content = {
        'general': {
            'threads': 2,
            'quality': 60,
            'lossless': True,
            'debug': False,
        },
        'ui': {
            'enabled': False,
            'recent_failures_max_items': 3,
        },
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
# Image Fixtures
# ============================================================================

def write_image(path: Path, fmt: str, size=(16, 12), color=(200, 30, 30)):
    path.parent.mkdir(parents=True, exist_ok=True)
    img = Image.new("RGB", size, color)
    if fmt == "GIF":
        img = img.convert("P")
    img.save(path, format=fmt)
    return path

@pytest.fixture
def image_tree(tmp_path):
    """Input tree with a.png, b.jpg, sub/c.gif and readme.txt."""
    root = tmp_path / "input"
    root.mkdir()
    write_image(root / "a.png", "PNG")
    write_image(root / "b.jpg", "JPEG")
    write_image(root / "sub" / "c.gif", "GIF")
    (root / "readme.txt").write_text("not an image")
    return root

# ============================================================================
# Scheduler Fixtures
# ============================================================================

class RecordingSink:
    """Progress sink that records every call (not internally synchronized)."""

    def __init__(self):
        self.progress = []
        self.statuses = []

    def on_progress(self, completed, total):
        self.progress.append((completed, total))

    def on_status(self, message):
        self.statuses.append(message)


class FakeCodec:
    """Codec double that tracks concurrency and can fail chosen files.

    ``failures`` maps a file name to the delay (seconds) before it fails.
    """

    def __init__(self, delay=0.0, failures=None):
        self.delay = delay
        self.failures = failures or {}
        self._lock = threading.Lock()
        self.active = 0
        self.max_active = 0
        self.decode_calls = 0
        self.intervals = []
        self._current = threading.local()

    def format_hint(self, path):
        self._current.name = Path(path).name
        return Path(path).suffix.lower().lstrip(".")

    def decode(self, data, format_hint):
        name = self._current.name
        start = time.monotonic()
        with self._lock:
            self.active += 1
            self.decode_calls += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if name in self.failures:
                time.sleep(self.failures[name])
                raise DecodeError(f"cannot decode {name}")
            time.sleep(self.delay)
            return data
        finally:
            with self._lock:
                self.active -= 1
                self.intervals.append((start, time.monotonic()))

    def encode(self, image, quality, lossless):
        return b"WEBP" + image


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def fake_codec():
    return FakeCodec


@pytest.fixture
def make_jobs(tmp_path):
    """Creates input files and returns ConversionJobs for the given names."""
    def _make(names):
        in_dir = tmp_path / "jobs_in"
        out_dir = tmp_path / "jobs_out"
        in_dir.mkdir(exist_ok=True)
        out_dir.mkdir(exist_ok=True)
        jobs = []
        for name in names:
            src = in_dir / name
            src.write_bytes(b"data-" + name.encode())
            jobs.append(ConversionJob(input_path=src, output_path=out_dir / (Path(name).stem + ".webp")))
        return jobs
    return _make
