"""End-to-end conversions with real images (Pillow encoder)."""
import os
import pytest
from pathlib import Path
from PIL import Image
from wbc.domain.models import ConversionSettings
from wbc.infrastructure.codec import PillowCodec
from wbc.infrastructure.file_scanner import FileScanner
from wbc.pipeline.orchestrator import Orchestrator
from wbc.pipeline.scheduler import ConversionScheduler


class ListSink:
    def __init__(self):
        self.progress = []
        self.statuses = []

    def on_progress(self, completed, total):
        self.progress.append((completed, total))

    def on_status(self, message):
        self.statuses.append(message)


def _run(input_dir, output_dir, **settings):
    sink = ListSink()
    orchestrator = Orchestrator(
        settings=ConversionSettings(**settings),
        file_scanner=FileScanner(),
        scheduler=ConversionScheduler(PillowCodec()),
        progress_sink=sink,
    )
    return orchestrator.run(input_dir, output_dir), sink


@pytest.fixture
def photo_tree(tmp_path):
    root = tmp_path / "photos"
    sizes = {
        "2023/jan/IMG_0001.JPG": (64, 48),
        "2023/jan/IMG_0002.jpeg": (48, 64),
        "2023/feb/scan.png": (32, 32),
        "icons/logo.PNG": (16, 16),
        "anim/spinner.gif": (20, 20),
    }
    for rel, size in sizes.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        suffix = path.suffix.lower()
        if suffix in (".jpg", ".jpeg"):
            Image.new("RGB", size, (120, 80, 40)).save(path, format="JPEG")
        elif suffix == ".png":
            Image.new("RGBA", size, (0, 128, 255, 128)).save(path, format="PNG")
        else:
            frames = [Image.new("P", size, i) for i in range(4)]
            frames[0].save(path, format="GIF", save_all=True, append_images=frames[1:], duration=50)
    (root / "2023" / "notes.md").write_text("# trip")
    return root, sizes


def test_real_tree_conversion(photo_tree, tmp_path):
    root, sizes = photo_tree
    out_dir = tmp_path / "webp"

    result, sink = _run(root, out_dir, quality=70, max_concurrency=4)

    assert result.completed_count == len(sizes)
    assert sink.progress == [(i, len(sizes)) for i in range(1, len(sizes) + 1)]
    for rel, size in sizes.items():
        output = out_dir / Path(rel).with_suffix(".webp")
        with Image.open(output) as img:
            assert img.format == "WEBP"
            assert img.size == size
    assert not list(out_dir.rglob("*.md"))


def test_real_png_alpha_survives(photo_tree, tmp_path):
    root, _ = photo_tree
    out_dir = tmp_path / "webp"

    _run(root, out_dir, quality=90, max_concurrency=2)

    with Image.open(out_dir / "2023" / "feb" / "scan.webp") as img:
        assert img.mode == "RGBA"


def test_real_lossless_conversion_is_exact(tmp_path):
    in_dir = tmp_path / "in"
    in_dir.mkdir()
    source = Image.new("RGB", (10, 10))
    source.putdata([(x * 25, y * 25, 100) for y in range(10) for x in range(10)])
    source.save(in_dir / "grad.png", format="PNG")

    _run(in_dir, tmp_path / "out", lossless=True)

    with Image.open(tmp_path / "out" / "grad.webp") as img:
        assert list(img.convert("RGB").getdata()) == list(source.getdata())


def test_real_rerun_overwrites_outputs(photo_tree, tmp_path):
    root, sizes = photo_tree
    out_dir = tmp_path / "webp"
    target = out_dir / "icons" / "logo.webp"

    _run(root, out_dir, max_concurrency=3)
    target.write_bytes(b"corrupted by someone")
    result, _ = _run(root, out_dir, max_concurrency=3)

    assert result.completed_count == len(sizes)
    with Image.open(target) as img:
        assert img.format == "WEBP"
