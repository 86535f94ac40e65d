"""Shared fixtures: an input photo and a remover backed by a fake model."""

from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from bgremover.processing.processor import BackgroundRemover

from helpers import FakeSegmenter


@pytest.fixture
def input_image(tmp_path: Path) -> Path:
    path = tmp_path / "input" / "photo.jpg"
    path.parent.mkdir()
    Image.new("RGB", (4, 2), (200, 100, 50)).save(path, format="JPEG", quality=100)
    return path


@pytest.fixture
def fake_segmenter() -> FakeSegmenter:
    return FakeSegmenter()


@pytest.fixture
def remover(tmp_path: Path, fake_segmenter: FakeSegmenter):
    processor = BackgroundRemover(
        output_dir=tmp_path / "out",
        cache_dir=tmp_path / "cache",
        segmenter_factory=lambda: fake_segmenter,
    )
    yield processor
    processor.close()
