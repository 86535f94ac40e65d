"""End-to-end tests for the background removal pipeline."""

from __future__ import annotations

import asyncio
from pathlib import Path

import httpx
import numpy as np
import pytest
from PIL import Image

from bgremover.core.exceptions import (
    DecodeError,
    DimensionMismatchError,
    FetchError,
    SegmentationError,
    WriteError,
)
from bgremover.processing.models import LocalReference, RemoteReference
from bgremover.processing.processor import BackgroundRemover, Stage
from bgremover.processing.source import decode_image

from helpers import FailingSegmenter, FakeSegmenter, png_bytes


def test_process_local_image(remover: BackgroundRemover, input_image: Path, tmp_path: Path) -> None:
    stored = remover.process(LocalReference(input_image))

    assert stored.path == tmp_path / "out" / "photo.png"
    original = decode_image(input_image).data
    with Image.open(stored.path) as img:
        result = np.array(img)
    assert result.shape == (2, 4, 4)
    assert np.array_equal(result[:, :2], original[:, :2])
    assert not result[:, 2:].any()


def test_two_pixel_scenario(tmp_path: Path) -> None:
    source = tmp_path / "pair.png"
    Image.fromarray(
        np.array([[[10, 20, 30, 255], [40, 50, 60, 255]]], dtype=np.uint8)
    ).save(source)
    remover = BackgroundRemover(
        output_dir=tmp_path / "out",
        cache_dir=tmp_path / "cache",
        segmenter_factory=lambda: FakeSegmenter(np.array([[0.9, 0.1]], dtype=np.float32)),
    )

    try:
        stored = remover.process(LocalReference(source))
    finally:
        remover.close()

    with Image.open(stored.path) as img:
        assert np.array(img).tolist() == [[[10, 20, 30, 255], [0, 0, 0, 0]]]


def test_segmentation_failure_writes_nothing(tmp_path: Path, input_image: Path) -> None:
    remover = BackgroundRemover(
        output_dir=tmp_path / "out",
        cache_dir=tmp_path / "cache",
        segmenter_factory=FailingSegmenter,
    )

    try:
        with pytest.raises(SegmentationError) as excinfo:
            remover.process(LocalReference(input_image))
    finally:
        remover.close()

    assert excinfo.value.stage == Stage.SEGMENTING.value
    assert not (tmp_path / "out").exists()


def test_mask_of_wrong_size_fails_before_writing(tmp_path: Path, input_image: Path) -> None:
    remover = BackgroundRemover(
        output_dir=tmp_path / "out",
        cache_dir=tmp_path / "cache",
        segmenter_factory=lambda: FakeSegmenter(np.ones((1, 1), dtype=np.float32)),
    )

    try:
        with pytest.raises(DimensionMismatchError) as excinfo:
            remover.process(LocalReference(input_image))
    finally:
        remover.close()

    assert excinfo.value.stage == Stage.COMPOSITING.value
    assert not (tmp_path / "out").exists()


def test_unreadable_image_stops_before_segmentation(
    remover: BackgroundRemover, fake_segmenter: FakeSegmenter, tmp_path: Path
) -> None:
    broken = tmp_path / "broken.jpg"
    broken.write_bytes(b"nope")

    with pytest.raises(DecodeError) as excinfo:
        remover.process(LocalReference(broken))

    assert excinfo.value.stage == Stage.RESOLVING.value
    assert fake_segmenter.calls == 0
    assert not remover.is_model_loaded


def test_unreachable_remote_raises_fetch_error_and_cleans_up(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    remover = BackgroundRemover(
        output_dir=tmp_path / "out",
        cache_dir=tmp_path / "cache",
        segmenter_factory=FakeSegmenter,
        transport=httpx.MockTransport(handler),
    )

    try:
        with pytest.raises(FetchError) as excinfo:
            remover.process(RemoteReference("https://unreachable.invalid/photo.jpg"))
    finally:
        remover.close()

    assert excinfo.value.stage == Stage.RESOLVING.value
    assert list((tmp_path / "cache").iterdir()) == []
    assert not (tmp_path / "out").exists()


def test_remote_image_named_after_url(tmp_path: Path) -> None:
    remover = BackgroundRemover(
        output_dir=tmp_path / "out",
        cache_dir=tmp_path / "cache",
        segmenter_factory=FakeSegmenter,
        transport=httpx.MockTransport(lambda request: httpx.Response(200, content=png_bytes())),
    )

    try:
        stored = remover.process(RemoteReference("https://example.com/gallery/portrait.jpg"))
    finally:
        remover.close()

    assert stored.path == tmp_path / "out" / "portrait.png"
    assert list((tmp_path / "cache").iterdir()) == []


@pytest.mark.asyncio
async def test_remove_background_returns_file_uri(
    remover: BackgroundRemover, input_image: Path, tmp_path: Path
) -> None:
    uri = await remover.remove_background(str(input_image))

    assert uri == (tmp_path / "out" / "photo.png").resolve().as_uri()


@pytest.mark.asyncio
async def test_remove_background_accepts_file_uri(
    remover: BackgroundRemover, input_image: Path
) -> None:
    uri = await remover.remove_background(input_image.resolve().as_uri())

    assert uri.endswith("/photo.png")


@pytest.mark.asyncio
async def test_concurrent_invocations_are_independent(
    remover: BackgroundRemover, tmp_path: Path
) -> None:
    sources = []
    for idx in range(5):
        path = tmp_path / f"img{idx}.png"
        Image.new("RGBA", (4 + idx, 2), (idx, idx, idx, 255)).save(path)
        sources.append(path)

    uris = await asyncio.gather(*(remover.remove_background(str(p)) for p in sources))

    assert len(set(uris)) == 5
    for idx in range(5):
        with Image.open(tmp_path / "out" / f"img{idx}.png") as img:
            assert img.size == (4 + idx, 2)


@pytest.mark.asyncio
async def test_remove_background_propagates_errors(remover: BackgroundRemover, tmp_path: Path) -> None:
    with pytest.raises(DecodeError):
        await remover.remove_background(str(tmp_path / "missing.png"))


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://example.com/img/%2Ftmp%2Fescaped.jpg", "escaped.png"),
        ("https://example.com/img/a%2Fb.jpg", "b.png"),
    ],
)
def test_encoded_slashes_stay_inside_output_dir(tmp_path: Path, url: str, expected: str) -> None:
    remover = BackgroundRemover(
        output_dir=tmp_path / "out",
        cache_dir=tmp_path / "cache",
        segmenter_factory=FakeSegmenter,
        transport=httpx.MockTransport(lambda request: httpx.Response(200, content=png_bytes())),
    )

    try:
        stored = remover.process(RemoteReference(url))
    finally:
        remover.close()

    assert stored.path == tmp_path / "out" / expected
    assert stored.path.exists()


def test_nul_in_url_name_still_writes_under_output_dir(tmp_path: Path) -> None:
    remover = BackgroundRemover(
        output_dir=tmp_path / "out",
        cache_dir=tmp_path / "cache",
        segmenter_factory=FakeSegmenter,
        transport=httpx.MockTransport(lambda request: httpx.Response(200, content=png_bytes())),
    )

    try:
        stored = remover.process(RemoteReference("https://example.com/img/a%00b.jpg"))
    finally:
        remover.close()

    assert stored.path.parent == tmp_path / "out"
    assert stored.path.name.startswith("image-")


def test_write_failure_is_tagged_with_stage(remover: BackgroundRemover, input_image: Path, tmp_path: Path) -> None:
    (tmp_path / "out").write_text("not a directory")

    with pytest.raises(WriteError) as excinfo:
        remover.process(LocalReference(input_image))

    assert excinfo.value.stage == Stage.WRITING.value
