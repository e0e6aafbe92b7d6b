"""
Tests for image reception and preprocessing.
"""
import cv2
import numpy as np
import pytest
from PIL import Image

from circuit_segmentation.core.config import PreprocessingConfig
from circuit_segmentation.preprocess.image import ImagePreprocessor, ImageReceiver
from circuit_segmentation.vision.backend import OpenCVBackend


class TestImageReceiver:

    @pytest.fixture
    def receiver(self):
        return ImageReceiver(OpenCVBackend())

    def test_missing_file(self, receiver, tmp_path):
        assert receiver.receive_image(str(tmp_path / "missing.png")) is None

    def test_unreadable_file(self, receiver, tmp_path):
        file_path = tmp_path / "broken.png"
        file_path.write_bytes(b"\x00\x01not a png")
        assert receiver.receive_image(str(file_path)) is None

    def test_png(self, receiver, tmp_path):
        file_path = tmp_path / "schematic.png"
        cv2.imwrite(str(file_path), np.full((40, 60, 3), 255, dtype=np.uint8))

        image = receiver.receive_image(str(file_path))

        assert image.shape == (40, 60, 3)

    def test_pil_fallback(self, receiver, tmp_path):
        # GIF is decoded by Pillow when the OpenCV build lacks a reader for it
        file_path = tmp_path / "schematic.gif"
        Image.new("RGB", (60, 40), (255, 0, 0)).save(file_path)

        image = receiver.receive_image(str(file_path))

        assert image.shape == (40, 60, 3)
        assert tuple(image[0, 0]) == (0, 0, 255)

    def test_reads_through_backend(self, backend, tmp_path):
        file_path = tmp_path / "schematic.png"
        file_path.write_bytes(b"stored")
        backend.images["schematic.png"] = np.zeros((40, 60, 3), dtype=np.uint8)

        image = ImageReceiver(backend).receive_image(str(file_path))

        assert image.shape == (40, 60, 3)
        assert backend.calls == [("read_image", str(file_path))]

    def test_backend_cannot_decode(self, backend, tmp_path):
        file_path = tmp_path / "schematic.png"
        file_path.write_bytes(b"stored")

        assert ImageReceiver(backend).receive_image(str(file_path)) is None

    def test_missing_file_skips_backend(self, backend, tmp_path):
        assert ImageReceiver(backend).receive_image(str(tmp_path / "missing.png")) is None
        assert backend.calls == []


class TestResizeImage:

    @pytest.mark.parametrize("shape, expected", [
        ((800, 1600, 3), (400, 800, 3)),
        ((1000, 500, 3), (800, 400, 3)),
        ((1000, 1000), (800, 800)),
    ])
    def test_downscale(self, shape, expected):
        image = np.zeros(shape, dtype=np.uint8)
        assert ImagePreprocessor().resize_image(image).shape == expected

    def test_small_image_unchanged(self):
        image = np.zeros((200, 300, 3), dtype=np.uint8)
        assert ImagePreprocessor().resize_image(image) is image

    def test_resize_disabled(self):
        image = np.zeros((1000, 2000), dtype=np.uint8)
        preprocessor = ImagePreprocessor(PreprocessingConfig(resize_enabled=False))
        assert preprocessor.resize_image(image).shape == (1000, 2000)


class TestPreprocessImage:

    def test_blank_page(self):
        image = np.full((100, 100, 3), 255, dtype=np.uint8)

        processed = ImagePreprocessor().preprocess_image(image)

        assert processed.shape == (100, 100)
        assert processed.dtype == np.uint8
        assert not processed.any()

    def test_ink_becomes_thin_foreground(self):
        image = np.full((100, 100, 3), 255, dtype=np.uint8)
        cv2.line(image, (10, 50), (90, 50), (0, 0, 0), 5)

        processed = ImagePreprocessor().preprocess_image(image)

        assert set(np.unique(processed)) <= {0, 255}
        assert processed[:, 50].sum() // 255 <= 2
        assert processed[45:56, 50].any()
        assert not processed[:20].any()

    def test_without_thinning(self):
        image = np.full((100, 100), 255, dtype=np.uint8)
        cv2.line(image, (10, 50), (90, 50), 0, 5)

        thick = ImagePreprocessor(PreprocessingConfig(thinning_enabled=False)).preprocess_image(image)
        thin = ImagePreprocessor().preprocess_image(image)

        assert np.count_nonzero(thick) > np.count_nonzero(thin)
