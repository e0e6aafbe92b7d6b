"""
Shared fixtures and a deterministic vision backend for the segmentation tests.
"""
import math
from pathlib import Path

import numpy as np
import pytest

from circuit_segmentation.core.schemas import BoundingBox
from circuit_segmentation.schematics.geometry import (
    distance_rectangles,
    points_bounding_rect,
    rectangle_contains,
)
from circuit_segmentation.vision.backend import (
    ApproximationMode,
    RetrievalMode,
    VisionBackend,
)


def _key(contour):
    return tuple(tuple(p) for p in contour)


class FakeVisionBackend(VisionBackend):
    """
    Vision backend with scripted contours and pure-python geometry.

    ``contour_batches`` holds one list of contours per ``find_contours``
    call, consumed in order. Areas and lengths are computed from the points
    unless overridden in ``areas`` / ``lengths``; ``images`` maps file
    names to the arrays returned by ``read_image``.
    """

    def __init__(self):
        self.contour_batches = []
        self.areas = {}
        self.lengths = {}
        self.contains_fn = None
        self.failing_writes = set()
        self.written = []
        self.images = {}
        self.calls = []

    def image_size(self, image):
        height, width = image.shape[:2]
        return width, height

    def find_contours(self, image, mode=RetrievalMode.EXTERNAL, method=ApproximationMode.SIMPLE):
        self.calls.append(("find_contours", mode, method))
        if not self.contour_batches:
            return []
        return [list(contour) for contour in self.contour_batches.pop(0)]

    def contour_area(self, contour):
        key = _key(contour)
        if key in self.areas:
            return self.areas[key]
        area = 0.0
        for i, (x1, y1) in enumerate(contour):
            x2, y2 = contour[(i + 1) % len(contour)]
            area += x1 * y2 - x2 * y1
        return abs(area) / 2.0

    def arc_length(self, contour, closed=False):
        key = _key(contour)
        if key in self.lengths:
            return self.lengths[key]
        points = list(contour) + ([contour[0]] if closed and contour else [])
        return sum(math.dist(a, b) for a, b in zip(points, points[1:]))

    def bounding_rect(self, contour):
        return points_bounding_rect(contour)

    def contains(self, box, point):
        if self.contains_fn is not None:
            return self.contains_fn(box, point)
        return rectangle_contains(box, point)

    def distance_rectangles(self, rect1, rect2):
        return distance_rectangles(rect1, rect2)

    def morphology(self, image, operation, kernel_size, iterations=1):
        self.calls.append(("morphology", operation, kernel_size, iterations))
        return image.copy()

    def erase_rectangles(self, image, boxes):
        self.calls.append(("erase_rectangles", list(boxes)))
        return image.copy()

    def erase_wires(self, image, wires):
        self.calls.append(("erase_wires", [list(w) for w in wires]))
        return image.copy()

    def crop_image(self, image, box: BoundingBox):
        width, height = self.image_size(image)
        if (box.width <= 0 or box.height <= 0 or box.x < 0 or box.y < 0
                or box.x + box.width > width or box.y + box.height > height):
            return None
        return image[box.y:box.y + box.height, box.x:box.x + box.width].copy()

    def write_image(self, file_path, image):
        if Path(file_path).name in self.failing_writes:
            return False
        self.written.append(str(file_path))
        return True

    def read_image(self, file_path):
        self.calls.append(("read_image", str(file_path)))
        return self.images.get(Path(file_path).name)

    def draw_rectangles(self, image, boxes, color, thickness=2):
        self.calls.append(("draw_rectangles", list(boxes)))
        return image.copy()

    def draw_wires(self, image, wires, color, thickness=2):
        self.calls.append(("draw_wires", list(wires)))
        return image.copy()

    def draw_points(self, image, points, color, radius=5):
        self.calls.append(("draw_points", list(points)))
        return image.copy()

    def written_names(self):
        return [Path(p).name for p in self.written]


@pytest.fixture
def backend():
    return FakeVisionBackend()


@pytest.fixture
def blank_image():
    """Binary 300x200 canvas."""
    return np.zeros((200, 300), dtype=np.uint8)


@pytest.fixture
def color_image():
    """Color 300x200 canvas."""
    return np.zeros((200, 300, 3), dtype=np.uint8)


@pytest.fixture
def backend_factory():
    """Build fresh fake backends inside a single test."""
    return FakeVisionBackend
