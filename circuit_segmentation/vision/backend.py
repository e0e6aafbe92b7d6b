"""
Vision primitives consumed by the segmentation stages.

The stages only talk to ``VisionBackend``; ``OpenCVBackend`` is the
production implementation on top of OpenCV.
"""
import logging
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import cv2
import numpy as np
from PIL import Image

from ..core.schemas import BoundingBox, Point, Wire
from ..schematics.geometry import distance_rectangles, rectangle_contains

Color = Tuple[int, int, int]
Contour = List[Point]


class RetrievalMode(str, Enum):
    """Contour retrieval modes."""
    EXTERNAL = "external"
    LIST = "list"
    TREE = "tree"


class ApproximationMode(str, Enum):
    """Contour approximation modes."""
    NONE = "none"
    SIMPLE = "simple"


class MorphOperation(str, Enum):
    """Morphological operations."""
    CLOSE = "close"
    OPEN = "open"
    DILATE = "dilate"
    ERODE = "erode"


class VisionBackend(ABC):
    """Abstract base class for the geometric and image primitives."""

    @abstractmethod
    def image_size(self, image: np.ndarray) -> Tuple[int, int]:
        """Return (width, height) of an image."""
        pass

    @abstractmethod
    def find_contours(
        self,
        image: np.ndarray,
        mode: RetrievalMode = RetrievalMode.EXTERNAL,
        method: ApproximationMode = ApproximationMode.SIMPLE
    ) -> List[Contour]:
        """
        Extract contours from a binary image.

        Args:
            image: Single-channel binary image
            mode: Contour retrieval mode
            method: Contour approximation mode

        Returns:
            List of contours, each an ordered list of (x, y) points
        """
        pass

    @abstractmethod
    def contour_area(self, contour: Sequence[Point]) -> float:
        """Polygon area enclosed by a contour."""
        pass

    @abstractmethod
    def arc_length(self, contour: Sequence[Point], closed: bool = False) -> float:
        """Length of a contour."""
        pass

    @abstractmethod
    def bounding_rect(self, contour: Sequence[Point]) -> BoundingBox:
        """Upright bounding rectangle of a contour."""
        pass

    @abstractmethod
    def contains(self, box: BoundingBox, point: Point) -> bool:
        """Whether a point lies inside a rectangle."""
        pass

    @abstractmethod
    def distance_rectangles(self, rect1: BoundingBox, rect2: BoundingBox) -> float:
        """Minimum distance between two rectangles (0 when overlapping)."""
        pass

    @abstractmethod
    def morphology(
        self,
        image: np.ndarray,
        operation: MorphOperation,
        kernel_size: int,
        iterations: int = 1
    ) -> np.ndarray:
        """Apply a morphological operation with a square rectangular kernel."""
        pass

    @abstractmethod
    def erase_rectangles(self, image: np.ndarray, boxes: Sequence[BoundingBox]) -> np.ndarray:
        """Return a copy of the image with the boxes filled with black."""
        pass

    @abstractmethod
    def erase_wires(self, image: np.ndarray, wires: Sequence[Wire]) -> np.ndarray:
        """Return a copy of the image with the wires filled with black."""
        pass

    @abstractmethod
    def crop_image(self, image: np.ndarray, box: BoundingBox) -> Optional[np.ndarray]:
        """Crop a region of interest, or None when it is outside the image."""
        pass

    @abstractmethod
    def write_image(self, file_path: Union[str, Path], image: np.ndarray) -> bool:
        """Write an image file; False on any failure."""
        pass

    @abstractmethod
    def read_image(self, file_path: Union[str, Path]) -> Optional[np.ndarray]:
        """Read a color image; None when it cannot be read."""
        pass

    @abstractmethod
    def draw_rectangles(self, image: np.ndarray, boxes: Sequence[BoundingBox],
                        color: Color, thickness: int = 2) -> np.ndarray:
        """Return a color copy of the image with box outlines drawn."""
        pass

    @abstractmethod
    def draw_wires(self, image: np.ndarray, wires: Sequence[Wire],
                   color: Color, thickness: int = 2) -> np.ndarray:
        """Return a color copy of the image with wire contours drawn."""
        pass

    @abstractmethod
    def draw_points(self, image: np.ndarray, points: Sequence[Point],
                    color: Color, radius: int = 5) -> np.ndarray:
        """Return a color copy of the image with filled circles at the points."""
        pass


class OpenCVBackend(VisionBackend):
    """OpenCV implementation of the vision primitives."""

    _RETRIEVAL_MODES = {
        RetrievalMode.EXTERNAL: cv2.RETR_EXTERNAL,
        RetrievalMode.LIST: cv2.RETR_LIST,
        RetrievalMode.TREE: cv2.RETR_TREE,
    }

    _APPROXIMATION_MODES = {
        ApproximationMode.NONE: cv2.CHAIN_APPROX_NONE,
        ApproximationMode.SIMPLE: cv2.CHAIN_APPROX_SIMPLE,
    }

    _MORPH_OPERATIONS = {
        MorphOperation.CLOSE: cv2.MORPH_CLOSE,
        MorphOperation.OPEN: cv2.MORPH_OPEN,
        MorphOperation.DILATE: cv2.MORPH_DILATE,
        MorphOperation.ERODE: cv2.MORPH_ERODE,
    }

    def __init__(self, silent: bool = True):
        self.logger = logging.getLogger(__name__)
        self.set_log_mode(silent)

    def set_log_mode(self, silent: bool):
        """Silence OpenCV's own logging, or restore warnings."""
        level = cv2.utils.logging.LOG_LEVEL_SILENT if silent else cv2.utils.logging.LOG_LEVEL_WARNING
        cv2.utils.logging.setLogLevel(level)

    def image_size(self, image: np.ndarray) -> Tuple[int, int]:
        height, width = image.shape[:2]
        return width, height

    def find_contours(
        self,
        image: np.ndarray,
        mode: RetrievalMode = RetrievalMode.EXTERNAL,
        method: ApproximationMode = ApproximationMode.SIMPLE
    ) -> List[Contour]:
        contours, _ = cv2.findContours(
            image, self._RETRIEVAL_MODES[mode], self._APPROXIMATION_MODES[method]
        )
        return [self._to_points(contour) for contour in contours]

    def contour_area(self, contour: Sequence[Point]) -> float:
        return float(cv2.contourArea(self._to_array(contour)))

    def arc_length(self, contour: Sequence[Point], closed: bool = False) -> float:
        return float(cv2.arcLength(self._to_array(contour), closed))

    def bounding_rect(self, contour: Sequence[Point]) -> BoundingBox:
        x, y, w, h = cv2.boundingRect(self._to_array(contour))
        return BoundingBox(x=int(x), y=int(y), width=int(w), height=int(h))

    def contains(self, box: BoundingBox, point: Point) -> bool:
        return rectangle_contains(box, point)

    def distance_rectangles(self, rect1: BoundingBox, rect2: BoundingBox) -> float:
        return distance_rectangles(rect1, rect2)

    def morphology(
        self,
        image: np.ndarray,
        operation: MorphOperation,
        kernel_size: int,
        iterations: int = 1
    ) -> np.ndarray:
        kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (kernel_size, kernel_size))
        return cv2.morphologyEx(
            image, self._MORPH_OPERATIONS[operation], kernel, iterations=iterations
        )

    def erase_rectangles(self, image: np.ndarray, boxes: Sequence[BoundingBox]) -> np.ndarray:
        erased = image.copy()
        for box in boxes:
            cv2.rectangle(erased, (box.x, box.y, box.width, box.height), 0, thickness=-1)
        return erased

    def erase_wires(self, image: np.ndarray, wires: Sequence[Wire]) -> np.ndarray:
        erased = image.copy()
        arrays = [self._to_array(wire) for wire in wires if wire]
        if arrays:
            cv2.drawContours(erased, arrays, -1, 0, thickness=-1)
        return erased

    def crop_image(self, image: np.ndarray, box: BoundingBox) -> Optional[np.ndarray]:
        width, height = self.image_size(image)
        if (box.width <= 0 or box.height <= 0 or box.x < 0 or box.y < 0
                or box.x + box.width > width or box.y + box.height > height):
            return None
        return image[box.y:box.y + box.height, box.x:box.x + box.width].copy()

    def write_image(self, file_path: Union[str, Path], image: np.ndarray) -> bool:
        try:
            return bool(cv2.imwrite(str(file_path), image))
        except cv2.error as e:
            self.logger.error(f"Failed to write image {file_path}: {e}")
            return False

    def read_image(self, file_path: Union[str, Path]) -> Optional[np.ndarray]:
        image = cv2.imread(str(file_path), cv2.IMREAD_COLOR)
        if image is not None:
            return image

        # Fallback to PIL for formats OpenCV cannot decode
        try:
            with Image.open(file_path) as pil_image:
                rgb = np.array(pil_image.convert("RGB"))
            return cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)
        except (OSError, ValueError):
            return None

    def draw_rectangles(self, image: np.ndarray, boxes: Sequence[BoundingBox],
                        color: Color, thickness: int = 2) -> np.ndarray:
        canvas = self._to_color(image)
        for box in boxes:
            cv2.rectangle(canvas, (box.x, box.y, box.width, box.height), color, thickness)
        return canvas

    def draw_wires(self, image: np.ndarray, wires: Sequence[Wire],
                   color: Color, thickness: int = 2) -> np.ndarray:
        canvas = self._to_color(image)
        arrays = [self._to_array(wire) for wire in wires if wire]
        if arrays:
            cv2.drawContours(canvas, arrays, -1, color, thickness)
        return canvas

    def draw_points(self, image: np.ndarray, points: Sequence[Point],
                    color: Color, radius: int = 5) -> np.ndarray:
        canvas = self._to_color(image)
        for x, y in points:
            cv2.circle(canvas, (int(x), int(y)), radius, color, thickness=-1)
        return canvas

    @staticmethod
    def _to_array(points: Sequence[Point]) -> np.ndarray:
        return np.array(points, dtype=np.int32).reshape(-1, 1, 2)

    @staticmethod
    def _to_points(contour: np.ndarray) -> Contour:
        return [(int(p[0]), int(p[1])) for p in contour.reshape(-1, 2)]

    @staticmethod
    def _to_color(image: np.ndarray) -> np.ndarray:
        if image.ndim == 2:
            return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
        return image.copy()
