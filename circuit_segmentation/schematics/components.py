"""
Component detection for electrical schematics.

Components are located as blobs: a morphological closing merges the strokes
of each symbol into one island, an opening removes the thin wires, and every
remaining contour large enough becomes a component bounding box.
"""
from typing import List, Optional, Sequence

import numpy as np

from ..core.config import ComponentDetectionConfig
from ..core.logging import StructuredLogger
from ..core.schemas import BoundingBox, Component, Point
from ..vision.backend import MorphOperation, VisionBackend
from .geometry import increase_bounding_box


class ComponentDetector:
    """
    Blob based component detector.
    """

    def __init__(self, backend: VisionBackend, config: Optional[ComponentDetectionConfig] = None):
        """
        Initialize component detector.

        Args:
            backend: Vision primitives
            config: Detection thresholds (defaults when omitted)
        """
        self.backend = backend
        self.config = config or ComponentDetectionConfig()
        self.logger = StructuredLogger(__name__)
        self._components: List[Component] = []

    @property
    def components(self) -> List[Component]:
        """Components found by the last detection."""
        return self._components

    def detect_components(self, image_preprocessed: np.ndarray) -> bool:
        """
        Detect components in a preprocessed (binary) image.

        Args:
            image_preprocessed: Binary image, ink as foreground

        Returns:
            False when no contour qualifies as a component
        """
        self._components = []

        mask = self.isolate_blobs(image_preprocessed)
        contours = self.backend.find_contours(mask)
        self.logger.debug("Contours found for component detection", contour_count=len(contours))

        width, height = self.backend.image_size(image_preprocessed)
        for contour in contours:
            box = self.check_contour(contour, width, height)
            if box is not None:
                self._components.append(Component(bounding_box=box))

        self.logger.info("Components found in the circuit", component_count=len(self._components))
        return len(self._components) > 0

    def isolate_blobs(self, image_preprocessed: np.ndarray) -> np.ndarray:
        """Close then open the image so each symbol becomes one solid blob."""
        cfg = self.config
        mask = self.backend.morphology(
            image_preprocessed, MorphOperation.CLOSE,
            cfg.morph_close_kernel_size, cfg.morph_close_iterations
        )
        return self.backend.morphology(
            mask, MorphOperation.OPEN,
            cfg.morph_open_kernel_size, cfg.morph_open_iterations
        )

    def check_contour(self, contour: Sequence[Point], width: int, height: int) -> Optional[BoundingBox]:
        """
        Turn a blob contour into an inflated component box.

        Returns None when the enclosed area is below the minimum.
        """
        if not contour:
            return None

        if self.backend.contour_area(contour) < self.config.min_area:
            return None

        box = self.backend.bounding_rect(contour)
        return increase_bounding_box(
            box, self.config.width_increase, self.config.height_increase, width, height
        )
