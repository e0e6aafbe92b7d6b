"""
Label detection: locates text regions left over once components and wires
are removed. The text itself is never read.
"""
from typing import List, Optional, Sequence

import numpy as np

from ..core.config import LabelDetectionConfig
from ..core.logging import StructuredLogger
from ..core.schemas import BoundingBox, Component, Connection, Label, Point
from ..vision.backend import MorphOperation, VisionBackend
from .geometry import increase_bounding_box


class LabelDetector:
    """
    Finds label regions in the leftover ink of a schematic.
    """

    def __init__(self, backend: VisionBackend, config: Optional[LabelDetectionConfig] = None):
        self.backend = backend
        self.config = config or LabelDetectionConfig()
        self.logger = StructuredLogger(__name__)
        self._labels: List[Label] = []

    @property
    def labels(self) -> List[Label]:
        """Labels found by the last detection."""
        return self._labels

    def detect_labels(
        self,
        image_preprocessed: np.ndarray,
        components: Sequence[Component],
        connections: Sequence[Connection]
    ) -> bool:
        """
        Detect label regions.

        The components and wires are erased, a closing joins letters and
        digits into words, and an opening removes wire fragments that
        survived the erasure.

        Args:
            image_preprocessed: Binary image, ink as foreground
            components: Components kept after port detection
            connections: Connections after junction synthesis

        Returns:
            False when no region is large enough to be a label
        """
        self._labels = []

        image = self.remove_elements(image_preprocessed, components, connections)

        cfg = self.config
        image = self.backend.morphology(
            image, MorphOperation.CLOSE, cfg.morph_close_kernel_size, cfg.morph_close_iterations
        )
        image = self.backend.morphology(
            image, MorphOperation.OPEN, cfg.morph_open_kernel_size, cfg.morph_open_iterations
        )

        contours = self.backend.find_contours(image)
        self.logger.debug("Contours found for label detection", contour_count=len(contours))

        width, height = self.backend.image_size(image_preprocessed)
        for contour in contours:
            box = self.check_contour(contour, width, height)
            if box is not None:
                self._labels.append(Label(bounding_box=box))

        self.logger.info("Labels found in the circuit", label_count=len(self._labels))
        return len(self._labels) > 0

    def remove_elements(
        self,
        image: np.ndarray,
        components: Sequence[Component],
        connections: Sequence[Connection]
    ) -> np.ndarray:
        """Copy of the image with component boxes and wires painted black."""
        image = self.backend.erase_rectangles(image, [c.bounding_box for c in components])
        return self.backend.erase_wires(image, [c.wire for c in connections if c.wire])

    def check_contour(self, contour: Sequence[Point], width: int, height: int) -> Optional[BoundingBox]:
        """Inflated box of a contour, or None when its area is below the minimum."""
        if not contour:
            return None

        box = increase_bounding_box(
            self.backend.bounding_rect(contour),
            self.config.width_increase, self.config.height_increase,
            width, height
        )
        if box.area < self.config.min_area:
            return None
        return box
