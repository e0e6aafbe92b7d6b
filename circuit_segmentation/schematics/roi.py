"""
Region of interest export for components and labels.
"""
from pathlib import Path
from typing import Sequence, Union

import numpy as np

from ..core.logging import StructuredLogger
from ..core.schemas import BoundingBox, Component, Connection, Node
from ..vision.backend import VisionBackend


class RoiExporter:
    """Crops element regions from the input image and writes them as PNG files."""

    def __init__(self, backend: VisionBackend, output_dir: Union[str, Path] = "."):
        self.backend = backend
        self.output_dir = Path(output_dir)
        self.logger = StructuredLogger(__name__)

    def generate_roi_components(self, image: np.ndarray, components: Sequence[Component]) -> bool:
        """
        Write one ``roi_component_<id>.png`` per component.

        Returns:
            True only if every crop and write succeeded
        """
        self.logger.info("Generating ROI images for components", component_count=len(components))

        success = True
        for component in components:
            file_name = f"roi_component_{component.id}.png"
            if not self.generate_roi(image, component.bounding_box, component.id, file_name):
                success = False
        return success

    def generate_roi_labels(
        self,
        image: np.ndarray,
        components: Sequence[Component],
        connections: Sequence[Connection],
        nodes: Sequence[Node]
    ) -> bool:
        """
        Write one ``roi_label_<owner id>_<n>.png`` per attached label.

        ``n`` is the 1-based position of the label within its owner.

        Returns:
            True only if every crop and write succeeded
        """
        self.logger.info("Generating ROI images for labels")

        success = True
        for owners in (components, connections, nodes):
            for owner in owners:
                for index, label in enumerate(owner.labels, start=1):
                    file_name = f"roi_label_{owner.id}_{index}.png"
                    if not self.generate_roi(image, label.bounding_box, owner.id, file_name):
                        success = False
        return success

    def generate_roi(self, image: np.ndarray, box: BoundingBox, element_id: str, file_name: str) -> bool:
        """Crop one region and write it to the output directory."""
        roi = self.backend.crop_image(image, box)
        if roi is None:
            self.logger.error("Failed to crop ROI", element_id=element_id)
            return False

        file_path = self.output_dir / file_name
        if not self.backend.write_image(file_path, roi):
            self.logger.error("Failed to write ROI image", element_id=element_id,
                              file_path=str(file_path))
            return False

        return True
