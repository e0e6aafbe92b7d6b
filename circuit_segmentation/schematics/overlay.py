"""
Debug overlay images drawn over the input image.
"""
from pathlib import Path
from typing import List, Sequence, Union

import numpy as np

from ..core.logging import StructuredLogger
from ..core.schemas import Component, Connection, Label, Node, Point
from ..vision.backend import VisionBackend

COMPONENT_COLOR = (0, 0, 255)
CONNECTION_COLOR = (0, 255, 0)
NODE_COLOR = (255, 0, 0)
PORT_COLOR = (0, 255, 255)
LABEL_COLOR = (255, 0, 255)


def port_points(components: Sequence[Component]) -> List[Point]:
    """Absolute image coordinates of every component port."""
    points = []
    for component in components:
        box = component.bounding_box
        for port in component.ports:
            points.append((
                int(box.x + port.position.x * box.width),
                int(box.y + port.position.y * box.height),
            ))
    return points


class OverlayWriter:
    """Writes the ``segment_*.png`` overlays for a run."""

    def __init__(self, backend: VisionBackend, output_dir: Union[str, Path] = "."):
        self.backend = backend
        self.output_dir = Path(output_dir)
        self.logger = StructuredLogger(__name__)

    def write_components(self, image: np.ndarray, components: Sequence[Component]) -> bool:
        canvas = self.backend.draw_rectangles(
            image, [c.bounding_box for c in components], COMPONENT_COLOR
        )
        return self._write("segment_components.png", canvas)

    def write_connections(self, image: np.ndarray, connections: Sequence[Connection],
                          nodes: Sequence[Node]) -> bool:
        canvas = self.backend.draw_wires(
            image, [c.wire for c in connections if c.wire], CONNECTION_COLOR
        )
        if nodes:
            canvas = self.backend.draw_points(
                canvas, [(n.position.x, n.position.y) for n in nodes], NODE_COLOR
            )
        return self._write("segment_connections.png", canvas)

    def write_ports(self, image: np.ndarray, components: Sequence[Component]) -> bool:
        canvas = self.backend.draw_points(image, port_points(components), PORT_COLOR, radius=3)
        return self._write("segment_ports.png", canvas)

    def write_labels(self, image: np.ndarray, labels: Sequence[Label]) -> bool:
        canvas = self.backend.draw_rectangles(
            image, [label.bounding_box for label in labels], LABEL_COLOR
        )
        return self._write("segment_labels.png", canvas)

    def _write(self, file_name: str, canvas: np.ndarray) -> bool:
        file_path = self.output_dir / file_name
        written = self.backend.write_image(file_path, canvas)
        if not written:
            self.logger.warning("Failed to write overlay image", file_path=str(file_path))
        return written
