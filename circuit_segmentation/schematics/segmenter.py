"""
Schematic segmentation: component ports, connection linkage and label
attribution.
"""
import math
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from ..core.config import SegmenterConfig
from ..core.logging import StructuredLogger
from ..core.schemas import (
    BoundingBox,
    Component,
    Connection,
    GlobalPosition,
    Label,
    Node,
    Point,
    Port,
    RelativePosition,
)
from ..vision.backend import VisionBackend
from .geometry import increase_bounding_box

Element = Union[Component, Connection, Node]


class SchematicSegmenter:
    """
    Wires the detected elements into a connected graph.

    The segmenter keeps its own copies of the elements it receives, so the
    detector stages that produced them are never mutated.
    """

    def __init__(self, backend: VisionBackend, config: Optional[SegmenterConfig] = None):
        self.backend = backend
        self.config = config or SegmenterConfig()
        self.logger = StructuredLogger(__name__)
        self._components: List[Component] = []
        self._connections: List[Connection] = []
        self._nodes: List[Node] = []
        self._labels: List[Label] = []

    @property
    def components(self) -> List[Component]:
        return self._components

    @property
    def connections(self) -> List[Connection]:
        return self._connections

    @property
    def nodes(self) -> List[Node]:
        return self._nodes

    @property
    def labels(self) -> List[Label]:
        """Labels attributed by the last association."""
        return self._labels

    def detect_component_connections(
        self,
        image: np.ndarray,
        components: Sequence[Component],
        connections: Sequence[Connection],
        nodes: Sequence[Node]
    ) -> None:
        """
        Create a port wherever a connection enters a component.

        For every component (box inflated by the port margins) and every
        connection, the first wire point inside the box becomes the port.
        The connection's start ID is filled first, then its end ID.

        Args:
            image: Image the elements were detected on (canvas bounds)
            components: Detected components
            connections: Connections after junction synthesis
            nodes: Synthesized nodes
        """
        self._components = [c.model_copy(deep=True) for c in components]
        self._connections = [c.model_copy(deep=True) for c in connections]
        self._nodes = [n.model_copy(deep=True) for n in nodes]
        self._labels = []

        width, height = self.backend.image_size(image)
        width_incr = self.config.port_width_increase
        height_incr = self.config.port_height_increase

        for component in self._components:
            box = increase_bounding_box(component.bounding_box, width_incr, height_incr, width, height)

            for connection in self._connections:
                point = self._first_point_inside(connection.wire, box)
                if point is None:
                    continue

                port = Port(
                    owner_id=component.id,
                    connection_id=connection.id,
                    position=self.calc_port_position(point, component.bounding_box,
                                                     width_incr, height_incr),
                )
                component.ports.append(port)

                if not connection.start_id:
                    connection.start_id = port.id
                else:
                    connection.end_id = port.id

            self.logger.debug("Component ports detected", component_id=component.id,
                              port_count=len(component.ports))

    @staticmethod
    def calc_port_position(point: Point, box: BoundingBox,
                           width_incr: int, height_incr: int) -> RelativePosition:
        """
        Position of a port relative to its component box.

        On each axis a point in the margin strip before the box maps to 0,
        a point in the strip after the box maps to 1, anything else is
        interpolated linearly across the box.
        """
        def relative(p: int, start: int, size: int, incr: int) -> float:
            if start - incr <= p <= start:
                return 0.0
            if start + size <= p <= start + size + incr:
                return 1.0
            if size == 0:
                return 0.0
            return 1.0 - (start + size - p) / float(size)

        px, py = point
        return RelativePosition(
            x=relative(px, box.x, box.width, width_incr),
            y=relative(py, box.y, box.height, height_incr),
            angle=0,
        )

    def update_detected_components(self) -> bool:
        """
        Drop components without ports and fix the position of the rest.

        Returns:
            False when no component remains
        """
        before = len(self._components)
        self._components = [c for c in self._components if c.ports]

        for component in self._components:
            component.position = GlobalPosition(
                x=component.bounding_box.x, y=component.bounding_box.y, angle=0
            )

        self.logger.info("Components updated", component_count=len(self._components),
                         pruned_count=before - len(self._components))
        return len(self._components) > 0

    def associate_labels(self, image: np.ndarray, labels: Sequence[Label]) -> None:
        """
        Attach every label to its nearest element.

        Distances are measured rectangle to rectangle against component
        boxes, connection boxes (wire bounds plus a small margin) and node
        boxes (node point plus a larger margin). On equal distances the
        component wins over the connection, the connection over the node,
        and within a category the first element wins.

        Args:
            image: Image the elements were detected on (canvas bounds)
            labels: Detected labels
        """
        width, height = self.backend.image_size(image)

        candidates: List[Tuple[Element, BoundingBox]] = []
        for component in self._components:
            candidates.append((component, component.bounding_box))

        incr = self.config.connection_box_increase
        for connection in self._connections:
            if not connection.wire:
                continue
            box = increase_bounding_box(self.backend.bounding_rect(connection.wire),
                                        incr, incr, width, height)
            candidates.append((connection, box))

        incr = self.config.node_box_increase
        for node in self._nodes:
            point_box = BoundingBox(x=node.position.x, y=node.position.y, width=1, height=1)
            candidates.append((node, increase_bounding_box(point_box, incr, incr, width, height)))

        self._labels = []
        for detected in labels:
            label = detected.model_copy(deep=True)
            owner = self._nearest_element(label.bounding_box, candidates)
            if owner is None:
                self.logger.warning("No element available for label", label_id=label.id)
                continue

            label.position = GlobalPosition(x=label.bounding_box.x, y=label.bounding_box.y, angle=0)
            label.owner_id = owner.id
            owner.labels.append(label)
            owner.label = label
            self._labels.append(label)

        self.logger.info("Labels associated", label_count=len(self._labels))

    def _nearest_element(self, box: BoundingBox,
                         candidates: Sequence[Tuple[Element, BoundingBox]]) -> Optional[Element]:
        best = None
        best_distance = math.inf
        for element, element_box in candidates:
            distance = self.backend.distance_rectangles(box, element_box)
            if distance < best_distance:
                best = element
                best_distance = distance
        return best

    def _first_point_inside(self, wire: Sequence[Point], box: BoundingBox) -> Optional[Point]:
        for point in wire:
            if self.backend.contains(box, point):
                return point
        return None
