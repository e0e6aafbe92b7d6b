"""
Connection (wire) detection and junction synthesis.
"""
from typing import List, Optional, Sequence

import numpy as np

from ..core.config import ConnectionDetectionConfig
from ..core.logging import StructuredLogger
from ..core.schemas import (
    BoundingBox,
    Component,
    Connection,
    GlobalPosition,
    Node,
    NodeType,
    Point,
    Wire,
)
from ..vision.backend import VisionBackend
from .geometry import center_of_points, increase_bounding_box


class ConnectionDetector:
    """
    Extracts wires from the schematic once the components are erased, then
    splits wires that touch more than two components into a junction node.
    """

    def __init__(self, backend: VisionBackend, config: Optional[ConnectionDetectionConfig] = None):
        self.backend = backend
        self.config = config or ConnectionDetectionConfig()
        self.logger = StructuredLogger(__name__)
        self._connections: List[Connection] = []
        self._nodes: List[Node] = []

    @property
    def connections(self) -> List[Connection]:
        """Connections found by the last detection step."""
        return self._connections

    @property
    def nodes(self) -> List[Node]:
        """Nodes synthesized by the last junction step."""
        return self._nodes

    def detect_connections(self, image_preprocessed: np.ndarray,
                           components: Sequence[Component]) -> bool:
        """
        Detect wire segments between the components.

        Args:
            image_preprocessed: Binary image, ink as foreground
            components: Detected components, erased before contour extraction

        Returns:
            False when no wire is long enough to be a connection
        """
        self._connections = []
        self._nodes = []

        image = self.backend.erase_rectangles(
            image_preprocessed, [component.bounding_box for component in components]
        )
        contours = self.backend.find_contours(image)
        self.logger.debug("Contours found for connection detection", contour_count=len(contours))

        for contour in contours:
            if self.check_contour(contour):
                self._connections.append(Connection(wire=list(contour)))

        self.logger.info("Connections found in the circuit", connection_count=len(self._connections))
        return len(self._connections) > 0

    def check_contour(self, contour: Sequence[Point]) -> bool:
        """Whether an open contour is long enough to be a wire."""
        if not contour:
            return False
        return self.backend.arc_length(contour, closed=False) >= self.config.min_length

    def detect_nodes_update_connections(self, image_preprocessed: np.ndarray,
                                        components: Sequence[Component]) -> bool:
        """
        Classify connections by how many components they touch.

        A wire touching no component is dropped, one touching one or two is
        kept as is, and one touching N > 2 components is replaced by a real
        node plus N two-point connections ending at that node.

        Args:
            image_preprocessed: Binary image, used for the canvas bounds
            components: Detected components

        Returns:
            False when no connection remains
        """
        width, height = self.backend.image_size(image_preprocessed)
        boxes = [
            increase_bounding_box(component.bounding_box,
                                  self.config.width_increase, self.config.height_increase,
                                  width, height)
            for component in components
        ]

        detected = self._connections
        self._connections = []
        self._nodes = []

        for connection in detected:
            intersections = self.find_intersections(connection.wire, boxes)
            count = len(intersections)
            self.logger.debug("Connection intersections", connection_id=connection.id,
                              intersection_count=count)

            if count == 0:
                continue
            if count <= 2:
                self._connections.append(connection)
                continue

            node, branches = self.synthesize_junction(connection.wire, intersections)
            self._connections.extend(branches)
            self._nodes.append(node)

        self.logger.info("Junction synthesis completed",
                         connection_count=len(self._connections),
                         node_count=len(self._nodes))
        return len(self._connections) > 0

    def find_intersections(self, wire: Wire, boxes: Sequence[BoundingBox]) -> List[Point]:
        """First wire point inside each box, at most one per box, in box order."""
        points = []
        for box in boxes:
            for point in wire:
                if self.backend.contains(box, point):
                    points.append(point)
                    break
        return points

    @staticmethod
    def synthesize_junction(wire: Wire, intersections: Sequence[Point]):
        """
        Build a junction node for a wire and one branch per intersection.

        Returns:
            Tuple of (node, branch connections)
        """
        x, y = center_of_points(wire)
        node = Node(type=NodeType.REAL, position=GlobalPosition(x=x, y=y, angle=0))

        branches = []
        for point in intersections:
            branch = Connection(wire=[tuple(point), (x, y)], end_id=node.id)
            node.connection_ids.append(branch.id)
            branches.append(branch)

        return node, branches
