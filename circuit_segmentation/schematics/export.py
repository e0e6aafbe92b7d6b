"""
Segmentation map generation and JSON export.
"""
import json
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

from ..core.logging import StructuredLogger
from ..core.schemas import Component, Connection, GlobalPosition, Label, Node, Port
from .geometry import round_half_up


class SegmentationMapBuilder:
    """
    Serializes the segmented circuit into the segmentation map document.

    The document has three top-level arrays, ``components``,
    ``connections`` and ``nodes``; every entry carries its primary label.
    """

    def __init__(self, port_position_precision: int = 1):
        """
        Initialize map builder.

        Args:
            port_position_precision: Decimal digits kept for port positions
        """
        self.port_position_precision = port_position_precision
        self.logger = StructuredLogger(__name__)
        self._map: Dict[str, List[Dict[str, Any]]] = {}

    @property
    def segmentation_map(self) -> Dict[str, List[Dict[str, Any]]]:
        """Map built by the last generation."""
        return self._map

    def generate_segmentation_map(
        self,
        components: Sequence[Component],
        connections: Sequence[Connection],
        nodes: Sequence[Node]
    ) -> bool:
        """
        Build the segmentation map.

        Assembly stops at the first element that cannot be serialized and
        the map is left empty.

        Returns:
            True if every element was serialized
        """
        self.logger.info("Generating segmentation map")
        self._map = {}

        sections = (
            ("components", components, self._component_entry),
            ("connections", connections, self._connection_entry),
            ("nodes", nodes, self._node_entry),
        )

        document: Dict[str, List[Dict[str, Any]]] = {}
        for key, elements, serialize in sections:
            document[key] = []
            for element in elements:
                try:
                    document[key].append(serialize(element))
                except (AttributeError, TypeError, ValueError) as e:
                    self.logger.error(
                        f"Failed to serialize {key} entry: {e}",
                        element_id=getattr(element, "id", None),
                        error_type=type(e).__name__,
                    )
                    return False

        self._map = document
        return True

    def write_json_file(self, file_path: Union[str, Path]) -> bool:
        """
        Write the current map as an indented JSON document.

        Returns:
            False when no map has been generated or the file cannot be written
        """
        if not self._map:
            self.logger.error("No segmentation map to write", file_path=str(file_path))
            return False

        self.logger.info("Writing segmentation map JSON file", file_path=str(file_path))
        try:
            with open(file_path, "w", encoding="utf-8") as f:
                json.dump(self._map, f, indent=4)
                f.write("\n")
        except (OSError, TypeError) as e:
            self.logger.error(f"Failed to write segmentation map: {e}", file_path=str(file_path))
            return False
        return True

    def _component_entry(self, component: Component) -> Dict[str, Any]:
        return {
            "id": component.id,
            "type": component.type,
            "fullName": component.full_name,
            "label": self._label_entry(component.label),
            "ports": [self._port_entry(port) for port in component.ports],
            "position": self._position_entry(component.position),
        }

    def _connection_entry(self, connection: Connection) -> Dict[str, Any]:
        return {
            "id": connection.id,
            "start": connection.start_id,
            "end": connection.end_id,
            "label": self._label_entry(connection.label),
        }

    def _node_entry(self, node: Node) -> Dict[str, Any]:
        return {
            "id": node.id,
            "label": self._label_entry(node.label),
            "position": self._position_entry(node.position),
            "connections": list(node.connection_ids),
            "type": node.type.value,
        }

    def _port_entry(self, port: Port) -> Dict[str, Any]:
        digits = self.port_position_precision
        return {
            "id": port.id,
            "owner": port.owner_id,
            "type": port.type.value,
            "position": {
                "x": round_half_up(port.position.x, digits),
                "y": round_half_up(port.position.y, digits),
                "angle": port.position.angle,
            },
            "connection": port.connection_id,
        }

    def _label_entry(self, label: Label) -> Dict[str, Any]:
        return {
            "id": label.id,
            "owner": label.owner_id,
            "name": label.name,
            "value": label.value,
            "unit": label.unit,
            "position": self._position_entry(label.position),
            "isNameHidden": label.is_name_hidden,
            "isValueHidden": label.is_value_hidden,
        }

    @staticmethod
    def _position_entry(position: GlobalPosition) -> Dict[str, int]:
        return {"x": position.x, "y": position.y, "angle": position.angle}
