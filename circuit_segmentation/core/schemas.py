"""
Core Pydantic schemas for the schematic segmentation graph.
"""
import uuid
from enum import Enum
from typing import Any, Dict, List, Tuple

from pydantic import BaseModel, Field


Point = Tuple[int, int]
Wire = List[Point]


def generate_id() -> str:
    """Generate a unique element identifier."""
    return str(uuid.uuid4())


class PortType(str, Enum):
    """Coarse port direction."""
    HYBRID = "hybrid"
    INPUT = "input"
    OUTPUT = "output"


class NodeType(str, Enum):
    """Node origin."""
    REAL = "real"
    VIRTUAL = "virtual"


class BoundingBox(BaseModel):
    """Axis-aligned integer rectangle (top-left corner plus size)."""
    x: int = Field(default=0, description="Left coordinate in pixels")
    y: int = Field(default=0, description="Top coordinate in pixels")
    width: int = Field(default=0, ge=0, description="Width in pixels")
    height: int = Field(default=0, ge=0, description="Height in pixels")

    @property
    def top_left(self) -> Point:
        return (self.x, self.y)

    @property
    def bottom_right(self) -> Point:
        return (self.x + self.width, self.y + self.height)

    @property
    def area(self) -> int:
        return self.width * self.height


class GlobalPosition(BaseModel):
    """Absolute position in image pixels."""
    x: int = Field(default=0, description="X coordinate")
    y: int = Field(default=0, description="Y coordinate")
    angle: int = Field(default=0, description="Rotation angle in degrees")


class RelativePosition(BaseModel):
    """Position relative to the owner's bounding box, in [0, 1] per axis."""
    x: float = Field(default=0.0, description="Relative X")
    y: float = Field(default=0.0, description="Relative Y")
    angle: int = Field(default=0, description="Rotation angle in degrees")


class Label(BaseModel):
    """Text label region attached to one circuit element."""
    id: str = Field(default_factory=generate_id, frozen=True, description="Unique ID")
    owner_id: str = Field(default="", description="ID of the owning element")
    name: str = Field(default="", description="Label name (e.g. R1)")
    value: str = Field(default="", description="Label value (e.g. 10)")
    unit: str = Field(default="", description="Label unit (e.g. k)")
    position: GlobalPosition = Field(default_factory=GlobalPosition)
    is_name_hidden: bool = Field(default=True)
    is_value_hidden: bool = Field(default=True)
    bounding_box: BoundingBox = Field(default_factory=BoundingBox)


class Port(BaseModel):
    """Connection point of a component."""
    id: str = Field(default_factory=generate_id, frozen=True, description="Unique ID")
    owner_id: str = Field(default="", description="ID of the owning component")
    type: PortType = Field(default=PortType.HYBRID)
    position: RelativePosition = Field(default_factory=RelativePosition)
    connection_id: str = Field(default="", description="ID of the terminating connection")


class Component(BaseModel):
    """Circuit component located by its bounding box."""
    id: str = Field(default_factory=generate_id, frozen=True, description="Unique ID")
    type: str = Field(default="", description="Component type (e.g. R)")
    full_name: str = Field(default="", description="Full type name (e.g. Resistor)")
    position: GlobalPosition = Field(default_factory=GlobalPosition)
    label: Label = Field(default_factory=Label, description="Primary label")
    ports: List[Port] = Field(default_factory=list)
    bounding_box: BoundingBox = Field(default_factory=BoundingBox)
    labels: List[Label] = Field(default_factory=list, description="All associated labels")

    def model_post_init(self, __context: Any) -> None:
        if not self.label.owner_id:
            self.label.owner_id = self.id


class Connection(BaseModel):
    """Wire between ports and/or nodes."""
    id: str = Field(default_factory=generate_id, frozen=True, description="Unique ID")
    start_id: str = Field(default="", description="Port or node ID at the start")
    end_id: str = Field(default="", description="Port or node ID at the end")
    label: Label = Field(default_factory=Label, description="Primary label")
    wire: Wire = Field(default_factory=list, description="Ordered wire points")
    labels: List[Label] = Field(default_factory=list, description="All associated labels")

    def model_post_init(self, __context: Any) -> None:
        if not self.label.owner_id:
            self.label.owner_id = self.id


class Node(BaseModel):
    """Junction where three or more connections meet."""
    id: str = Field(default_factory=generate_id, frozen=True, description="Unique ID")
    type: NodeType = Field(default=NodeType.REAL)
    position: GlobalPosition = Field(default_factory=GlobalPosition)
    connection_ids: List[str] = Field(default_factory=list)
    label: Label = Field(default_factory=Label, description="Primary label")
    labels: List[Label] = Field(default_factory=list, description="All associated labels")

    def model_post_init(self, __context: Any) -> None:
        if not self.label.owner_id:
            self.label.owner_id = self.id


class SegmentationResult(BaseModel):
    """Outcome of one segmentation run."""
    components: List[Component] = Field(default_factory=list)
    connections: List[Connection] = Field(default_factory=list)
    nodes: List[Node] = Field(default_factory=list)
    labels: List[Label] = Field(default_factory=list, description="Detected labels")
    segmentation_map: Dict[str, Any] = Field(default_factory=dict)
    map_written: bool = Field(default=False, description="Map JSON file written")
    roi_written: bool = Field(default=False, description="All ROI images written")
