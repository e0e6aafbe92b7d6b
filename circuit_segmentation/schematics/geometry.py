"""
Geometric helpers shared by the segmentation stages.
"""
import math
from typing import Sequence, Tuple

from ..core.schemas import BoundingBox, Point


def increase_bounding_box(
    box: BoundingBox,
    width_incr: int,
    height_incr: int,
    width_max: int,
    height_max: int
) -> BoundingBox:
    """
    Grow a bounding box around its centre, clamped to the canvas.

    Args:
        box: Box to grow
        width_incr: Total increment for the width
        height_incr: Total increment for the height
        width_max: Canvas width (x + width never exceeds it)
        height_max: Canvas height (y + height never exceeds it)

    Returns:
        New, enlarged bounding box
    """
    # Truncating division, then clamped at the canvas origin
    x = max(0, box.x - int(width_incr / 2))
    y = max(0, box.y - int(height_incr / 2))

    width = box.width + width_incr
    if x + width > width_max:
        width = width_max - x
    height = box.height + height_incr
    if y + height > height_max:
        height = height_max - y

    return BoundingBox(x=x, y=y, width=max(0, width), height=max(0, height))


def rectangle_contains(box: BoundingBox, point: Point) -> bool:
    """Half-open containment test: left/top edges inclusive, right/bottom exclusive."""
    px, py = point
    return box.x <= px < box.x + box.width and box.y <= py < box.y + box.height


def points_bounding_rect(points: Sequence[Point]) -> BoundingBox:
    """Smallest upright rectangle enclosing every point (pixel-inclusive)."""
    if not points:
        return BoundingBox()

    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    x, y = min(xs), min(ys)
    return BoundingBox(x=x, y=y, width=max(xs) - x + 1, height=max(ys) - y + 1)


def find_extreme_points(points: Sequence[Point], x_axis: bool) -> Tuple[Point, Point]:
    """
    Find the extreme points of a point sequence along one axis.

    For the x axis the pair is (leftmost, rightmost); for the y axis it is
    (topmost, bottommost). On ties the first point wins for both.
    """
    if not points:
        raise ValueError("cannot find extreme points of an empty sequence")

    axis = 0 if x_axis else 1
    low = points[0]
    high = points[0]
    for point in points[1:]:
        if point[axis] < low[axis]:
            low = point
        if point[axis] > high[axis]:
            high = point

    return low, high


def center_of_points(points: Sequence[Point]) -> Point:
    """Midpoint of the extreme x and extreme y coordinates (integer)."""
    left, right = find_extreme_points(points, x_axis=True)
    top, bottom = find_extreme_points(points, x_axis=False)
    return (left[0] + right[0]) // 2, (top[1] + bottom[1]) // 2


def distance_points(x1: int, y1: int, x2: int, y2: int) -> float:
    """Euclidean distance between two points."""
    return math.sqrt((x2 - x1) ** 2 + (y2 - y1) ** 2)


def distance_rectangles(rect1: BoundingBox, rect2: BoundingBox) -> float:
    """
    Minimum distance between two upright rectangles.

    Returns 0 when the rectangles overlap or touch, the gap along one axis
    when they are side by side, and the corner-to-corner distance when they
    are diagonal to each other.
    """
    left_top1 = rect1.top_left
    right_bottom1 = rect1.bottom_right
    left_top2 = rect2.top_left
    right_bottom2 = rect2.bottom_right

    # Positions of rectangle 2 relative to rectangle 1
    left = right_bottom2[0] < left_top1[0]
    right = left_top2[0] > right_bottom1[0]
    top = right_bottom2[1] < left_top1[1]
    bottom = left_top2[1] > right_bottom1[1]

    if top and left:
        return distance_points(right_bottom2[0], right_bottom2[1], left_top1[0], left_top1[1])
    if top and right:
        return distance_points(left_top2[0], right_bottom2[1], right_bottom1[0], left_top1[1])
    if bottom and left:
        return distance_points(right_bottom2[0], left_top2[1], left_top1[0], right_bottom1[1])
    if bottom and right:
        return distance_points(left_top2[0], left_top2[1], right_bottom1[0], right_bottom1[1])
    if left:
        return float(left_top1[0] - right_bottom2[0])
    if right:
        return float(left_top2[0] - right_bottom1[0])
    if top:
        return float(left_top1[1] - right_bottom2[1])
    if bottom:
        return float(left_top2[1] - right_bottom1[1])

    return 0.0


def round_half_up(value: float, digits: int) -> float:
    """Round half away from zero to a number of decimal digits."""
    factor = 10 ** digits
    return math.copysign(math.floor(abs(value) * factor + 0.5) / factor, value)
