"""
Connection geometry: trimmed endpoints, arrow heads, label anchors and loop
arcs, all derived from positioned nodes on every layout pass.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from dataquest import config
from dataquest.model import Connection, ConnectionStyle, LayoutType, Node, Point

logger = logging.getLogger(__name__)

# Self loops sweep clockwise on screen, in degrees.
LOOP_START = 180.0
LOOP_END = 450.0


@dataclass(frozen=True)
class ConnectionGeometry:
    connection_id: str
    style: ConnectionStyle
    from_point: Point
    to_point: Point
    label: Optional[str] = None
    label_position: Optional[Point] = None
    highlighted: bool = False
    arrow_head: Optional[Tuple[Point, Point, Point]] = None
    controls: Optional[Tuple[Point, Point]] = None
    loop_center: Optional[Point] = None
    loop_radius: float = 0.0


def is_cross_row(a: Point, b: Point) -> bool:
    # Rows are told apart by a vertical delta larger than half a node's size.
    return abs(a.y - b.y) > config.NODE_RADIUS


def endpoint_offset(a: Point, b: Point, layout_type: LayoutType) -> float:
    if layout_type == LayoutType.BINARY_TREE:
        return config.NODE_RADIUS * config.TREE_OFFSET
    if is_cross_row(a, b):
        return config.NODE_RADIUS * config.CROSS_ROW_OFFSET
    return config.NODE_RADIUS * config.SAME_ROW_OFFSET


def self_loop(center: Point) -> Tuple[Point, float, Point, Point]:
    """Loop sitting on the node's upper-right shoulder: (centre, radius, start, end)."""
    r = config.SELF_LOOP_RADIUS
    loop_center = Point(center.x + config.NODE_RADIUS, center.y - config.NODE_RADIUS)
    # Swept from LOOP_START to LOOP_END, leaving open the quadrant facing the node.
    start = Point(loop_center.x - r, loop_center.y)
    end = Point(loop_center.x, loop_center.y + r)
    return loop_center, r, start, end


def resolve_endpoints(from_node: Node, to_node: Node, style: ConnectionStyle,
                      layout_type: LayoutType = LayoutType.LINKED_LIST) -> Optional[Tuple[Point, Point]]:
    """
    Trim the centre-to-centre segment so it stops short of both node circles.

    Returns None when the pair cannot be drawn (missing positions, or two
    distinct endpoints sitting on the same spot).
    """
    a, b = from_node.position, to_node.position
    if a is None or b is None:
        return None
    if style == ConnectionStyle.SELF_POINTING or from_node.id == to_node.id:
        _, _, start, end = self_loop(a)
        return start, end

    distance = a.distance_to(b)
    if distance == 0:
        return None
    angle = math.atan2(b.y - a.y, b.x - a.x)
    offset = min(endpoint_offset(a, b, layout_type), distance / 2)
    dx, dy = math.cos(angle) * offset, math.sin(angle) * offset
    return Point(a.x + dx, a.y + dy), Point(b.x - dx, b.y - dy)


def label_position(p: Point, q: Point) -> Point:
    return Point((p.x + q.x) / 2, (p.y + q.y) / 2 - config.LABEL_OFFSET)


def arrow_head(p: Point, q: Point, scale: float = 1.0) -> Tuple[Point, Point, Point]:
    """Triangle with its tip on *q*, opening back toward *p*."""
    back = math.atan2(p.y - q.y, p.x - q.x)
    length = config.ARROW_LENGTH * scale
    spread = math.pi / 6
    left = Point(q.x + length * math.cos(back - spread), q.y + length * math.sin(back - spread))
    right = Point(q.x + length * math.cos(back + spread), q.y + length * math.sin(back + spread))
    return q, left, right


def curve_controls(p: Point, q: Point) -> Tuple[Point, Point]:
    half = (q.x - p.x) * 0.5
    return Point(p.x + half, p.y), Point(q.x - half, q.y)


def bezier_points(p: Point, c1: Point, c2: Point, q: Point,
                  segments: int = config.CURVE_SEGMENTS) -> List[Point]:
    points = []
    for i in range(segments + 1):
        t = i / segments
        u = 1 - t
        x = u ** 3 * p.x + 3 * u * u * t * c1.x + 3 * u * t * t * c2.x + t ** 3 * q.x
        y = u ** 3 * p.y + 3 * u * u * t * c1.y + 3 * u * t * t * c2.y + t ** 3 * q.y
        points.append(Point(x, y))
    return points


def _find(connection: Connection, nodes_by_id: Dict[str, Node],
          nodes_by_label: Dict[str, Node]) -> Tuple[Optional[Node], Optional[Node]]:
    if connection.from_label is not None:
        source = nodes_by_label.get(connection.from_label)
    else:
        source = nodes_by_id.get(connection.from_id)
    if connection.to_label is not None:
        target = nodes_by_label.get(connection.to_label)
    else:
        target = nodes_by_id.get(connection.to_id)
    return source, target


def resolve_connection(connection: Connection, source: Node, target: Node,
                       layout_type: LayoutType, scale: float = 1.0) -> Optional[ConnectionGeometry]:
    style = ConnectionStyle(connection.style)
    if source.id == target.id:
        style = ConnectionStyle.SELF_POINTING
    endpoints = resolve_endpoints(source, target, style, layout_type)
    if endpoints is None:
        return None
    p, q = endpoints

    if style == ConnectionStyle.SELF_POINTING:
        center, radius, _, _ = self_loop(source.position)
        return ConnectionGeometry(
            connection_id=connection.id, style=style, from_point=p, to_point=q,
            label=connection.label,
            label_position=Point(center.x, center.y - radius - config.LABEL_OFFSET),
            highlighted=connection.highlighted,
            loop_center=center, loop_radius=radius,
        )

    return ConnectionGeometry(
        connection_id=connection.id, style=style, from_point=p, to_point=q,
        label=connection.label,
        label_position=label_position(p, q),
        highlighted=connection.highlighted,
        arrow_head=arrow_head(p, q, scale),
        controls=curve_controls(p, q) if style == ConnectionStyle.CURVED else None,
    )


def resolve_connections(nodes: List[Node], connections: List[Connection],
                        layout_type: LayoutType, scale: float = 1.0) -> List[ConnectionGeometry]:
    """Geometry for every connection whose endpoints exist; the rest are dropped."""
    nodes_by_id = {node.id: node for node in nodes}
    nodes_by_label = {node.label: node for node in nodes if node.label}
    resolved = []
    for connection in connections:
        source, target = _find(connection, nodes_by_id, nodes_by_label)
        if source is None or target is None:
            logger.debug(f"Dropping unresolved connection {connection.id}")
            continue
        geometry = resolve_connection(connection, source, target, layout_type, scale)
        if geometry is not None:
            resolved.append(geometry)
    return resolved
