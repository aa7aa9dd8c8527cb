"""
Render pass: turns (nodes, connection geometry, drag state, tray) into an
ordered list of draw commands. Nothing here knows about pygame; the game
module just executes the commands.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from dataquest import config
from dataquest.dragdrop import DragState
from dataquest.geometry import (LOOP_END, LOOP_START, ConnectionGeometry, bezier_points,
                                resolve_connections)
from dataquest.layout import compute_layout
from dataquest.model import ConnectionStyle, LayoutType, Node, Point, Rect, Step

logger = logging.getLogger(__name__)

Color = Tuple[int, ...]


@dataclass(frozen=True)
class DrawLine:
    start: Point
    end: Point
    color: Color
    width: int = 2


@dataclass(frozen=True)
class DrawPolyline:
    points: Tuple[Point, ...]
    color: Color
    width: int = 2


@dataclass(frozen=True)
class DrawPolygon:
    points: Tuple[Point, ...]
    color: Color


@dataclass(frozen=True)
class DrawCircle:
    center: Point
    radius: float
    fill: Optional[Color]
    border: Color
    border_width: int = 3
    alpha: int = 255


@dataclass(frozen=True)
class DrawArc:
    center: Point
    radius: float
    start_angle: float
    end_angle: float
    color: Color
    width: int = 2


@dataclass(frozen=True)
class DrawText:
    text: str
    position: Point
    color: Color
    size: str = "small"
    centered: bool = True


DrawCommand = Union[DrawLine, DrawPolyline, DrawPolygon, DrawCircle, DrawArc, DrawText]


class Scene:
    """
    Cached layout of the live step. Recomputed only when the controller
    revision, the viewport or the layout type changes, and swapped in whole.
    """

    def __init__(self, layout_type: LayoutType, scale: float = 1.0):
        self.layout_type = LayoutType(layout_type)
        self.scale = scale
        self.nodes: List[Node] = []
        self.connections: List[ConnectionGeometry] = []
        self._key = None

    def set_layout_type(self, layout_type: LayoutType):
        self.layout_type = LayoutType(layout_type)

    def update(self, step: Step, revision: int, viewport: Rect) -> bool:
        key = (revision, viewport, self.layout_type)
        if key == self._key:
            return False
        nodes = compute_layout(self.layout_type, step.nodes, viewport)
        connections = resolve_connections(nodes, step.connections, self.layout_type, self.scale)
        self.nodes, self.connections, self._key = nodes, connections, key
        logger.debug(f"Layout recomputed: {len(nodes)} nodes, {len(connections)} connections")
        return True


def connection_commands(geometry: ConnectionGeometry) -> List[DrawCommand]:
    color = config.EDGE_HIGHLIGHT if geometry.highlighted else config.EDGE_COLOR
    width = 3 if geometry.highlighted else 2
    commands: List[DrawCommand] = []
    if geometry.style == ConnectionStyle.SELF_POINTING:
        commands.append(DrawArc(geometry.loop_center, geometry.loop_radius, LOOP_START, LOOP_END, color, width))
    elif geometry.style == ConnectionStyle.CURVED and geometry.controls:
        c1, c2 = geometry.controls
        points = bezier_points(geometry.from_point, c1, c2, geometry.to_point)
        commands.append(DrawPolyline(tuple(points), color, width))
    else:
        commands.append(DrawLine(geometry.from_point, geometry.to_point, color, width))
    if geometry.arrow_head:
        commands.append(DrawPolygon(geometry.arrow_head, color))
    if geometry.label and geometry.label_position:
        commands.append(DrawText(geometry.label, geometry.label_position, config.GRAY))
    return commands


def node_commands(node: Node, hovered: bool = False) -> List[DrawCommand]:
    if node.position is None:
        return []
    fill = config.GOLD if node.highlighted else config.LIGHT
    border = config.HOVER_BORDER if hovered else config.DARK
    commands: List[DrawCommand] = [
        DrawCircle(node.position, config.NODE_RADIUS, fill, border, 5 if hovered else 3)
    ]
    if node.value:
        commands.append(DrawText(node.value, node.position, config.DARK, size="large"))
    if node.label:
        above = Point(node.position.x, node.position.y - config.NODE_RADIUS - config.LABEL_OFFSET)
        commands.append(DrawText(node.label, above, config.ACCENT))
    return commands


def token_commands(token: str, center: Point, scale: float = 1.0, alpha: int = 255) -> List[DrawCommand]:
    return [
        DrawCircle(center, config.TOKEN_SIZE / 2 * scale, config.PAPER, config.DARK, 3, alpha),
        DrawText(token, center, config.DARK, size="large"),
    ]


def build_draw_commands(scene: Scene, drag: Optional[DragState] = None,
                        tray_slots: Optional[List[Tuple[str, Rect]]] = None) -> List[DrawCommand]:
    """Edges first, then nodes, then the tray, then the token under the pointer."""
    commands: List[DrawCommand] = []
    for geometry in scene.connections:
        commands.extend(connection_commands(geometry))

    hovered = drag.hovered_index if drag else None
    for index, node in enumerate(scene.nodes):
        commands.extend(node_commands(node, hovered=(index == hovered)))

    source = drag.source_index if drag else None
    if source is not None and 0 <= source < len(scene.nodes) and scene.nodes[source].position:
        commands.extend(token_commands(drag.token, scene.nodes[source].position,
                                       config.DRAG_GHOST_SCALE, config.DRAG_GHOST_ALPHA))

    for token, slot in tray_slots or []:
        dragging_this = drag is not None and drag.source_index is None and drag.token == token
        if dragging_this:
            commands.extend(token_commands(token, slot.center, config.DRAG_GHOST_SCALE,
                                           config.DRAG_GHOST_ALPHA))
        else:
            commands.extend(token_commands(token, slot.center))

    if drag is not None:
        commands.extend(token_commands(drag.token, drag.position))
    return commands
