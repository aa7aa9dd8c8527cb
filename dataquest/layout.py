"""
Layout strategies: map abstract nodes plus a bounding rect to absolute
positions, one strategy per structure shape.

All strategies are pure. They return positioned copies and never touch the
nodes they were given.
"""

import logging
from dataclasses import replace
from typing import Callable, Dict, List

from dataquest import config
from dataquest.model import LayoutType, Node, Point, Rect

logger = logging.getLogger(__name__)

HEAD_LABEL = "head"


def head_first(nodes: List[Node]) -> List[Node]:
    """Stable resequencing that moves the node labeled "head" to the front."""
    return sorted(nodes, key=lambda n: 0 if n.label == HEAD_LABEL else 1)


def _row_positions(count: int, rect: Rect, y: float) -> List[Point]:
    step = config.NODE_DIAMETER + config.HORIZONTAL_SPACING
    total_width = count * config.NODE_DIAMETER + (count - 1) * config.HORIZONTAL_SPACING
    start_x = rect.x + (rect.width - total_width) / 2 + config.NODE_RADIUS
    return [Point(start_x + i * step, y) for i in range(count)]


def layout_linked_list(nodes: List[Node], rect: Rect) -> List[Node]:
    if not nodes:
        return []
    area = rect.inset_bottom(config.TRAY_HEIGHT)
    ordered = head_first(nodes)
    points = _row_positions(len(ordered), area, area.center.y)
    return [replace(node, position=p) for node, p in zip(ordered, points)]


def tree_level(index: int) -> int:
    """floor(log2(index + 1)), computed on integers."""
    return (index + 1).bit_length() - 1


def layout_binary_tree(nodes: List[Node], rect: Rect) -> List[Node]:
    # Nodes are an implicit complete binary tree: parent of i is (i - 1) // 2.
    if not nodes:
        return []
    area = rect.inset_bottom(config.TRAY_HEIGHT)
    levels = tree_level(len(nodes) - 1) + 1
    level_step = config.NODE_DIAMETER + config.VERTICAL_SPACING * config.TREE_LEVEL_MULTIPLIER
    total_height = (levels - 1) * level_step
    start_y = area.y + (area.height - total_height) / 2
    slot_step = config.NODE_DIAMETER + config.HORIZONTAL_SPACING

    placed = []
    for index, node in enumerate(nodes):
        level = tree_level(index)
        slots = 2 ** level
        slot = index + 1 - slots
        level_width = slots * config.NODE_DIAMETER + (slots - 1) * config.HORIZONTAL_SPACING
        start_x = area.x + (area.width - level_width) / 2 + config.NODE_RADIUS
        position = Point(start_x + slot * slot_step, start_y + level * level_step)
        placed.append(replace(node, position=position))
    return placed


def layout_array(nodes: List[Node], rect: Rect) -> List[Node]:
    if not nodes:
        return []
    area = rect.inset_bottom(config.TRAY_HEIGHT)
    rows: Dict[int, List[int]] = {}
    for index, node in enumerate(nodes):
        rows.setdefault(node.row, []).append(index)
    ordered_rows = sorted(rows)
    start_y = area.y + (area.height - (len(ordered_rows) - 1) * config.ARRAY_ROW_SPACING) / 2

    positions: Dict[int, Point] = {}
    for rank, row in enumerate(ordered_rows):
        members = rows[row]
        y = start_y + rank * config.ARRAY_ROW_SPACING
        for index, point in zip(members, _row_positions(len(members), area, y)):
            positions[index] = point
    return [replace(node, position=positions[i]) for i, node in enumerate(nodes)]


STRATEGIES: Dict[LayoutType, Callable[[List[Node], Rect], List[Node]]] = {
    LayoutType.LINKED_LIST: layout_linked_list,
    LayoutType.BINARY_TREE: layout_binary_tree,
    LayoutType.ARRAY: layout_array,
}


def compute_layout(layout_type: LayoutType, nodes: List[Node], rect: Rect) -> List[Node]:
    """Position *nodes* inside *rect* with the strategy for *layout_type*."""
    if rect.is_empty:
        logger.debug(f"Skipping layout for empty viewport {rect}")
        return [replace(node, position=None) for node in nodes]
    return STRATEGIES[LayoutType(layout_type)](nodes, rect)
