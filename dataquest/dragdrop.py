"""
Drag and drop: an explicit state machine driven by pointer_down,
pointer_move and pointer_up calls carrying plain coordinates.

The controller never owns the nodes. Every cell mutation goes out through
the on_drop(value, index) callback (an empty value clears the cell), so the
step controller stays the single writer of the live snapshot.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from dataquest import config
from dataquest.model import Node, Point, Rect

logger = logging.getLogger(__name__)


def tray_rect(pane: Rect) -> Rect:
    """The strip at the bottom of the structure pane that holds tokens."""
    height = min(config.TRAY_HEIGHT, pane.height)
    return Rect(pane.x, pane.bottom - height, pane.width, height)


class Tray:
    """Tokens offered by the current step plus tokens pulled back out of cells."""

    def __init__(self, available: Optional[List[str]] = None):
        self.available: List[str] = []
        self.returned: List[str] = []
        self.reset(available)

    def reset(self, available: Optional[List[str]] = None):
        self.available = list(available or [])
        self.returned = []

    def tokens(self) -> List[str]:
        return self.available + self.returned

    def take(self, token: str):
        if token in self.returned:
            self.returned.remove(token)

    def give_back(self, token: str):
        # Step-provided tokens are never consumed, so only foreign values pile up.
        if token and token not in self.available:
            self.returned.append(token)

    def slots(self, rect: Rect) -> List[Tuple[str, Rect]]:
        tokens = self.tokens()
        if not tokens:
            return []
        size, gap = config.TOKEN_SIZE, config.TOKEN_GAP
        total = len(tokens) * size + (len(tokens) - 1) * gap
        x = rect.x + (rect.width - total) / 2
        y = rect.y + (rect.height - size) / 2
        return [(token, Rect(x + i * (size + gap), y, size, size)) for i, token in enumerate(tokens)]


class DragPhase(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


@dataclass
class DragState:
    token: str
    position: Point
    origin: Point
    source_index: Optional[int] = None
    hovered_index: Optional[int] = None
    over_tray: bool = False


class DropOutcome(Enum):
    PLACED = "placed"
    RETURNED = "returned"
    REJECTED = "rejected"


@dataclass(frozen=True)
class DropResult:
    outcome: DropOutcome
    value: str = ""
    target_index: Optional[int] = None
    source_index: Optional[int] = None
    displaced: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.outcome != DropOutcome.REJECTED


class DragDropController:
    def __init__(self, tray: Tray, on_drop: Optional[Callable[[str, int], Optional[bool]]] = None,
                 snap_radius: float = config.SNAP_RADIUS, allow_swap: bool = config.ALLOW_SWAP):
        self.tray = tray
        self.on_drop = on_drop
        self.snap_radius = snap_radius
        self.allow_swap = allow_swap
        self.drag: Optional[DragState] = None

    @property
    def phase(self) -> DragPhase:
        return DragPhase.IDLE if self.drag is None else DragPhase.DRAGGING

    @property
    def hovered_index(self) -> Optional[int]:
        return self.drag.hovered_index if self.drag else None

    def begin(self, token: str, position: Point, source_index: Optional[int] = None):
        # A fresh drag always starts without hover state.
        self.drag = DragState(token=token, position=position, origin=position,
                              source_index=source_index)
        logger.debug(f"Drag started with '{token}' from {'cell ' + str(source_index) if source_index is not None else 'tray'}")

    def cancel(self):
        self.drag = None

    def pointer_down(self, position: Point, nodes: List[Node], tray_area: Optional[Rect] = None) -> bool:
        """Start a drag from a tray token or a filled node under *position*."""
        if tray_area is not None:
            for token, slot in self.tray.slots(tray_area):
                if slot.contains(position):
                    self.begin(token, position)
                    return True
        for index, node in enumerate(nodes):
            if node.position is None or node.is_empty:
                continue
            if node.position.distance_to(position) < config.NODE_RADIUS:
                self.begin(node.value, position, source_index=index)
                return True
        return False

    def nearest_target(self, position: Point, nodes: List[Node]) -> Optional[int]:
        """Index of the closest eligible node strictly inside the snap radius."""
        best, best_distance = None, None
        source = self.drag.source_index if self.drag else None
        for index, node in enumerate(nodes):
            if node.position is None or index == source:
                continue
            if not node.is_empty and not self.allow_swap:
                continue
            distance = node.position.distance_to(position)
            if best_distance is None or distance < best_distance:
                best, best_distance = index, distance
        if best is not None and best_distance < self.snap_radius:
            return best
        return None

    def pointer_move(self, position: Point, nodes: List[Node], tray_area: Optional[Rect] = None) -> Optional[int]:
        if self.drag is None:
            return None
        self.drag.position = position
        over_tray = (tray_area is not None and self.drag.source_index is not None
                     and tray_area.inflate(config.NODE_RADIUS).contains(position))
        self.drag.over_tray = over_tray
        self.drag.hovered_index = None if over_tray else self.nearest_target(position, nodes)
        return self.drag.hovered_index

    def _emit(self, value: str, index: int) -> bool:
        if self.on_drop is None:
            return True
        return self.on_drop(value, index) is not False

    def pointer_up(self, position: Point, nodes: List[Node], tray_area: Optional[Rect] = None) -> DropResult:
        if self.drag is None:
            return DropResult(DropOutcome.REJECTED)
        self.pointer_move(position, nodes, tray_area)
        drag, self.drag = self.drag, None

        if drag.over_tray:
            if not self._emit("", drag.source_index):
                return DropResult(DropOutcome.REJECTED, drag.token, source_index=drag.source_index)
            self.tray.give_back(drag.token)
            logger.debug(f"Returned '{drag.token}' from cell {drag.source_index} to tray")
            return DropResult(DropOutcome.RETURNED, drag.token, source_index=drag.source_index)

        target = drag.hovered_index
        if target is None:
            return DropResult(DropOutcome.REJECTED, drag.token, source_index=drag.source_index)

        displaced = nodes[target].value or None
        if drag.source_index is not None and not self._emit("", drag.source_index):
            return DropResult(DropOutcome.REJECTED, drag.token, source_index=drag.source_index)
        if not self._emit(drag.token, target):
            return DropResult(DropOutcome.REJECTED, drag.token, source_index=drag.source_index)

        if drag.source_index is None:
            self.tray.take(drag.token)
        if displaced:
            self.tray.give_back(displaced)
        logger.debug(f"Dropped '{drag.token}' into cell {target}")
        return DropResult(DropOutcome.PLACED, drag.token, target_index=target,
                          source_index=drag.source_index, displaced=displaced)
