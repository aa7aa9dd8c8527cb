"""
Structure model: the plain data every other module passes around.

A Step is a snapshot of one moment of a walkthrough. Nodes and connections
carry no geometry of their own; positions are filled in by a layout pass and
thrown away on the next one.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def distance_to(self, other: "Point") -> float:
        return ((self.x - other.x) ** 2 + (self.y - other.y) ** 2) ** 0.5

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def contains(self, point: Point) -> bool:
        return self.x <= point.x < self.right and self.y <= point.y < self.bottom

    def inset_bottom(self, amount: float) -> "Rect":
        return Rect(self.x, self.y, self.width, max(0.0, self.height - amount))

    def inflate(self, amount: float) -> "Rect":
        return Rect(self.x - amount, self.y - amount,
                    self.width + 2 * amount, self.height + 2 * amount)

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)


class LayoutType(str, Enum):
    LINKED_LIST = "linkedList"
    BINARY_TREE = "binaryTree"
    ARRAY = "array"


class ConnectionStyle(str, Enum):
    STRAIGHT = "straight"
    CURVED = "curved"
    SELF_POINTING = "selfPointing"


class NodeRole(Enum):
    PLACEHOLDER = "placeholder"
    VALUE = "value"
    LABELED = "labeled"


@dataclass
class Node:
    id: str
    value: str = ""
    highlighted: bool = False
    label: Optional[str] = None
    row: int = 0
    # None means "decide from the target step" (see progression.blank_step).
    prefilled: Optional[bool] = None
    position: Optional[Point] = None

    @property
    def is_empty(self) -> bool:
        return self.value == ""

    @property
    def role(self) -> NodeRole:
        if self.label:
            return NodeRole.LABELED
        if self.is_empty:
            return NodeRole.PLACEHOLDER
        return NodeRole.VALUE


@dataclass
class Connection:
    id: str
    from_id: Optional[str] = None
    to_id: Optional[str] = None
    from_label: Optional[str] = None
    to_label: Optional[str] = None
    label: Optional[str] = None
    highlighted: bool = False
    style: ConnectionStyle = ConnectionStyle.STRAIGHT


@dataclass
class Step:
    line_number: int
    nodes: List[Node] = field(default_factory=list)
    connections: List[Connection] = field(default_factory=list)
    comment: Optional[str] = None
    hint: Optional[str] = None
    user_input_required: bool = False
    available_elements: List[str] = field(default_factory=list)
    is_multiple_choice: bool = False
    multiple_choice_answers: List[str] = field(default_factory=list)
    multiple_choice_correct_answer: str = ""

    @property
    def values(self) -> List[str]:
        return [node.value for node in self.nodes]

    @property
    def is_interactive(self) -> bool:
        return self.user_input_required or self.is_multiple_choice


@dataclass
class Question:
    title: str
    steps: List[Step]
    layout_type: LayoutType = LayoutType.LINKED_LIST
    description: str = ""
    hint: str = ""
    review: str = ""
    code: List[str] = field(default_factory=list)
    type: str = "visualization"
    difficulty: int = 1


@dataclass
class Level:
    number: int
    topic: str
    description: str = ""
    required_stars: int = 0
    questions: List[Question] = field(default_factory=list)

    def question_key(self, index: int) -> str:
        return f"{self.number}-{index}"
