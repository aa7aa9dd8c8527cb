"""
Level content: JSON schemas and the conversion into the engine model.

Connection endpoints arrive as indices into the step's node array. They are
resolved to node ids once, here, before nodes are resequenced ("head" first),
so later code never addresses nodes by load-time position.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from dataquest.layout import head_first
from dataquest.model import (Connection, ConnectionStyle, LayoutType, Level, Node,
                             Question, Step)

logger = logging.getLogger(__name__)


class ContentError(Exception):
    """Raised when a level file cannot be read or does not match the schema."""


class _Schema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class NodeData(_Schema):
    value: str = ""
    is_highlighted: bool = Field(False, alias="isHighlighted")
    label: Optional[str] = None
    row: int = 0
    prefilled: Optional[bool] = None


class ConnectionData(_Schema):
    from_index: Optional[int] = Field(None, alias="from")
    to_index: Optional[int] = Field(None, alias="to")
    from_label: Optional[str] = Field(None, alias="fromLabel")
    to_label: Optional[str] = Field(None, alias="toLabel")
    label: Optional[str] = None
    is_highlighted: bool = Field(False, alias="isHighlighted")
    style: ConnectionStyle = ConnectionStyle.STRAIGHT


class StepData(_Schema):
    line_number: int = Field(alias="lineNumber")
    comment: Optional[str] = None
    hint: Optional[str] = None
    user_input_required: bool = Field(False, alias="userInputRequired")
    available_elements: Optional[List[str]] = Field(None, alias="availableElements")
    nodes: List[NodeData] = Field(default_factory=list)
    connections: List[ConnectionData] = Field(default_factory=list)
    is_multiple_choice: bool = Field(False, alias="isMultipleChoice")
    multiple_choice_answers: List[str] = Field(default_factory=list, alias="multipleChoiceAnswers")
    multiple_choice_correct_answer: str = Field("", alias="multipleChoiceCorrectAnswer")


class VisualizationData(_Schema):
    code: List[str] = Field(default_factory=list)
    data_structure_type: LayoutType = Field(LayoutType.LINKED_LIST, alias="dataStructureType")
    steps: List[StepData] = Field(default_factory=list)


class QuestionData(_Schema):
    type: str = "visualization"
    title: str
    description: str = ""
    difficulty: int = 1
    hint: str = ""
    review: str = ""
    visualization: Optional[VisualizationData] = None


class LevelData(_Schema):
    number: int
    topic: str
    description: str = ""
    required_stars: int = Field(0, alias="requiredStars")
    questions: List[QuestionData] = Field(default_factory=list)


class LevelFile(_Schema):
    levels: List[LevelData] = Field(default_factory=list)


def _endpoint(index: Optional[int], node_ids: List[str]) -> Optional[str]:
    if index is None:
        return None
    if not 0 <= index < len(node_ids):
        raise IndexError(index)
    return node_ids[index]


def build_step(data: StepData, prefix: str) -> Step:
    node_ids = [f"{prefix}n{i}" for i in range(len(data.nodes))]
    nodes = [
        Node(id=node_id, value=nd.value, highlighted=nd.is_highlighted, label=nd.label,
             row=nd.row, prefilled=nd.prefilled)
        for node_id, nd in zip(node_ids, data.nodes)
    ]

    connections = []
    for i, cd in enumerate(data.connections):
        try:
            from_id = _endpoint(cd.from_index, node_ids)
            to_id = _endpoint(cd.to_index, node_ids)
        except IndexError as e:
            logger.warning(f"Step {prefix}: connection {i} points at missing node {e}, skipped")
            continue
        connections.append(Connection(
            id=f"{prefix}c{i}",
            from_id=from_id,
            to_id=to_id,
            from_label=cd.from_label,
            to_label=cd.to_label,
            label=cd.label,
            highlighted=cd.is_highlighted,
            style=cd.style,
        ))

    return Step(
        line_number=data.line_number,
        nodes=head_first(nodes),
        connections=connections,
        comment=data.comment,
        hint=data.hint,
        user_input_required=data.user_input_required,
        available_elements=list(data.available_elements or []),
        is_multiple_choice=data.is_multiple_choice,
        multiple_choice_answers=list(data.multiple_choice_answers),
        multiple_choice_correct_answer=data.multiple_choice_correct_answer,
    )


def build_question(data: QuestionData, key: str = "q") -> Optional[Question]:
    """Engine model for a question, or None when it has nothing to visualize."""
    viz = data.visualization
    if viz is None or not viz.steps:
        logger.info(f"Question '{data.title}' has no visualization steps, skipped")
        return None
    steps = [build_step(sd, f"{key}s{i}") for i, sd in enumerate(viz.steps)]
    return Question(
        title=data.title,
        steps=steps,
        layout_type=viz.data_structure_type,
        description=data.description,
        hint=data.hint,
        review=data.review,
        code=list(viz.code),
        type=data.type,
        difficulty=data.difficulty,
    )


def parse_levels(raw: Union[Dict[str, Any], List[Any]]) -> List[Level]:
    if isinstance(raw, list):
        raw = {"levels": raw}
    try:
        level_file = LevelFile.model_validate(raw)
    except ValidationError as e:
        raise ContentError(f"Invalid level content: {e}") from e

    levels = []
    for ld in sorted(level_file.levels, key=lambda l: l.number):
        questions = []
        for qi, qd in enumerate(ld.questions):
            question = build_question(qd, key=f"{ld.number}-{qi}:")
            if question is not None:
                questions.append(question)
        levels.append(Level(number=ld.number, topic=ld.topic, description=ld.description,
                            required_stars=ld.required_stars, questions=questions))
    logger.info(f"Loaded {len(levels)} levels, {sum(len(l.questions) for l in levels)} questions")
    return levels


def load_levels(path: Union[str, Path]) -> List[Level]:
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ContentError(f"Cannot read level file {path}: {e}") from e
    return parse_levels(raw)
