"""
Step progression: walks the ordered step snapshots of one question.

The controller keeps a working copy of the current step and never writes
back into the canonical question. Advancing is gated on completion; going
back never is.
"""

import copy
import logging
from typing import Callable, Dict, List, Optional, Set

from dataquest import config
from dataquest.model import Question, Step

logger = logging.getLogger(__name__)


def matches_target(live_values: List[str], target_values: List[str]) -> bool:
    """
    True when every non-empty target value is present at the same position.
    Empty target cells impose no constraint, and neither do target cells
    beyond the end of the live snapshot.
    """
    for live, expected in zip(live_values, target_values):
        if expected and live != expected:
            return False
    return True


def blank_step(step: Step, target: Step) -> Step:
    """Copy of *step* with every cell emptied except the pre-filled ones."""
    blanked = copy.deepcopy(step)
    target_values = target.values
    for index, node in enumerate(blanked.nodes):
        prefilled = node.prefilled
        if prefilled is None:
            prefilled = (node.value != "" and index < len(target_values)
                         and target_values[index] == node.value)
        if not prefilled:
            node.value = ""
    return blanked


def autoplay_interval(comment: Optional[str]) -> float:
    """Seconds to linger on a step, scaled by how much there is to read."""
    if comment is None:
        return config.AUTOPLAY_DEFAULT
    seconds = config.AUTOPLAY_BASE + len(comment) * config.AUTOPLAY_PER_CHAR
    return min(max(seconds, config.AUTOPLAY_MIN), config.AUTOPLAY_MAX)


class StepController:
    def __init__(self, question: Question,
                 on_question_complete: Optional[Callable[[], None]] = None,
                 on_step_changed: Optional[Callable[[int], None]] = None,
                 completed_steps: Optional[Set[int]] = None):
        if not question.steps:
            raise ValueError(f"Question '{question.title}' has no steps")
        self.question = question
        self.on_question_complete = on_question_complete
        self.on_step_changed = on_step_changed
        self.completed: Set[int] = set(completed_steps or ())
        # Cell values and answers the player settled on, restored on revisit.
        self.solved: Dict[int, List[str]] = {}
        self.chosen: Dict[int, str] = {}
        self.index = 0
        self.selected_answer = ""
        self.answers_revealed = 0
        self.finished = False
        self.revision = 0
        self.current_step = self._fresh(0)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def steps(self) -> List[Step]:
        return self.question.steps

    @property
    def step_count(self) -> int:
        return len(self.steps)

    @property
    def is_last_step(self) -> bool:
        return self.index == self.step_count - 1

    @property
    def canonical_step(self) -> Step:
        return self.steps[self.index]

    @property
    def target_step(self) -> Step:
        # The last step has nothing after it, so it is its own target.
        if self.is_last_step:
            return self.steps[self.index]
        return self.steps[self.index + 1]

    @property
    def is_complete(self) -> bool:
        if self.index in self.completed:
            return True
        step = self.current_step
        if step.is_multiple_choice:
            return self.selected_answer == step.multiple_choice_correct_answer
        if step.user_input_required:
            return matches_target(step.values, self.target_step.values)
        return True

    @property
    def accepts_input(self) -> bool:
        return self.current_step.user_input_required and not self.is_complete

    def _fresh(self, index: int) -> Step:
        step = self.steps[index]
        target = self.steps[min(index + 1, self.step_count - 1)]
        if step.user_input_required and not step.is_multiple_choice:
            fresh = blank_step(step, target)
            if index in self.solved:
                for node, value in zip(fresh.nodes, self.solved[index]):
                    node.value = value
            elif index in self.completed:
                for node, expected in zip(fresh.nodes, target.values):
                    if expected:
                        node.value = expected
            return fresh
        return copy.deepcopy(step)

    def _touch(self):
        self.revision += 1

    def _settle(self):
        self.completed.add(self.index)
        self.solved[self.index] = list(self.current_step.values)
        if self.selected_answer:
            self.chosen[self.index] = self.selected_answer

    def _enter(self, index: int, step: Step):
        self.index = index
        self.current_step = step
        self.selected_answer = self.chosen.get(index, "")
        self._touch()
        logger.info(f"'{self.question.title}': step {index + 1}/{self.step_count}")
        if self.on_step_changed:
            self.on_step_changed(index)

    # ------------------------------------------------------------------
    # Interaction
    # ------------------------------------------------------------------

    def index_of(self, node_id: str) -> Optional[int]:
        for index, node in enumerate(self.current_step.nodes):
            if node.id == node_id:
                return index
        return None

    def set_value(self, index: int, value: str) -> bool:
        if not self.accepts_input:
            return False
        if not 0 <= index < len(self.current_step.nodes):
            logger.debug(f"Ignoring value for out-of-range cell {index}")
            return False
        self.current_step.nodes[index].value = value
        self._touch()
        if self.is_complete:
            self._settle()
            logger.info(f"Step {self.index + 1} solved")
        return True

    def select_answer(self, answer: str) -> bool:
        step = self.current_step
        if not step.is_multiple_choice or self.is_complete:
            return False
        self.selected_answer = answer
        self._touch()
        if self.is_complete:
            self._settle()
        return True

    def show_answer(self) -> bool:
        """Reveal the solution; the step counts as complete without being solved."""
        step = self.current_step
        if self.is_complete:
            return False
        if step.is_multiple_choice:
            self.selected_answer = step.multiple_choice_correct_answer
        elif step.user_input_required:
            for node, expected in zip(step.nodes, self.target_step.values):
                if expected:
                    node.value = expected
        else:
            return False
        self.answers_revealed += 1
        self._settle()
        self._touch()
        logger.info(f"Answer revealed for step {self.index + 1}")
        return True

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def advance(self) -> bool:
        if not self.is_complete:
            return False
        self.completed.add(self.index)
        if self.is_last_step:
            if not self.finished:
                self.finished = True
                logger.info(f"Question '{self.question.title}' complete")
                if self.on_question_complete:
                    self.on_question_complete()
            return True
        self._enter(self.index + 1, self._fresh(self.index + 1))
        return True

    def retreat(self) -> bool:
        if self.index == 0:
            return False
        previous = self.index - 1
        self._enter(previous, copy.deepcopy(self.steps[previous]))
        return True


class AutoPlayer:
    """Frame-driven timer that walks through non-interactive steps."""

    def __init__(self, controller: StepController):
        self.controller = controller
        self.active = False
        self.elapsed = 0.0

    @property
    def interval(self) -> float:
        return autoplay_interval(self.controller.current_step.comment)

    def _can_continue(self) -> bool:
        step = self.controller.current_step
        return not self.controller.is_last_step and not step.is_interactive

    def start(self) -> bool:
        if not self._can_continue():
            self.stop()
            return False
        self.active = True
        self.elapsed = 0.0
        return True

    def stop(self):
        self.active = False
        self.elapsed = 0.0

    def toggle(self) -> bool:
        if self.active:
            self.stop()
            return False
        return self.start()

    def update(self, dt: float):
        if not self.active:
            return
        if not self._can_continue():
            self.stop()
            return
        self.elapsed += dt
        if self.elapsed >= self.interval:
            self.elapsed = 0.0
            self.controller.advance()
            if not self._can_continue():
                self.stop()
