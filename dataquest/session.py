"""
Session context: one explicitly constructed object holding the content and
the progress store, handed to whatever drives the game. No module-level
managers.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from dataquest.dragdrop import DragDropController, DropResult, Tray, tray_rect
from dataquest.model import Level, Point, Question, Rect
from dataquest.progression import AutoPlayer, StepController
from dataquest.render import Scene, build_draw_commands
from dataquest.store import ProgressStore, QuestionProgress

logger = logging.getLogger(__name__)

MAX_STARS = 3


def star_rating(answers_revealed: int) -> int:
    return max(1, MAX_STARS - answers_revealed)


@dataclass(frozen=True)
class QuestionResult:
    question_key: str
    stars: int
    time_spent: float
    unlocked_levels: List[int]


class PlaySession:
    """Everything live while one question is on screen."""

    def __init__(self, game: "GameSession", level: Level, index: int, question: Question):
        self.game = game
        self.level = level
        self.question = question
        self.question_key = level.question_key(index)
        self.result: Optional[QuestionResult] = None
        self.started_at = game.clock()

        self.controller = StepController(question, on_question_complete=self._finish,
                                         on_step_changed=self._step_changed)
        self.tray = Tray(self.controller.current_step.available_elements)
        self.drag = DragDropController(self.tray, on_drop=self._drop)
        self.autoplay = AutoPlayer(self.controller)
        self.scene = Scene(question.layout_type)
        self.viewport = Rect(0, 0, 0, 0)

    @property
    def finished(self) -> bool:
        return self.controller.finished

    def _step_changed(self, index: int):
        self.drag.cancel()
        self.tray.reset(self.controller.current_step.available_elements)

    def _drop(self, value: str, index: int) -> bool:
        # Drop indices refer to laid-out order, which may differ from the live step.
        if not 0 <= index < len(self.scene.nodes):
            return False
        live_index = self.controller.index_of(self.scene.nodes[index].id)
        if live_index is None:
            return False
        return self.controller.set_value(live_index, value)

    def _finish(self):
        self.autoplay.stop()
        elapsed = self.game.clock() - self.started_at
        stars = star_rating(self.controller.answers_revealed)
        self.result = self.game.record_result(self.question_key, stars, elapsed)

    # ------------------------------------------------------------------
    # Frame hooks
    # ------------------------------------------------------------------

    def layout(self, viewport: Rect):
        self.viewport = viewport
        self.scene.update(self.controller.current_step, self.controller.revision,
                          viewport)

    @property
    def tray_area(self) -> Rect:
        return tray_rect(self.viewport)

    def draw_commands(self):
        self.layout(self.viewport)
        slots = self.tray.slots(self.tray_area) if self.controller.current_step.user_input_required else []
        return build_draw_commands(self.scene, self.drag.drag, slots)

    def update(self, dt: float):
        self.autoplay.update(dt)

    def pointer_down(self, position: Point) -> bool:
        if not self.controller.accepts_input:
            return False
        self.autoplay.stop()
        self.layout(self.viewport)
        return self.drag.pointer_down(position, self.scene.nodes, self.tray_area)

    def pointer_move(self, position: Point) -> Optional[int]:
        return self.drag.pointer_move(position, self.scene.nodes, self.tray_area)

    def pointer_up(self, position: Point) -> DropResult:
        result = self.drag.pointer_up(position, self.scene.nodes, self.tray_area)
        self.layout(self.viewport)
        return result

    def dismiss(self):
        self.autoplay.stop()
        self.drag.cancel()


class GameSession:
    def __init__(self, levels: List[Level], store: ProgressStore,
                 clock: Callable[[], float] = time.monotonic):
        self.levels = sorted(levels, key=lambda l: l.number)
        self.store = store
        self.clock = clock

    def level(self, number: int) -> Optional[Level]:
        for level in self.levels:
            if level.number == number:
                return level
        return None

    def total_stars(self) -> int:
        return self.store.total_stars()

    def is_level_unlocked(self, level: Level) -> bool:
        if self.levels and level is self.levels[0]:
            return True
        if self.store.is_level_unlocked(level.number):
            return True
        return self.total_stars() >= level.required_stars

    def unlock_reachable_levels(self) -> List[int]:
        """Persist unlock flags for levels the current star total reaches."""
        newly = []
        stars = self.total_stars()
        for level in self.levels:
            if self.store.is_level_unlocked(level.number):
                continue
            if level is self.levels[0] or stars >= level.required_stars:
                self.store.set_level_unlocked(level.number)
                newly.append(level.number)
        return newly

    def question_progress(self, level: Level, index: int) -> QuestionProgress:
        return self.store.get_question_progress(level.question_key(index))

    def start_question(self, level_number: int, index: int) -> Optional[PlaySession]:
        level = self.level(level_number)
        if level is None or not 0 <= index < len(level.questions):
            logger.warning(f"No question {index} in level {level_number}")
            return None
        if not self.is_level_unlocked(level):
            logger.warning(f"Level {level_number} is locked")
            return None
        logger.info(f"Starting level {level_number} question {index}: {level.questions[index].title}")
        return PlaySession(self, level, index, level.questions[index])

    def record_result(self, question_key: str, stars: int, time_spent: float) -> QuestionResult:
        self.store.record_completion(question_key, stars, time_spent)
        unlocked = self.unlock_reachable_levels()
        logger.info(f"{question_key} complete: {stars} stars in {time_spent:.1f}s, unlocked {unlocked}")
        return QuestionResult(question_key, stars, time_spent, unlocked)
