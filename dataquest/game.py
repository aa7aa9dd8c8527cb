# game.py
# DataQuest: Structures - step-by-step data-structure walkthroughs (Pygame)
# Requires pygame: pip install pygame

import logging
import math
import sys
import time

import pygame

from dataquest import config
from dataquest.config import ACCENT, BLACK, DARK, GOLD, GOOD, GRAY, LIGHT, PAPER, WHITE
from dataquest.content import ContentError, load_levels
from dataquest.dragdrop import DropOutcome
from dataquest.model import Point, Rect
from dataquest.render import DrawArc, DrawCircle, DrawLine, DrawPolygon, DrawPolyline, DrawText
from dataquest.session import GameSession
from dataquest.store import ProgressStore
from dataquest.syntax import code_lines

logger = logging.getLogger(__name__)

WIDTH, HEIGHT = config.WIDTH, config.HEIGHT
SCREEN = None
CLOCK = None
FONT = None
BIGFONT = None
TITLE_FONT = None
CODE_FONT = None


def init_display():
    global SCREEN, CLOCK, FONT, BIGFONT, TITLE_FONT, CODE_FONT
    pygame.init()
    pygame.display.set_caption("DataQuest: Structures")
    SCREEN = pygame.display.set_mode((WIDTH, HEIGHT))
    CLOCK = pygame.time.Clock()
    FONT = pygame.font.SysFont("consolas", 18)
    BIGFONT = pygame.font.SysFont("consolas", 28)
    TITLE_FONT = pygame.font.SysFont("consolas", 40, bold=True)
    CODE_FONT = pygame.font.SysFont("consolas", 17)


# Utility UI helpers
def draw_text(surface, txt, pos, font=None, color=BLACK):
    surface.blit((font or FONT).render(txt, True, color), pos)


def center_text(surface, txt, y, font=None, color=BLACK):
    r = (font or BIGFONT).render(txt, True, color)
    surface.blit(r, (surface.get_width()//2 - r.get_width()//2, y))


def button(surface, rect, label, mouse_pos, clicked, bg=ACCENT, enabled=True):
    x, y, w, h = rect
    mx, my = mouse_pos
    hover = enabled and x < mx < x+w and y < my < y+h
    col = bg if enabled else GRAY
    if hover:
        col = tuple(min(255, c+20) for c in col)
    pygame.draw.rect(surface, DARK, (x+5, y+5, w, h))
    pygame.draw.rect(surface, col, rect)
    pygame.draw.rect(surface, DARK, rect, 2)
    r = FONT.render(label, True, BLACK)
    surface.blit(r, (x + w//2 - r.get_width()//2, y + h//2 - r.get_height()//2))
    return hover and clicked


# Simple animated sparkle
def sparkle(surface, pos, t):
    x, y = pos
    r = 3 + int(2*math.sin(t*10))
    pygame.draw.circle(surface, GOLD, (int(x), int(y)), r)


def execute(surface, commands):
    """Run draw commands from the render pass against a pygame surface."""
    for cmd in commands:
        if isinstance(cmd, DrawLine):
            pygame.draw.line(surface, cmd.color, cmd.start.as_tuple(), cmd.end.as_tuple(), cmd.width)
        elif isinstance(cmd, DrawPolyline):
            pygame.draw.lines(surface, cmd.color, False, [p.as_tuple() for p in cmd.points], cmd.width)
        elif isinstance(cmd, DrawPolygon):
            pygame.draw.polygon(surface, cmd.color, [p.as_tuple() for p in cmd.points])
        elif isinstance(cmd, DrawArc):
            c, r = cmd.center, cmd.radius
            box = pygame.Rect(int(c.x - r), int(c.y - r), int(2*r), int(2*r))
            # pygame measures angles counter-clockwise; the model's run clockwise on screen.
            pygame.draw.arc(surface, cmd.color, box, math.radians(-cmd.end_angle),
                            math.radians(-cmd.start_angle), cmd.width)
        elif isinstance(cmd, DrawCircle):
            center = (int(cmd.center.x), int(cmd.center.y))
            radius = int(cmd.radius)
            if cmd.alpha < 255:
                layer = pygame.Surface((radius*2 + 2, radius*2 + 2), pygame.SRCALPHA)
                local = (radius + 1, radius + 1)
                if cmd.fill:
                    pygame.draw.circle(layer, cmd.fill + (cmd.alpha,), local, radius)
                pygame.draw.circle(layer, cmd.border + (cmd.alpha,), local, radius, cmd.border_width)
                surface.blit(layer, (center[0] - radius - 1, center[1] - radius - 1))
            else:
                if cmd.fill:
                    pygame.draw.circle(surface, cmd.fill, center, radius)
                pygame.draw.circle(surface, cmd.border, center, radius, cmd.border_width)
        elif isinstance(cmd, DrawText):
            font = BIGFONT if cmd.size == "large" else FONT
            r = font.render(cmd.text, True, cmd.color)
            if cmd.centered:
                surface.blit(r, (cmd.position.x - r.get_width()/2, cmd.position.y - r.get_height()/2))
            else:
                surface.blit(r, cmd.position.as_tuple())


# Game control and state
class GameState:
    def __init__(self, session):
        self.session = session
        self.current = None
        self.level = None
        self.running = True
        self.mode = "hub"  # hub, level, play
        self.last_msg = ("", 0)  # (text, expiry_time)

    def show_msg(self, text, ttl=2.5):
        self.last_msg = (text, time.time()+ttl)


game = None


# Screen base class
class Screen:
    def __init__(self, name, desc):
        self.name = name
        self.desc = desc
        self.finished = False

    def start(self):
        pass
    def handle_event(self, e):
        pass
    def update(self, dt):
        pass
    def draw(self, surface):
        pass
    def hint(self):
        return "No hint available."
    def explanation(self):
        return "No explanation specified."


# ---------- Visualization walkthrough ----------
CODE_PANE = Rect(20, 130, WIDTH//2 - 40, HEIGHT - 230)
STRUCTURE_PANE = Rect(WIDTH//2, 110, WIDTH//2 - 20, HEIGHT - 210)
PREV_BTN = (WIDTH//2 + 40, HEIGHT - 80, 130, 44)
NEXT_BTN = (WIDTH - 170, HEIGHT - 80, 130, 44)
ANSWER_BTN = (WIDTH//2 + 220, HEIGHT - 80, 160, 44)
PLAY_BTN = (WIDTH//2 + 400, HEIGHT - 80, 90, 44)


class VisualizationScreen(Screen):
    def __init__(self, play):
        super().__init__(play.question.title, play.question.description)
        self.play = play
        self.choice_rects = []

    @property
    def controller(self):
        return self.play.controller

    def start(self):
        self.play.layout(STRUCTURE_PANE)

    def _next(self):
        if not self.controller.advance():
            game.show_msg("Finish this step first.", ttl=1.5)
            return
        if self.play.finished and self.play.result:
            self.finished = True
            result = self.play.result
            msg = f"Question complete! {'*' * result.stars}  ({result.time_spent:.0f}s)"
            if result.unlocked_levels:
                msg += f"  Unlocked level {', '.join(map(str, result.unlocked_levels))}"
            game.show_msg(msg, ttl=4.0)

    def _previous(self):
        self.play.autoplay.stop()
        self.controller.retreat()

    def _show_answer(self):
        if self.controller.show_answer():
            game.show_msg("Answer revealed.", ttl=1.5)

    def _toggle_autoplay(self):
        if not self.play.autoplay.toggle():
            game.show_msg("Auto-play pauses on interactive steps.", ttl=1.5)

    def handle_event(self, e):
        if e.type == pygame.KEYDOWN:
            if e.key in (pygame.K_n, pygame.K_RIGHT):
                self._next()
            elif e.key in (pygame.K_b, pygame.K_LEFT):
                self._previous()
            elif e.key == pygame.K_SPACE:
                self._toggle_autoplay()
            elif e.key == pygame.K_a:
                self._show_answer()
        if e.type == pygame.MOUSEBUTTONDOWN and e.button == 1:
            mx, my = e.pos
            for answer, rect in self.choice_rects:
                if rect.collidepoint(e.pos):
                    self.controller.select_answer(answer)
                    return
            if self._hit(PREV_BTN, e.pos):
                self._previous()
            elif self._hit(NEXT_BTN, e.pos):
                self._next()
            elif self._hit(ANSWER_BTN, e.pos):
                self._show_answer()
            elif self._hit(PLAY_BTN, e.pos):
                self._toggle_autoplay()
            else:
                self.play.pointer_down(Point(mx, my))
        if e.type == pygame.MOUSEMOTION:
            self.play.pointer_move(Point(*e.pos))
        if e.type == pygame.MOUSEBUTTONUP and e.button == 1:
            result = self.play.pointer_up(Point(*e.pos))
            if result.outcome == DropOutcome.PLACED and self.controller.is_complete:
                game.show_msg("Correct! Press Next.", ttl=2.0)

    @staticmethod
    def _hit(rect, pos):
        x, y, w, h = rect
        return x < pos[0] < x+w and y < pos[1] < y+h

    def update(self, dt):
        self.play.update(dt)

    def draw_code(self, s):
        pygame.draw.rect(s, PAPER, CODE_PANE.as_tuple())
        pygame.draw.rect(s, DARK, CODE_PANE.as_tuple(), 2)
        step = self.controller.current_step
        y = CODE_PANE.y + 12
        for line in code_lines(self.play.question.code, step):
            if line.highlighted:
                pygame.draw.rect(s, LIGHT, (CODE_PANE.x + 2, y - 3, CODE_PANE.width - 4, 24))
            draw_text(s, f"{line.number:>2}", (CODE_PANE.x + 8, y), CODE_FONT, GRAY)
            x = CODE_PANE.x + 44 + CODE_FONT.size(" ")[0] * (len(line.content) - len(line.content.lstrip()))
            for token in line.tokens:
                draw_text(s, token.text, (x, y), CODE_FONT, token.color)
                x += CODE_FONT.size(token.text + " ")[0]
            y += 26
            if line.side_comment:
                draw_text(s, f"// {line.side_comment}", (CODE_PANE.x + 44, y), CODE_FONT, ACCENT)
                y += 26

    def draw_choices(self, s):
        self.choice_rects = []
        step = self.controller.current_step
        if not step.is_multiple_choice:
            return
        draw_text(s, "Select the correct answer:", (STRUCTURE_PANE.x + 20, STRUCTURE_PANE.bottom - 90), FONT, DARK)
        x = STRUCTURE_PANE.x + 20
        for answer in step.multiple_choice_answers:
            w = max(80, FONT.size(answer)[0] + 24)
            rect = pygame.Rect(x, STRUCTURE_PANE.bottom - 60, w, 44)
            chosen = answer == self.controller.selected_answer
            pygame.draw.rect(s, ACCENT if chosen else PAPER, rect)
            pygame.draw.rect(s, DARK, rect, 3)
            draw_text(s, answer, (rect.x + 12, rect.y + 12), FONT, WHITE if chosen else BLACK)
            self.choice_rects.append((answer, rect))
            x += w + 16

    def draw(self, s):
        draw_text(s, self.name, (20, 20), TITLE_FONT, DARK)
        draw_text(s, self.desc, (20, 72), FONT, DARK)
        self.draw_code(s)

        self.play.layout(STRUCTURE_PANE)
        execute(s, self.play.draw_commands())
        self.draw_choices(s)

        c = self.controller
        mouse = pygame.mouse.get_pos()
        draw_text(s, f"Step {c.index + 1}/{c.step_count}", (STRUCTURE_PANE.x + 20, STRUCTURE_PANE.y - 30), FONT, GRAY)
        if c.current_step.comment:
            draw_text(s, c.current_step.comment, (STRUCTURE_PANE.x + 140, STRUCTURE_PANE.y - 30), FONT, DARK)
        button(s, PREV_BTN, "Previous", mouse, False, enabled=c.index > 0)
        button(s, NEXT_BTN, "Complete" if c.is_last_step else "Next", mouse, False, enabled=c.is_complete)
        button(s, ANSWER_BTN, "Show answer", mouse, False,
               enabled=c.current_step.is_interactive and not c.is_complete)
        button(s, PLAY_BTN, "Pause" if self.play.autoplay.active else "Play", mouse, False)
        if c.is_complete and c.current_step.is_interactive:
            pygame.draw.circle(s, GOOD, (NEXT_BTN[0] - 16, NEXT_BTN[1] + 22), 8)

    def hint(self):
        return self.controller.current_step.hint or self.play.question.hint or "Watch the highlighted line."

    def explanation(self):
        return self.play.question.review or self.desc


# ---------- Hub / UI screens ----------
def hub_screen(surface, mouse_pos, clicked):
    surface.fill((245, 250, 255))
    center_text(surface, "DataQuest: Structures", 36, TITLE_FONT, DARK)
    center_text(surface, "Build it step by step", 96, BIGFONT, ACCENT)
    draw_text(surface, f"Stars: {game.session.total_stars()}", (40, 40), FONT, DARK)
    for i, level in enumerate(game.session.levels):
        y = 160 + i*90
        unlocked = game.session.is_level_unlocked(level)
        rect = (80, y, WIDTH - 160, 70)
        pygame.draw.rect(surface, (250, 250, 255) if unlocked else (230, 230, 230), rect)
        pygame.draw.rect(surface, DARK, rect, 2)
        draw_text(surface, f"{level.number}. {level.topic}", (100, y+8), BIGFONT, DARK if unlocked else GRAY)
        status = level.description if unlocked else f"Locked - needs {level.required_stars} stars"
        draw_text(surface, status, (100, y+44), FONT, GRAY)
        if unlocked and button(surface, (WIDTH - 200, y+12, 90, 46), "Open", mouse_pos, clicked):
            game.level = level
            game.mode = "level"
    draw_text(surface, "Drag tokens onto empty nodes. Use hints (H) if stuck.", (40, HEIGHT-40), FONT, DARK)


def level_screen(surface, mouse_pos, clicked):
    surface.fill((255, 255, 250))
    level = game.level
    center_text(surface, f"Level {level.number}: {level.topic}", 20, TITLE_FONT, DARK)
    for i, question in enumerate(level.questions):
        y = 110 + i*90
        progress = game.session.question_progress(level, i)
        rect = (80, y, WIDTH - 160, 70)
        pygame.draw.rect(surface, (250, 250, 255), rect)
        pygame.draw.rect(surface, GOOD if progress.completed else DARK, rect, 2)
        draw_text(surface, question.title, (100, y+8), BIGFONT, DARK)
        detail = question.description
        if progress.completed:
            best = f"{progress.best_time:.0f}s" if progress.best_time is not None else "-"
            detail = f"{'*' * progress.stars}  best {best}  attempts {progress.attempts}"
        draw_text(surface, detail, (100, y+44), FONT, GRAY)
        if button(surface, (WIDTH - 200, y+12, 90, 46), "Play", mouse_pos, clicked):
            play = game.session.start_question(level.number, i)
            if play:
                game.current = VisualizationScreen(play)
                game.current.start()
                game.mode = "play"


# In-game HUD controls
def in_game_hud(surface, current):
    pygame.draw.rect(surface, (238, 238, 245), (WIDTH - 300, 20, 280, 44))
    pygame.draw.rect(surface, DARK, (WIDTH - 300, 20, 280, 44), 2)
    draw_text(surface, "Hint (H)  Review (C)  Back (Esc)", (WIDTH - 290, 32), FONT, DARK)


def leave_play():
    if game.current:
        game.current.play.dismiss()
    game.current = None
    game.mode = "level"


# Main loop
def main_loop():
    while game.running:
        dt = CLOCK.tick(config.FPS)/1000.0
        clicked = False
        for e in pygame.event.get():
            if e.type == pygame.QUIT:
                game.running = False
            if e.type == pygame.KEYDOWN:
                if e.key == pygame.K_ESCAPE:
                    if game.mode == "play":
                        leave_play()
                    elif game.mode == "level":
                        game.mode = "hub"
                    else:
                        game.running = False
                if e.key == pygame.K_h and game.current:
                    game.show_msg("HINT: " + game.current.hint(), ttl=3.0)
                if e.key == pygame.K_c and game.current:
                    game.show_msg("REVIEW: " + game.current.explanation(), ttl=4.0)
            if e.type == pygame.MOUSEBUTTONDOWN and e.button == 1:
                clicked = True
            if game.mode == "play" and game.current:
                game.current.handle_event(e)

        SCREEN.fill(WHITE)
        if game.mode == "hub":
            hub_screen(SCREEN, pygame.mouse.get_pos(), clicked)
        elif game.mode == "level":
            level_screen(SCREEN, pygame.mouse.get_pos(), clicked)
        elif game.mode == "play" and game.current:
            game.current.update(dt)
            game.current.draw(SCREEN)
            in_game_hud(SCREEN, game.current)
        # draw floating message
        if game.last_msg[1] > time.time():
            txt = game.last_msg[0]
            r = FONT.render(txt, True, BLACK)
            SCREEN.blit(r, (WIDTH//2 - r.get_width()//2, 100))
            sparkle(SCREEN, (WIDTH//2 + r.get_width()//2 + 20, 104), time.time())
        pygame.display.flip()


# Start screen intro animation
def intro():
    while True:
        CLOCK.tick(config.FPS)
        for e in pygame.event.get():
            if e.type == pygame.QUIT:
                pygame.quit(); sys.exit()
            if e.type == pygame.KEYDOWN or (e.type == pygame.MOUSEBUTTONDOWN):
                return
        SCREEN.fill((18, 28, 40))
        center_text(SCREEN, "DataQuest", 120, TITLE_FONT, (200, 230, 255))
        center_text(SCREEN, "Structures - linked lists, trees, arrays", 190, BIGFONT, (160, 200, 230))
        draw_text(SCREEN, "Click or press any key to begin...", (WIDTH//2-160, HEIGHT-120), FONT, GRAY)
        for i in range(12):
            pygame.draw.circle(SCREEN, (40+i*10, 80+i*8, 160),
                               (int(WIDTH//2 + math.cos(time.time()*0.5+i)*200),
                                int(HEIGHT//2 + math.sin(time.time()*0.4+i)*60)), 8)
        pygame.display.flip()


def main():
    global game
    logging.basicConfig(level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))
    try:
        levels = load_levels(config.LEVELS_FILE)
    except ContentError as ex:
        logger.error(f"Cannot start without level content: {ex}")
        return 1
    store = ProgressStore(config.DB_PATH)
    game = GameState(GameSession(levels, store))
    game.session.unlock_reachable_levels()
    init_display()
    try:
        intro()
        main_loop()
    except Exception as ex:
        logger.exception("Unexpected error in game loop")
        # show error on screen
        SCREEN.fill((220, 20, 20))
        center_text(SCREEN, "An unexpected error occurred.", 200, BIGFONT, WHITE)
        draw_text(SCREEN, str(ex), (40, 260), FONT, WHITE)
        pygame.display.flip()
        pygame.time.wait(4000)
    finally:
        store.close()
        pygame.quit()
    return 0


if __name__ == "__main__":
    sys.exit(main())
