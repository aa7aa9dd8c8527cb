"""
config.py -- Tunable parameters for DataQuest: Structures.

Every value can be overridden from the environment (DATAQUEST_*), so the game
can be resized or pointed at another content file without touching code.
"""

import os
from pathlib import Path


def _env(name, default, cast=str):
    """
    Read an environment variable and cast it to the right type.
    If the var is missing, empty or unparsable, return *default*.
    """
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        if cast is bool:
            return raw.strip().lower() in ("true", "1", "yes")
        return cast(raw)
    except (ValueError, TypeError):
        return default


PACKAGE_DIR = Path(__file__).resolve().parent

# ---------------------------------------------------------------------------
# Window / loop
# ---------------------------------------------------------------------------

WIDTH: int = _env("DATAQUEST_WIDTH", 1200, int)
HEIGHT: int = _env("DATAQUEST_HEIGHT", 760, int)
FPS: int = _env("DATAQUEST_FPS", 60, int)

# ---------------------------------------------------------------------------
# Content and persistence
# ---------------------------------------------------------------------------

LEVELS_FILE: str = _env("DATAQUEST_LEVELS_FILE", str(PACKAGE_DIR / "data" / "levels.json"))
DB_PATH: str = _env("DATAQUEST_DB_PATH", str(Path.home() / ".dataquest" / "progress.db"))
LOG_LEVEL: str = _env("DATAQUEST_LOG_LEVEL", "INFO")

# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------

NODE_RADIUS: float = 24.0
NODE_DIAMETER: float = NODE_RADIUS * 2
HORIZONTAL_SPACING: float = 30.0
VERTICAL_SPACING: float = 30.0
# Strip reserved at the bottom of the structure pane for draggable tokens.
TRAY_HEIGHT: float = 100.0
TREE_LEVEL_MULTIPLIER: float = 1.7
ARRAY_ROW_SPACING: float = VERTICAL_SPACING * 2 + 50

# ---------------------------------------------------------------------------
# Connections
# ---------------------------------------------------------------------------

SAME_ROW_OFFSET: float = 1.2
CROSS_ROW_OFFSET: float = 1.8
TREE_OFFSET: float = 1.0
SELF_LOOP_RADIUS: float = 20.0
LABEL_OFFSET: float = 15.0
ARROW_LENGTH: float = 10.0
CURVE_SEGMENTS: int = 16

# ---------------------------------------------------------------------------
# Drag and drop
# ---------------------------------------------------------------------------

SNAP_RADIUS: float = NODE_DIAMETER
ALLOW_SWAP: bool = _env("DATAQUEST_ALLOW_SWAP", True, bool)
TOKEN_SIZE: float = NODE_DIAMETER
TOKEN_GAP: float = NODE_DIAMETER * 0.2
DRAG_GHOST_SCALE: float = 1.1
DRAG_GHOST_ALPHA: int = 80

# ---------------------------------------------------------------------------
# Auto-play (seconds)
# ---------------------------------------------------------------------------

AUTOPLAY_DEFAULT: float = 3.0
AUTOPLAY_BASE: float = 2.0
AUTOPLAY_PER_CHAR: float = 0.05
AUTOPLAY_MIN: float = 2.0
AUTOPLAY_MAX: float = 7.0

# ---------------------------------------------------------------------------
# Colors
# ---------------------------------------------------------------------------

WHITE = (245, 245, 245)
BLACK = (20, 20, 20)
GRAY = (180, 180, 180)
LIGHT = (220, 240, 255)
ACCENT = (80, 160, 220)
GOOD = (80, 200, 120)
BAD = (220, 90, 90)
GOLD = (235, 190, 80)
DARK = (25, 40, 60)
PAPER = (246, 243, 232)

EDGE_COLOR = ACCENT
EDGE_HIGHLIGHT = GOLD
HOVER_BORDER = GOOD
