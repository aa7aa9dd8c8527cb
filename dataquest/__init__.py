"""DataQuest: Structures - drag-and-drop data-structure walkthroughs."""

__version__ = "0.1.0"
