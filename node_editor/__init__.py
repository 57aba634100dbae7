"""Node Editor - an infinite-canvas node graph editor built with PySide6."""

__version__ = "0.1.0"
