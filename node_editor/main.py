#!/usr/bin/env python3
"""Node Editor - Desktop Application.

An infinite pannable / zoomable canvas for placing nodes, wiring them
together and editing their inputs.  Built with PySide6.

Usage:
    python -m node_editor.main [--storage FILE] [--settings FILE] [--reset]
    node-editor [--storage FILE] [--settings FILE] [--reset]
"""
import argparse
import sys

from PySide6.QtWidgets import QApplication

from .core.settings import Settings
from .core.storage import LocalStorage
from .graph_editor.graph_store import GraphStore


def build_store(settings: Settings, reset: bool = False) -> GraphStore:
    """Seed a GraphStore from local storage and wire up write-through."""
    storage = LocalStorage(settings.resolved_storage_path())
    initial = None if reset else storage.read()
    return GraphStore(initial, storage if settings.write_through else None)


def main():
    parser = argparse.ArgumentParser(description='Node Editor')
    parser.add_argument('--storage', type=str, default=None,
                        help='Path of the local graph state file (overrides settings)')
    parser.add_argument('--settings', type=str, default=None,
                        help='Path of settings.json (default ~/.config/node_editor/settings.json)')
    parser.add_argument('--reset', action='store_true',
                        help='Start with an empty graph instead of the stored one')
    args = parser.parse_args()

    settings = Settings(args.settings)
    if args.storage:
        settings.storage_path = args.storage

    store = build_store(settings, reset=args.reset)

    app = QApplication(sys.argv)
    app.setStyle('Fusion')

    # Import here so the model layer stays importable without a QApplication
    from .graph_editor.graph_editor_window import GraphEditorWindow
    window = GraphEditorWindow(store, settings)
    window.show()

    sys.exit(app.exec())


if __name__ == '__main__':
    main()
