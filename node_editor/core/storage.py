"""Local durable graph state.

One JSON document under a fixed, well-known name (settings.STORAGE_KEY),
rewritten after every Graph Store mutation and read once at startup.
Writes go to a sibling temp file first and are then renamed over the
original, so a crash mid-write leaves the previous snapshot readable.
"""

import os
from pathlib import Path
from typing import Optional

from ..graph_editor.graph_model import GraphState, MalformedStateError
from ..ops.project_io import export_state, parse_state


class LocalStorage:
    def __init__(self, path):
        self.path = Path(path)

    def write(self, state: GraphState):
        """Persist *state*.  Raises OSError on failure."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + '.tmp')
        with open(tmp, 'w', encoding='utf-8') as f:
            f.write(export_state(state))
        os.replace(tmp, self.path)

    def read(self) -> Optional[GraphState]:
        """Return the stored graph, or None if nothing usable is stored.

        A malformed document is reported and ignored rather than raised:
        startup falls back to an empty graph.
        """
        if not self.path.exists():
            return None
        try:
            with open(self.path, 'rb') as f:
                return parse_state(f.read())
        except OSError as e:
            print(f"[LocalStorage] Could not read {self.path}: {e}")
        except MalformedStateError as e:
            print(f"[LocalStorage] Discarding malformed state in {self.path}: {e}")
        return None

    def clear(self):
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
