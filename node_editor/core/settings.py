"""User-facing settings - persisted to ~/.config/node_editor/settings.json.

Covers where the local graph state lives, whether every mutation is written
through to it, the render loop period, and the last directory used by the
Save / Load dialogs.
"""

import json
from pathlib import Path

CONFIG_DIR = Path.home() / '.config' / 'node_editor'
CONFIG_PATH = CONFIG_DIR / 'settings.json'

# Fixed, well-known name of the local durable graph state.
STORAGE_KEY = 'node-editor-storage'

DEFAULTS = {
    'storage_path': '',        # empty string = CONFIG_DIR / 'node-editor-storage.json'
    'write_through': True,     # persist the graph after every store mutation
    'frame_interval_ms': 16,   # render loop period (~60 fps)
    'last_directory': '',      # Save / Load dialog start directory
}


class Settings:
    def __init__(self, path=None):
        self.path = Path(path) if path else CONFIG_PATH
        self.storage_path: str = DEFAULTS['storage_path']
        self.write_through: bool = DEFAULTS['write_through']
        self.frame_interval_ms: int = DEFAULTS['frame_interval_ms']
        self.last_directory: str = DEFAULTS['last_directory']
        self._load()

    def resolved_storage_path(self) -> Path:
        if self.storage_path:
            return Path(self.storage_path).expanduser()
        return self.path.parent / f'{STORAGE_KEY}.json'

    def _load(self):
        if not self.path.exists():
            return
        try:
            with open(self.path) as f:
                d = json.load(f)
            self.storage_path = str(d.get('storage_path', self.storage_path))
            self.write_through = bool(d.get('write_through', self.write_through))
            self.frame_interval_ms = max(1, int(d.get('frame_interval_ms', self.frame_interval_ms)))
            self.last_directory = str(d.get('last_directory', self.last_directory))
        except (OSError, ValueError, TypeError, AttributeError) as e:
            print(f"[Settings] Ignoring unreadable {self.path}: {e}")

    def save(self):
        """Persist current settings to the user config file."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w') as f:
                json.dump({
                    'storage_path': self.storage_path,
                    'write_through': self.write_through,
                    'frame_interval_ms': self.frame_interval_ms,
                    'last_directory': self.last_directory,
                }, f, indent=2)
        except OSError as e:
            print(f"[Settings] Could not write {self.path}: {e}")
