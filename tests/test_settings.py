import json

from node_editor.core.settings import Settings, DEFAULTS, STORAGE_KEY


def test_defaults_when_missing(tmp_path):
    s = Settings(tmp_path / "settings.json")
    assert s.write_through is DEFAULTS['write_through']
    assert s.frame_interval_ms == 16
    assert s.resolved_storage_path() == tmp_path / f"{STORAGE_KEY}.json"


def test_save_and_reload(tmp_path):
    path = tmp_path / "cfg" / "settings.json"
    s = Settings(path)
    s.write_through = False
    s.storage_path = str(tmp_path / "elsewhere.json")
    s.last_directory = "/tmp"
    s.save()

    again = Settings(path)
    assert again.write_through is False
    assert again.resolved_storage_path() == tmp_path / "elsewhere.json"
    assert again.last_directory == "/tmp"
    assert json.loads(path.read_text())['frame_interval_ms'] == 16


def test_bad_file_keeps_defaults(tmp_path, capsys):
    path = tmp_path / "settings.json"
    path.write_text("[1, 2")
    s = Settings(path)
    assert s.write_through is True
    assert "[Settings]" in capsys.readouterr().out
