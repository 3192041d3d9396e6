import json

from anet.settings import AppSettings


def test_round_trip(tmp_path):
    path = tmp_path / "anet_settings.json"
    AppSettings(last_config_path="/tmp/client.toml").save(path)
    assert AppSettings.load(path) == AppSettings(last_config_path="/tmp/client.toml")


def test_saved_file_is_json_with_key(tmp_path):
    path = tmp_path / "settings.json"
    AppSettings().save(path)
    assert json.loads(path.read_text(encoding="utf-8")) == {"last_config_path": None}


def test_missing_file_gives_defaults(tmp_path):
    assert AppSettings.load(tmp_path / "absent.json").last_config_path is None


def test_invalid_json_gives_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    assert AppSettings.load(path) == AppSettings()


def test_wrong_type_gives_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"last_config_path": 5}), encoding="utf-8")
    assert AppSettings.load(path) == AppSettings()


def test_unknown_fields_ignored(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"last_config_path": "a.toml", "other": 1}), encoding="utf-8")
    assert AppSettings.load(path).last_config_path == "a.toml"


def test_save_to_unwritable_location_is_silent(tmp_path):
    target = tmp_path / "missing_dir" / "settings.json"
    AppSettings(last_config_path="x.toml").save(target)
    assert not target.exists()