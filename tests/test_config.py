import json
from pathlib import Path

import pytest

from gatorfeed.config import Config, config_file_path, read


def test_config_file_path_is_in_home(monkeypatch, tmp_path):
    monkeypatch.setattr(Path, "home", lambda: tmp_path)
    assert config_file_path() == tmp_path / ".gatorconfig.json"


def test_read_existing_file(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"db_url": "sqlite:///gator.db", "current_user_name": "kahya"}))
    cfg = read(path)
    assert cfg.db_url == "sqlite:///gator.db"
    assert cfg.current_user_name == "kahya"
    assert cfg.path == path


def test_read_missing_fields_default_to_empty(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"db_url": "sqlite:///gator.db"}))
    cfg = read(path)
    assert cfg.current_user_name == ""


def test_read_ignores_unknown_fields(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"db_url": "x.db", "extra": 5}))
    assert read(path) == Config(db_url="x.db", current_user_name="")


def test_read_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        read(tmp_path / "absent.json")


def test_read_invalid_json_raises(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text("{not json")
    with pytest.raises(ValueError):
        read(path)


def test_read_non_object_raises(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text("[1, 2]")
    with pytest.raises(ValueError):
        read(path)


def test_read_non_string_field_raises(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"db_url": 3}))
    with pytest.raises(ValueError):
        read(path)


def test_set_user_writes_compact_json(tmp_path):
    path = tmp_path / "cfg.json"
    cfg = Config(db_url="sqlite:///gator.db", path=path)
    cfg.set_user("lane")
    assert cfg.current_user_name == "lane"
    assert path.read_text() == '{"db_url":"sqlite:///gator.db","current_user_name":"lane"}'


def test_set_user_round_trip(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"db_url": "gator.db", "current_user_name": "old"}))
    cfg = read(path)
    cfg.set_user("new")
    again = read(path)
    assert again.current_user_name == "new"
    assert again.db_url == "gator.db"


def test_set_user_default_location(monkeypatch, tmp_path):
    monkeypatch.setattr(Path, "home", lambda: tmp_path)
    Config(db_url="gator.db").set_user("robin")
    assert read().current_user_name == "robin"