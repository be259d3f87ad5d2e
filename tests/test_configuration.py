import json
import os
import re
import sys

import pytest

from photoflow.configuration import (
    Configuration,
    config_read,
    default_config_file,
    default_log_file,
    make_dir_for_file,
)


def test_write_and_read_round_trip(tmp_path):
    name = str(tmp_path / "sub" / "dir" / "config.json")
    conf = Configuration(server_url="http://localhost:2283", api_key="placeholder")
    conf.write(name)
    assert config_read(name) == conf


def test_written_json_omits_empty_urls(tmp_path):
    name = str(tmp_path / "config.json")
    Configuration(server_url="http://localhost:2283", api_key="placeholder").write(name)
    with open(name, encoding="utf-8") as f:
        text = f.read()
    data = json.loads(text)
    assert data == {"ServerURL": "http://localhost:2283", "APIKey": "placeholder"}
    assert text.endswith("\n")
    assert '\n  "APIKey"' in text


def test_write_truncates_existing_file(tmp_path):
    name = str(tmp_path / "config.json")
    Configuration(api_url="http://localhost/api", server_url="http://localhost", api_key="token").write(name)
    Configuration(api_key="secret").write(name)
    assert config_read(name) == Configuration(api_key="secret")


def test_read_is_case_insensitive(tmp_path):
    name = tmp_path / "config.json"
    name.write_text('{"serverurl": "http://localhost", "apikey": "token", "other": 1}', encoding="utf-8")
    conf = config_read(str(name))
    assert conf.server_url == "http://localhost"
    assert conf.api_key == "token"
    assert conf.api_url == ""


def test_read_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        config_read(str(tmp_path / "missing.json"))


def test_read_invalid_json(tmp_path):
    name = tmp_path / "config.json"
    name.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        config_read(str(name))


def test_read_wrong_type(tmp_path):
    name = tmp_path / "config.json"
    name.write_text('{"APIKey": 12}', encoding="utf-8")
    with pytest.raises(ValueError):
        config_read(str(name))


def test_default_config_file_uses_xdg(tmp_path, monkeypatch):
    monkeypatch.setattr(sys, "platform", "linux")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert default_config_file() == os.path.join(str(tmp_path), "photoflow", "photoflow.json")


def test_default_config_file_without_home(monkeypatch):
    monkeypatch.setattr(sys, "platform", "linux")
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.delenv("HOME", raising=False)
    assert default_config_file() == "./photoflow.json"


def test_default_log_file_in_cache(tmp_path, monkeypatch):
    monkeypatch.setattr(sys, "platform", "linux")
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path))
    path = default_log_file()
    assert os.path.dirname(path) == os.path.join(str(tmp_path), "photoflow")
    assert re.fullmatch(r"photoflow_\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2}\.log", os.path.basename(path))


def test_default_log_file_without_cache(monkeypatch):
    monkeypatch.setattr(sys, "platform", "linux")
    monkeypatch.delenv("XDG_CACHE_HOME", raising=False)
    monkeypatch.delenv("HOME", raising=False)
    path = default_log_file()
    assert os.path.dirname(path) == ""
    assert path.startswith("photoflow_")


def test_make_dir_for_file(tmp_path):
    target = tmp_path / "a" / "b" / "file.log"
    make_dir_for_file(str(target))
    assert target.parent.is_dir()
    assert not target.exists()