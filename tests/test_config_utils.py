import json
import logging
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parent.parent / "src"))
from wcgeom.utils import config_utils
from wcgeom.utils.config_utils import JsonConfigStore


@pytest.fixture
def isolated(monkeypatch, tmp_path):
    project = tmp_path / "wcgeom.json"
    home = tmp_path / "home.json"
    monkeypatch.setattr(config_utils, "PROJECT_SETTINGS_PATH", project)
    monkeypatch.setattr(config_utils, "HOME_SETTINGS_PATH", home)
    monkeypatch.delenv(config_utils.SETTINGS_ENV_VAR, raising=False)
    return project, home


def test_no_settings(isolated):
    assert config_utils.load_settings() == {}


def test_project_settings_take_precedence(isolated):
    project, home = isolated
    home.write_text(json.dumps({"preset": "wcte_mpmt"}))
    assert config_utils.load_settings() == {"preset": "wcte_mpmt"}
    project.write_text(json.dumps({"preset": "iwcd_mpmt"}))
    assert config_utils.load_settings() == {"preset": "iwcd_mpmt"}


def test_env_override(isolated, monkeypatch, tmp_path):
    project, _ = isolated
    project.write_text(json.dumps({"preset": "iwcd_mpmt"}))
    override = tmp_path / "custom.json"
    override.write_text(json.dumps({"jitter": 2.0}))
    monkeypatch.setenv(config_utils.SETTINGS_ENV_VAR, str(override))
    assert config_utils.load_settings() == {"jitter": 2.0}


def test_malformed_file_is_skipped(isolated, caplog):
    project, home = isolated
    project.write_text("{not json")
    home.write_text(json.dumps({"seed": 4}))
    with caplog.at_level(logging.WARNING):
        assert config_utils.load_settings() == {"seed": 4}
    assert "Ignoring unreadable settings file" in caplog.text


def test_save_merges(isolated):
    project, _ = isolated
    config_utils.save_settings({"preset": "wcte_mpmt"})
    config_utils.save_settings({"seed": 1})
    assert json.loads(project.read_text()) == {"preset": "wcte_mpmt", "seed": 1}


def test_store_rejects_non_object(tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[1, 2]")
    with pytest.raises(ValueError):
        JsonConfigStore(path).load()
