"""Tests for configuration loading (config.py)"""

import textwrap

import pytest

from taskboard.config import Config, ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("TASKBOARD_CONFIG", "TASKBOARD_BACKEND", "TASKBOARD_API_URL",
                 "TASKBOARD_PROJECT_ID", "TASKBOARD_PUBLIC_KEY", "TASKBOARD_SEED",
                 "TASKBOARD_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def test_missing_file_gives_defaults(tmp_path):
    cfg = Config.load(str(tmp_path / "absent.yaml"))
    assert cfg.backend == "memory"
    assert cfg.port == 3000
    assert cfg.log_level == "INFO"


def test_file_values_and_unknown_keys(tmp_path):
    path = tmp_path / "taskboard.yaml"
    path.write_text(textwrap.dedent("""
        backend: Remote
        api_url: https://records.example.test
        port: 8080
        something_else: ignored
    """))
    cfg = Config.load(str(path))
    assert cfg.backend == "remote"
    assert cfg.api_url == "https://records.example.test"
    assert cfg.port == 8080
    assert not hasattr(cfg, "something_else")


def test_method_names_in_file_are_ignored(tmp_path):
    path = tmp_path / "taskboard.yaml"
    path.write_text("validate: nope\nload_seed: nope\napply_env: nope\nport: 4000\n")
    cfg = Config.load(str(path))
    assert cfg.port == 4000
    assert callable(cfg.validate)
    assert cfg.load_seed() == {}


def test_env_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "taskboard.yaml"
    path.write_text("backend: memory\nlog_level: info\n")
    monkeypatch.setenv("TASKBOARD_LOG_LEVEL", "debug")
    cfg = Config.load(str(path))
    assert cfg.log_level == "DEBUG"


def test_config_path_from_env(tmp_path, monkeypatch):
    path = tmp_path / "custom.yaml"
    path.write_text("port: 5050\n")
    monkeypatch.setenv("TASKBOARD_CONFIG", str(path))
    assert Config.load().port == 5050


def test_unknown_backend_rejected(tmp_path):
    path = tmp_path / "taskboard.yaml"
    path.write_text("backend: sqlite\n")
    with pytest.raises(ConfigError, match="Unknown backend"):
        Config.load(str(path))


def test_remote_without_url_rejected(tmp_path, monkeypatch):
    monkeypatch.setenv("TASKBOARD_BACKEND", "remote")
    with pytest.raises(ConfigError, match="api_url"):
        Config.load(str(tmp_path / "absent.yaml"))


def test_malformed_file_rejected(tmp_path):
    path = tmp_path / "taskboard.yaml"
    path.write_text("backend: [unclosed\n")
    with pytest.raises(ConfigError):
        Config.load(str(path))


def test_load_seed_json(tmp_path):
    seed = tmp_path / "seed.json"
    seed.write_text('{"tasks": [{"id": 1, "title": "A"}]}')
    assert Config(seed_path=str(seed)).load_seed() == {"tasks": [{"id": 1, "title": "A"}]}


def test_missing_seed_file_rejected(tmp_path):
    with pytest.raises(ConfigError, match="seed"):
        Config(seed_path=str(tmp_path / "nope.yaml")).load_seed()


def test_no_seed_path_means_empty():
    assert Config().load_seed() == {}
