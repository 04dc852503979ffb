"""Unit tests for ClientConfig loading."""

from __future__ import annotations

import pytest

from firebolt_client import config as config_module
from firebolt_client.config import DEFAULT_API_ENDPOINT, DEFAULT_AUTH_URL, ClientConfig

ENV_VARS = [
    "FIREBOLT_CLIENT_ID",
    "FIREBOLT_CLIENT_SECRET",
    "FIREBOLT_AUTH_URL",
    "FIREBOLT_AUDIENCE",
    "FIREBOLT_API_ENDPOINT",
    "FIREBOLT_ENGINE_URL",
    "FIREBOLT_ENGINE_NAME",
    "FIREBOLT_DATABASE",
    "FIREBOLT_ACCOUNT_ID",
    "FIREBOLT_ACCOUNT_NAME",
    "FIREBOLT_TIMEOUT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestClientConfig:
    """Tests for defaults, environment and file loading."""

    def test_defaults(self):
        cfg = ClientConfig()
        assert cfg.auth_url == DEFAULT_AUTH_URL
        assert cfg.api_endpoint == DEFAULT_API_ENDPOINT
        assert cfg.timeout == 30.0
        assert cfg.client_id is None
        assert cfg.engine_url is None

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("FIREBOLT_CLIENT_ID", "env-id")
        monkeypatch.setenv("FIREBOLT_DATABASE", "env_db")
        monkeypatch.setenv("FIREBOLT_TIMEOUT", "12.5")

        cfg = ClientConfig()
        assert cfg.client_id == "env-id"
        assert cfg.database == "env_db"
        assert cfg.timeout == 12.5

    def test_from_dict_overrides_environment(self, monkeypatch):
        monkeypatch.setenv("FIREBOLT_DATABASE", "env_db")
        monkeypatch.setenv("FIREBOLT_CLIENT_ID", "env-id")

        cfg = ClientConfig.from_dict({"database": "dict_db", "timeout": 3})
        assert cfg.database == "dict_db"
        assert cfg.client_id == "env-id"
        assert cfg.timeout == 3.0

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "client.yaml"
        path.write_text("client_id: yaml-id\nengine_url: engine.example.io\n")

        cfg = ClientConfig.from_yaml(path)
        assert cfg.client_id == "yaml-id"
        assert cfg.engine_url == "engine.example.io"

    def test_from_empty_yaml(self, tmp_path):
        path = tmp_path / "client.yaml"
        path.write_text("")
        assert ClientConfig.from_yaml(path).auth_url == DEFAULT_AUTH_URL

    def test_load_merges_search_paths_last_wins(self, tmp_path, monkeypatch):
        user = tmp_path / "user.yaml"
        user.write_text("database: user_db\nclient_id: user-id\n")
        project = tmp_path / "project.yaml"
        project.write_text("database: project_db\n")
        explicit = tmp_path / "explicit.yaml"
        explicit.write_text("client_id: explicit-id\n")
        monkeypatch.setattr(config_module, "CONFIG_SEARCH_PATHS", [user, project, tmp_path / "missing.yaml"])

        cfg = ClientConfig.load(explicit)
        assert cfg.database == "project_db"
        assert cfg.client_id == "explicit-id"
