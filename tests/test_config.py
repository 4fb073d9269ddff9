# -*- coding: utf-8 -*-
import json

import pytest

from config.settings import DEFAULT_APP_ID, AppConfig, BackendConfig
from controllers.errors import ConfigurationError


def test_from_env_reads_values():
    config = BackendConfig.from_env({
        "DATABASE_URL": "postgres://user:pw@db/repairs",
        "AUTH_API_KEY": "key-1",
        "APP_ID": "station-app",
        "WATCH_INTERVAL": "2.5",
    })
    assert config.database_url == "postgresql+psycopg2://user:pw@db/repairs"
    assert config.auth_api_key == "key-1"
    assert config.app_id == "station-app"
    assert config.watch_interval == 2.5


def test_api_key_from_firebase_config():
    config = BackendConfig.from_env({
        "DATABASE_URL": "sqlite://",
        "FIREBASE_CONFIG": json.dumps({"apiKey": "key-2", "projectId": "demo"}),
    })
    assert config.auth_api_key == "key-2"
    assert config.app_id == DEFAULT_APP_ID


@pytest.mark.parametrize("env", [
    {"AUTH_API_KEY": "key"},
    {"DATABASE_URL": "sqlite://"},
    {"DATABASE_URL": "sqlite://", "FIREBASE_CONFIG": "{not json"},
    {"DATABASE_URL": "sqlite://", "AUTH_API_KEY": "key", "WATCH_INTERVAL": "soon"},
])
def test_missing_or_invalid_settings(env):
    with pytest.raises(ConfigurationError):
        BackendConfig.from_env(env)


def test_satisfaction_scores():
    assert AppConfig.get_satisfaction_score("非常滿意") == 100
    assert AppConfig.get_satisfaction_score("不滿意") == 0
    assert AppConfig.get_satisfaction_score("不需滿意度") is None
    assert AppConfig.get_satisfaction_score("") is None


def test_repair_type_label():
    assert AppConfig.get_repair_type_label("2.1") == "契約內"
    assert AppConfig.get_repair_type_label("2.2") == "契約外"
