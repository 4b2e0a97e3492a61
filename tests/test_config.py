import pytest

from mongo_proxy.config import DEFAULT_DATABASE, DEFAULT_PORT, load_settings
from mongo_proxy.errors import ConfigurationError


def test_uri_is_required():
    with pytest.raises(ConfigurationError, match="MONGODB_URI"):
        load_settings({})


def test_blank_uri_is_missing():
    with pytest.raises(ConfigurationError):
        load_settings({"MONGODB_URI": "   "})


def test_defaults():
    settings = load_settings({"MONGODB_URI": "mongodb://localhost:27017"})
    assert settings.mongodb_uri == "mongodb://localhost:27017"
    assert settings.database == DEFAULT_DATABASE == "Saica"
    assert settings.port == DEFAULT_PORT == 3000
    assert settings.cors_origins == ("*",)
    assert settings.health_collection == "network_tests"
    assert settings.server_selection_timeout_ms is None
    assert settings.log_level == "INFO"
    assert settings.log_file is None


def test_overrides():
    settings = load_settings(
        {
            "MONGODB_URI": "mongodb+srv://u:p@cluster0.example.net",
            "DATABASE": "analytics",
            "PORT": "8080",
            "CORS_ORIGINS": "https://a.example.com, https://b.example.com",
            "MONGODB_SERVER_SELECTION_TIMEOUT_MS": "2500",
            "LOG_LEVEL": "debug",
        }
    )
    assert settings.database == "analytics"
    assert settings.port == 8080
    assert settings.cors_origins == ("https://a.example.com", "https://b.example.com")
    assert settings.server_selection_timeout_ms == 2500
    assert settings.log_level == "DEBUG"


def test_invalid_port():
    with pytest.raises(ConfigurationError, match="PORT"):
        load_settings({"MONGODB_URI": "mongodb://localhost", "PORT": "eighty"})


def test_invalid_log_level():
    with pytest.raises(ConfigurationError, match="LOG_LEVEL"):
        load_settings({"MONGODB_URI": "mongodb://localhost", "LOG_LEVEL": "loud"})


def test_settings_are_immutable():
    settings = load_settings({"MONGODB_URI": "mongodb://localhost"})
    with pytest.raises(Exception):
        settings.database = "other"
