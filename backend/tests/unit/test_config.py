import pytest

from roomchat.core.config import Settings


def _settings(monkeypatch, **env: str) -> Settings:
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return Settings(_env_file=None)


def test_comma_separated_origins(monkeypatch):
    settings = _settings(
        monkeypatch, ALLOWED_ORIGINS="http://localhost:3000, http://127.0.0.1:3000"
    )
    assert settings.allowed_origins == ["http://localhost:3000", "http://127.0.0.1:3000"]


def test_json_list_origins(monkeypatch):
    settings = _settings(monkeypatch, ALLOWED_ORIGINS='["http://a.test", "http://b.test"]')
    assert settings.allowed_origins == ["http://a.test", "http://b.test"]


def test_client_url_extends_cors_origins(monkeypatch):
    settings = _settings(
        monkeypatch, ALLOWED_ORIGINS="http://localhost:3000", CLIENT_URL="https://chat.example.com"
    )
    assert settings.cors_origins == ["http://localhost:3000", "https://chat.example.com"]


def test_jwt_secret_alias(monkeypatch):
    monkeypatch.delenv("SECRET_KEY", raising=False)
    settings = _settings(monkeypatch, JWT_SECRET="from-alias")
    assert settings.secret_key.get_secret_value() == "from-alias"


@pytest.mark.parametrize(
    "origin, allowed",
    [
        (None, True),
        ("", True),
        ("http://localhost:3000", True),
        ("https://chat.example.com", True),
        ("https://evil.example.com", False),
    ],
)
def test_origin_check(monkeypatch, origin, allowed):
    settings = _settings(
        monkeypatch, ALLOWED_ORIGINS="http://localhost:3000", CLIENT_URL="https://chat.example.com"
    )
    assert settings.is_origin_allowed(origin) is allowed


def test_log_level_is_uppercased(monkeypatch):
    assert _settings(monkeypatch, LOG_LEVEL="debug").log_level == "DEBUG"
