from backend.erp.core.settings import Settings


def test_defaults(monkeypatch):
    for name in ("ENVIRONMENT", "LOG_JSON", "CORS_ORIGINS", "DEFAULT_TIMEZONE", "ACCESS_TOKEN_EXPIRE_MINUTES"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings(_env_file=None)
    assert settings.default_timezone == "Asia/Ho_Chi_Minh"
    assert settings.access_token_expire_minutes == 30
    assert settings.json_logs is False
    assert settings.cors_origin_list == ["http://localhost:3000", "http://127.0.0.1:3000"]


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("ACCESS_TOKEN_EXPIRE_MINUTES", "90")
    monkeypatch.setenv("DEFAULT_TIMEZONE", "Europe/Berlin")
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("CORS_ORIGINS", "https://center.example.com, https://admin.example.com,")

    settings = Settings(_env_file=None)
    assert settings.access_token_expire_minutes == 90
    assert settings.default_timezone == "Europe/Berlin"
    assert settings.json_logs is True
    assert settings.cors_origin_list == ["https://center.example.com", "https://admin.example.com"]


def test_explicit_log_json_wins(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("LOG_JSON", "false")

    assert Settings(_env_file=None).json_logs is False
