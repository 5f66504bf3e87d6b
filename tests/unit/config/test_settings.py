import pytest

from streamrelay.config.settings import (
    ConfigurationError,
    Settings,
    find_toml_config_file,
    get_settings,
)


@pytest.mark.unit
def test_defaults():
    settings = Settings.from_config()

    assert settings.server.host == "127.0.0.1"
    assert settings.server.port == 8000
    assert settings.relay.media_type == "text/html"
    assert settings.relay.default_headers == {
        "cache-control": "no-cache",
        "x-accel-buffering": "no",
    }
    assert settings.page.heading == "Hello, Streaming SSR"
    assert settings.page.template is None


@pytest.mark.unit
def test_env_overrides_toml(tmp_path, monkeypatch):
    cfg = tmp_path / "config.toml"
    cfg.write_text(
        """
    [server]
    port = 8001
    host = "0.0.0.0"
    """,
        encoding="utf-8",
    )

    monkeypatch.setenv("SERVER__PORT", "9001")

    settings = Settings.from_config(config_path=cfg)
    assert settings.server.port == 9001  # env > toml
    assert settings.server.host == "0.0.0.0"


@pytest.mark.unit
def test_overrides_win_over_env(monkeypatch):
    monkeypatch.setenv("LOGGING__LEVEL", "INFO")

    settings = Settings.from_config(config_path=None, logging={"level": "debug"})
    assert settings.logging.level == "DEBUG"  # cli > env


@pytest.mark.unit
def test_none_overrides_are_ignored(tmp_path):
    cfg = tmp_path / "config.toml"
    cfg.write_text("[server]\nport = 8001\n", encoding="utf-8")

    settings = Settings.from_config(config_path=cfg, server={"port": None})
    assert settings.server.port == 8001


@pytest.mark.unit
def test_relay_headers_from_toml_are_lowercased(tmp_path):
    cfg = tmp_path / "config.toml"
    cfg.write_text(
        """
    [relay.default_headers]
    "Cache-Control" = "no-store"
    "X-Frame-Options" = "DENY"
    """,
        encoding="utf-8",
    )

    settings = Settings.from_config(config_path=cfg)
    assert settings.relay.default_headers == {
        "cache-control": "no-store",
        "x-frame-options": "DENY",
    }


@pytest.mark.unit
def test_config_file_env_var(tmp_path, monkeypatch):
    cfg = tmp_path / "elsewhere.toml"
    cfg.write_text('[page]\nheading = "From env file"\n', encoding="utf-8")
    monkeypatch.setenv("CONFIG_FILE", str(cfg))

    assert find_toml_config_file() == cfg
    assert Settings.from_config().page.heading == "From env file"


@pytest.mark.unit
def test_config_file_discovered_in_working_directory(tmp_path):
    (tmp_path / ".streamrelay.toml").write_text("[server]\nport = 0\n", encoding="utf-8")

    assert find_toml_config_file() == tmp_path / ".streamrelay.toml"
    assert get_settings().server.port == 0


@pytest.mark.unit
def test_no_config_file():
    assert find_toml_config_file() is None


@pytest.mark.unit
def test_invalid_port_is_a_configuration_error():
    with pytest.raises(ConfigurationError) as exc_info:
        Settings.from_config(server={"port": 70000})

    assert exc_info.value.error_type == "configuration_error"
    assert exc_info.value.details["errors"][0]["loc"] == ("server", "port")


@pytest.mark.unit
def test_invalid_log_level(monkeypatch):
    monkeypatch.setenv("LOGGING__LEVEL", "chatty")

    with pytest.raises(ConfigurationError, match="Invalid log level"):
        Settings.from_config()


@pytest.mark.unit
def test_invalid_toml_syntax(tmp_path):
    cfg = tmp_path / "broken.toml"
    cfg.write_text("[server\nport = ", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Invalid TOML syntax"):
        Settings.from_config(config_path=cfg)


@pytest.mark.unit
def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigurationError, match="Cannot read TOML config file"):
        Settings.from_config(config_path=tmp_path / "missing.toml")


@pytest.mark.unit
def test_template_must_exist(tmp_path):
    with pytest.raises(ConfigurationError, match="Template file not found"):
        Settings.from_config(page={"template": str(tmp_path / "nope.html")})


@pytest.mark.unit
def test_log_format_resolution():
    settings = Settings.from_config(logging={"format": "auto"})
    assert settings.logging.use_json(is_terminal=False) is True
    assert settings.logging.use_json(is_terminal=True) is False

    settings = Settings.from_config(logging={"format": "JSON"})
    assert settings.logging.use_json(is_terminal=True) is True
