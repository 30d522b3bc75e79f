"""
Unit tests for configuration loading.
"""

import os
from pathlib import Path

import pytest

from rayosx_agent.exceptions import ConfigError
from rayosx_agent.settings import DEFAULT_EXTENSIONS, Settings, load_settings


def _write_config(path: Path, body: str) -> Path:
    path.write_text(body, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Isolate tests from RAYOSX_* variables and any config in the working directory."""
    for name in list(os.environ):
        if name.upper().startswith("RAYOSX_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


@pytest.mark.filterwarnings("error::UserWarning")
class TestLoadSettings:
    def test_minimal_file(self, tmp_path: Path) -> None:
        config = _write_config(
            tmp_path / "agent.toml",
            f"server_url = 'https://vps.example.com/'\nwatch_dir = '{tmp_path / 'rx'}'\n",
        )

        settings = load_settings(config)

        assert settings.server_url == "https://vps.example.com"
        assert settings.watch_dir == tmp_path / "rx"
        assert settings.extensions == DEFAULT_EXTENSIONS
        assert settings.processed_dir_name == "procesados"
        assert settings.poll_interval_ms == 5000
        assert settings.poll_interval == 5.0
        assert settings.debounce_seconds == 2.0
        assert settings.max_concurrent_uploads is None
        assert settings.station_name

    def test_full_file(self, tmp_path: Path) -> None:
        config = _write_config(
            tmp_path / "agent.toml",
            "\n".join(
                [
                    "server_url = 'http://10.0.0.5:3000'",
                    f"watch_dir = '{tmp_path}'",
                    "extensions = ['DCM', '.Jpg']",
                    "processed_dir_name = 'enviados'",
                    "poll_interval_ms = 1000",
                    "debounce_seconds = 0.5",
                    "station_name = 'RX-SALA-2'",
                    "max_concurrent_uploads = 4",
                    "log_file = 'logs/agente.log'",
                ]
            ),
        )

        settings = load_settings(config)

        assert settings.extensions == [".dcm", ".jpg"]
        assert settings.processed_dir_name == "enviados"
        assert settings.poll_interval == 1.0
        assert settings.station_name == "RX-SALA-2"
        assert settings.max_concurrent_uploads == 4
        assert settings.log_file == Path("logs/agente.log")

    def test_environment_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config = _write_config(
            tmp_path / "agent.toml",
            f"server_url = 'http://a.test'\nwatch_dir = '{tmp_path}'\npoll_interval_ms = 1000\n",
        )
        monkeypatch.setenv("RAYOSX_POLL_INTERVAL_MS", "250")

        assert load_settings(config).poll_interval_ms == 250

    def test_default_file_in_working_directory(self, tmp_path: Path) -> None:
        _write_config(
            tmp_path / "rayosx-agent.toml",
            f"server_url = 'http://a.test'\nwatch_dir = '{tmp_path}'\n",
        )

        assert load_settings().server_url == "http://a.test"

    def test_log_level_is_normalized(self, tmp_path: Path) -> None:
        config = _write_config(
            tmp_path / "agent.toml",
            f"server_url = 'http://a.test'\nwatch_dir = '{tmp_path}'\nlog_level = 'debug'\n",
        )

        assert load_settings(config).log_level == "DEBUG"


class TestInvalidConfiguration:
    """Every configuration problem is a ConfigError."""

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_settings(tmp_path / "missing.toml")

    def test_no_configuration_at_all(self) -> None:
        with pytest.raises(ConfigError):
            load_settings()

    def test_missing_required_field(self, tmp_path: Path) -> None:
        config = _write_config(tmp_path / "agent.toml", "server_url = 'http://a.test'\n")

        with pytest.raises(ConfigError, match="watch_dir"):
            load_settings(config)

    def test_malformed_toml(self, tmp_path: Path) -> None:
        config = _write_config(tmp_path / "agent.toml", "server_url = 'http://a.test\nwatch_dir = \n")

        with pytest.raises(ConfigError):
            load_settings(config)

    @pytest.mark.parametrize(
        "extra",
        [
            "extensions = []",
            "poll_interval_ms = 0",
            "processed_dir_name = '../fuera'",
            "max_concurrent_uploads = 0",
            "log_level = 'VERBOSE'",
        ],
    )
    def test_invalid_values(self, tmp_path: Path, extra: str) -> None:
        config = _write_config(
            tmp_path / "agent.toml",
            f"server_url = 'http://a.test'\nwatch_dir = '{tmp_path}'\n{extra}\n",
        )

        with pytest.raises(ConfigError):
            load_settings(config)

    def test_server_url_must_be_http(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            Settings(server_url="ftp://a.test", watch_dir=tmp_path)


class TestIsAllowed:
    def test_case_insensitive(self, tmp_path: Path) -> None:
        settings = Settings(server_url="http://a.test", watch_dir=tmp_path)

        assert settings.is_allowed("1005_CHEST.DCM")
        assert settings.is_allowed("scan.png")
        assert not settings.is_allowed("notes.txt")
        assert not settings.is_allowed("procesados")
