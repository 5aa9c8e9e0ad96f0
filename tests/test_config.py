from __future__ import annotations

from pathlib import Path

import pytest

from travel_orders.config import DEFAULT_ADMIN_NAME, Settings, _env_flag, load_settings


def test_defaults_without_file_or_environment() -> None:
    settings = load_settings(env={})

    assert settings.debug is False
    assert settings.admin_name == DEFAULT_ADMIN_NAME
    assert settings.log_level == "INFO"
    assert settings.port == 8000
    assert settings.database_path.name == "travel_orders.sqlite3"


def test_yaml_file_is_loaded(tmp_path: Path) -> None:
    config = tmp_path / "settings.yaml"
    config.write_text(
        "\n".join(
            [
                f"database_path: {tmp_path / 'orders.sqlite3'}",
                "debug: true",
                "admin_name: Root",
                "log_level: debug",
                "port: 9001",
            ]
        ),
        encoding="utf-8",
    )

    settings = load_settings(config, env={})

    assert settings.database_path == (tmp_path / "orders.sqlite3").resolve()
    assert settings.debug is True
    assert settings.admin_name == "Root"
    assert settings.log_level == "DEBUG"
    assert settings.port == 9001


def test_environment_overrides_file(tmp_path: Path) -> None:
    config = tmp_path / "settings.yaml"
    config.write_text("admin_name: Root\ndebug: true\n", encoding="utf-8")
    env = {
        "TRAVEL_ORDERS_CONFIG": str(config),
        "TRAVEL_ORDERS_ADMIN_NAME": "Operator",
        "TRAVEL_ORDERS_DEBUG": "off",
        "TRAVEL_ORDERS_DB_PATH": str(tmp_path / "env.sqlite3"),
    }

    settings = load_settings(env=env)

    assert settings.admin_name == "Operator"
    assert settings.debug is False
    assert settings.database_path == (tmp_path / "env.sqlite3").resolve()


def test_config_file_must_be_a_mapping(tmp_path: Path) -> None:
    config = tmp_path / "settings.yaml"
    config.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_settings(config, env={})


def test_blank_admin_name_falls_back_to_default() -> None:
    assert Settings.from_dict({"admin_name": ""}).admin_name == DEFAULT_ADMIN_NAME
    with pytest.raises(ValueError):
        Settings.from_dict({"admin_name": "   "})


@pytest.mark.parametrize(
    ("value", "expected"),
    [("1", True), ("YES", True), ("off", False), ("maybe", False), (None, False)],
)
def test_env_flag(value, expected: bool) -> None:
    assert _env_flag(value) is expected
