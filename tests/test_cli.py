import pytest

from ytapi import cli


def test_create_downloads_dir_creates_once(tmp_path):
    target = tmp_path / "downloads"
    assert cli.create_downloads_dir(target) is True
    assert target.is_dir()
    assert cli.create_downloads_dir(target) is False
    assert target.is_dir()


def test_create_downloads_dir_needs_parent(tmp_path):
    with pytest.raises(FileNotFoundError):
        cli.create_downloads_dir(tmp_path / "missing" / "downloads")


def test_config_from_env_defaults():
    config = cli._server_config_from_env({})
    assert config.port == ":8080"
    assert config.debug is False


def test_config_from_env_overrides():
    config = cli._server_config_from_env({"PORT": "9000", "DEBUG": "true"})
    assert config.port == ":9000"
    assert config.debug is True


def test_config_debug_requires_exact_true():
    config = cli._server_config_from_env({"DEBUG": "yes", "PORT": ""})
    assert config.debug is False
    assert config.port == ":8080"


def test_main_rejects_unknown_arguments():
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--bogus"])
    assert excinfo.value.code == 2