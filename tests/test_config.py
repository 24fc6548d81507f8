"""Tests for store configuration."""

import pytest

from archivum.config import (
    CONFIG_FILENAME,
    StoreConfig,
    get_config_dir,
    load_config,
    load_or_create_config,
    save_config,
)


class TestConfigDir:
    def test_explicit_path_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ARCHIVUM_STORE_PATH", str(tmp_path / "env"))
        assert get_config_dir(tmp_path / "explicit") == (tmp_path / "explicit").resolve()

    def test_env_var(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ARCHIVUM_STORE_PATH", str(tmp_path / "env"))
        assert get_config_dir() == (tmp_path / "env").resolve()

    def test_default_home(self, monkeypatch):
        monkeypatch.delenv("ARCHIVUM_STORE_PATH", raising=False)
        assert get_config_dir().name == ".archivum"


class TestLoadSave:
    def test_defaults(self, tmp_path):
        config = StoreConfig(path=tmp_path)
        assert config.document_path == tmp_path / "repository.json"
        assert config.default_tag_color == "gray"
        assert config.indent == 2
        assert not config.exists()

    def test_create_then_load(self, tmp_path):
        created = load_or_create_config(tmp_path / "store")
        assert created.exists()
        loaded = load_or_create_config(tmp_path / "store")
        assert loaded.created == created.created
        assert loaded.document_filename == "repository.json"

    def test_round_trip_custom_values(self, tmp_path):
        save_config(StoreConfig(
            path=tmp_path,
            document_filename="tags.json",
            default_tag_color="blue",
            indent=0,
        ))
        config = load_config(tmp_path)
        assert config.document_path == tmp_path / "tags.json"
        assert config.default_tag_color == "blue"
        assert config.indent == 0

    def test_missing_config(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path)

    def test_partial_file_uses_defaults(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text("[store]\nversion = 1\n")
        config = load_config(tmp_path)
        assert config.default_tag_color == "gray"
        assert config.document_filename == "repository.json"


class TestInvalidConfig:
    @pytest.mark.parametrize("text", [
        "[store]\nversion = 99\n",
        '[display]\ndefault_tag_color = "mauve"\n',
        "[document]\nindent = -1\n",
        '[document]\nindent = "two"\n',
    ])
    def test_rejected(self, tmp_path, text):
        (tmp_path / CONFIG_FILENAME).write_text(text)
        with pytest.raises(ValueError):
            load_config(tmp_path)
