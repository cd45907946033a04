"""Tests for configuration loading."""

from pathlib import Path

import pytest

from blogfront.config import BlogConfig, load_config, set_config_value


class TestDefaults:
    def test_default_config(self, default_config: BlogConfig) -> None:
        assert default_config.site.page_size == 15
        assert default_config.site.default_view == "card"
        assert default_config.cms.base_url == "http://localhost:1337"
        assert default_config.cms.fetch_page_size == 100000
        assert default_config.server.port == 8000
        assert default_config.promo.enabled is False
        assert default_config.promo.after_paragraph == 3

    def test_missing_config_file_uses_defaults(self, tmp_path: Path) -> None:
        config = load_config(tmp_path / "nonexistent.toml")
        assert config.site.page_size == 15


class TestFileLoading:
    def test_load_from_toml(self, tmp_config_path: Path) -> None:
        tmp_config_path.write_text(
            '[site]\ntitle = "My Blog"\npage_size = 10\n\n'
            '[cms]\nbase_url = "https://cms.example.com"\ntimeout = 3\n'
        )
        config = load_config(tmp_config_path)
        assert config.site.title == "My Blog"
        assert config.site.page_size == 10
        assert config.cms.base_url == "https://cms.example.com"
        assert config.cms.timeout == 3.0
        assert isinstance(config.cms.timeout, float)
        # Unset values keep defaults
        assert config.site.default_view == "card"

    def test_partial_config(self, tmp_config_path: Path) -> None:
        tmp_config_path.write_text(
            '[promo]\nenabled = true\nurl = "https://example.com/join"\n'
        )
        config = load_config(tmp_config_path)
        assert config.promo.enabled is True
        assert config.promo.url == "https://example.com/join"
        assert config.promo.after_paragraph == 3

    def test_unknown_keys_ignored(self, tmp_config_path: Path) -> None:
        tmp_config_path.write_text('[site]\ncolour = "blue"\n')
        config = load_config(tmp_config_path)
        assert not hasattr(config.site, "colour")


class TestEnvOverrides:
    def test_env_overrides_file(
        self, tmp_config_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        tmp_config_path.write_text('[cms]\nbase_url = "http://file"\n')
        monkeypatch.setenv("BLOGFRONT_CMS_URL", "http://env")
        config = load_config(tmp_config_path)
        assert config.cms.base_url == "http://env"

    def test_env_coerces_types(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("BLOGFRONT_PORT", "9000")
        monkeypatch.setenv("BLOGFRONT_DEBUG", "yes")
        monkeypatch.setenv("BLOGFRONT_CMS_TIMEOUT", "2.5")
        config = load_config(tmp_path / "missing.toml")
        assert config.server.port == 9000
        assert config.server.debug is True
        assert config.cms.timeout == 2.5


class TestSetConfig:
    def test_set_config_value(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config_path = tmp_path / "config.toml"
        monkeypatch.setenv("BLOGFRONT_CONFIG", str(config_path))
        set_config_value("cms.base_url", "https://cms.example.com")
        config = load_config(config_path)
        assert config.cms.base_url == "https://cms.example.com"

    def test_set_preserves_existing_and_types(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config_path = tmp_path / "config.toml"
        monkeypatch.setenv("BLOGFRONT_CONFIG", str(config_path))
        set_config_value("site.title", 'Say "hi"')
        set_config_value("site.page_size", "20")
        set_config_value("promo.enabled", "true")
        config = load_config(config_path)
        assert config.site.title == 'Say "hi"'
        assert config.site.page_size == 20
        assert config.promo.enabled is True
        assert "page_size = 20" in config_path.read_text()

    def test_rejects_bad_key(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("BLOGFRONT_CONFIG", str(tmp_path / "config.toml"))
        with pytest.raises(ValueError, match="section.key"):
            set_config_value("title", "x")
        with pytest.raises(ValueError, match="Unknown config key"):
            set_config_value("site.colour", "blue")
