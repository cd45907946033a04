"""Configuration loading for blogfront."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG_PATH = Path("~/.config/blogfront/config.toml").expanduser()


@dataclass
class SiteConfig:
    """Presentation settings for the rendered blog."""

    title: str = "Tech Blog"
    hero_image: str = ""
    footer: str = "© 2024 raisex, LLC. All rights reserved."
    page_size: int = 15
    default_view: str = "card"
    timezone: str = "UTC"
    date_format: str = "%Y-%m-%d %H:%M"


@dataclass
class CMSConfig:
    """Headless CMS connection settings."""

    base_url: str = "http://localhost:1337"
    api_token: str = ""
    timeout: float = 10.0
    fetch_page_size: int = 100000
    max_retries: int = 3
    retry_delay: float = 0.5


@dataclass
class ServerConfig:
    """Development server settings."""

    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False


@dataclass
class PromoConfig:
    """Promotional link injected into rendered articles."""

    enabled: bool = False
    url: str = ""
    text: str = ""
    after_paragraph: int = 3


@dataclass
class BuildConfig:
    """Static export settings."""

    output_dir: str = "./site"
    base_path: str = "/"


@dataclass
class BlogConfig:
    """Top-level configuration for blogfront."""

    site: SiteConfig = field(default_factory=SiteConfig)
    cms: CMSConfig = field(default_factory=CMSConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    promo: PromoConfig = field(default_factory=PromoConfig)
    build: BuildConfig = field(default_factory=BuildConfig)

    def sections(self) -> dict[str, object]:
        return {
            "site": self.site,
            "cms": self.cms,
            "server": self.server,
            "promo": self.promo,
            "build": self.build,
        }


def _apply_section(target: object, data: dict[str, object]) -> None:
    """Apply a dict of values onto a dataclass instance."""
    for key, value in data.items():
        if hasattr(target, key):
            expected_type = type(getattr(target, key))
            if expected_type is bool and isinstance(value, str):
                setattr(target, key, value.lower() in ("true", "1", "yes"))
            elif expected_type is int and isinstance(value, str):
                setattr(target, key, int(value))
            elif expected_type is float and isinstance(value, (str, int)):
                setattr(target, key, float(value))
            else:
                setattr(target, key, value)
        else:
            logger.warning("Ignoring unknown config key: %s", key)


def _apply_env_overrides(config: BlogConfig) -> None:
    """Override config values from environment variables."""
    env_map: dict[str, tuple[object, str]] = {
        "BLOGFRONT_SITE_TITLE": (config.site, "title"),
        "BLOGFRONT_HERO_IMAGE": (config.site, "hero_image"),
        "BLOGFRONT_PAGE_SIZE": (config.site, "page_size"),
        "BLOGFRONT_DEFAULT_VIEW": (config.site, "default_view"),
        "BLOGFRONT_TIMEZONE": (config.site, "timezone"),
        "BLOGFRONT_CMS_URL": (config.cms, "base_url"),
        "BLOGFRONT_CMS_TOKEN": (config.cms, "api_token"),
        "BLOGFRONT_CMS_TIMEOUT": (config.cms, "timeout"),
        "BLOGFRONT_HOST": (config.server, "host"),
        "BLOGFRONT_PORT": (config.server, "port"),
        "BLOGFRONT_DEBUG": (config.server, "debug"),
        "BLOGFRONT_PROMO_ENABLED": (config.promo, "enabled"),
        "BLOGFRONT_PROMO_URL": (config.promo, "url"),
        "BLOGFRONT_PROMO_TEXT": (config.promo, "text"),
        "BLOGFRONT_OUTPUT_DIR": (config.build, "output_dir"),
        "BLOGFRONT_BASE_PATH": (config.build, "base_path"),
    }
    for env_var, (section, attr) in env_map.items():
        value = os.environ.get(env_var)
        if value is not None:
            _apply_section(section, {attr: value})


def _config_path(path: Path | None = None) -> Path:
    config_path = path or Path(
        os.environ.get("BLOGFRONT_CONFIG", str(_DEFAULT_CONFIG_PATH))
    )
    return config_path.expanduser()


def load_config(path: Path | None = None) -> BlogConfig:
    """Load configuration from TOML file with env var overrides.

    Config file path resolution:
    1. Explicit ``path`` argument
    2. ``BLOGFRONT_CONFIG`` environment variable
    3. ``~/.config/blogfront/config.toml``
    """
    import tomllib

    config = BlogConfig()
    config_path = _config_path(path)

    if config_path.exists():
        logger.info("Loading config from %s", config_path)
        with open(config_path, "rb") as f:
            data = tomllib.load(f)

        for section_name, section_obj in config.sections().items():
            if section_name in data and isinstance(data[section_name], dict):
                _apply_section(section_obj, data[section_name])
    else:
        logger.debug("No config file found at %s, using defaults", config_path)

    _apply_env_overrides(config)
    return config


def set_config_value(key: str, value: str) -> None:
    """Set a single config value in the TOML file.

    Args:
        key: Dotted key like ``cms.base_url``.
        value: The value to set.
    """
    import tomllib

    parts = key.split(".", 1)
    if len(parts) != 2:
        msg = f"Key must be in 'section.key' format, got: {key}"
        raise ValueError(msg)

    section, attr = parts
    defaults = BlogConfig().sections()
    if section not in defaults or not hasattr(defaults[section], attr):
        msg = f"Unknown config key: {key}"
        raise ValueError(msg)

    config_path = _config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data: dict[str, dict[str, object]] = {}
    if config_path.exists():
        with open(config_path, "rb") as f:
            raw = tomllib.load(f)
        for k, v in raw.items():
            if isinstance(v, dict):
                data[k] = dict(v)

    # Store with the same type as the default
    typed: object = value
    default_value = getattr(defaults[section], attr)
    if isinstance(default_value, bool):
        typed = value.lower() in ("true", "1", "yes")
    elif isinstance(default_value, int):
        typed = int(value)
    elif isinstance(default_value, float):
        typed = float(value)
    data.setdefault(section, {})[attr] = typed

    _write_toml(config_path, data)
    logger.info("Set %s = %s in %s", key, value, config_path)


def _write_toml(path: Path, data: dict[str, dict[str, object]]) -> None:
    """Write a simple nested dict as TOML."""
    lines: list[str] = []
    for section, values in data.items():
        lines.append(f"[{section}]")
        for k, v in values.items():
            if isinstance(v, bool):
                lines.append(f"{k} = {str(v).lower()}")
            elif isinstance(v, (int, float)):
                lines.append(f"{k} = {v}")
            else:
                escaped = str(v).replace("\\", "\\\\").replace('"', '\\"')
                lines.append(f'{k} = "{escaped}"')
        lines.append("")
    path.write_text("\n".join(lines), encoding="utf-8")
