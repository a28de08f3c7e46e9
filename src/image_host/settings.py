"""Application settings for the image host layer.

Settings come from, lowest priority first:
    1. Defaults on ImageHostSettings
    2. image_host.yaml (CWD, then ~/.image-host/), or IMAGE_HOST_CONFIG_FILE
    3. Environment variables (a .env file is loaded first):
       IMAGE_HOST_LOG_LEVEL, IMAGE_HOST_STORE_PATH,
       IMAGE_HOST_OFFICIAL_URL, IMAGE_HOST_TIMEOUT

String values in the YAML file may reference environment variables as
``${VAR}`` or ``$VAR``.

Provider credentials are not settings: they live in the config store.
"""

import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

import structlog
import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = structlog.get_logger(__name__)

SETTINGS_FILE = "image_host.yaml"
SETTINGS_FILE_ENV = "IMAGE_HOST_CONFIG_FILE"

# env var -> settings field
ENV_OVERRIDES = {
    "IMAGE_HOST_LOG_LEVEL": "log_level",
    "IMAGE_HOST_STORE_PATH": "store_path",
    "IMAGE_HOST_OFFICIAL_URL": "official_upload_url",
    "IMAGE_HOST_TIMEOUT": "request_timeout",
}


def get_default_config_dir() -> Path:
    """Get the default config directory (~/.image-host/)."""
    return Path.home() / ".image-host"


class ImageHostSettings(BaseModel):
    """Runtime settings shared by the CLI and the uploaders."""

    log_level: str = "INFO"
    store_path: Path = Field(default_factory=lambda: get_default_config_dir() / "image_hosts.json")
    official_upload_url: str = "http://localhost:8000/api/images/upload"
    request_timeout: float = 30.0  # seconds, HTTP-based uploaders only


def substitute_env_vars(value: str) -> str:
    """Replace ``${VAR}`` references, and a whole-string ``$VAR``.

    Unknown variables are left as written.
    """
    result = re.sub(
        r"\$\{([^}]+)\}",
        lambda m: os.getenv(m.group(1), m.group(0)),
        value,
    )
    if result.startswith("$") and not result.startswith("${"):
        env_var = result[1:]
        if env_var.isidentifier():
            return os.getenv(env_var, result)
    return result


def _process_dict(config: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in config.items():
        if isinstance(value, dict):
            result[key] = _process_dict(value)
        elif isinstance(value, str):
            result[key] = substitute_env_vars(value)
        else:
            result[key] = value
    return result


def find_settings_file(search_paths: list[Path] | None = None) -> Path | None:
    """Return the first settings file found, honouring IMAGE_HOST_CONFIG_FILE."""
    env_path = os.getenv(SETTINGS_FILE_ENV)
    if env_path:
        path = Path(env_path)
        if path.exists():
            return path
        logger.warning("Settings file from environment not found", path=env_path)

    for search_path in search_paths or [Path.cwd(), get_default_config_dir()]:
        candidate = search_path / SETTINGS_FILE
        if candidate.exists():
            return candidate
    return None


def load_yaml_settings(path: Path) -> dict[str, Any]:
    """Load a YAML settings file, substituting environment variables."""
    with path.open(encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    if not raw:
        logger.warning("Empty settings file", path=str(path))
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path} must contain a mapping, got {type(raw).__name__}")
    return _process_dict(raw)


def load_settings(config_file: Path | None = None, env_file: Path | None = None) -> ImageHostSettings:
    """Build settings from the YAML file and environment.

    Args:
        config_file: Explicit settings file; searched for when omitted
        env_file: Optional .env file; default python-dotenv lookup when omitted

    Raises:
        ValueError: The settings file is malformed.
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    data: dict[str, Any] = {}
    path = config_file or find_settings_file()
    if path is not None:
        data.update(load_yaml_settings(path))
        logger.debug("Loaded settings file", path=str(path))

    for env_var, field_name in ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value:
            data[field_name] = value

    return ImageHostSettings.model_validate(data)


@lru_cache(maxsize=1)
def get_settings() -> ImageHostSettings:
    """Return process-wide settings, loaded once."""
    return load_settings()
