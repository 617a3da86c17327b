"""Runtime configuration for the documentation generator.

Values come from an optional YAML file and are then overridden by
environment variables.
"""

import os
from pathlib import Path
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, field_validator

from api_doc_builder.errors import ConfigurationError

DEFAULT_CONFIG_FILE = "apidoc.yaml"

ENV_OVERRIDES = {
    "APP_NAME": "app_name",
    "APP_URL": "app_url",
    "APP_ENV": "environment",
    "API_KEY": "api_keys",
    "API_DOCS_BASE_PATH": "base_path",
}


class DocsConfig(BaseModel):
    """Settings shared by the route walker and the emitters."""

    app_name: str = "Laravel"
    app_url: str = "http://localhost"
    environment: str = "local"
    api_keys: str = ""  # comma separated, the first one is used
    base_path: str = "/api/v1"
    route_prefix: str = "api"
    docs_dir: Path = Path("public/docs")
    source_docs_dir: Path = Path("resources/docs/auto_generated")
    source_extension: str = "coffee"
    duplicate_routes: str = "overwrite"  # overwrite / error
    default_user_id: int = 3

    @field_validator("duplicate_routes")
    @classmethod
    def _check_duplicate_policy(cls, value: str) -> str:
        if value not in ("overwrite", "error"):
            raise ValueError("duplicate_routes must be 'overwrite' or 'error'")
        return value

    @property
    def host(self) -> str:
        return urlparse(self.app_url).hostname or ""

    @property
    def api_key(self) -> str | None:
        keys = [k.strip() for k in self.api_keys.split(",") if k.strip()]
        return keys[0] if keys else None

    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"


def load_config(path: Path | None = None) -> DocsConfig:
    """Load config from a YAML file (if any) and the environment."""
    data: dict = {}

    if path is None and Path(DEFAULT_CONFIG_FILE).exists():
        path = Path(DEFAULT_CONFIG_FILE)

    if path is not None:
        try:
            loaded = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
        if loaded is not None and not isinstance(loaded, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        data.update(loaded or {})

    for env_name, field in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            data[field] = value

    try:
        return DocsConfig(**data)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e
