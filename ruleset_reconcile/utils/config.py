import os
from typing import Any

import toml

DEFAULT_API_URL = "https://api.github.com"

_config: dict[str, Any] = {}


class ConfigNotFound(Exception):
    pass


class SecretNotFound(Exception):
    pass


def get_config() -> dict[str, Any]:
    return _config


def init(config: dict[str, Any]) -> dict[str, Any]:
    global _config  # noqa: PLW0603
    _config = config
    return _config


def init_from_toml(configfile: str) -> dict[str, Any]:
    try:
        return init(toml.load(configfile))
    except FileNotFoundError:
        raise ConfigNotFound(f"config file {configfile} not found") from None


def read(secret: dict[str, str]) -> Any:
    path = secret["path"]
    field = secret["field"]
    try:
        path_tokens = path.split("/")
        config = get_config()
        for t in path_tokens:
            config = config[t]
        return config[field]
    except Exception as e:
        raise SecretNotFound(f"key not found in config file {path}: {e!s}") from None


def _read_or_default(
    field: str, env_var: str, default: str | None = None
) -> str | None:
    try:
        value = read({"path": "github", "field": field})
    except SecretNotFound:
        value = None
    return value or os.environ.get(env_var) or default


def github_token() -> str | None:
    return _read_or_default("token", "GITHUB_TOKEN")


def github_api_url() -> str:
    return _read_or_default("api_url", "GITHUB_API", DEFAULT_API_URL) or DEFAULT_API_URL


def github_owner() -> str | None:
    return _read_or_default("owner", "GITHUB_OWNER")
