"""Global configuration management for yip."""

from __future__ import annotations

import json
import os
from contextlib import contextmanager
from contextvars import ContextVar
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict

from .errors import ConfigError

DEFAULT_CONFIG_DIR = Path(os.path.expanduser("~")) / ".yip"
CONFIG_DIR = DEFAULT_CONFIG_DIR
CONFIG_FILE = CONFIG_DIR / "config.json"
_CONFIG_DIR_OVERRIDE: ContextVar[Path | None] = ContextVar(
    "yip_config_dir_override",
    default=None,
)
DEFAULT_PROJECT_FILE_NAME = "Yipfile"
DEFAULT_STATE_DIR_NAME = ".yip"

_OSS_FORKS = "https://github.com/oss-forks/{name}.git"
_YIPTOOL = "https://github.com/yiptool/{name}.git"

DEFAULT_REPOSITORIES: Mapping[str, str] = MappingProxyType(
    {
        **{
            name: _OSS_FORKS.format(name=name)
            for name in (
                "box2d",
                "dirent",
                "glm",
                "font-opensans-bold",
                "font-opensans-light",
                "font-opensans-regular",
                "font-opensans-semibold",
                "font-opensans-semibolditalic",
                "imgui",
                "inih",
                "ios-form-sheet-controller",
                "ios-keyboard-avoiding",
                "ios-refresh-control",
                "ios-star-rating-view",
                "ios-twitter-auth",
                "ios-vk-sdk",
                "kissfft",
                "libogg",
                "libpng",
                "lua",
                "dhpoware-modelobj",
                "micropather",
                "mongoose",
                "novocaine",
                "openssl",
                "sqlite3",
                "stb_image",
                "stb_truetype",
                "strtod",
                "tinyobjloader",
                "tinyxml",
                "tremor",
                "zlib",
            )
        },
        **{
            name: _YIPTOOL.format(name=name)
            for name in (
                "amazon-aws-runtime",
                "amazon-aws-s3",
                "amazon-aws-s3-util",
                "android-jni-util",
                "android-util",
                "box2d-debug-renderer",
                "cxx-util",
                "facebook-sdk",
                "game-main",
                "gles2",
                "gles2-util",
                "ios-action-sheet",
                "ios-airplay-util",
                "ios-facebook-util",
                "ios-opengl-view",
                "ios-parse-facebook-util",
                "ios-parse-twitter-util",
                "ios-system-sound",
                "ios-twitter-util",
                "ios-util",
                "jni-util",
                "math",
                "ogg-vorbis-stream",
                "parse-com",
                "resources",
                "scenegraph",
                "sound",
                "sqlite3-util",
                "stb_image_cxx",
                "tinyxml-util",
            )
        },
        "audio": "https://github.com/friedcroc/yip-audio.git",
    }
)


@dataclass
class Config:
    project_file_name: str = DEFAULT_PROJECT_FILE_NAME
    state_dir_name: str = DEFAULT_STATE_DIR_NAME
    repos: Dict[str, str] = field(default_factory=dict)

    def repositories(self) -> dict[str, str]:
        """Return built-in aliases overlaid with the user's own."""
        merged = dict(DEFAULT_REPOSITORIES)
        merged.update(self.repos)
        return merged

    def resolve_repository(self, name: str) -> tuple[str, str]:
        """Return ``(name, url)`` for an import; unknown names are taken as URLs."""
        clean = name.strip()
        url = self.repositories().get(clean)
        if url is None:
            return clean, clean
        return clean, url


def _resolve_config_dir() -> Path:
    override = _CONFIG_DIR_OVERRIDE.get()
    return override if override is not None else CONFIG_DIR


def _resolve_config_file() -> Path:
    override = _CONFIG_DIR_OVERRIDE.get()
    if override is not None:
        return override / "config.json"
    return CONFIG_FILE


def config_file_path() -> Path:
    """Return the config file in effect for the current context."""
    return _resolve_config_file()


@contextmanager
def config_dir_context(path: Path | str | None):
    """Temporarily override the config directory for the current context."""

    if path is None:
        yield
        return
    dir_path = Path(path).expanduser().resolve()
    if dir_path.exists() and not dir_path.is_dir():
        raise NotADirectoryError(f"Path is not a directory: {dir_path}")
    token = _CONFIG_DIR_OVERRIDE.set(dir_path)
    try:
        yield
    finally:
        _CONFIG_DIR_OVERRIDE.reset(token)


def _parse_repos(raw: object) -> dict[str, str]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError("'repos' must be an object mapping names to URLs.")
    repos: dict[str, str] = {}
    for name, url in raw.items():
        clean_name = str(name).strip()
        clean_url = str(url or "").strip()
        if clean_name and clean_url:
            repos[clean_name] = clean_url
    return repos


def config_from_json(payload: str | Mapping[str, object]) -> Config:
    """Return a Config from a JSON string or mapping without saving it."""
    if isinstance(payload, str):
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid config JSON: {exc}") from exc
    else:
        data = dict(payload)
    if not isinstance(data, dict):
        raise ConfigError("Config JSON must be an object.")
    return Config(
        project_file_name=str(data.get("project_file_name") or DEFAULT_PROJECT_FILE_NAME),
        state_dir_name=str(data.get("state_dir_name") or DEFAULT_STATE_DIR_NAME),
        repos=_parse_repos(data.get("repos")),
    )


def load_config() -> Config:
    config_file = _resolve_config_file()
    if not config_file.exists():
        return Config()
    try:
        text = config_file.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to read {config_file}: {exc}") from exc
    return config_from_json(text)


def save_config(config: Config) -> None:
    config_dir = _resolve_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)
    data: Dict[str, Any] = {}
    if config.project_file_name != DEFAULT_PROJECT_FILE_NAME:
        data["project_file_name"] = config.project_file_name
    if config.state_dir_name != DEFAULT_STATE_DIR_NAME:
        data["state_dir_name"] = config.state_dir_name
    if config.repos:
        data["repos"] = dict(sorted(config.repos.items()))
    config_file = _resolve_config_file()
    config_file.write_text(
        json.dumps(data, ensure_ascii=False, indent=2),
        encoding="utf-8",
    )


def set_repository(name: str, url: str) -> None:
    config = load_config()
    config.repos[name.strip()] = url.strip()
    save_config(config)


def remove_repository(name: str) -> bool:
    config = load_config()
    removed = config.repos.pop(name.strip(), None) is not None
    if removed:
        save_config(config)
    return removed
