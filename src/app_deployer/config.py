"""Configuration loading utilities for app-deployer."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

_DEFAULT_CONFIG_PATH = Path("config/default_config.json")


@dataclass
class GitConfig:
    """How the version-control client is invoked."""

    binary: str = "git"
    remote: str = "origin"


@dataclass
class CommandConfig:
    """Command templates for each deployment step.

    Every item is formatted on its own with `{path}`, `{ref}`, `{worker}` and
    `{cache_dir}`, so values never pass through a shell.
    An empty list disables the step.
    """

    dependency_install: List[str] = field(
        default_factory=lambda: ["composer", "install", "--no-dev"]
    )
    frontend_build: List[List[str]] = field(
        default_factory=lambda: [["npm", "ci"], ["npm", "run", "build"]]
    )
    cache_clear: List[str] = field(
        default_factory=lambda: [
            "find", "{cache_dir}", "-mindepth", "1", "-maxdepth", "1", "-type", "f", "-delete",
        ]
    )
    web_server_reload: List[str] = field(default_factory=list)  # e.g. ["apachectl", "graceful"]
    database_migrate: List[str] = field(
        default_factory=lambda: ["php", "{path}/scripts/build/build.php", "update"]
    )
    worker_restart: List[str] = field(
        default_factory=lambda: ["supervisorctl", "restart", "{worker}"]
    )


@dataclass
class DeploymentConfig:
    """What the target checkout looks like."""

    backend_manifest: str = ""  # empty: always install
    frontend_manifest: str = "package.json"
    cache_dir: str = "public/cache/translate"


@dataclass
class InteractionConfig:
    """Configuration for operator interaction."""

    mode: str = "cli"  # "cli" | "auto"
    auto_confirm: bool = False


@dataclass
class AppConfig:
    """Top-level configuration."""

    git: GitConfig = field(default_factory=GitConfig)
    commands: CommandConfig = field(default_factory=CommandConfig)
    deployment: DeploymentConfig = field(default_factory=DeploymentConfig)
    interaction: InteractionConfig = field(default_factory=InteractionConfig)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "AppConfig":
        return cls(
            git=GitConfig(**{**GitConfig().__dict__, **_section(payload, "git")}),
            commands=CommandConfig(**{**CommandConfig().__dict__, **_section(payload, "commands")}),
            deployment=DeploymentConfig(
                **{**DeploymentConfig().__dict__, **_section(payload, "deployment")}
            ),
            interaction=InteractionConfig(
                **{**InteractionConfig().__dict__, **_section(payload, "interaction")}
            ),
        )


def _section(payload: Dict[str, Any], name: str) -> Dict[str, Any]:
    # keys starting with an underscore are comments
    section = payload.get(name, {}) or {}
    return {k: v for k, v in section.items() if not k.startswith("_")}


def load_config(path: Optional[str] = None) -> AppConfig:
    """Load configuration from `path` or the default location.

    Without an explicit path a missing default file means built-in defaults.

    Environment variables (higher priority than config file):
    - APP_DEPLOYER_GIT_BINARY: git executable
    - APP_DEPLOYER_GIT_REMOTE: remote fetched from and merged with
    - APP_DEPLOYER_CACHE_DIR: cache directory, relative to the target path
    - APP_DEPLOYER_INTERACTION_MODE: "cli" or "auto"
    """
    if path and not Path(path).is_file():
        raise FileNotFoundError(f"Could not find configuration file: {path}")

    candidate = Path(path) if path else _DEFAULT_CONFIG_PATH
    if candidate.is_file():
        with candidate.open("r", encoding="utf-8") as handle:
            config = AppConfig.from_dict(json.load(handle))
    else:
        config = AppConfig()

    env_binary = os.getenv("APP_DEPLOYER_GIT_BINARY")
    if env_binary:
        config.git.binary = env_binary

    env_remote = os.getenv("APP_DEPLOYER_GIT_REMOTE")
    if env_remote:
        config.git.remote = env_remote

    env_cache_dir = os.getenv("APP_DEPLOYER_CACHE_DIR")
    if env_cache_dir:
        config.deployment.cache_dir = env_cache_dir

    env_mode = os.getenv("APP_DEPLOYER_INTERACTION_MODE")
    if env_mode:
        config.interaction.mode = env_mode

    return config
