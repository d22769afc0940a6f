"""
Configuration loader for the SkillQuest platform client and reference server
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "platform_config.yml"


class ClientConfig(BaseModel):
    """Platform API client configuration"""

    mode: Optional[str] = None                  # mock / real; None = decide from base_url
    base_url: Optional[str] = None
    session_cookie: str = "sid"
    timeout_seconds: float = Field(default=20.0, gt=0, le=300)
    strict_path_params: bool = False


class CacheConfig(BaseModel):
    """Query cache configuration"""

    stale_time_seconds: Optional[float] = Field(default=None, ge=0)


class ServerConfig(BaseModel):
    """Reference API server configuration"""

    title: str = "SkillQuest API"
    session_cookie: str = "sid"
    leaderboard_limit: int = Field(default=50, ge=1, le=500)
    xp_per_level: int = Field(default=500, ge=1)
    default_daily_bonus_xp: int = Field(default=50, ge=0)
    club_tiers: list[str] = Field(default_factory=lambda: ["club_monthly", "club_yearly"])
    seed_demo_data: bool = True


class PlatformConfig(BaseModel):
    """Complete platform configuration"""

    client: ClientConfig = Field(default_factory=ClientConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


def load_platform_config(config_path: Optional[Path] = None) -> PlatformConfig:
    """
    Load and validate platform configuration from YAML file

    Args:
        config_path: Path to config file. Defaults to config/platform_config.yml.
            A missing default file yields the built-in defaults.

    Returns:
        Validated PlatformConfig object, with PLATFORM_API_URL,
        PLATFORM_CLIENT_MODE and PLATFORM_SESSION_COOKIE applied on top

    Raises:
        FileNotFoundError: If an explicit config file doesn't exist
        ValidationError: If config doesn't match schema
    """
    load_dotenv()

    explicit = config_path is not None
    if config_path is None:
        config_path = Path(os.getenv("PLATFORM_CONFIG", str(DEFAULT_CONFIG_PATH)))

    data: dict = {}
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    elif explicit:
        raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        logger.info("No platform config at %s; using defaults", config_path)

    try:
        config = PlatformConfig(**data)
    except ValidationError as e:
        logger.error("Platform config validation failed: %s", e)
        raise

    _apply_env_overrides(config)
    logger.info("Loaded platform config from %s", config_path)
    return config


def _apply_env_overrides(config: PlatformConfig) -> None:
    if os.getenv("PLATFORM_API_URL"):
        config.client.base_url = os.environ["PLATFORM_API_URL"]
    if os.getenv("PLATFORM_CLIENT_MODE"):
        config.client.mode = os.environ["PLATFORM_CLIENT_MODE"]
    if os.getenv("PLATFORM_SESSION_COOKIE"):
        config.client.session_cookie = os.environ["PLATFORM_SESSION_COOKIE"]
        config.server.session_cookie = os.environ["PLATFORM_SESSION_COOKIE"]
