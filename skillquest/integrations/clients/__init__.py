"""
Platform API clients.

The choice between the in-process mock and the real HTTP client is made here
and nowhere else.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from skillquest.integrations.contracts.interfaces import PlatformClient
from skillquest.utils.config_loader import ClientConfig

logger = logging.getLogger(__name__)


def _should_use_real_client(config: ClientConfig) -> bool:
    mode = (config.mode or os.getenv("PLATFORM_CLIENT_MODE", "")).strip().lower()
    if mode in {"real", "live"}:
        return True
    if mode in {"mock", "test"}:
        return False
    return bool(config.base_url or os.getenv("PLATFORM_API_URL"))


def create_platform_client(config: Optional[ClientConfig] = None, *, session_token: Optional[str] = None) -> PlatformClient:
    config = config or ClientConfig()

    if _should_use_real_client(config):
        from .real_http.platform import HttpPlatformClient

        logger.info("Using real platform client at %s", config.base_url or os.getenv("PLATFORM_API_URL"))
        return HttpPlatformClient(
            config.base_url,
            session_token=session_token,
            session_cookie=config.session_cookie,
            timeout_seconds=config.timeout_seconds,
            strict_path_params=config.strict_path_params,
        )

    from .mocks.platform import InProcessPlatformClient

    logger.info("Using in-process platform client")
    return InProcessPlatformClient(
        session_token=session_token,
        session_cookie=config.session_cookie,
        strict_path_params=config.strict_path_params,
    )


__all__ = ["create_platform_client"]
