"""
Mock integration clients.

These clients answer platform API calls without any network access.

Important:
- Mock clients must follow the SAME PlatformClient interface as the real
  HTTP client and return data validated by the same contracts.

Switching to real:
Set PLATFORM_API_URL (or PLATFORM_CLIENT_MODE=real) and
skillquest/integrations/clients/__init__.py returns the HTTP client instead.
"""

from .platform import InProcessPlatformClient

__all__ = ["InProcessPlatformClient"]
