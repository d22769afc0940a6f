"""
Real HTTP integration clients.

These clients talk to a running SkillQuest platform API over the network.

Important:
- Must implement the same PlatformClient interface as the mock client
- Must return data shaped according to skillquest/integrations/contracts/*

Switching:
The selection of mock vs real clients happens in
skillquest/integrations/clients/__init__.py only.
"""

from .platform import HttpPlatformClient

__all__ = ["HttpPlatformClient"]
