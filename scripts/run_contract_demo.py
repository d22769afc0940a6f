#!/usr/bin/env python3
"""
Walk through the typed hooks against the in-process reference API and print
each stage to the terminal: reads, a passing submission, the invalidated
cache keys and the refreshed stats.

Usage (from repo root):
  python scripts/run_contract_demo.py
  PLATFORM_API_URL=https://... PLATFORM_SESSION=... python scripts/run_contract_demo.py
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from skillquest.database.query_cache import QueryCache
from skillquest.hooks import PlatformHooks
from skillquest.integrations.clients import create_platform_client
from skillquest.integrations.clients.mocks.platform import InProcessPlatformClient
from skillquest.integrations.errors import ContractError
from skillquest.utils.config_loader import load_platform_config


def setup_logging():
    """Log to terminal at INFO so every stage is visible."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
    )


def print_stage(title: str, data: dict | list | str | None):
    """Print a stage header and data to the terminal."""
    print("\n" + "=" * 60)
    print(f"  {title}")
    print("=" * 60)
    if isinstance(data, (dict, list)):
        print(json.dumps(data, indent=2, default=str))
    else:
        print(data)
    print()


def _wire(value):
    if isinstance(value, list):
        return [_wire(item) for item in value]
    return value.to_wire() if hasattr(value, "to_wire") else value


async def main():
    setup_logging()
    config = load_platform_config()

    client = create_platform_client(config.client)
    if isinstance(client, InProcessPlatformClient):
        # Log a demo user in against the in-process app
        client.set_session(client.app.state.storage.create_session("demo-0001"))

    hooks = PlatformHooks(client, QueryCache(config.cache.stale_time_seconds))
    try:
        print_stage("STATS before", _wire(await hooks.user_stats().fetch()))
        problems = await hooks.problems(category="Python").fetch()
        print_stage("PROBLEMS (category=Python)", [p.slug for p in problems])

        daily = await hooks.daily_problem().fetch()
        print_stage("DAILY PROBLEM", _wire(daily) if daily else "No daily challenge")

        submit = hooks.submit_code()
        result = await submit.mutate(id=problems[0].id, code="print('Hello, World!')", language="python")
        print_stage("SUBMISSION RESULT", _wire(result))
        print_stage("INVALIDATED CACHE KEYS", [list(key) for key in submit.last_invalidated])

        print_stage("STATS after", _wire(await hooks.user_stats().fetch()))
        print_stage("LEADERBOARD", _wire(await hooks.leaderboard().fetch()))
        print_stage("CACHE", hooks.cache.stats())
    except ContractError as exc:
        print_stage("CONTRACT ERROR", exc.to_dict())
    finally:
        await hooks.aclose()

    print("\n" + "=" * 60)
    print("  Demo complete. Check logs above for each stage.")
    print("=" * 60 + "\n")


if __name__ == "__main__":
    asyncio.run(main())
