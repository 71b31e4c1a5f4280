"""
Shared helpers for CLI commands.
"""

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

from launchpad.core.config.models import LaunchpadConfig
from launchpad.core.transport.client import Transport

T = TypeVar("T")


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine from Typer's sync command context."""
    return asyncio.run(coro)


def build_transport(config: LaunchpadConfig) -> Transport:
    """Create the transport for a command (tests replace this)."""
    return Transport(config.api, config.retry)
