"""One event loop per worker process for Celery's sync task bodies.

Pooled asyncpg connections are bound to the loop that opened them, so tasks
must not each spin up a fresh loop with ``asyncio.run``.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Coroutine
from typing import Any, TypeVar

T = TypeVar("T")

_lock = threading.Lock()
_runner: asyncio.Runner | None = None


def _get_runner() -> asyncio.Runner:
    global _runner
    with _lock:
        if _runner is None:
            _runner = asyncio.Runner()
        return _runner


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    return _get_runner().run(coro)


def shutdown_runtime() -> None:
    global _runner
    with _lock:
        if _runner is not None:
            _runner.close()
            _runner = None
