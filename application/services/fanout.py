"""Write-then-fanout: validate, persist, then broadcast the shaped record.

Shared by every topic service so the suspension and error plumbing lives
in one place. Validation and persistence errors propagate to the caller
and nothing is broadcast. A broadcast failure after a committed write is
logged and does not undo or fail the write; clients reconcile through
snapshots.
"""
from __future__ import annotations

from typing import Any, Awaitable, Callable, TypeVar

from core.logging_config import get_logger


logger = get_logger(__name__)

D = TypeVar("D")
R = TypeVar("R")


async def write_then_fanout(
    *,
    validate: Callable[[], D],
    persist: Callable[[D], Awaitable[R]],
    event: str,
    shape: Callable[[R], Any],
    broadcast: Callable[[str, Any], Awaitable[None]],
) -> R:
    """Run ``validate`` -> ``persist(draft)`` -> ``broadcast(event, shape(record))``."""
    draft = validate()
    record = await persist(draft)
    payload = shape(record)
    try:
        await broadcast(event, payload)
    except Exception as exc:
        logger.error("fanout_failed", event=event, error=str(exc), exc_info=True)
    return record
