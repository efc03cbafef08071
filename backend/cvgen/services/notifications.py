"""Fire-and-forget user notifications.

Sends are scheduled on the running loop and never awaited by the request
that triggered them; a failed send is logged and otherwise ignored.
Delivery transport is not wired up yet, so messages are written to the log.
"""

import asyncio
import logging

logger = logging.getLogger(__name__)

# Strong references so pending tasks are not garbage-collected mid-flight.
_pending: set[asyncio.Task] = set()


def _on_done(task: asyncio.Task) -> None:
    _pending.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Notification %s failed: %s", task.get_name(), exc)


def fire_and_forget(coro, name: str) -> asyncio.Task:
    task = asyncio.create_task(coro, name=name)
    _pending.add(task)
    task.add_done_callback(_on_done)
    return task


async def send_welcome_email(email: str, display_name: str) -> None:
    logger.info("Welcome email queued for %s (%s)", email, display_name)


def notify_welcome(email: str, display_name: str) -> asyncio.Task:
    return fire_and_forget(send_welcome_email(email, display_name), name=f"welcome:{email}")
