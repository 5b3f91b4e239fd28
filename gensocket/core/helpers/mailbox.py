import asyncio
from collections import deque
from typing import Callable

from gensocket.core.models.notification import Notification

Match = Callable[[Notification], bool]


class Mailbox:
    """
    Owner inbox shared by one or more bridges.

    Producers append notifications with `put()`, which never blocks.
    Consumers wait with `receive(match, timeout)`, which removes and
    returns the oldest notification accepted by `match`. Notifications
    that do not match stay buffered in arrival order and remain
    available to later receives.

    A notification left behind by a receive that timed out can be
    picked up by a later receive with the same pattern, even if it
    was caused by the earlier request.

    The mailbox is bound to the event loop it is used from and is not
    thread-safe.
    """

    def __init__(self) -> None:
        self._messages: deque[Notification] = deque()
        self._waiters: set[asyncio.Future[None]] = set()

    def __len__(self) -> int:
        return len(self._messages)

    def pending(self) -> list[Notification]:
        """Return a snapshot of the buffered notifications, oldest first."""
        return list(self._messages)

    def put(self, notification: Notification) -> None:
        self._messages.append(notification)

        for waiter in self._waiters:
            if not waiter.done():
                waiter.set_result(None)

    async def receive(self, match: Match, timeout: float | None = None) -> Notification | None:
        """
        Wait for the first notification accepted by `match`.

        Returns None if nothing matched within `timeout` seconds.
        A None timeout waits forever.
        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout

        while True:
            for index, notification in enumerate(self._messages):
                if match(notification):
                    del self._messages[index]
                    return notification

            remaining = None if deadline is None else deadline - loop.time()
            if remaining is not None and remaining <= 0:
                return None

            waiter = loop.create_future()
            self._waiters.add(waiter)
            try:
                await asyncio.wait({waiter}, timeout=remaining)
            finally:
                self._waiters.discard(waiter)
                waiter.cancel()
