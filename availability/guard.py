"""
Latest-request-wins guard for fetch-then-render flows.

When a user changes the selected barber or date while a slot query is still
in flight, the older result must be discarded. Each query gets a ticket;
issuing a new ticket makes every older one stale.

The guard is for clients of the resolver that hold a selection across
requests (a booking modal, a chat session). The HTTP server is stateless per
request and does not use it.
"""

from typing import Awaitable, Hashable, Optional, TypeVar

from utils.exceptions import StaleRequestError

T = TypeVar("T")


class LatestRequestGuard:
    """Tracks the current selection and rejects results for older ones.

    One guard belongs to one selection context (a booking modal, a session).
    Keys are the query parameters, normally ``(barber_id, date)``.
    """

    def __init__(self):
        self._ticket = 0
        self._key: Optional[Hashable] = None

    @property
    def current_key(self) -> Optional[Hashable]:
        return self._key

    def issue(self, key: Hashable) -> int:
        """Register a new request for ``key`` and return its ticket."""
        self._ticket += 1
        self._key = key
        return self._ticket

    def is_current(self, ticket: int, key: Hashable) -> bool:
        return ticket == self._ticket and key == self._key

    async def run(self, key: Hashable, awaitable: Awaitable[T]) -> T:
        """
        Await ``awaitable`` as the request for ``key``.

        Raises:
            StaleRequestError: If another request was issued meanwhile
        """
        ticket = self.issue(key)
        result = await awaitable
        if not self.is_current(ticket, key):
            raise StaleRequestError(f"Discarding result for {key!r}; selection changed")
        return result
