"""Resource Registry.

Holds at most one live instance of an expensive resource, tagged with the
owner that acquired it. When a different owner acquires, the previous
instance is closed before a fresh one is built, so reclamation on owner
change is deterministic rather than left to garbage collection.
"""

import logging
import threading
from typing import Callable, Generic, Hashable, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResourceRegistry(Generic[T]):
    """Single-instance registry keyed by owner id."""

    def __init__(
        self,
        factory: Callable[[], T],
        closer: Callable[[T], None] | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            factory: Builds a fresh resource
            closer: Releases a resource (no-op if None)
        """
        self._factory = factory
        self._closer = closer
        self._lock = threading.Lock()
        self._owner: Hashable | None = None
        self._resource: T | None = None

    @property
    def owner(self) -> Hashable | None:
        return self._owner

    def _close_current(self) -> None:
        resource, owner = self._resource, self._owner
        self._resource = None
        self._owner = None
        if resource is not None and self._closer is not None:
            logger.info("Closing resource held by %s", owner)
            self._closer(resource)

    def acquire(self, owner_id: Hashable) -> T:
        """Return the live resource for owner_id.

        The same owner gets the same instance back. A different owner
        causes the current instance to be closed and replaced.
        """
        with self._lock:
            if self._resource is not None and self._owner == owner_id:
                return self._resource

            if self._resource is not None:
                logger.info("Resource owner changed from %s to %s", self._owner, owner_id)
                self._close_current()

            self._resource = self._factory()
            self._owner = owner_id
            return self._resource

    def release(self, owner_id: Hashable) -> bool:
        """Close the resource if owner_id holds it.

        Returns:
            True if a resource was closed
        """
        with self._lock:
            if self._resource is None or self._owner != owner_id:
                return False
            self._close_current()
            return True

    def close(self) -> None:
        """Close whatever is live."""
        with self._lock:
            self._close_current()
