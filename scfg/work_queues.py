"""
Work collections used by the translation algorithm.

The termination of the downward loop depends on DedupQueue remembering every
item it has ever accepted, not only the items it currently holds.
"""

import logging
from collections import deque
from typing import Any, Callable, Hashable, Iterator, Optional

logger = logging.getLogger(__name__)


class DedupQueue:
    """
    A FIFO queue that accepts each distinct item at most once per lifetime.

    Identity is given by `key(item)` (the item itself by default) and is
    remembered after the item leaves the queue.
    """

    def __init__(
        self,
        key: Optional[Callable[[Any], Hashable]] = None,
        trace: Optional[logging.Logger] = None
    ):
        self._key = key or (lambda item: item)
        self._items: deque = deque()
        self._seen: set = set()
        self._logger = trace or logger

    def add(self, item: Any) -> bool:
        """
        Append an item unless an item with the same identity was ever added.

        Returns:
            True if the item was inserted
        """
        identity = self._key(item)
        if identity in self._seen:
            self._logger.debug(f"Open already contains {item}")
            return False
        self._seen.add(identity)
        self._items.append(item)
        self._logger.debug(f"Open += {item}")
        return True

    def remove(self) -> Any:
        """
        Pop the item at the head of the queue.

        Raises:
            IndexError: if the queue is empty
        """
        if not self._items:
            raise IndexError("remove from an empty queue")
        return self._items.popleft()

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)


class ResultStack:
    """A LIFO stack that traces every push."""

    def __init__(self, trace: Optional[logging.Logger] = None):
        self._items: list = []
        self._logger = trace or logger

    def push(self, item: Any) -> None:
        self._logger.debug(f"Good += {item}")
        self._items.append(item)

    def pop(self) -> Any:
        """
        Pop the most recently pushed item.

        Raises:
            IndexError: if the stack is empty
        """
        if not self._items:
            raise IndexError("pop from an empty stack")
        return self._items.pop()

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)


class CompletedSet:
    """
    Unordered set of fully resolved derivation items, indexed by
    (subtext, variable) for the upward composition.
    """

    def __init__(self):
        self._items: set = set()
        self._by_key: dict[tuple[str, str], list] = {}

    def add(self, item: Any) -> bool:
        """Add a completed item; returns False if it was already present."""
        if item in self._items:
            return False
        self._items.add(item)
        self._by_key.setdefault(item.lookup_key, []).append(item)
        return True

    def lookup(self, subtext: str, variable: str) -> list:
        """Completed items deriving `subtext` from `variable`."""
        return list(self._by_key.get((subtext, variable), ()))

    def __contains__(self, item: Any) -> bool:
        return item in self._items

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)
