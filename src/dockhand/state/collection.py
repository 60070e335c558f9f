"""Last-known state of one resource collection."""

from contextlib import contextmanager
from typing import Callable, Generic, Iterator, TypeVar

T = TypeVar("T")


class Collection(Generic[T]):
    """
    Ordered records of one resource kind plus their loading state.

    ``is_loading`` is backed by a counter: an action that reloads the
    collection while an outer load is running keeps the flag set until the
    outermost load finishes.

    Attributes:
        name: Field name reported to change listeners.
        items: Records in engine order.
        error: Error of the last failed load, cleared by a successful one.
        loaded: True once a load has succeeded.
    """

    def __init__(self, name: str, on_change: Callable[[str], None] | None = None):
        self.name = name
        self.items: tuple[T, ...] = ()
        self.error: Exception | None = None
        self.loaded = False
        self._loading = 0
        self._on_change = on_change

    @property
    def is_loading(self) -> bool:
        return self._loading > 0

    @contextmanager
    def loading(self) -> Iterator[None]:
        """Mark the collection busy for the duration of the block."""
        self._loading += 1
        if self._loading == 1:
            self._notify()
        try:
            yield
        finally:
            self._loading -= 1
            if self._loading == 0:
                self._notify()

    def replace(self, items) -> None:
        self.items = tuple(items)
        self.error = None
        self.loaded = True
        self._notify()

    def fail(self, error: Exception) -> None:
        self.error = error
        self._notify()

    def clear(self) -> None:
        self.items = ()
        self.error = None
        self.loaded = False
        self._notify()

    def find(self, predicate: Callable[[T], bool]) -> T | None:
        for item in self.items:
            if predicate(item):
                return item
        return None

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self.name)
