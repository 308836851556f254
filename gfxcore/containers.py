"""Fixed-capacity containers, grids and small buffering helpers."""

from __future__ import annotations

from collections import deque
from typing import Any, Generic, Iterator, MutableSequence, TypeVar

T = TypeVar("T")


def swap_remove(items: MutableSequence[T], i: int) -> T:
    """Remove ``items[i]`` by moving the last item into its place.

    Fast removal that does not keep order. Returns the removed item.
    """
    if not 0 <= i < len(items):
        raise IndexError(f"index {i} out of range for {len(items)} items")
    removed = items[i]
    last = items.pop()
    if i < len(items):
        items[i] = last
    return removed


def push_unique(items: MutableSequence[T], item: T) -> bool:
    """Append ``item`` unless an equal item is already present.

    Returns True when the item was added.
    """
    if item in items:
        return False
    items.append(item)
    return True


class RingBuffer(Generic[T]):
    """First-in first-out queue with a fixed capacity."""

    def __init__(self, maxcount: int):
        if maxcount <= 0:
            raise ValueError("capacity must be positive")
        self.maxcount = maxcount
        self._items: deque[T] = deque()

    def clear(self) -> None:
        self._items.clear()

    def push(self, item: T) -> None:
        """Add to the back; raises OverflowError when full."""
        if self.full():
            raise OverflowError("ring buffer overflow")
        self._items.append(item)

    def push_unique(self, item: T) -> None:
        if item not in self._items:
            self.push(item)

    def pop(self) -> T:
        """Remove and return the front item; raises IndexError when empty."""
        if not self._items:
            raise IndexError("ring buffer underflow")
        return self._items.popleft()

    def front(self) -> T:
        if not self._items:
            raise IndexError("ring buffer has no front")
        return self._items[0]

    def back(self) -> T:
        if not self._items:
            raise IndexError("ring buffer has no back")
        return self._items[-1]

    def full(self) -> bool:
        return len(self._items) == self.maxcount

    def has_room_for(self, num: int) -> bool:
        return len(self._items) + num <= self.maxcount

    def fill(self, item: T) -> None:
        """Replace the contents with ``item`` repeated to capacity."""
        self._items = deque([item] * self.maxcount)

    def __getitem__(self, i: int) -> T:
        if not 0 <= i < len(self._items):
            raise IndexError(f"index {i} out of range")
        return self._items[i]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)


class Bin(Generic[T]):
    """Stack-like list with a fixed capacity."""

    def __init__(self, maxcount: int, items=()):
        if maxcount < 0:
            raise ValueError("capacity must not be negative")
        self.maxcount = maxcount
        self._items: list[T] = list(items)[:maxcount]

    def push(self, item: T) -> None:
        """Append; raises OverflowError when full."""
        if self.full():
            raise OverflowError("bin overflow")
        self._items.append(item)

    def push_unique(self, item: T) -> None:
        if item not in self._items:
            self.push(item)

    def push_many(self, item: T, num: int) -> None:
        for _ in range(num):
            self.push(item)

    def pop(self) -> T:
        """Remove and return the last item; raises IndexError when empty."""
        if not self._items:
            raise IndexError("bin underflow")
        return self._items.pop()

    def top(self) -> T:
        if not self._items:
            raise IndexError("bin is empty")
        return self._items[-1]

    def remove(self, i: int) -> T:
        """Remove item ``i``, filling the gap with the last item."""
        return swap_remove(self._items, i)

    def remove_ordered(self, i: int) -> T:
        """Remove item ``i``, keeping the order of the rest."""
        if not 0 <= i < len(self._items):
            raise IndexError(f"index {i} out of range")
        return self._items.pop(i)

    def clear(self) -> None:
        self._items.clear()

    def full(self) -> bool:
        return len(self._items) == self.maxcount

    def __getitem__(self, i: int) -> T:
        if not 0 <= i < len(self._items):
            raise IndexError(f"index {i} out of range")
        return self._items[i]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)


def _check_flat(i: int, count: int) -> int:
    if not 0 <= i < count:
        raise IndexError(f"index {i} out of range for {count} cells")
    return i


class Grid2D(Generic[T]):
    """Row-major 2D array of ``width`` by ``height`` cells."""

    def __init__(self, width: int, height: int, fill: Any = None):
        if width < 0 or height < 0:
            raise ValueError("grid dimensions must not be negative")
        self.width = width
        self.height = height
        self.cells: list = [fill] * (width * height)

    def __len__(self) -> int:
        return len(self.cells)

    def index(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"cell ({x}, {y}) outside {self.width}x{self.height} grid")
        return y * self.width + x

    def _flat(self, key) -> int:
        if isinstance(key, tuple):
            return self.index(*key)
        return _check_flat(key, len(self.cells))

    def __getitem__(self, key):
        return self.cells[self._flat(key)]

    def __setitem__(self, key, value) -> None:
        self.cells[self._flat(key)] = value

    def fill(self, value) -> None:
        self.cells = [value] * len(self.cells)

    def copy(self) -> Grid2D:
        """Independent grid with the same size and contents."""
        other = Grid2D(self.width, self.height)
        other.cells = list(self.cells)
        return other


class Grid3D(Generic[T]):
    """3D array laid out with z fastest, then x, then y."""

    def __init__(self, width: int, height: int, depth: int, fill: Any = None):
        if width < 0 or height < 0 or depth < 0:
            raise ValueError("grid dimensions must not be negative")
        self.width = width
        self.height = height
        self.depth = depth
        self.cells: list = [fill] * (width * height * depth)

    def __len__(self) -> int:
        return len(self.cells)

    def index(self, x: int, y: int, z: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height and 0 <= z < self.depth):
            raise IndexError(f"cell ({x}, {y}, {z}) outside grid")
        return y * (self.width * self.depth) + x * self.depth + z

    def _flat(self, key) -> int:
        if isinstance(key, tuple):
            return self.index(*key)
        return _check_flat(key, len(self.cells))

    def __getitem__(self, key):
        return self.cells[self._flat(key)]

    def __setitem__(self, key, value) -> None:
        self.cells[self._flat(key)] = value

    def fill(self, value) -> None:
        self.cells = [value] * len(self.cells)


class DoubleBuffer(Generic[T]):
    """A pair of buffers whose front and back roles can be exchanged."""

    def __init__(self, front: T, back: T):
        self.front = front
        self.back = back

    def swap(self) -> None:
        self.front, self.back = self.back, self.front


class RollingAvg:
    """Averages every ``avg_period`` samples into a ring of ``roll_window`` slots."""

    def __init__(self, avg_period: int, roll_window: int):
        if avg_period <= 0 or roll_window <= 0:
            raise ValueError("period and window must be positive")
        self.avg_period = avg_period
        self.roll_window = roll_window
        self.reset()

    def reset(self) -> None:
        self.avg = 0.0
        self.avg_idx = 0
        self.roll = [0.0] * self.roll_window
        self.roll_idx = 0

    def add(self, v: float) -> None:
        self.avg += v
        self.avg_idx += 1
        if self.avg_idx == self.avg_period:
            self.roll[self.roll_idx] = self.avg / self.avg_idx
            self.roll_idx = (self.roll_idx + 1) % self.roll_window
            self.avg_idx = 0
            self.avg = 0.0