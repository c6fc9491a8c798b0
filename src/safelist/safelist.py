from __future__ import annotations

import logging
from operator import index as op_index
from typing import TYPE_CHECKING, Generic, TypeVar, final, overload

if TYPE_CHECKING:
    import sys
    from collections.abc import Callable, Iterable, Iterator
    from typing import Any, SupportsIndex

    if sys.version_info < (3, 11):
        from typing_extensions import Self
    else:
        from typing import Self

T = TypeVar("T")

log = logging.getLogger(__name__)

# Capacity of a new or cleared list
DEFAULT_CAPACITY = 8

# Extra slots allocated on every growth, beyond what the insertion strictly needs
_GROWTH_SLACK = 8


class _Empty:
    """Marker type for unoccupied slots."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "<empty>"


_EMPTY = _Empty()


@final
class safelist(Generic[T]):  # noqa: N801
    """A list that refuses None and keeps its values packed at the front of its buffer."""

    _slots: list[T | _Empty]

    def __init__(
        self,
        data: Iterable[T | None] | None = None,
        capacity: SupportsIndex | None = None,
    ) -> None:
        """Initialize a safelist.

        Args:
            data: Initial values (optional). None entries are dropped and the
                  buffer is sized to exactly the values that remain.
            capacity: Number of empty slots to allocate when no data is given
                      (default: DEFAULT_CAPACITY)

        Raises:
            TypeError: If both data and capacity are given, data is not iterable
                or capacity doesn't support __index__
            ValueError: If capacity is not positive
        """
        if data is not None and capacity is not None:
            raise TypeError("cannot specify both data and capacity")

        if data is None:
            if capacity is None:
                self._init(DEFAULT_CAPACITY)
                return
            try:
                capacity = op_index(capacity)
            except TypeError:
                raise TypeError("capacity must support __index__") from None
            self._init(capacity)
            return

        try:
            values = [value for value in data if value is not None]
        except TypeError:
            raise TypeError(f"{type(data).__name__!r} object is not iterable") from None

        if not values:
            self._init(DEFAULT_CAPACITY)
        else:
            self._init(len(values), values)

    @classmethod
    def from_sequence(cls, data: Iterable[T | None]) -> safelist[T]:
        """Build a safelist holding the non-None values of data, with no free slots.

        Raises:
            TypeError: If data is None or not iterable
        """
        if data is None:
            raise TypeError("initial data cannot be None")
        return cls(data)

    def _init(self, capacity: int, values: list[T] | None = None) -> None:
        """Allocate a fresh buffer, optionally filled from values.

        Args:
            capacity: Slot count of the new buffer
            values: Values to copy in; must have exactly capacity entries

        Raises:
            ValueError: If capacity is not positive or values doesn't fill it
        """
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        if values is not None and len(values) != capacity:
            raise ValueError("values length must equal capacity")

        if values is None:
            self._slots = [_EMPTY] * capacity
        else:
            self._slots = list(values)

    def __init_subclass__(cls, **kwargs: Any) -> None:
        raise TypeError("type 'safelist' is not an acceptable base type")

    @property
    def size(self) -> int:
        """Number of stored values."""
        index = self._nearest_empty_index()
        return len(self._slots) if index == -1 else index

    @property
    def capacity(self) -> int:
        """Number of allocated slots, occupied or not."""
        return len(self._slots)

    @property
    def remaining(self) -> int:
        """Number of free slots after the last stored value."""
        slots = self._slots
        for i in range(len(slots) - 1, -1, -1):
            if slots[i] is not _EMPTY:
                return len(slots) - i - 1
        return len(slots)

    def _nearest_empty_index(self) -> int:
        """Return the index of the first free slot, or -1 if the buffer is full."""
        for i, slot in enumerate(self._slots):
            if slot is _EMPTY:
                return i
        return -1

    def _grow(self, needed: int) -> None:
        """Reallocate the buffer with room for needed more values plus slack."""
        old_capacity = len(self._slots)
        self._slots = self._slots + [_EMPTY] * (needed + _GROWTH_SLACK)
        log.debug("Grew safelist buffer %d -> %d", old_capacity, len(self._slots))

    def __len__(self) -> int:
        """Return the number of stored values."""
        return self.size

    def __reduce_ex__(self, protocol: SupportsIndex) -> tuple[type[Self], tuple[()], dict[str, Any]]:
        """Return pickle data for a safelist."""
        return (
            self.__class__,
            (),
            self.__getstate__(),
        )

    def __getstate__(self) -> dict[str, Any]:
        """Return state for pickling."""
        return {
            "data": self.to_list(),
            "capacity": len(self._slots),
        }

    def __setstate__(self, state: dict[str, Any]) -> None:
        """Restore state from pickling."""
        values = state["data"]
        capacity = state["capacity"]
        # Capacity may legitimately be 0 after removals, so _init is bypassed
        if len(values) > capacity:
            raise ValueError("values length must not exceed capacity")
        if any(value is None for value in values):
            raise ValueError("None cannot be stored in a safelist")
        self._slots = list(values) + [_EMPTY] * (capacity - len(values))

    @overload
    def __getitem__(self, key: SupportsIndex) -> T: ...

    @overload
    def __getitem__(self, key: slice) -> safelist[T]: ...

    def __getitem__(self, key: SupportsIndex | slice) -> T | safelist[T]:
        """Get a value by index, or a new safelist by slice.

        Unlike get(), indices are checked against the stored values and
        negative indices count from the end.

        Raises:
            TypeError: If key is not an integer or slice
            IndexError: If index is out of range
        """
        if isinstance(key, slice):
            return safelist(self.to_list()[key])

        idx = self._normalize_index(key)
        return self._slots[idx]  # type: ignore[return-value]

    def __delitem__(self, key: SupportsIndex) -> None:
        """Delete the value at index, closing the gap.

        Raises:
            TypeError: If key is not an integer
            IndexError: If index is out of range
        """
        self.remove_at(self._normalize_index(key))

    def _normalize_index(self, key: SupportsIndex) -> int:
        idx = op_index(key)
        size = self.size
        if idx < 0:
            idx += size
        if not 0 <= idx < size:
            raise IndexError("list index out of range")
        return idx

    def __iter__(self) -> Iterator[T]:
        """Yield stored values in order."""
        for slot in self._slots:
            if slot is _EMPTY:
                continue
            yield slot  # type: ignore[misc]

    def __contains__(self, value: object) -> bool:
        return self.index_of(value) != -1

    def __eq__(self, other: object) -> bool:
        """Return True if other holds the same values in the same order.

        Capacity is not compared. Supports any iterable.
        """
        if self is other:
            return True
        if isinstance(other, safelist):
            return self.to_list() == other.to_list()
        if not hasattr(other, "__iter__"):
            return NotImplemented
        return self.to_list() == list(other)  # type: ignore[call-overload]

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return NotImplemented
        return not result

    def __iadd__(self, other: Iterable[T | None]) -> Self:
        """Extend self with other in place."""
        self.extend(other)
        return self

    def __copy__(self) -> safelist[T]:
        """Return a shallow copy with the same values and capacity."""
        new = safelist.__new__(safelist)
        new._slots = list(self._slots)
        return new

    def __repr__(self) -> str:
        """Return a string representation of the safelist.

        Format: *<size/capacity>[idx: val, ..., idx: val]*, with a trailing
        ... when free slots remain.
        """
        values = self.to_list()
        parts = [f"{i}: {value!r}" for i, value in enumerate(values)]
        if len(values) < len(self._slots):
            parts.append("...")
        return f"<{len(values)}/{len(self._slots)}>[{', '.join(parts)}]"

    def __str__(self) -> str:
        return f"{type(self).__name__}{{size={self.size}}}"

    def __hash__(self) -> None:  # type: ignore[override]
        """Raise TypeError as safelists are not hashable."""
        raise TypeError("unhashable type: 'safelist'")

    def index_of(self, value: object) -> int:
        """Return the index of the first stored value equal to value, or -1."""
        if value is None:
            return -1
        for i, slot in enumerate(self._slots):
            if slot is _EMPTY:
                break
            if slot == value:
                return i
        return -1

    def get(self, index: SupportsIndex) -> T | None:
        """Return the value at index, or None.

        The bound is lenient: index == size is accepted and returns None
        rather than raising. Negative indices return None.
        """
        idx = op_index(index)
        if idx < 0 or self.size < idx:
            return None
        if idx >= len(self._slots):
            return None
        slot = self._slots[idx]
        return None if slot is _EMPTY else slot  # type: ignore[return-value]

    def add(self, value: T | None) -> bool:
        """Store value after the last stored value.

        Returns:
            True if value was stored, False if it was None
        """
        if value is None:
            return False
        remaining = self.remaining
        if remaining < 1:
            self._grow(1 - remaining)
        self._slots[self._nearest_empty_index()] = value
        return True

    def add_all(self, value: T | None, *values: T | None) -> bool:
        """Store every non-None argument, in order.

        Returns:
            True if anything was stored
        """
        staged: safelist[T] = safelist()
        staged.add(value)
        staged.extend(values)
        return self.extend(staged)

    def extend(self, other: Iterable[T | None]) -> bool:
        """Store the values of other after the last stored value.

        Only values are copied; free slots in a safelist source and None
        entries in any other iterable are skipped.

        Args:
            other: A safelist or any iterable

        Returns:
            True if anything was stored

        Raises:
            TypeError: If other is None or not iterable
        """
        if other is None:
            raise TypeError("can only extend from an iterable, not None")

        if isinstance(other, safelist):
            incoming = other.to_list()
        else:
            try:
                incoming = [value for value in other if value is not None]
            except TypeError:
                raise TypeError("can only extend from an iterable") from None

        if not incoming:
            return False

        remaining = self.remaining
        if remaining < len(incoming):
            self._grow(len(incoming) - remaining)

        start = self._nearest_empty_index()
        self._slots[start : start + len(incoming)] = incoming
        return True

    def clear(self) -> None:
        """Drop all values and reset to the default capacity."""
        log.debug("Clearing safelist of capacity %d", len(self._slots))
        self._init(DEFAULT_CAPACITY)

    def copy(self) -> safelist[T]:
        """Return a shallow copy of the safelist."""
        return self.__copy__()

    def for_each(self, visitor: Callable[[T], Any]) -> None:
        """Call visitor with each stored value, in order."""
        for value in self:
            visitor(value)

    def remove(self, value: object) -> T | None:
        """Remove the first stored value equal to value.

        Returns:
            The removed value, or None if value isn't stored
        """
        index = self.index_of(value)
        if index == -1:
            return None
        return self.remove_at(index)

    def remove_at(self, index: SupportsIndex) -> T | None:
        """Remove the value at index and shrink the buffer by one slot.

        Values after index move down by one so that no hole is left behind.

        Args:
            index: Slot index, 0 <= index < capacity

        Returns:
            The removed value, or None if the slot was already empty

        Raises:
            TypeError: If index doesn't support __index__
            IndexError: If index is outside the buffer
        """
        idx = op_index(index)
        old_slots = self._slots
        capacity = len(old_slots)
        if not 0 <= idx < capacity:
            raise IndexError("remove index out of range")

        element = old_slots[idx]
        if element is _EMPTY:
            return None

        # Length of the occupied run following idx
        tail = 0
        for i in range(idx + 1, capacity):
            if old_slots[i] is _EMPTY:
                break
            tail += 1

        new_slots: list[T | _Empty] = [_EMPTY] * (capacity - 1)
        new_slots[:idx] = old_slots[:idx]
        new_slots[idx : idx + tail] = old_slots[idx + 1 : idx + 1 + tail]
        self._slots = new_slots
        log.debug("Shrank safelist buffer %d -> %d", capacity, len(new_slots))
        return element  # type: ignore[return-value]

    def to_list(self) -> list[T]:
        """Return a new list of the stored values."""
        return list(self)
