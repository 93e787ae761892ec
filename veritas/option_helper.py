"""A mutable optional slot with conditional replacement."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class OptionCell(Generic[T]):
    """Holds a value or ``None``."""

    value: Optional[T] = None

    def replace_if(self, new_value: T, cb: Callable[[T], bool]) -> tuple[bool, Optional[T]]:
        """Store ``new_value`` if the cell is empty or ``cb(current)`` is true.

        Returns whether the value was replaced and the previous value, if any.
        """
        if self.value is None:
            self.value = new_value
            return True, None
        if cb(self.value):
            old, self.value = self.value, new_value
            return True, old
        return False, None