from __future__ import annotations
from typing import Generic, TypeVar

T = TypeVar("T")


class RefCountedHandle(Generic[T]):
    """Manual reference counter around a resource with a ``close()`` method.

    The count starts at 0. Every holder calls ``increase()`` when it takes a
    share and ``decrease()`` when it lets go; the value is closed when the
    count drops back to 0, after which the handle is dead (count -1) and
    ignores further calls. Balance is the caller's job: an extra
    ``decrease()`` closes the value early and is not reported.

    A handle that is never increased is never closed by ``decrease()``; call
    ``dispose()`` for values that end up with no holder.
    """

    def __init__(self, value: T):
        self.value = value
        self._count = 0

    @property
    def count(self) -> int:
        return self._count

    @property
    def disposed(self) -> bool:
        return self._count < 0

    def increase(self) -> None:
        if self._count < 0:
            return
        self._count += 1

    def decrease(self) -> None:
        if self._count < 0:
            return
        self._count -= 1
        if self._count == 0:
            self.dispose()

    def dispose(self) -> None:
        if self._count < 0:
            return
        self._count = -1
        self.value.close()

    def __enter__(self) -> "RefCountedHandle[T]":
        return self

    def __exit__(self, *args) -> None:
        self.dispose()

    def __repr__(self) -> str:
        return f"RefCountedHandle({self.value!r}, count={self._count})"
