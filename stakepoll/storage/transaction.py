"""
Invocation-scoped write buffer.

A Transaction sits in front of a base Storage. Reads see the pending writes
first; nothing reaches the base store until ``commit()``. A failed contract
invocation calls ``rollback()`` and leaves the base untouched.
"""

from typing import Dict, Iterator, Optional, Tuple

from .kv import Storage


class TransactionClosedError(RuntimeError):
    """Raised when a committed or rolled back transaction is used again."""


class Transaction(Storage):
    """
    Buffered overlay over *base*.

    Usage:
        >>> with Transaction(store) as tx:
        ...     execute(Deps(tx, querier, api), env, info, msg)

    Leaving the ``with`` block normally commits; an exception rolls back and
    is re-raised.
    """

    def __init__(self, base: Storage):
        self.base = base
        self._writes: Dict[bytes, Optional[bytes]] = {}
        self._closed = False

    def _require_open(self):
        if self._closed:
            raise TransactionClosedError("Transaction already finished")

    def get(self, key: bytes) -> Optional[bytes]:
        self._require_open()
        key = bytes(key)
        if key in self._writes:
            return self._writes[key]
        return self.base.get(key)

    def set(self, key: bytes, value: bytes) -> None:
        self._require_open()
        self._writes[bytes(key)] = bytes(value)

    def remove(self, key: bytes) -> None:
        self._require_open()
        self._writes[bytes(key)] = None

    def items(self) -> Iterator[Tuple[bytes, bytes]]:
        self._require_open()
        merged = dict(self.base.items())
        for key, value in self._writes.items():
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = value
        for key in sorted(merged):
            yield key, merged[key]

    @property
    def pending(self) -> int:
        """Number of buffered writes."""
        return len(self._writes)

    def commit(self) -> None:
        """Flush buffered writes to the base store."""
        self._require_open()
        write_batch = getattr(self.base, "write_batch", None)
        if write_batch is not None:
            write_batch(dict(self._writes))
        else:
            for key, value in self._writes.items():
                if value is None:
                    self.base.remove(key)
                else:
                    self.base.set(key, value)
        self._writes.clear()
        self._closed = True

    def rollback(self) -> None:
        """Discard buffered writes."""
        self._require_open()
        self._writes.clear()
        self._closed = True

    def __enter__(self) -> "Transaction":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self._closed:
            return False
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
        return False

    def __repr__(self) -> str:
        return f"<Transaction pending={len(self._writes)} closed={self._closed}>"
