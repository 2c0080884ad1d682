"""
Typed accessors over a byte store.

Records are any class exposing ``to_dict()`` and ``from_dict()``; they are
stored as compact JSON. ``Singleton`` owns one fixed key, ``Bucket`` owns a
namespace of keys.
"""

import json
from typing import Generic, Optional, Type, TypeVar

from ..exceptions import NotFoundError, ParseError, SerializeError
from .kv import Storage

T = TypeVar("T")


def encode_record(record) -> bytes:
    try:
        return json.dumps(record.to_dict(), sort_keys=True, separators=(",", ":")).encode()
    except (TypeError, ValueError) as e:
        raise SerializeError(type(record).__name__, str(e)) from e


def decode_record(record_type: Type[T], raw: bytes) -> T:
    try:
        return record_type.from_dict(json.loads(raw))
    except (ValueError, KeyError, TypeError) as e:
        raise ParseError(record_type.__name__, str(e)) from e


def namespace_prefix(namespace: bytes) -> bytes:
    """Length-prefix a namespace so that no namespace is a prefix of another."""
    return len(namespace).to_bytes(2, "big") + namespace


class Singleton(Generic[T]):
    """A single record stored under a fixed key."""

    def __init__(self, storage: Storage, key: bytes, record_type: Type[T]):
        self.storage = storage
        self.key = key
        self.record_type = record_type

    def may_load(self) -> Optional[T]:
        raw = self.storage.get(self.key)
        if raw is None:
            return None
        return decode_record(self.record_type, raw)

    def load(self) -> T:
        record = self.may_load()
        if record is None:
            raise NotFoundError(self.record_type.__name__)
        return record

    def save(self, record: T) -> None:
        self.storage.set(self.key, encode_record(record))


class Bucket(Generic[T]):
    """Records of one type stored under ``namespace_prefix(namespace) + key``."""

    def __init__(self, storage: Storage, namespace: bytes, record_type: Type[T]):
        self.storage = storage
        self.prefix = namespace_prefix(namespace)
        self.record_type = record_type

    def _full_key(self, key: bytes) -> bytes:
        return self.prefix + bytes(key)

    def may_load(self, key: bytes) -> Optional[T]:
        raw = self.storage.get(self._full_key(key))
        if raw is None:
            return None
        return decode_record(self.record_type, raw)

    def load(self, key: bytes) -> T:
        record = self.may_load(key)
        if record is None:
            raise NotFoundError(self.record_type.__name__)
        return record

    def save(self, key: bytes, record: T) -> None:
        self.storage.set(self._full_key(key), encode_record(record))
