"""Snapshot codec and storage access for the cart."""
import json
from typing import Iterable, Tuple

from gomarket.db import KeyValueStore, StorageKeys, get_store
from gomarket.errors import ERROR_CORRUPTED_SNAPSHOT, PersistenceReadFailure
from .models import LineItem


def dump_snapshot(items: Iterable[LineItem]) -> str:
    """Serialize line items to the stored JSON array."""
    return json.dumps([item.to_dict() for item in items], allow_nan=False)


def load_snapshot(raw: str) -> Tuple[LineItem, ...]:
    """
    Decode a stored JSON array into line items.

    Raises:
        PersistenceReadFailure: If the value is not a well-formed snapshot
    """
    try:
        data = json.loads(raw)
        if not isinstance(data, list):
            raise TypeError(f"expected a JSON array, got {type(data).__name__}")
        items = tuple(LineItem.from_dict(entry) for entry in data)
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        raise PersistenceReadFailure(f"{ERROR_CORRUPTED_SNAPSHOT}: {e}") from e

    ids = [item.id for item in items]
    if len(ids) != len(set(ids)):
        raise PersistenceReadFailure(f"{ERROR_CORRUPTED_SNAPSHOT}: duplicate product ids")

    return items


__all__ = ["KeyValueStore", "StorageKeys", "get_store", "dump_snapshot", "load_snapshot"]
