from typing import Dict, Generic, Iterator, Mapping, Optional

from methodreg._storage.base import AbstractStorage
from methodreg._types import K, V


class MemoryStorage(AbstractStorage[K, V], Generic[K, V]):
    """Dictionary backed storage. Iteration follows insertion order, but
    overwriting a key keeps its original position."""

    def __init__(self) -> None:
        self._store: Dict[K, V] = {}

    def set(self, key: K, value: V) -> None:
        self._store[key] = value

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        return self._store.get(key, default)

    def update(self, data: Mapping[K, V]) -> None:
        self._store.update(data)

    def to_dict(self) -> Dict[K, V]:
        return dict(self._store)

    def keys(self) -> Iterator[K]:
        return iter(self._store.keys())

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return key in self._store
