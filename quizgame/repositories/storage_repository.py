"""
Key-value storage - Data access layer for the persisted key space.
Every engine reads and writes raw text values through this narrow interface.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional
from sqlalchemy.orm import Session

from quizgame.models import StoredValue


class KeyValueStore(ABC):
    """Raw text storage addressed by string keys"""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return stored value or None when the key is absent"""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Create or overwrite a key"""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key (no-op when absent)"""

    @abstractmethod
    def set_many(self, values: Dict[str, str]) -> None:
        """Write several keys as one unit: either all are stored or none"""

    @abstractmethod
    def keys(self, prefix: str = "") -> List[str]:
        """List keys starting with prefix"""


class InMemoryKeyValueStore(KeyValueStore):
    """Dictionary-backed store for tests and embedding"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def set_many(self, values: Dict[str, str]) -> None:
        staged = dict(self._data)
        staged.update(values)
        self._data = staged

    def keys(self, prefix: str = "") -> List[str]:
        return sorted(k for k in self._data if k.startswith(prefix))


class SqlKeyValueStore(KeyValueStore):
    """Store backed by the stored_values table"""

    def __init__(self, db: Session):
        self.db = db

    def _get_row(self, key: str) -> Optional[StoredValue]:
        return self.db.query(StoredValue).filter(StoredValue.key == key).first()

    def _stage(self, key: str, value: str) -> None:
        row = self._get_row(key)
        if row:
            row.value = value
            row.updated_at = datetime.now()
        else:
            self.db.add(StoredValue(key=key, value=value))

    def get(self, key: str) -> Optional[str]:
        row = self._get_row(key)
        return row.value if row else None

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def delete(self, key: str) -> None:
        row = self._get_row(key)
        if row:
            self.db.delete(row)
            self.db.commit()

    def set_many(self, values: Dict[str, str]) -> None:
        try:
            for key, value in values.items():
                self._stage(key, value)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def keys(self, prefix: str = "") -> List[str]:
        rows = self.db.query(StoredValue.key).filter(
            StoredValue.key.startswith(prefix, autoescape=True)
        ).order_by(StoredValue.key).all()
        return [row.key for row in rows]
