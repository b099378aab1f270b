"""
User data repository - per-user field access over the key-value store.

Each field is serialized independently under ``<prefix><user_id>_<field>``.
Reads are lossy-tolerant: a value that cannot be decoded is replaced by the
field's default and logged, never raised to the caller.
"""
import json
import logging
import re
import threading
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, TypeAdapter

from quizgame.constants import STORAGE_PREFIX
from quizgame.exceptions import CorruptPersistedValueException
from quizgame.repositories.storage_repository import KeyValueStore

logger = logging.getLogger("quizgame.storage")

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

_user_locks: Dict[str, threading.RLock] = {}
_user_locks_guard = threading.Lock()
_LEADING_INT = re.compile(r"\s*[+-]?\d+")


def get_user_lock(user_id: str) -> threading.RLock:
    """Re-entrant lock serializing all mutations of one user's data"""
    with _user_locks_guard:
        lock = _user_locks.get(user_id)
        if lock is None:
            lock = threading.RLock()
            _user_locks[user_id] = lock
        return lock


def dump_json(value: Any) -> str:
    """Compact JSON, byte-compatible with JSON.stringify output"""
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def decode_int(raw: str) -> int:
    """
    Read the leading integer the way the browser's parseInt does.

    "500.5" -> 500, "12abc" -> 12. Text with no leading digits is corrupt.
    """
    match = _LEADING_INT.match(raw)
    if match is None:
        raise ValueError(f"not an integer: {raw[:20]!r}")
    return int(match.group(0))


def decode_string_list(raw: str) -> List[str]:
    value = json.loads(raw)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError("expected a JSON array of strings")
    return value


def model_decoder(model: Type[M]) -> Callable[[str], M]:
    def decode(raw: str) -> M:
        return model.model_validate_json(raw)
    return decode


def model_list_decoder(model: Type[M]) -> Callable[[str], List[M]]:
    adapter = TypeAdapter(List[model])

    def decode(raw: str) -> List[M]:
        return adapter.validate_json(raw)
    return decode


def decode_value(key: str, raw: str, decode: Callable[[str], T]) -> T:
    """Run a decoder, converting decode errors into CorruptPersistedValueException"""
    try:
        return decode(raw)
    except (ValueError, TypeError) as e:
        # pydantic.ValidationError and json.JSONDecodeError are ValueErrors
        raise CorruptPersistedValueException(key, str(e).split("\n")[0]) from e


def dump_models(models: List[BaseModel]) -> str:
    return dump_json([m.model_dump(mode="json", by_alias=True) for m in models])


def dump_model(model: BaseModel) -> str:
    return dump_json(model.model_dump(mode="json", by_alias=True))


class UserDataRepository:
    """Repository for per-user persisted fields"""

    def __init__(self, store: KeyValueStore):
        self.store = store

    @staticmethod
    def field_key(user_id: str, field: str) -> str:
        return f"{STORAGE_PREFIX}{user_id}_{field}"

    @staticmethod
    def lock(user_id: str) -> threading.RLock:
        return get_user_lock(user_id)

    def get_raw(self, user_id: str, field: str) -> Optional[str]:
        return self.store.get(self.field_key(user_id, field))

    def set_raw(self, user_id: str, field: str, value: Optional[str]) -> None:
        """Store raw text; None removes the field"""
        key = self.field_key(user_id, field)
        if value is None:
            self.store.delete(key)
        else:
            self.store.set(key, value)

    def set_raw_many(self, user_id: str, values: Dict[str, str]) -> None:
        """Store several raw fields in a single commit"""
        self.store.set_many({
            self.field_key(user_id, field): value for field, value in values.items()
        })

    def read(
        self,
        user_id: str,
        field: str,
        decode: Callable[[str], T],
        default: Callable[[], T],
    ) -> T:
        """Decode a field, substituting the default when absent or corrupt"""
        raw = self.get_raw(user_id, field)
        if raw is None:
            return default()
        try:
            return decode_value(self.field_key(user_id, field), raw, decode)
        except CorruptPersistedValueException as e:
            logger.warning(f"{e} - using default value")
            return default()
