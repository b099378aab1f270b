"""
Tests for key-value stores and UserDataRepository.
"""
import logging

import pytest
from sqlalchemy.exc import IntegrityError

from quizgame.repositories.storage_repository import InMemoryKeyValueStore
from quizgame.repositories.user_data_repository import (
    UserDataRepository, decode_int, dump_json, get_user_lock
)


@pytest.fixture(params=["memory", "sql"])
def any_store(request, memory_store, store):
    return memory_store if request.param == "memory" else store


class TestKeyValueStore:
    """Behaviour shared by both stores"""

    def test_get_missing_returns_none(self, any_store):
        assert any_store.get("nope") is None

    def test_set_overwrites(self, any_store):
        any_store.set("k", "1")
        any_store.set("k", "2")

        assert any_store.get("k") == "2"

    def test_delete(self, any_store):
        any_store.set("k", "1")

        any_store.delete("k")
        any_store.delete("k")

        assert any_store.get("k") is None

    def test_set_many(self, any_store):
        any_store.set("a", "old")

        any_store.set_many({"a": "1", "b": "2"})

        assert any_store.get("a") == "1"
        assert any_store.get("b") == "2"

    def test_keys_by_prefix_treats_underscore_literally(self, any_store):
        """The user key separator must not act as a wildcard"""
        any_store.set("zsb_v2_u1_coins", "1")
        any_store.set("zsb_v2_u1_stats", "{}")
        any_store.set("zsbXv2_u1_coins", "1")
        any_store.set("zsb_users_db", "[]")

        assert any_store.keys("zsb_v2_u1_") == ["zsb_v2_u1_coins", "zsb_v2_u1_stats"]


class TestSqlStore:
    """SQL-specific behaviour"""

    def test_set_many_rolls_back_on_failure(self, store, db_session):
        """A failing batch leaves earlier values in place"""
        store.set("a", "1")

        with pytest.raises(IntegrityError):
            store.set_many({"a": "2", "b": None})

        assert store.get("a") == "1"
        assert store.get("b") is None


class TestUserDataRepository:
    """Tests for field access"""

    def test_field_key_layout(self):
        assert UserDataRepository.field_key("abc", "coins") == "zsb_v2_abc_coins"

    def test_set_raw_none_deletes(self, memory_store):
        data = UserDataRepository(memory_store)
        data.set_raw("u1", "equipped", "r1")

        data.set_raw("u1", "equipped", None)

        assert memory_store.get("zsb_v2_u1_equipped") is None

    def test_corrupt_value_logged_and_defaulted(self, caplog):
        data = UserDataRepository(InMemoryKeyValueStore({"zsb_v2_u1_coins": "NaN?"}))

        with caplog.at_level(logging.WARNING, logger="quizgame.storage"):
            value = data.read("u1", "coins", decode_int, lambda: 0)

        assert value == 0
        assert "zsb_v2_u1_coins" in caplog.text

    @pytest.mark.parametrize("raw, expected", [
        ("42", 42), ("-30", -30), (" 7", 7), ("500.5", 500), ("12abc", 12),
    ])
    def test_decode_int_reads_leading_integer(self, raw, expected):
        assert decode_int(raw) == expected

    def test_decode_int_without_digits_is_corrupt(self):
        with pytest.raises(ValueError):
            decode_int("abc12")

    def test_dump_json_is_compact(self):
        assert dump_json({"a": [1, 2], "b": "é"}) == '{"a":[1,2],"b":"é"}'

    def test_user_lock_is_reentrant_and_shared(self):
        lock = get_user_lock("u-lock")

        with lock:
            with get_user_lock("u-lock"):
                assert get_user_lock("u-lock") is lock
