"""
Tests for save transfer (export / import).

Tests cover:
1. Bundle layout
2. Round trip into another user
3. Merge semantics and envelope validation
4. Single-commit import against the SQL store
"""
import json

import pytest

from quizgame.constants import USER_FIELDS
from quizgame.exceptions import InvalidFormatException
from quizgame.repositories.user_data_repository import UserDataRepository
from quizgame.services import save_transfer_service
from quizgame.services.game_services import build_services


def _play_a_bit(services, user_id):
    services.progression.add_coins(user_id, 700)
    services.progression.add_to_inventory(user_id, "r1")
    services.progression.set_equipped(user_id, "r1")
    services.tasks.update_progress(user_id, "quiz", 1)
    services.stats.record_answer(user_id, True, streak=1)
    services.achievements.check_and_unlock(user_id, "total_correct", 1)
    save_transfer_service.mark_tutorial_done(services.data, user_id)


class TestExport:
    """Tests for export_user_data"""

    def test_bundle_layout(self, services, user, clock):
        _play_a_bit(services, user.id)

        bundle = save_transfer_service.export_user_data(services.data, user.id)

        assert bundle["version"] == 1
        assert bundle["userId"] == user.id
        assert isinstance(bundle["timestamp"], int)
        assert bundle["coins"] == "700"
        assert bundle["inventory"] == '["r1"]'
        assert bundle["equipped"] == "r1"
        assert bundle["tutorial_complete"] == "true"
        assert bundle["mistakes"] is None
        assert set(USER_FIELDS) <= set(bundle)

    def test_fresh_user_exports_nulls(self, services, user):
        bundle = save_transfer_service.export_user_data(services.data, user.id)

        assert all(bundle[field] is None for field in USER_FIELDS)

    def test_export_json_is_valid(self, services, user):
        text = save_transfer_service.export_user_data_json(services.data, user.id)

        assert json.loads(text)["userId"] == user.id


class TestImport:
    """Tests for import_user_data"""

    def test_round_trip_into_another_user(self, services, user, clock):
        """Importing A's export into B makes every field of B equal to A's"""
        _play_a_bit(services, user.id)
        other = services.users.register("bob")
        text = save_transfer_service.export_user_data_json(services.data, user.id)

        assert save_transfer_service.import_user_data(services.data, other.id, text) is True

        for field in USER_FIELDS:
            assert services.data.get_raw(other.id, field) == services.data.get_raw(user.id, field)
        assert services.progression.get_coins(other.id) == 700
        assert save_transfer_service.is_tutorial_done(services.data, other.id) is True

    def test_absent_fields_left_untouched(self, services, user):
        """Imports merge rather than replace"""
        services.progression.add_coins(user.id, 50)
        services.progression.add_to_inventory(user.id, "sr1")

        save_transfer_service.import_user_data(
            services.data, user.id, {"version": 1, "userId": "x", "coins": "999"}
        )

        assert services.progression.get_coins(user.id) == 999
        assert services.progression.get_inventory(user.id) == ["sr1"]

    def test_null_and_empty_fields_skipped(self, services, user):
        services.progression.set_equipped(user.id, "r2")

        save_transfer_service.import_user_data(
            services.data, user.id, {"version": 1, "userId": "x", "equipped": None, "coins": ""}
        )

        assert services.progression.get_equipped(user.id) == "r2"
        assert services.data.get_raw(user.id, "coins") is None

    def test_non_string_values_are_json_encoded(self, services, user):
        save_transfer_service.import_user_data(
            services.data, user.id, {"version": 1, "userId": "x", "inventory": ["r1", "r2"], "coins": 30}
        )

        assert services.data.get_raw(user.id, "inventory") == '["r1","r2"]'
        assert services.progression.get_coins(user.id) == 30

    @pytest.mark.parametrize("bundle", [
        "not json at all",
        "[1, 2, 3]",
        '{"userId": "x"}',
        '{"version": 1}',
        '{"version": 0, "userId": "x"}',
    ])
    def test_invalid_envelope_rejected(self, services, user, bundle):
        """Unparsable or incomplete bundles raise and write nothing"""
        services.progression.add_coins(user.id, 10)

        with pytest.raises(InvalidFormatException):
            save_transfer_service.import_user_data(services.data, user.id, bundle)

        assert services.progression.get_coins(user.id) == 10

    def test_malformed_field_recovers_to_default(self, services, user):
        """Fields are not validated on import; bad values read back as defaults"""
        save_transfer_service.import_user_data(
            services.data, user.id, {"version": 1, "userId": "x", "coins": "abc", "stats": "{oops"}
        )

        assert services.progression.get_coins(user.id) == 0
        assert services.stats.get_stats(user.id).total_answered == 0

    def test_import_into_sql_store(self, store, clock):
        """Import commits every field to the database"""
        services = build_services(store)
        source = services.users.register("alice")
        target = services.users.register("bob")
        _play_a_bit(services, source.id)
        bundle = save_transfer_service.export_user_data(services.data, source.id)

        save_transfer_service.import_user_data(services.data, target.id, bundle)

        fresh = UserDataRepository(store)
        for field in USER_FIELDS:
            assert fresh.get_raw(target.id, field) == fresh.get_raw(source.id, field)
