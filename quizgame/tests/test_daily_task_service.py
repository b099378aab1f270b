"""
Tests for DailyTaskService.

Tests cover:
1. Day rollover based on the stored last-active day
2. Progress rules (additive, absolute, streak maximum) and clamping
3. Claim idempotency
"""
import json
import random
from datetime import datetime

from quizgame.repositories.user_data_repository import UserDataRepository
from quizgame.services.daily_task_service import DailyTaskService
from quizgame.services.date_service import DateService


def _by_id(tasks):
    return {t.id: t for t in tasks}


class TestRollover:
    """Tests for get_tasks"""

    def test_first_access_builds_catalog_defaults(self, memory_store, clock):
        """New user gets six tasks with login pre-satisfied"""
        service = DailyTaskService(UserDataRepository(memory_store))

        tasks = service.get_tasks("u1")

        assert [t.id for t in tasks] == ["login", "quiz", "correct", "streak", "necromancer", "scholar"]
        by_id = _by_id(tasks)
        assert by_id["login"].current == 1
        assert all(t.current == 0 for t in tasks if t.id != "login")
        assert not any(t.claimed for t in tasks)
        assert memory_store.get("zsb_v2_u1_last_login") == "Sun Oct 18 2026"

    def test_same_day_keeps_progress(self, memory_store, clock):
        """Two reads on the same day return identical state"""
        service = DailyTaskService(UserDataRepository(memory_store))
        service.update_progress("u1", "quiz", 1)

        first = service.get_tasks("u1")
        clock.now.return_value = datetime(2026, 10, 18, 23, 59, 0)
        second = service.get_tasks("u1")

        assert first == second
        assert _by_id(second)["quiz"].current == 1

    def test_next_day_resets_tasks(self, memory_store, clock):
        """Progress and claims are wiped on a new calendar day"""
        service = DailyTaskService(UserDataRepository(memory_store))
        service.update_progress("u1", "quiz", 1)
        service.claim("u1", "quiz")

        clock.now.return_value = datetime(2026, 10, 19, 0, 1, 0)
        tasks = _by_id(service.get_tasks("u1"))

        assert tasks["quiz"].current == 0
        assert tasks["quiz"].claimed is False
        assert tasks["login"].current == 1
        assert memory_store.get("zsb_v2_u1_last_login") == "Mon Oct 19 2026"

    def test_corrupt_task_list_is_rebuilt(self, memory_store, clock):
        memory_store.set("zsb_v2_u1_last_login", DateService.format_day_key(clock.now.return_value.date()))
        memory_store.set("zsb_v2_u1_tasks", "[{broken")
        service = DailyTaskService(UserDataRepository(memory_store))

        tasks = service.get_tasks("u1")

        assert len(tasks) == 6

    def test_tasks_stored_with_camel_case_keys(self, memory_store, clock):
        service = DailyTaskService(UserDataRepository(memory_store))

        service.get_tasks("u1")

        stored = json.loads(memory_store.get("zsb_v2_u1_tasks"))
        assert stored[0] == {
            "id": "login", "title": "Adventure Begins", "desc": "Log in to the game",
            "target": 1, "current": 1, "reward": 50, "claimed": False, "difficulty": "EASY",
        }


class TestProgress:
    """Tests for update_progress"""

    def test_correct_task_clamps_at_target(self, memory_store, clock):
        """Fifteen correct answers complete the task; more do not overflow"""
        service = DailyTaskService(UserDataRepository(memory_store))

        for _ in range(15):
            tasks = service.update_progress("u1", "correct", 1)
        assert _by_id(tasks)["correct"].current == 15

        tasks = service.update_progress("u1", "correct", 1)
        assert _by_id(tasks)["correct"].current == 15

    def test_streak_keeps_daily_maximum(self, memory_store, clock):
        """Reports 3, 5, 2 leave the streak task at 5"""
        service = DailyTaskService(UserDataRepository(memory_store))

        for streak in (3, 5, 2):
            tasks = service.update_progress("u1", "streak", streak, is_absolute=True)

        assert _by_id(tasks)["streak"].current == 5

    def test_streak_clamped_to_target(self, memory_store, clock):
        service = DailyTaskService(UserDataRepository(memory_store))

        tasks = service.update_progress("u1", "streak", 12, is_absolute=True)

        assert _by_id(tasks)["streak"].current == 5

    def test_absolute_sets_value(self, memory_store, clock):
        service = DailyTaskService(UserDataRepository(memory_store))
        service.update_progress("u1", "scholar", 2)

        tasks = service.update_progress("u1", "scholar", 1, is_absolute=True)

        assert _by_id(tasks)["scholar"].current == 1

    def test_negative_amount_floors_at_zero(self, memory_store, clock):
        service = DailyTaskService(UserDataRepository(memory_store))

        tasks = service.update_progress("u1", "quiz", -5)

        assert _by_id(tasks)["quiz"].current == 0

    def test_unknown_task_changes_nothing(self, memory_store, clock):
        """Unknown ids are ignored"""
        service = DailyTaskService(UserDataRepository(memory_store))
        before = service.get_tasks("u1")

        after = service.update_progress("u1", "dragon", 1)

        assert after == before

    def test_progress_stays_in_bounds(self, memory_store, clock):
        """Random updates never leave [0, target]"""
        rng = random.Random(11)
        service = DailyTaskService(UserDataRepository(memory_store))
        ids = ["quiz", "correct", "streak", "necromancer", "scholar"]

        for _ in range(300):
            tasks = service.update_progress(
                "u1", rng.choice(ids), rng.randint(-10, 20), is_absolute=rng.random() < 0.3
            )
            for task in tasks:
                assert 0 <= task.current <= task.target


class TestClaim:
    """Tests for claim"""

    def test_login_claimable_immediately(self, memory_store, clock):
        service = DailyTaskService(UserDataRepository(memory_store))

        assert service.claim("u1", "login") == 50

    def test_claim_is_idempotent(self, memory_store, clock):
        """Only the first claim pays"""
        service = DailyTaskService(UserDataRepository(memory_store))
        for _ in range(15):
            service.update_progress("u1", "correct", 1)

        assert service.claim("u1", "correct") == 200
        assert service.claim("u1", "correct") == 0
        assert _by_id(service.get_tasks("u1"))["correct"].claimed is True

    def test_incomplete_task_pays_nothing(self, memory_store, clock):
        service = DailyTaskService(UserDataRepository(memory_store))

        assert service.claim("u1", "scholar") == 0
        assert _by_id(service.get_tasks("u1"))["scholar"].claimed is False

    def test_unknown_task_pays_nothing(self, memory_store, clock):
        service = DailyTaskService(UserDataRepository(memory_store))

        assert service.claim("u1", "dragon") == 0
