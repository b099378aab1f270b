"""
Tests for MistakeService and StatsService.
"""
from unittest.mock import MagicMock

import pytest

from quizgame.exceptions import ValidationException
from quizgame.repositories.user_data_repository import UserDataRepository
from quizgame.schemas import Question
from quizgame.services.date_service import DateService
from quizgame.services.game_services import build_services
from quizgame.services.mistake_service import MistakeService
from quizgame.services.stats_service import StatsService


def make_question(text: str = "What is 2 + 2?") -> Question:
    return Question(question=text, options=["3", "4", "5", "6"], correct_index=1, explanation="Basic sum.")


class TestRecord:
    """Tests for record"""

    def test_record_adds_to_head(self, memory_store, clock):
        service = MistakeService(UserDataRepository(memory_store))

        service.record("u1", "math", make_question("Q1"))
        service.record("u1", "english", make_question("Q2"))

        mistakes = service.get_mistakes("u1")
        assert [m.question for m in mistakes] == ["Q2", "Q1"]
        assert mistakes[0].subject_id == "english"
        assert mistakes[0].id
        assert mistakes[0].added_at > 0

    def test_duplicate_text_ignored(self, memory_store, clock):
        """Recording the same question twice keeps one record, even across subjects"""
        service = MistakeService(UserDataRepository(memory_store))

        assert service.record("u1", "math", make_question()) is True
        assert service.record("u1", "computer", make_question()) is False

        assert len(service.get_mistakes("u1")) == 1

    def test_record_from_existing_record(self, memory_store, clock):
        """A mistake record can be recorded again by another user (review sessions pass records)"""
        service = MistakeService(UserDataRepository(memory_store))
        service.record("u1", "math", make_question())
        record = service.get_mistakes("u1")[0]

        assert service.record("u2", "math", record) is True
        assert service.get_mistakes("u2")[0].question == record.question

    def test_filter_by_subject(self, memory_store, clock):
        service = MistakeService(UserDataRepository(memory_store))
        service.record("u1", "math", make_question("Q1"))
        service.record("u1", "english", make_question("Q2"))

        assert [m.question for m in service.get_mistakes("u1", "math")] == ["Q1"]

    def test_stored_with_camel_case_keys(self, memory_store, clock):
        service = MistakeService(UserDataRepository(memory_store))
        service.record("u1", "math", make_question())

        raw = memory_store.get("zsb_v2_u1_mistakes")

        assert '"correctIndex":1' in raw
        assert '"subjectId":"math"' in raw
        assert '"addedAt":' in raw


    def test_services_share_one_clock(self, memory_store):
        """The date service given to the bundle stamps users and mistakes alike"""
        date_service = MagicMock(spec=DateService)
        date_service.now_millis.return_value = 1700000000000
        services = build_services(memory_store, date_service=date_service)

        user = services.users.register("clocked")
        services.mistakes.record(user.id, "math", make_question())

        assert user.created_at == 1700000000000
        assert services.mistakes.get_mistakes(user.id)[0].added_at == 1700000000000


class TestRemove:
    """Tests for remove / contains"""

    def test_remove_by_text(self, memory_store, clock):
        service = MistakeService(UserDataRepository(memory_store))
        service.record("u1", "math", make_question("Q1"))
        service.record("u1", "math", make_question("Q2"))

        assert service.remove("u1", "Q1") == 1
        assert service.contains("u1", "Q1") is False
        assert service.contains("u1", "Q2") is True

    def test_remove_missing_is_noop(self, memory_store, clock):
        service = MistakeService(UserDataRepository(memory_store))

        assert service.remove("u1", "nothing") == 0
        assert service.get_mistakes("u1") == []


class TestStats:
    """Tests for StatsService"""

    def test_defaults(self, memory_store):
        stats = StatsService(UserDataRepository(memory_store)).get_stats("u1")

        assert (stats.total_correct, stats.total_answered, stats.mistakes_cleared, stats.max_streak) == (0, 0, 0, 0)

    def test_record_answer(self, memory_store):
        service = StatsService(UserDataRepository(memory_store))

        service.record_answer("u1", True, streak=1)
        service.record_answer("u1", True, streak=2)
        stats = service.record_answer("u1", False)

        assert stats.total_answered == 3
        assert stats.total_correct == 2
        assert stats.max_streak == 2

    def test_max_streak_never_decreases(self, memory_store):
        service = StatsService(UserDataRepository(memory_store))
        service.update_stats("u1", max_streak=8)

        stats = service.update_stats("u1", max_streak=3)

        assert stats.max_streak == 8

    def test_record_mistake_cleared(self, memory_store):
        service = StatsService(UserDataRepository(memory_store))

        service.record_mistake_cleared("u1")

        assert service.get_stats("u1").mistakes_cleared == 1
        assert memory_store.get("zsb_v2_u1_stats") == (
            '{"totalCorrect":0,"totalAnswered":0,"mistakesCleared":1,"maxStreak":0}'
        )

    def test_unknown_counter_rejected(self, memory_store):
        service = StatsService(UserDataRepository(memory_store))

        with pytest.raises(ValidationException):
            service.update_stats("u1", total_dragons=1)
