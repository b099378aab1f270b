"""
Stats service - lifetime answer counters that feed achievements.
"""
from quizgame.constants import FIELD_STATS
from quizgame.exceptions import ValidationException
from quizgame.repositories.user_data_repository import (
    UserDataRepository, dump_model, model_decoder
)
from quizgame.schemas import UserStats

_decode_stats = model_decoder(UserStats)


class StatsService:
    """Service for per-user lifetime statistics"""

    def __init__(self, data: UserDataRepository):
        self.data = data

    def get_stats(self, user_id: str) -> UserStats:
        return self.data.read(user_id, FIELD_STATS, _decode_stats, UserStats)

    def update_stats(self, user_id: str, **updates: int) -> UserStats:
        """
        Merge counter updates into the stored stats.

        max_streak keeps the larger of the stored and given values.
        """
        unknown = set(updates) - set(UserStats.model_fields)
        if unknown:
            raise ValidationException("stats", f"unknown counters: {sorted(unknown)}")

        with self.data.lock(user_id):
            current = self.get_stats(user_id)
            if "max_streak" in updates:
                updates["max_streak"] = max(current.max_streak, updates["max_streak"])
            updated = current.model_copy(update=updates)
            self.data.set_raw(user_id, FIELD_STATS, dump_model(updated))
        return updated

    def record_answer(self, user_id: str, correct: bool, streak: int = 0) -> UserStats:
        """Count one answered question; correct answers also count toward totals and streak record"""
        with self.data.lock(user_id):
            current = self.get_stats(user_id)
            updates = {"total_answered": current.total_answered + 1}
            if correct:
                updates["total_correct"] = current.total_correct + 1
                updates["max_streak"] = streak
            return self.update_stats(user_id, **updates)

    def record_mistake_cleared(self, user_id: str) -> UserStats:
        with self.data.lock(user_id):
            current = self.get_stats(user_id)
            return self.update_stats(user_id, mistakes_cleared=current.mistakes_cleared + 1)
