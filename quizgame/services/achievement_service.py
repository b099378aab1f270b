"""
Achievement service.
Evaluates stat thresholds against the fixed catalog. Unlocks are permanent:
the unlocked list only ever grows.
"""
import logging
from typing import List, Union

from quizgame.catalog import ACHIEVEMENTS
from quizgame.constants import FIELD_ACHIEVEMENTS
from quizgame.exceptions import ValidationException
from quizgame.repositories.user_data_repository import (
    UserDataRepository, decode_string_list, dump_json
)
from quizgame.schemas import AchievementProgress, ConditionType, UserStats

logger = logging.getLogger("quizgame.achievements")


class AchievementService:
    """Service for permanent achievement unlocks"""

    def __init__(self, data: UserDataRepository):
        self.data = data

    def get_unlocked(self, user_id: str) -> List[str]:
        return self.data.read(user_id, FIELD_ACHIEVEMENTS, decode_string_list, list)

    def check_and_unlock(
        self,
        user_id: str,
        condition_type: Union[ConditionType, str],
        current_value: int
    ) -> List[str]:
        """
        Unlock every achievement of this condition type whose threshold is reached.

        Returns:
            Newly unlocked achievement ids in catalog order (empty when nothing changed)
        """
        try:
            condition = ConditionType(condition_type)
        except ValueError:
            raise ValidationException("condition_type", f"unknown condition '{condition_type}'") from None

        with self.data.lock(user_id):
            unlocked = self.get_unlocked(user_id)
            newly_unlocked = [
                a.id for a in ACHIEVEMENTS
                if a.condition_type == condition
                and a.id not in unlocked
                and a.target_value <= current_value
            ]
            if newly_unlocked:
                self.data.set_raw(user_id, FIELD_ACHIEVEMENTS, dump_json(unlocked + newly_unlocked))

        for achievement_id in newly_unlocked:
            logger.info(f"Achievement unlocked for {user_id}: {achievement_id}")
        return newly_unlocked

    def handle_coins_changed(self, user_id: str, new_total: int) -> None:
        """Coin balance listener: re-evaluates coin achievements after every change"""
        self.check_and_unlock(user_id, ConditionType.TOTAL_COINS, new_total)

    def get_progress(self, user_id: str, stats: UserStats, coins: int) -> List[AchievementProgress]:
        """Progress toward every achievement, for display"""
        unlocked = set(self.get_unlocked(user_id))
        values = {
            ConditionType.TOTAL_CORRECT: stats.total_correct,
            ConditionType.TOTAL_ANSWERED: stats.total_answered,
            ConditionType.TOTAL_COINS: coins,
            ConditionType.MISTAKES_CLEARED: stats.mistakes_cleared,
            ConditionType.STREAK_RECORD: stats.max_streak,
        }
        progress = []
        for achievement in ACHIEVEMENTS:
            is_unlocked = achievement.id in unlocked
            current = values[achievement.condition_type]
            if is_unlocked:
                percent = 100.0
            else:
                percent = min(100.0, max(0.0, current / achievement.target_value * 100))
            progress.append(AchievementProgress(
                achievement=achievement,
                unlocked=is_unlocked,
                current_value=current,
                percent=round(percent, 1),
            ))
        return progress
