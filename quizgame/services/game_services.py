"""
Service bundle for one key-value store.

Wires the engines together: every coin change is forwarded to the
achievement service so coin achievements unlock no matter which path
moved the balance.
"""
import random
from typing import Iterable, List, Optional

from quizgame.repositories.storage_repository import KeyValueStore
from quizgame.repositories.user_data_repository import UserDataRepository
from quizgame.services.achievement_service import AchievementService
from quizgame.services.daily_task_service import DailyTaskService
from quizgame.services.date_service import DateService
from quizgame.services.gacha_service import GachaService
from quizgame.services.mistake_service import MistakeService
from quizgame.services.progression_service import ProgressionService
from quizgame.services.stats_service import StatsService
from quizgame.services.user_service import UserService


class GameServices:
    def __init__(
        self,
        store: KeyValueStore,
        rng: Optional[random.Random] = None,
        date_service: Optional[DateService] = None
    ):
        self.store = store
        self.data = UserDataRepository(store)
        self.users = UserService(store, date_service)
        self.progression = ProgressionService(self.data)
        self.stats = StatsService(self.data)
        self.tasks = DailyTaskService(self.data, date_service)
        self.achievements = AchievementService(self.data)
        self.gacha = GachaService(self.progression, rng)
        self.mistakes = MistakeService(self.data, date_service)

        self.progression.subscribe_coins_changed(self.achievements.handle_coins_changed)

    def new_unlocks(self, user_id: str, before: Iterable[str]) -> List[str]:
        """Achievement ids unlocked since the `before` snapshot, in unlock order"""
        seen = set(before)
        return [a for a in self.achievements.get_unlocked(user_id) if a not in seen]


def build_services(
    store: KeyValueStore,
    rng: Optional[random.Random] = None,
    date_service: Optional[DateService] = None
) -> GameServices:
    return GameServices(store, rng=rng, date_service=date_service)
