"""
Daily task service.
Keeps the six daily objectives scoped to the local calendar day, tracks their
progress and pays out each reward at most once.
"""
import logging
from typing import List, Optional

from quizgame.catalog import build_daily_tasks
from quizgame.constants import FIELD_LAST_LOGIN, FIELD_TASKS, TASK_STREAK
from quizgame.repositories.user_data_repository import (
    UserDataRepository, dump_models, model_list_decoder
)
from quizgame.schemas import DailyTask
from quizgame.services.date_service import DateService

logger = logging.getLogger("quizgame.tasks")

_decode_tasks = model_list_decoder(DailyTask)


class DailyTaskService:
    """Service for daily objectives"""

    def __init__(self, data: UserDataRepository, date_service: Optional[DateService] = None):
        self.data = data
        self.date_service = date_service or DateService()

    def get_tasks(self, user_id: str) -> List[DailyTask]:
        """
        Get today's tasks, rebuilding them on the first access of a new day.

        The task set is regenerated when the stored last-active day differs
        from today or no readable task set exists.
        """
        with self.data.lock(user_id):
            today = self.date_service.get_today_key()
            last_active = self.data.get_raw(user_id, FIELD_LAST_LOGIN)
            tasks = self.data.read(user_id, FIELD_TASKS, _decode_tasks, list)

            if last_active != today or not tasks:
                logger.info(f"Daily task rollover for {user_id}: {last_active!r} -> {today!r}")
                tasks = build_daily_tasks()
                self._save(user_id, tasks)
                self.data.set_raw(user_id, FIELD_LAST_LOGIN, today)

            return tasks

    def update_progress(
        self,
        user_id: str,
        task_id: str,
        amount: int = 1,
        is_absolute: bool = False
    ) -> List[DailyTask]:
        """
        Advance a task's progress.

        - streak: keeps the best streak reported today
        - is_absolute: sets progress to amount
        - otherwise: adds amount

        Progress is clamped to [0, target]. Unknown task ids change nothing.

        Returns:
            Updated task list
        """
        with self.data.lock(user_id):
            tasks = self.get_tasks(user_id)
            for task in tasks:
                if task.id != task_id:
                    continue
                if task_id == TASK_STREAK:
                    value = max(task.current, amount)
                elif is_absolute:
                    value = amount
                else:
                    value = task.current + amount
                task.current = max(0, min(value, task.target))
            self._save(user_id, tasks)
            return tasks

    def claim(self, user_id: str, task_id: str) -> int:
        """
        Claim a completed task's reward.

        Returns:
            Reward amount on the first successful claim, otherwise 0
        """
        with self.data.lock(user_id):
            tasks = self.get_tasks(user_id)
            task = next((t for t in tasks if t.id == task_id), None)
            if task is None or task.claimed or task.current < task.target:
                return 0

            task.claimed = True
            self._save(user_id, tasks)

        logger.info(f"Task '{task_id}' claimed by {user_id}: +{task.reward}")
        return task.reward

    def _save(self, user_id: str, tasks: List[DailyTask]) -> None:
        self.data.set_raw(user_id, FIELD_TASKS, dump_models(tasks))
