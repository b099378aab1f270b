"""
Date calculation service.
Handles the local calendar-day key that scopes daily tasks, and timestamps.
"""
from datetime import datetime, date

from quizgame.constants import DAY_KEY_FORMAT


class DateService:
    """Service for date-related operations"""

    @staticmethod
    def get_today() -> date:
        """Current local calendar date"""
        return datetime.now().date()

    @staticmethod
    def format_day_key(target_date: date) -> str:
        """
        Format a date the way the browser client stores its last-active day.

        Example: date(2026, 10, 4) -> "Sun Oct 04 2026"
        """
        return target_date.strftime(DAY_KEY_FORMAT)

    def get_today_key(self) -> str:
        return self.format_day_key(self.get_today())

    @staticmethod
    def now_millis() -> int:
        """Current time as epoch milliseconds (browser Date.now())"""
        return int(datetime.now().timestamp() * 1000)
