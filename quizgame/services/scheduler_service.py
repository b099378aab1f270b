"""
Background scheduler for exam countdowns.

Each exam session gets one date-triggered job that submits the session when
its time runs out. Jobs are cancelled when the session is submitted or left.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger

logger = logging.getLogger("quizgame.scheduler")


def _job_id(session_id: str) -> str:
    return f"exam_{session_id}"


class ExamTimer:
    """Per-session exam deadlines on an APScheduler background scheduler"""

    def __init__(self, scheduler: Optional[BackgroundScheduler] = None):
        self.scheduler = scheduler or BackgroundScheduler()

    def start(self) -> None:
        """Start the background scheduler"""
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Exam timer scheduler started")

    def shutdown(self) -> None:
        """Stop the background scheduler"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Exam timer scheduler stopped")

    def schedule(self, session_id: str, seconds: int, callback: Callable[[str], None]) -> datetime:
        """
        Run callback(session_id) once after the given number of seconds.

        Scheduling the same session again replaces its previous deadline.

        Returns:
            The deadline
        """
        deadline = datetime.now() + timedelta(seconds=seconds)
        self.scheduler.add_job(
            callback,
            DateTrigger(run_date=deadline),
            args=[session_id],
            id=_job_id(session_id),
            replace_existing=True
        )
        logger.info(f"Exam timer set for session {session_id}: {seconds}s")
        return deadline

    def cancel(self, session_id: str) -> None:
        """Remove a session's job; a job that already fired is ignored"""
        try:
            self.scheduler.remove_job(_job_id(session_id))
            logger.debug(f"Exam timer cancelled for session {session_id}")
        except JobLookupError:
            pass

    def is_scheduled(self, session_id: str) -> bool:
        return self.scheduler.get_job(_job_id(session_id)) is not None
