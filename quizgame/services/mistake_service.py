"""
Mistake ledger service.
Records incorrectly answered questions (one record per question text) and
removes them once mastered. Clearing statistics are the caller's job.
"""
import logging
from typing import List, Optional

from quizgame.constants import FIELD_MISTAKES
from quizgame.repositories.user_data_repository import (
    UserDataRepository, dump_models, model_list_decoder
)
from quizgame.schemas import MistakeRecord, Question
from quizgame.services.date_service import DateService
from quizgame.shared.id_utils import generate_id

logger = logging.getLogger("quizgame.mistakes")

_decode_mistakes = model_list_decoder(MistakeRecord)


class MistakeService:
    """Service for the per-user mistake ledger"""

    def __init__(self, data: UserDataRepository, date_service: Optional[DateService] = None):
        self.data = data
        self.date_service = date_service or DateService()

    def get_mistakes(self, user_id: str, subject_id: Optional[str] = None) -> List[MistakeRecord]:
        """Get mistakes, newest first, optionally for one subject"""
        mistakes = self.data.read(user_id, FIELD_MISTAKES, _decode_mistakes, list)
        if subject_id is not None:
            mistakes = [m for m in mistakes if m.subject_id == subject_id]
        return mistakes

    def contains(self, user_id: str, question_text: str) -> bool:
        return any(m.question == question_text for m in self.get_mistakes(user_id))

    def record(self, user_id: str, subject_id: str, question: Question) -> bool:
        """
        Add a question to the head of the ledger unless its text is already recorded.

        Returns:
            True if a record was added
        """
        with self.data.lock(user_id):
            mistakes = self.get_mistakes(user_id)
            if any(m.question == question.question for m in mistakes):
                return False

            record = MistakeRecord(
                **question.model_dump(include={"question", "options", "correct_index", "explanation"}),
                id=generate_id(),
                subject_id=subject_id,
                added_at=self.date_service.now_millis(),
            )
            self._save(user_id, [record] + mistakes)

        logger.debug(f"Mistake recorded for {user_id} in {subject_id}")
        return True

    def remove(self, user_id: str, question_text: str) -> int:
        """
        Remove every record with exactly this question text.

        Returns:
            Number of records removed
        """
        with self.data.lock(user_id):
            mistakes = self.get_mistakes(user_id)
            remaining = [m for m in mistakes if m.question != question_text]
            removed = len(mistakes) - len(remaining)
            if removed:
                self._save(user_id, remaining)
        return removed

    def _save(self, user_id: str, mistakes: List[MistakeRecord]) -> None:
        self.data.set_raw(user_id, FIELD_MISTAKES, dump_models(mistakes))
