"""
Quiz session service.

Runs a quiz from start to result and applies every progression side effect
of answering: coins, daily tasks, stats, mistakes and achievements.

Sessions live in memory only. Persistent effects go through the GameServices
passed to each call, under the user's lock.
"""
import logging
import math
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from quizgame.catalog import get_artifact, get_subject
from quizgame.constants import (
    CORRECT_ANSWER_REWARD, EXAM_SECONDS_PER_QUESTION, FINISHED_SESSION_TTL_SECONDS,
    SESSION_STATE_ERROR,
    SESSION_STATE_QUIZ, SESSION_STATE_RESULT, SOURCE_BANK, SOURCE_AI,
    TASK_CORRECT, TASK_NECROMANCER, TASK_QUIZ, TASK_SCHOLAR, TASK_STREAK,
    TOPIC_REVENGE
)
from quizgame.exceptions import (
    EmptyQuestionSetException, ProviderFailureException,
    SessionNotFoundException, UserNotFoundException, ValidationException
)
from quizgame.repositories.user_data_repository import get_user_lock
from quizgame.schemas import (
    AnswerResponse, ClaimResponse, ConditionType, Question, QuizConfig,
    SessionResponse, Subject, ToggleMistakeResponse
)
from quizgame.services.game_services import GameServices
from quizgame.services.question_provider import (
    BankQuestionProvider, GenerativeQuestionProvider, QuestionProvider,
    build_revenge_context
)
from quizgame.services.scheduler_service import ExamTimer
from quizgame.shared.id_utils import generate_id

logger = logging.getLogger("quizgame.sessions")

TOPIC_REVIEW = "review"


class QuizSession:
    def __init__(self, session_id: str, user_id: str, subject_id: str, topic: str, is_exam: bool):
        self.id = session_id
        self.user_id = user_id
        self.subject_id = subject_id
        self.topic = topic
        self.is_exam = is_exam
        self.questions: List[Question] = []
        self.answers: List[Optional[int]] = []
        self.current_index = 0
        self.streak = 0
        self.state = SESSION_STATE_QUIZ
        self.deadline: Optional[datetime] = None
        self.finished_at: Optional[datetime] = None

    @property
    def current_question(self) -> Question:
        return self.questions[self.current_index]

    @property
    def score(self) -> int:
        return sum(
            1 for q, a in zip(self.questions, self.answers)
            if a is not None and a == q.correct_index
        )


class QuizSessionService:
    """Service for running quiz sessions"""

    def __init__(
        self,
        timer: Optional[ExamTimer] = None,
        bank_provider: Optional[QuestionProvider] = None,
        generate: Optional[Callable[[str], str]] = None,
        finished_ttl: int = FINISHED_SESSION_TTL_SECONDS
    ):
        self.timer = timer
        self.bank_provider = bank_provider or BankQuestionProvider()
        self.generative_provider = GenerativeQuestionProvider(generate) if generate else None
        self._sessions: Dict[str, QuizSession] = {}
        self._sessions_lock = threading.Lock()
        self.finished_ttl = finished_ttl

    # === Lookup ===

    def get(self, session_id: str) -> QuizSession:
        """
        Get a session, submitting it first if its exam deadline has passed.

        Raises:
            SessionNotFoundException: If the session does not exist
        """
        with self._sessions_lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundException(session_id)

        if (
            session.state == SESSION_STATE_QUIZ
            and session.deadline is not None
            and datetime.now() >= session.deadline
        ):
            self.submit(session_id)
        return session

    @staticmethod
    def time_left(session: QuizSession) -> Optional[int]:
        """Whole seconds until the exam deadline (None outside exams)"""
        if session.deadline is None:
            return None
        if session.state != SESSION_STATE_QUIZ:
            return 0
        remaining = (session.deadline - datetime.now()).total_seconds()
        return max(0, math.ceil(remaining))

    def to_response(self, session: QuizSession) -> SessionResponse:
        return SessionResponse(
            session_id=session.id,
            user_id=session.user_id,
            subject_id=session.subject_id,
            state=session.state,
            is_exam=session.is_exam,
            current_index=session.current_index,
            questions=session.questions,
            answers=session.answers,
            streak=session.streak,
            time_left=self.time_left(session),
            score=session.score if session.state == SESSION_STATE_RESULT else None,
        )

    # === Starting ===

    def start(
        self,
        services: GameServices,
        user_id: str,
        subject_id: str,
        config: Optional[QuizConfig] = None,
        source: str = SOURCE_BANK
    ) -> QuizSession:
        """
        Start a quiz.

        Starting counts toward the quiz and scholar tasks even if fetching
        questions fails afterwards.

        Raises:
            UserNotFoundException: If the user is not registered
            ValidationException: If the subject or source is unknown
            ProviderFailureException: If the question provider fails
            EmptyQuestionSetException: If no questions are available
        """
        subject = self._require_subject(subject_id)
        self._require_user(services, user_id)
        if source not in (SOURCE_BANK, SOURCE_AI):
            raise ValidationException("source", f"unknown source '{source}'")
        config = config or QuizConfig()

        with services.data.lock(user_id):
            services.tasks.update_progress(user_id, TASK_QUIZ, 1)
            services.tasks.update_progress(user_id, TASK_SCHOLAR, 1)

        session = QuizSession(generate_id(), user_id, subject.id, config.topic, config.is_exam)

        try:
            questions = self._pick_provider(config, source).fetch(subject, config)
        except ProviderFailureException:
            self._finish(session, SESSION_STATE_ERROR)
            self._register(session)
            raise

        if not questions:
            self._finish(session, SESSION_STATE_ERROR)
            self._register(session)
            raise EmptyQuestionSetException(subject.id, config.topic)

        return self._begin(session, questions)

    def start_review(self, services: GameServices, user_id: str, subject_id: str) -> QuizSession:
        """
        Replay the user's recorded mistakes for one subject.

        Raises:
            EmptyQuestionSetException: If the subject has no recorded mistakes
        """
        subject = self._require_subject(subject_id)
        self._require_user(services, user_id)

        mistakes = services.mistakes.get_mistakes(user_id, subject.id)
        if not mistakes:
            raise EmptyQuestionSetException(subject.id, TOPIC_REVIEW)

        session = QuizSession(generate_id(), user_id, subject.id, TOPIC_REVIEW, False)
        return self._begin(session, list(mistakes))

    def start_revenge(
        self,
        services: GameServices,
        user_id: str,
        subject_id: str,
        question_count: int = 5
    ) -> QuizSession:
        """Generate new questions targeting the concepts behind past mistakes"""
        subject = self._require_subject(subject_id)
        mistakes = services.mistakes.get_mistakes(user_id, subject.id)
        config = QuizConfig(
            question_count=question_count,
            topic=TOPIC_REVENGE,
            is_exam=False,
            context_data=build_revenge_context(mistakes),
        )
        return self.start(services, user_id, subject.id, config, SOURCE_AI)

    # === Playing ===

    def answer(self, services: GameServices, session_id: str, option_index: int) -> AnswerResponse:
        """
        Answer the current question.

        Correct: coins (base reward plus equipped bonus), correct and streak
        tasks, streak +1. Wrong: the question goes to the mistake ledger and
        the streak resets. Stats and achievements are updated either way.

        Raises:
            ValidationException: If the session is over, the option is out of
                range or the question was already answered
        """
        session = self._require_active(session_id)
        user_id = session.user_id

        with services.data.lock(user_id):
            self._ensure_active(session)
            question = session.current_question
            if not 0 <= option_index < len(question.options):
                raise ValidationException("option_index", f"must be between 0 and {len(question.options) - 1}")
            if session.answers[session.current_index] is not None:
                raise ValidationException("option_index", "question already answered")

            unlocked_before = services.achievements.get_unlocked(user_id)
            session.answers[session.current_index] = option_index
            correct = option_index == question.correct_index
            coins_awarded = 0

            if correct:
                coins_awarded = CORRECT_ANSWER_REWARD
                artifact = get_artifact(services.progression.get_equipped(user_id))
                if artifact:
                    coins_awarded += artifact.bonus
                coins = services.progression.add_coins(user_id, coins_awarded)

                session.streak += 1
                services.tasks.update_progress(user_id, TASK_CORRECT, 1)
                services.tasks.update_progress(user_id, TASK_STREAK, session.streak, is_absolute=True)
            else:
                services.mistakes.record(user_id, session.subject_id, question)
                session.streak = 0
                coins = services.progression.get_coins(user_id)

            stats = services.stats.record_answer(user_id, correct, session.streak)
            services.achievements.check_and_unlock(user_id, ConditionType.TOTAL_ANSWERED, stats.total_answered)
            if correct:
                services.achievements.check_and_unlock(user_id, ConditionType.TOTAL_CORRECT, stats.total_correct)
                services.achievements.check_and_unlock(user_id, ConditionType.STREAK_RECORD, stats.max_streak)

            unlocked = services.new_unlocks(user_id, unlocked_before)

        return AnswerResponse(
            correct=correct,
            coins_awarded=coins_awarded,
            coins=coins,
            streak=session.streak,
            unlocked=unlocked,
        )

    def toggle_mistake(self, services: GameServices, session_id: str) -> ToggleMistakeResponse:
        """
        Flag or unflag the current question in the mistake ledger.

        Unflagging counts as clearing a mistake: necromancer task progress,
        mistakesCleared +1 and a mistakes_cleared achievement check.
        """
        session = self._require_active(session_id)
        user_id = session.user_id

        with services.data.lock(user_id):
            self._ensure_active(session)
            question = session.current_question
            unlocked_before = services.achievements.get_unlocked(user_id)

            if services.mistakes.contains(user_id, question.question):
                services.mistakes.remove(user_id, question.question)
                services.tasks.update_progress(user_id, TASK_NECROMANCER, 1)
                stats = services.stats.record_mistake_cleared(user_id)
                services.achievements.check_and_unlock(
                    user_id, ConditionType.MISTAKES_CLEARED, stats.mistakes_cleared
                )
                flagged = False
            else:
                services.mistakes.record(user_id, session.subject_id, question)
                flagged = True

            unlocked = services.new_unlocks(user_id, unlocked_before)

        return ToggleMistakeResponse(flagged=flagged, unlocked=unlocked)

    def move_to(self, session_id: str, index: int) -> QuizSession:
        session = self._require_active(session_id)
        if not 0 <= index < len(session.questions):
            raise ValidationException("index", f"must be between 0 and {len(session.questions) - 1}")
        session.current_index = index
        return session

    def submit(self, session_id: str) -> QuizSession:
        """Finish a session and show its result. Submitting twice is harmless."""
        with self._sessions_lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundException(session_id)

        with get_user_lock(session.user_id):
            if self.timer is not None:
                self.timer.cancel(session.id)
            if session.state == SESSION_STATE_QUIZ:
                self._finish(session, SESSION_STATE_RESULT)
                logger.info(
                    f"Session {session.id} submitted by {session.user_id}: "
                    f"{session.score}/{len(session.questions)}"
                )
        return session

    def leave(self, session_id: str) -> None:
        """Abandon a session; its exam timer is cancelled"""
        with self._sessions_lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundException(session_id)
        if self.timer is not None:
            self.timer.cancel(session_id)
        logger.debug(f"Session {session_id} left by {session.user_id}")

    def purge_finished(self) -> int:
        """
        Drop result and error sessions finished more than finished_ttl seconds ago.

        Returns:
            Number of sessions dropped
        """
        cutoff = datetime.now() - timedelta(seconds=self.finished_ttl)
        with self._sessions_lock:
            expired = [
                session_id for session_id, session in self._sessions.items()
                if session.finished_at is not None and session.finished_at <= cutoff
            ]
            for session_id in expired:
                del self._sessions[session_id]
        if expired:
            logger.debug(f"Purged {len(expired)} finished session(s)")
        return len(expired)

    def claim_task(self, services: GameServices, user_id: str, task_id: str) -> ClaimResponse:
        """Claim a daily task reward and credit it"""
        self._require_user(services, user_id)
        with services.data.lock(user_id):
            unlocked_before = services.achievements.get_unlocked(user_id)
            reward = services.tasks.claim(user_id, task_id)
            if reward > 0:
                coins = services.progression.add_coins(user_id, reward)
            else:
                coins = services.progression.get_coins(user_id)
            unlocked = services.new_unlocks(user_id, unlocked_before)

        return ClaimResponse(task_id=task_id, reward=reward, coins=coins, unlocked=unlocked)

    # === Helpers ===

    def _begin(self, session: QuizSession, questions: List[Question]) -> QuizSession:
        session.questions = questions
        session.answers = [None] * len(questions)
        session.current_index = 0
        session.state = SESSION_STATE_QUIZ
        self._register(session)

        if session.is_exam:
            seconds = len(questions) * EXAM_SECONDS_PER_QUESTION
            if self.timer is not None:
                session.deadline = self.timer.schedule(session.id, seconds, self._on_exam_timeout)
            else:
                session.deadline = datetime.now() + timedelta(seconds=seconds)

        logger.info(
            f"Session {session.id} started by {session.user_id}: {session.subject_id}/{session.topic}, "
            f"{len(questions)} question(s){' [exam]' if session.is_exam else ''}"
        )
        return session

    def _on_exam_timeout(self, session_id: str) -> None:
        try:
            self.submit(session_id)
            logger.info(f"Exam time is up for session {session_id}")
        except SessionNotFoundException:
            logger.debug(f"Exam timer fired for a session that was already left: {session_id}")

    def _register(self, session: QuizSession) -> None:
        self.purge_finished()
        with self._sessions_lock:
            self._sessions[session.id] = session

    @staticmethod
    def _finish(session: QuizSession, state: str) -> None:
        session.state = state
        session.finished_at = datetime.now()

    def _require_active(self, session_id: str) -> QuizSession:
        session = self.get(session_id)
        self._ensure_active(session)
        return session

    @staticmethod
    def _ensure_active(session: QuizSession) -> None:
        if session.state != SESSION_STATE_QUIZ:
            raise ValidationException("session", f"session is in state '{session.state}'")

    def _pick_provider(self, config: QuizConfig, source: str) -> QuestionProvider:
        if source == SOURCE_BANK and config.topic != TOPIC_REVENGE:
            return self.bank_provider
        if self.generative_provider is None:
            raise ProviderFailureException("no question generator configured")
        return self.generative_provider

    @staticmethod
    def _require_subject(subject_id: str) -> Subject:
        subject = get_subject(subject_id)
        if subject is None:
            raise ValidationException("subject_id", f"unknown subject '{subject_id}'")
        return subject

    @staticmethod
    def _require_user(services: GameServices, user_id: str) -> None:
        if services.users.get_user(user_id) is None:
            raise UserNotFoundException(user_id)
