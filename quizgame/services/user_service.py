"""
User registry service.
Registers and looks up players by username. There is no password: the
username is the whole credential.
"""
import logging
import threading
from typing import List, Optional

from quizgame.constants import USERS_REGISTRY_KEY
from quizgame.exceptions import (
    CorruptPersistedValueException, DuplicateUsernameException,
    UserNotFoundException, ValidationException
)
from quizgame.repositories.storage_repository import KeyValueStore
from quizgame.repositories.user_data_repository import (
    decode_value, dump_models, model_list_decoder
)
from quizgame.schemas import User
from quizgame.services.date_service import DateService
from quizgame.shared.id_utils import generate_id

logger = logging.getLogger("quizgame.users")

_registry_lock = threading.Lock()
_decode_users = model_list_decoder(User)


class UserService:
    """Service for the global user registry"""

    def __init__(self, store: KeyValueStore, date_service: Optional[DateService] = None):
        self.store = store
        self.date_service = date_service or DateService()

    def get_users(self) -> List[User]:
        """Get all registered users (empty list if the registry is unreadable)"""
        raw = self.store.get(USERS_REGISTRY_KEY)
        if raw is None:
            return []
        try:
            return decode_value(USERS_REGISTRY_KEY, raw, _decode_users)
        except CorruptPersistedValueException as e:
            logger.warning(f"{e} - treating registry as empty")
            return []

    def get_user(self, user_id: str) -> Optional[User]:
        return next((u for u in self.get_users() if u.id == user_id), None)

    def login(self, username: str) -> User:
        """
        Find a user by exact username.

        Raises:
            UserNotFoundException: If no user has this username
        """
        user = next((u for u in self.get_users() if u.username == username), None)
        if user is None:
            raise UserNotFoundException(username)
        logger.info(f"User logged in: {user.username} ({user.id})")
        return user

    def register(self, username: str) -> User:
        """
        Register a new user.

        Raises:
            ValidationException: If the username is blank
            DuplicateUsernameException: If the username is taken
        """
        username = (username or "").strip()
        if not username:
            raise ValidationException("username", "must not be empty")

        with _registry_lock:
            users = self.get_users()
            if any(u.username == username for u in users):
                raise DuplicateUsernameException(username)

            user = User(
                id=generate_id(),
                username=username,
                created_at=self.date_service.now_millis(),
            )
            self.store.set(USERS_REGISTRY_KEY, dump_models(users + [user]))

        logger.info(f"Registered user: {user.username} ({user.id})")
        return user
