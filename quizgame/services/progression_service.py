"""
Progression service - coins, owned artifacts and the equipped artifact.

The store performs no validation beyond set semantics for the inventory:
coin balances are not clamped and the equipped id is stored verbatim.
"""
import logging
from typing import Callable, List, Optional

from quizgame.constants import FIELD_COINS, FIELD_EQUIPPED, FIELD_INVENTORY
from quizgame.repositories.user_data_repository import (
    UserDataRepository, decode_int, decode_string_list, dump_json
)

logger = logging.getLogger("quizgame.progression")

CoinsListener = Callable[[str, int], None]


class ProgressionService:
    """Service for per-user coins and collection state"""

    def __init__(self, data: UserDataRepository):
        self.data = data
        self._coin_listeners: List[CoinsListener] = []

    def subscribe_coins_changed(self, listener: CoinsListener) -> None:
        """Register a callback invoked synchronously with (user_id, new_total) after every coin change"""
        self._coin_listeners.append(listener)

    def get_coins(self, user_id: str) -> int:
        return self.data.read(user_id, FIELD_COINS, decode_int, lambda: 0)

    def add_coins(self, user_id: str, delta: int) -> int:
        """
        Add (or with a negative delta, remove) coins.

        Callers must check sufficiency before debiting; the balance may go
        negative.

        Returns:
            New coin total
        """
        with self.data.lock(user_id):
            new_total = self.get_coins(user_id) + delta
            self.data.set_raw(user_id, FIELD_COINS, str(new_total))
            logger.debug(f"Coins for {user_id}: {delta:+d} -> {new_total}")
            for listener in self._coin_listeners:
                listener(user_id, new_total)
        return new_total

    def get_inventory(self, user_id: str) -> List[str]:
        return self.data.read(user_id, FIELD_INVENTORY, decode_string_list, list)

    def add_to_inventory(self, user_id: str, artifact_id: str) -> bool:
        """
        Add an artifact id to the inventory.

        Returns:
            True if added, False if it was already owned
        """
        with self.data.lock(user_id):
            inventory = self.get_inventory(user_id)
            if artifact_id in inventory:
                return False
            inventory.append(artifact_id)
            self.data.set_raw(user_id, FIELD_INVENTORY, dump_json(inventory))
        return True

    def get_equipped(self, user_id: str) -> Optional[str]:
        return self.data.get_raw(user_id, FIELD_EQUIPPED) or None

    def set_equipped(self, user_id: str, artifact_id: Optional[str]) -> None:
        """Store the equipped id as given; None (or empty) clears it. Ownership is not checked."""
        with self.data.lock(user_id):
            self.data.set_raw(user_id, FIELD_EQUIPPED, artifact_id or None)
