"""
Gacha service - coin-gated draw over the artifact catalog.

Every artifact has the same probability regardless of rarity; rarity is
display metadata only.
"""
import logging
import random
from typing import Optional, Tuple

from quizgame.catalog import ARTIFACTS
from quizgame.constants import GACHA_COST
from quizgame.exceptions import InsufficientCoinsException
from quizgame.schemas import Artifact
from quizgame.services.progression_service import ProgressionService

logger = logging.getLogger("quizgame.gacha")


class GachaService:
    """Service for artifact draws"""

    def __init__(
        self,
        progression: ProgressionService,
        rng: Optional[random.Random] = None,
        cost: int = GACHA_COST
    ):
        self.progression = progression
        self.rng = rng or random.Random()
        self.cost = cost

    def draw(self, user_id: str) -> Artifact:
        """
        Spend coins on one uniformly random artifact.

        Raises:
            InsufficientCoinsException: If the balance is below the cost (nothing is changed)
        """
        artifact, _ = self.draw_with_status(user_id)
        return artifact

    def draw_with_status(self, user_id: str) -> Tuple[Artifact, bool]:
        """
        Same as draw, also reporting whether the artifact was new to the inventory.

        Returns:
            (artifact, is_new)
        """
        with self.progression.data.lock(user_id):
            balance = self.progression.get_coins(user_id)
            if balance < self.cost:
                raise InsufficientCoinsException(balance, self.cost)

            self.progression.add_coins(user_id, -self.cost)
            artifact = self.rng.choice(ARTIFACTS)
            is_new = self.progression.add_to_inventory(user_id, artifact.id)

        logger.info(
            f"Gacha draw by {user_id}: {artifact.id} ({artifact.rarity.value})"
            f"{'' if is_new else ' [duplicate]'}"
        )
        return artifact, is_new
