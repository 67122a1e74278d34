"""
Role Assignment for the Imposter game.

Selects the imposters and the secret topic for a new game.
Pure with respect to session state - the caller commits the result.
"""

import random
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .collaborators import TopicProvider
from .models import Player, SessionSettings, OperationResult, ErrorKind
from utils.constants import CATEGORIES, BASE_TOPICS, TOPIC_SOURCES
from utils.helpers import calculate_imposter_count, shuffle_players

logger = logging.getLogger(__name__)

@dataclass
class RoleAssignment:
    """Imposters and topic chosen for one game."""
    imposters: List[str]
    topic: str
    source: str
    category: Optional[str] = None

class RoleAssignmentEngine:
    """
    Chooses imposters and a topic for a roster.

    Imposters are a uniformly random subset of the roster; the topic
    comes from the topic provider when it is enabled and answers,
    otherwise from the static fallback vocabulary.
    """

    def __init__(self, topic_provider: Optional[TopicProvider] = None,
                 rng: Optional[random.Random] = None):
        """
        Initialize the engine.

        Args:
            topic_provider: Optional topic generator
            rng: Random generator (a new random.Random if None)
        """
        self.topic_provider = topic_provider
        self.rng = rng or random.Random()
        logger.debug("Role assignment engine initialized")

    def prepare(self, roster: Sequence[Player], settings: SessionSettings) -> OperationResult:
        """
        Select imposters and a topic.

        Returns:
            OperationResult with a RoleAssignment under data['assignment'],
            or an INSUFFICIENT_PLAYERS failure
        """
        total_players = len(roster)
        if total_players < settings.min_players:
            return OperationResult.fail(
                ErrorKind.INSUFFICIENT_PLAYERS,
                f"Need at least {settings.min_players} players to start. Currently: {total_players}",
                required=settings.min_players,
                current=total_players
            )

        imposters = self.select_imposters([p.id for p in roster])
        topic, source, category = self.select_topic()

        assignment = RoleAssignment(
            imposters=imposters,
            topic=topic,
            source=source,
            category=category
        )

        logger.info(f"Prepared roles: {total_players} players, {len(imposters)} imposters, topic source: {source}")
        return OperationResult.ok("Roles prepared", assignment=assignment)

    def select_imposters(self, player_ids: Sequence[str]) -> List[str]:
        """Take a prefix of a Fisher-Yates shuffle of the ids."""
        count = calculate_imposter_count(len(player_ids))
        return shuffle_players(player_ids, self.rng)[:count]

    def select_topic(self):
        """
        Pick the secret topic.

        Returns:
            tuple: (topic, source, category)
        """
        if self.topic_provider is not None and self.topic_provider.is_enabled():
            category = self.rng.choice(CATEGORIES)
            logger.info(f"Trying to generate topic for category: {category}")

            try:
                topic = self.topic_provider.generate(category)
            except Exception as e:
                # ProviderUnavailable is never surfaced
                logger.warning(f"Topic provider failed for category {category}: {e}")
                topic = None

            if topic:
                return topic, TOPIC_SOURCES['PROVIDER'], category

            logger.info("Topic provider produced nothing, using fallback topics")
        else:
            logger.debug("Topic provider disabled, using fallback topics")

        return self.rng.choice(BASE_TOPICS), TOPIC_SOURCES['FALLBACK'], None
