"""
AI Topic Generator for the Imposter game.

Asks the completion API for one specific secret topic within a category.
Contains no game logic - the role engine decides when to call it and
falls back to the static vocabulary when it returns None.
"""

import re
import logging
from typing import Optional

from .client import OpenAIClient
from game.collaborators import TopicProvider

logger = logging.getLogger(__name__)

class TopicGenerator(TopicProvider):
    """
    Generates specific topics (e.g. "Mango" for "Fruit") with the completion API.

    Any failure - disabled provider, timeout, connection error or an
    unusable answer - yields None.
    """

    def __init__(self, openai_client: Optional[OpenAIClient] = None, enabled: bool = True):
        """
        Initialize topic generator.

        Args:
            openai_client: Client instance (creates a single-attempt one if None)
            enabled: Whether generation should be attempted
        """
        self.client = openai_client or OpenAIClient(max_retries=1, timeout=10.0)
        self.enabled = enabled
        self.max_tokens = 20
        self.temperature = 0.8

        logger.debug(f"Topic generator initialized (enabled: {enabled})")

    def is_enabled(self) -> bool:
        return self.enabled and self.client.is_available()

    def generate(self, category: str) -> Optional[str]:
        """
        Generate one specific topic for a category.

        Args:
            category: Generic category label

        Returns:
            Topic string, or None if nothing usable was produced
        """
        if not self.enabled:
            logger.info("Topic generator is disabled, using fallback topics")
            return None

        messages = [
            {"role": "system", "content": self._get_system_prompt()},
            {"role": "user", "content": self._build_topic_prompt(category)}
        ]

        try:
            response = self.client.generate_completion(
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=self.temperature
            )
        except Exception as e:
            logger.error(f"Topic generation error: {e}")
            return None

        if not response.success:
            logger.warning(f"Failed to generate topic: {response.error_message}")
            return None

        topic = self._clean_topic(response.content)
        if not topic:
            logger.warning(f"Unusable topic response for category {category}: {response.content!r}")
            return None

        logger.info(f"Generated topic: {category} -> {topic}")
        return topic

    def _get_system_prompt(self) -> str:
        return (
            "You pick secret words for a party game. Players who know the word "
            "describe it so that imposters who don't know it can be spotted."
        )

    def _build_topic_prompt(self, category: str) -> str:
        return (
            f'Generate ONE specific word or short name related to "{category}".\n'
            f'For example:\n'
            f'- If the category is "Food", return a specific dish like "Fried rice"\n'
            f'- If the category is "Fruit", return a specific fruit like "Mango"\n'
            f'- If the category is "Animal", return a specific animal like "Tiger"\n\n'
            f'Return ONLY the topic, nothing else. No explanation, no punctuation.'
        )

    def _clean_topic(self, content: str) -> Optional[str]:
        """Keep the first line, strip quotes and punctuation, cap at three words."""
        if not content:
            return None

        first_line = content.strip().splitlines()[0]
        topic = re.sub(r'^[\s\-\*\d\.\)]+', '', first_line)
        topic = topic.strip(' "\'`.,!?:;')
        words = topic.split()
        if not words or len(words) > 3:
            return None
        return " ".join(words)
