"""
AI Integration Module for the Imposter game.

This module handles all completion API interactions, which are used
to generate the secret topic for each game.
Contains no game/lobby logic - purely AI prompting.
"""

from .client import OpenAIClient, AIResponse, AIError
from .topic_generator import TopicGenerator

__all__ = [
    'OpenAIClient',
    'AIResponse',
    'AIError',
    'TopicGenerator'
]
