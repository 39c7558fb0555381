"""
Deck Store Factory
Centralizes the wiring of the deck store and service from configuration.
"""

import logging

from namedrill.application.config import AppConfig
from namedrill.application.deck_service import DeckService
from namedrill.domain.ports import DeckStore
from namedrill.infrastructure.adapters.json_store import JsonDeckStore

logger = logging.getLogger(__name__)


def get_deck_store(config: AppConfig) -> DeckStore:
    """
    Returns the DeckStore implementation for the configured data file.
    """
    logger.debug(f"Deck store: {config.data_file}")
    return JsonDeckStore(config.data_file)


def get_deck_service(config: AppConfig) -> DeckService:
    return DeckService(
        store=get_deck_store(config),
        queue_limit=config.queue_limit,
        choice_count=config.choice_count,
        timings=config.timings,
    )
