"""
Card providers for StatClash

A card provider deals one random creature card per call. The live source is
PokeAPI over httpx; the offline source is a YAML deck validated on load.
"""

import logging
import random
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx
import yaml

from src.core.errors import CardProviderError
from src.core.models import Card

logger = logging.getLogger(__name__)

DECK_STAT_FIELDS = ('attack', 'defense', 'speed')


class CardProvider(ABC):
    """Source of random cards for round advancement."""

    @abstractmethod
    def fetch_card(self) -> Card:
        """
        Deal one random card.

        Raises:
            CardProviderError: If no card could be produced
        """

    def close(self) -> None:
        pass


class ContentValidationError(Exception):
    """Raised when a card deck file is malformed."""
    pass


class YamlCardProvider(CardProvider):
    """Draws cards uniformly at random from a YAML deck."""

    def __init__(self, yaml_file_path: str = "cards.yaml", rng: Optional[random.Random] = None):
        """
        Args:
            yaml_file_path: Path to the YAML file holding the deck
            rng: Random source, mainly for deterministic tests
        """
        self.yaml_file_path = yaml_file_path
        self.cards: List[Card] = []
        self._rng = rng or random.Random()
        self._loaded = False

    def load_cards_from_yaml(self) -> None:
        """
        Load and validate the deck.

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            ContentValidationError: If YAML structure is invalid
            yaml.YAMLError: If YAML parsing fails
        """
        try:
            with open(self.yaml_file_path, 'r', encoding='utf-8') as file:
                data = yaml.safe_load(file)

            self.validate_yaml_structure(data)
            self.cards = self._parse_cards(data)
            self._loaded = True
            logger.info(f"Successfully loaded {len(self.cards)} cards from {self.yaml_file_path}")

        except FileNotFoundError:
            logger.error(f"YAML file not found: {self.yaml_file_path}")
            raise
        except yaml.YAMLError as e:
            logger.error(f"YAML parsing error: {e}")
            raise
        except ContentValidationError as e:
            logger.error(f"Content validation error: {e}")
            raise

    def validate_yaml_structure(self, data: Any) -> None:
        """
        Validate the structure of a parsed deck.

        Raises:
            ContentValidationError: If structure is invalid
        """
        if not isinstance(data, dict):
            raise ContentValidationError("YAML root must be a dictionary")

        cards = data.get('cards')
        if not isinstance(cards, list):
            raise ContentValidationError("YAML must contain a 'cards' list")
        if not cards:
            raise ContentValidationError("'cards' list cannot be empty")

        for i, item in enumerate(cards):
            if not isinstance(item, dict):
                raise ContentValidationError(f"Card {i} must be a dictionary")

            missing_fields = {'id', 'name', 'hp', 'stats'} - set(item.keys())
            if missing_fields:
                raise ContentValidationError(f"Card {i} missing required fields: {missing_fields}")

            if not isinstance(item['name'], str) or not item['name'].strip():
                raise ContentValidationError(f"Card {i} 'name' must be a non-empty string")

            stats = item['stats']
            if not isinstance(stats, dict):
                raise ContentValidationError(f"Card {i} 'stats' must be a dictionary")
            for stat in ('hp',) + DECK_STAT_FIELDS:
                value = item['hp'] if stat == 'hp' else stats.get(stat)
                # bool is an int subclass
                if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                    raise ContentValidationError(f"Card {i} stat '{stat}' must be a non-negative integer")

        ids = [item['id'] for item in cards]
        if len(ids) != len(set(ids)):
            raise ContentValidationError("Duplicate card IDs found")

    def _parse_cards(self, data: Dict[str, Any]) -> List[Card]:
        return [
            Card(
                id=item['id'],
                name=item['name'].strip(),
                image=item.get('image'),
                hp=item['hp'],
                stats={stat: item['stats'][stat] for stat in DECK_STAT_FIELDS},
                type=item.get('type')
            )
            for item in data['cards']
        ]

    def fetch_card(self) -> Card:
        if not self._loaded or not self.cards:
            raise CardProviderError("No cards loaded. Call load_cards_from_yaml() first.")
        return self._rng.choice(self.cards)

    def is_loaded(self) -> bool:
        return self._loaded

    def get_card_count(self) -> int:
        return len(self.cards) if self._loaded else 0


class PokeApiCardProvider(CardProvider):
    """Fetches a random Pokémon from PokeAPI for every card."""

    def __init__(self, base_url: str = "https://pokeapi.co/api/v2", timeout: float = 5.0,
                 max_pokemon_id: int = 898, transport: Optional[httpx.BaseTransport] = None,
                 rng: Optional[random.Random] = None):
        self.max_pokemon_id = max_pokemon_id
        self._rng = rng or random.Random()
        self._client = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def fetch_card(self) -> Card:
        pokemon_id = self._rng.randint(1, self.max_pokemon_id)
        try:
            response = self._client.get(f"/pokemon/{pokemon_id}")
            response.raise_for_status()
            return self.parse_pokemon(response.json())
        except httpx.HTTPError as e:
            logger.error(f"PokeAPI request for pokemon {pokemon_id} failed: {e}")
            raise CardProviderError(f"Could not fetch a card: {e}")
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"Unexpected PokeAPI payload for pokemon {pokemon_id}: {e}")
            raise CardProviderError("Card service returned an unexpected payload")

    @staticmethod
    def parse_pokemon(payload: Dict[str, Any]) -> Card:
        """Map a PokeAPI /pokemon payload onto a Card."""
        base_stats = {entry['stat']['name']: entry['base_stat'] for entry in payload['stats']}
        sprites = payload.get('sprites') or {}
        artwork = (sprites.get('other') or {}).get('official-artwork') or {}
        types = payload.get('types') or []
        return Card(
            id=payload['id'],
            name=payload['name'],
            image=artwork.get('front_default'),
            hp=base_stats['hp'],
            stats={stat: base_stats[stat] for stat in DECK_STAT_FIELDS},
            type=types[0]['type']['name'] if types else None
        )

    def close(self) -> None:
        self._client.close()


def create_card_provider(config) -> CardProvider:
    """Build the provider selected by config.card_source."""
    if config.card_source == 'yaml':
        provider = YamlCardProvider(config.cards_file)
        provider.load_cards_from_yaml()
        return provider

    logger.info(f"Using PokeAPI card source at {config.pokeapi_base_url}")
    return PokeApiCardProvider(
        base_url=config.pokeapi_base_url,
        timeout=config.pokeapi_timeout_seconds,
        max_pokemon_id=config.pokeapi_max_pokemon_id
    )
