"""Static word category catalog.

Categories hold words either as plain strings or as structured entries carrying
a similar decoy word and graded clues. The catalog is read-only: rooms reference
categories by id and the session controller looks words up here when a round
starts.
"""

from __future__ import annotations

import copy
import random
from dataclasses import dataclass, field
from typing import Any

import structlog

from impostor_py.exceptions import EmptyWordPoolError
from impostor_py.game.word_lists import DEFAULT_CATEGORIES

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class WordEntry:
    """A secret word with its optional decoy and clues.

    Attributes:
        word: The secret word citizens receive.
        similar: A related decoy word handed to impostors in confusion mode.
        clues: Clues keyed by difficulty (``easy``/``hard``).
    """

    word: str
    similar: str | None = None
    clues: dict[str, str] = field(default_factory=dict)

    @property
    def clue(self) -> str | None:
        """The clue given to impostors, preferring the easy one."""
        return self.clues.get("easy") or self.clues.get("hard")

    @classmethod
    def from_raw(cls, raw: str | dict[str, Any]) -> WordEntry:
        """Build an entry from a plain string or a structured mapping."""
        if isinstance(raw, str):
            return cls(word=raw)
        clues = raw.get("clues") or {}
        return cls(
            word=str(raw["word"]),
            similar=raw.get("similar"),
            clues={str(level): str(text) for level, text in clues.items() if text},
        )

    def to_dict(self) -> dict[str, Any]:
        return {"word": self.word, "similar": self.similar, "clues": dict(self.clues)}


@dataclass(frozen=True)
class Category:
    """A named list of words."""

    id: str
    name: str
    words: tuple[WordEntry, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "words": [entry.to_dict() for entry in self.words]}


class CategoryCatalog:
    """Read-only lookup of word categories.

    Attributes:
        categories: Categories keyed by id, in definition order.
    """

    def __init__(self, categories: list[Category] | None = None) -> None:
        """Initialize the catalog.

        Args:
            categories: Categories to serve. If None, the built-in Spanish
                categories are loaded.
        """
        if categories is None:
            categories = self.parse(copy.deepcopy(DEFAULT_CATEGORIES))
        self.categories: dict[str, Category] = {category.id: category for category in categories}

    @staticmethod
    def parse(raw_categories: list[dict[str, Any]]) -> list[Category]:
        """Parse category definitions from plain mappings.

        Args:
            raw_categories: Mappings with ``id``, ``name`` and ``words``.

        Returns:
            Parsed categories.
        """
        return [
            Category(
                id=str(raw["id"]),
                name=str(raw.get("name", raw["id"])),
                words=tuple(WordEntry.from_raw(word) for word in raw.get("words", [])),
            )
            for raw in raw_categories
        ]

    @classmethod
    def from_dicts(cls, raw_categories: list[dict[str, Any]]) -> CategoryCatalog:
        return cls(cls.parse(raw_categories))

    def ids(self) -> list[str]:
        return list(self.categories)

    def get(self, category_id: str) -> Category | None:
        return self.categories.get(category_id)

    def __contains__(self, category_id: object) -> bool:
        return category_id in self.categories

    def choose(self, category_ids: list[str], rng: random.Random) -> tuple[Category, WordEntry]:
        """Pick a category uniformly, then a word uniformly within it.

        Unknown ids and empty categories are skipped.

        Args:
            category_ids: Selected category ids.
            rng: Random source.

        Returns:
            The chosen category and word entry.

        Raises:
            EmptyWordPoolError: If no selected category has any word.
        """
        usable = [self.categories[cid] for cid in category_ids if cid in self.categories and self.categories[cid].words]
        if not usable:
            logger.warning("No usable words in selected categories", category_ids=category_ids)
            raise EmptyWordPoolError(list(category_ids))
        category = rng.choice(usable)
        return category, rng.choice(category.words)
