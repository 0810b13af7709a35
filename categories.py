"""Category registry and the single parse step for category payloads.

Clients send categories either as an object (``{"name": "Food", "emoji":
"🍔"}``) or as that object JSON-encoded in a string. :func:`parse_category`
turns any such payload into a :class:`CategoryParse` before it reaches the
ledger; callers decide what to do with a rejected payload.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from rapidfuzz.distance import Levenshtein

NAME_MAX_LENGTH = 50
EMOJI_MAX_LENGTH = 16


@dataclass(frozen=True)
class Category:
    name: str
    emoji: str

    @property
    def key(self) -> str:
        return f"{self.emoji} {self.name}"

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "emoji": self.emoji}


DEFAULT_CATEGORY = Category("Other", "📦")

CANONICAL_CATEGORIES: tuple[Category, ...] = (
    Category("Food", "🍔"),
    Category("Transport", "🚗"),
    Category("Entertainment", "🎬"),
    Category("Shopping", "🛍️"),
    Category("Bills", "💡"),
    Category("Health", "💊"),
    Category("Travel", "✈️"),
    Category("Salary", "💰"),
    DEFAULT_CATEGORY,
)


class ParseStatus(str, Enum):
    valid = "valid"
    defaulted = "defaulted"
    rejected = "rejected"


@dataclass(frozen=True)
class CategoryParse:
    status: ParseStatus
    category: Category
    reason: Optional[str] = None


def list_categories() -> list[dict[str, str]]:
    return [category.to_dict() for category in CANONICAL_CATEGORIES]


def _canonical_name(name: str, emoji: str) -> str:
    lowered = name.lower()
    for category in CANONICAL_CATEGORIES:
        if category.name.lower() == lowered:
            return category.name

    # Typo correction only applies when the emoji already identifies the entry.
    best_distance: Optional[int] = None
    best: list[Category] = []
    for category in CANONICAL_CATEGORIES:
        dist = int(Levenshtein.distance(lowered, category.name.lower()))
        if best_distance is None or dist < best_distance:
            best_distance = dist
            best = [category]
        elif dist == best_distance:
            best.append(category)
    if (
        best_distance is not None
        and best_distance <= 1
        and len(best) == 1
        and best[0].emoji == emoji
    ):
        return best[0].name
    return name


def _rejected(reason: str) -> CategoryParse:
    return CategoryParse(ParseStatus.rejected, DEFAULT_CATEGORY, reason)


def parse_category(raw: Any) -> CategoryParse:
    if raw is None or raw == "" or raw == {}:
        return CategoryParse(ParseStatus.defaulted, DEFAULT_CATEGORY)

    if isinstance(raw, Category):
        return CategoryParse(ParseStatus.valid, raw)

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            return _rejected("Category is not valid JSON")

    if not isinstance(raw, dict):
        return _rejected("Category must be an object with name and emoji")

    name = raw.get("name")
    emoji = raw.get("emoji")
    if not isinstance(name, str) or not isinstance(emoji, str):
        return _rejected("Category name and emoji must be text")
    name = name.strip()
    emoji = emoji.strip()
    if not name or not emoji:
        return _rejected("Category name and emoji are required")
    if len(name) > NAME_MAX_LENGTH or len(emoji) > EMOJI_MAX_LENGTH:
        return _rejected("Category name or emoji is too long")

    return CategoryParse(ParseStatus.valid, Category(_canonical_name(name, emoji), emoji))
