"""AbilityRegistry: the name-to-definition map every invocation goes through."""

from __future__ import annotations

import logging
import threading
from types import MappingProxyType
from typing import TYPE_CHECKING

from wpabilities.core.errors import (
    AbilityNotFoundError,
    CategoryNotFoundError,
    DuplicateAbilityError,
    DuplicateCategoryError,
)
from wpabilities.core.models import AbilityCategory

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from wpabilities.core.models import AbilityDefinition, Visibility

logger = logging.getLogger(__name__)


class AbilityRegistry:
    """Holds categories and abilities keyed by unique name.

    Usage::

        registry = AbilityRegistry()
        registry.register_category(AbilityCategory(name="mcp-wp", label="WordPress"))
        registry.register(definition)

        ability = registry.lookup("mcp-wp/get-page")
        public = registry.list(visibility=Visibility.PUBLIC)

    Mutations build a new mapping and swap it in under a lock, so readers
    always see a complete snapshot and never need the lock themselves.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._abilities: Mapping[str, AbilityDefinition] = MappingProxyType({})
        self._categories: Mapping[str, AbilityCategory] = MappingProxyType({})

    # -- categories ----------------------------------------------------------

    def register_category(
        self,
        category: AbilityCategory | str,
        label: str = "",
        description: str = "",
    ) -> AbilityCategory:
        """Register a category, given as a model or as its fields."""
        if isinstance(category, str):
            category = AbilityCategory(name=category, label=label, description=description)
        with self._lock:
            if category.name in self._categories:
                raise DuplicateCategoryError(category.name)
            updated = dict(self._categories)
            updated[category.name] = category
            self._categories = MappingProxyType(updated)
        logger.debug("Registered category %s", category.name)
        return category

    def has_category(self, name: str) -> bool:
        return name in self._categories

    def categories(self) -> list[AbilityCategory]:
        return list(self._categories.values())

    # -- abilities -----------------------------------------------------------

    def register(self, ability: AbilityDefinition) -> None:
        """Add *ability*; its category must already exist and its name be new."""
        with self._lock:
            if ability.category not in self._categories:
                raise CategoryNotFoundError(ability.category, ability.name)
            if ability.name in self._abilities:
                raise DuplicateAbilityError(ability.name)
            updated = dict(self._abilities)
            updated[ability.name] = ability
            self._abilities = MappingProxyType(updated)
        logger.debug("Registered ability %s", ability.name)

    def unregister(self, name: str) -> AbilityDefinition:
        with self._lock:
            if name not in self._abilities:
                raise AbilityNotFoundError(name)
            updated = dict(self._abilities)
            removed = updated.pop(name)
            self._abilities = MappingProxyType(updated)
        logger.debug("Unregistered ability %s", name)
        return removed

    def lookup(self, name: str) -> AbilityDefinition:
        """Return the ability named *name* or raise :class:`AbilityNotFoundError`."""
        ability = self._abilities.get(name)
        if ability is None:
            raise AbilityNotFoundError(name)
        return ability

    def get(self, name: str) -> AbilityDefinition | None:
        return self._abilities.get(name)

    def list(
        self,
        *,
        category: str | None = None,
        visibility: Visibility | None = None,
    ) -> list[AbilityDefinition]:
        """Abilities in registration order, optionally filtered."""
        return [
            ability
            for ability in self._abilities.values()
            if (category is None or ability.category == category)
            and (visibility is None or ability.visibility == visibility)
        ]

    def names(self) -> list[str]:
        return list(self._abilities)

    def __contains__(self, name: object) -> bool:
        return name in self._abilities

    def __len__(self) -> int:
        return len(self._abilities)

    def __iter__(self) -> Iterator[AbilityDefinition]:
        return iter(list(self._abilities.values()))
