"""Concrete ``mcp-wp/*`` abilities backed by a :class:`ContentStore`.

Usage::

    registry = AbilityRegistry()
    register_default_abilities(registry, InMemoryContentStore())
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from wpabilities.abilities import advanced, basic, media, patterns, plugins, posts, settings, taxonomy, users
from wpabilities.abilities._helpers import CATEGORY, CATEGORY_DESCRIPTION, CATEGORY_LABEL

if TYPE_CHECKING:
    from wpabilities.core.models import AbilityDefinition
    from wpabilities.core.registry import AbilityRegistry
    from wpabilities.store.base import ContentStore

logger = logging.getLogger(__name__)

MODULES = (basic, posts, patterns, users, plugins, settings, media, taxonomy, advanced)


def build_default_abilities(store: ContentStore) -> list[AbilityDefinition]:
    """Every default ability bound to *store*, in registration order."""
    abilities: list[AbilityDefinition] = []
    for module in MODULES:
        abilities.extend(module.build(store))
    return abilities


def register_default_abilities(registry: AbilityRegistry, store: ContentStore) -> list[AbilityDefinition]:
    """Register the ``mcp-wp`` category and all default abilities.

    Returns the registered definitions. Raises
    :class:`~wpabilities.core.errors.DuplicateAbilityError` if any of them
    is already present.
    """
    if not registry.has_category(CATEGORY):
        registry.register_category(CATEGORY, CATEGORY_LABEL, CATEGORY_DESCRIPTION)

    abilities = build_default_abilities(store)
    for ability in abilities:
        registry.register(ability)
    logger.info("Registered %d default abilities", len(abilities))
    return abilities


__all__ = ["build_default_abilities", "register_default_abilities"]
