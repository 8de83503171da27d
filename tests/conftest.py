"""Shared fixtures: a seeded in-memory store and a fully wired pipeline."""

from __future__ import annotations

import pytest

from wpabilities.abilities import register_default_abilities
from wpabilities.core.permissions import CallerContext, PermissionGate
from wpabilities.core.pipeline import InvocationPipeline
from wpabilities.core.registry import AbilityRegistry
from wpabilities.store.memory import InMemoryContentStore


@pytest.fixture
def store() -> InMemoryContentStore:
    return InMemoryContentStore()


@pytest.fixture
def registry(store: InMemoryContentStore) -> AbilityRegistry:
    registry = AbilityRegistry()
    register_default_abilities(registry, store)
    return registry


@pytest.fixture
def pipeline(registry: AbilityRegistry, store: InMemoryContentStore) -> InvocationPipeline:
    return InvocationPipeline(registry, PermissionGate(store))


@pytest.fixture
def admin() -> CallerContext:
    """The default administrator (user 1) of a fresh store."""
    return CallerContext(user_id=1, roles=frozenset({"administrator"}))


@pytest.fixture
def subscriber(store: InMemoryContentStore) -> CallerContext:
    user_id = store._insert_user(
        {"username": "sub", "email": "sub@example.com", "password": "x", "role": "subscriber"}
    )
    return CallerContext(user_id=user_id, roles=frozenset({"subscriber"}))
