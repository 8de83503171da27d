"""Connectivity check ability."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from wpabilities.abilities._helpers import READ_ONLY, define, response_schema
from wpabilities.core.models import ok
from wpabilities.core.permissions import AllowAll
from wpabilities.core.schema import string

if TYPE_CHECKING:
    from wpabilities.core.models import AbilityDefinition
    from wpabilities.core.permissions import CallerContext
    from wpabilities.store.base import ContentStore


def _test(args: dict[str, Any], context: CallerContext) -> Any:
    return ok(message="Test ability works!")


def build(store: ContentStore) -> list[AbilityDefinition]:
    return [
        define(
            "test",
            "Test Ability",
            "A simple test ability",
            permission=AllowAll(),
            executor=_test,
            output_schema=response_schema(message=string()),
            annotations=READ_ONLY,
        )
    ]
