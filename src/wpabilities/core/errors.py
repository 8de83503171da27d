"""Shared error types for the ability registry and invocation layer.

These are raised for programmer errors at registration or lookup time.
Failures that happen while an ability runs never surface as exceptions;
the pipeline turns them into failure envelopes instead.
"""


class AbilityError(Exception):
    """Base error for all ability-layer failures."""


class InvalidAbilityNameError(AbilityError, ValueError):
    """An ability name does not follow the ``<provider>/<verb-noun>`` shape."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Invalid ability name: {name!r} (expected '<provider>/<verb-noun>')")


class DuplicateAbilityError(AbilityError):
    """An ability with the same name is already registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Ability already registered: {name}")


class AbilityNotFoundError(AbilityError, KeyError):
    """Requested ability does not exist in the registry."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"Ability not found: {self.name}"


class DuplicateCategoryError(AbilityError):
    """A category with the same name is already registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Category already registered: {name}")


class CategoryNotFoundError(AbilityError):
    """An ability references a category that was never registered."""

    def __init__(self, category: str, ability: str = "") -> None:
        self.category = category
        self.ability = ability
        msg = f"Category not registered: {category}"
        if ability:
            msg += f" (referenced by {ability})"
        super().__init__(msg)
