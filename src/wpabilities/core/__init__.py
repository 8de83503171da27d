"""Core ability layer: definitions, registry, permission gate and pipeline."""

from wpabilities.core.errors import (
    AbilityError,
    AbilityNotFoundError,
    CategoryNotFoundError,
    DuplicateAbilityError,
    DuplicateCategoryError,
    InvalidAbilityNameError,
)
from wpabilities.core.models import (
    AbilityCategory,
    AbilityDefinition,
    Err,
    ErrorCode,
    InvocationEnvelope,
    InvocationState,
    Ok,
    Visibility,
    err,
    ok,
)
from wpabilities.core.permissions import (
    AllowAll,
    CallerContext,
    CapabilityResolver,
    Custom,
    PermissionCheck,
    PermissionDecision,
    PermissionGate,
    RequiresAuthentication,
    RequiresCapability,
)
from wpabilities.core.pipeline import InvocationPipeline
from wpabilities.core.registry import AbilityRegistry
from wpabilities.core.schema import SchemaNode, ValidationResult, validate

__all__ = [
    "AbilityCategory",
    "AbilityDefinition",
    "AbilityError",
    "AbilityNotFoundError",
    "AbilityRegistry",
    "AllowAll",
    "CallerContext",
    "CapabilityResolver",
    "CategoryNotFoundError",
    "Custom",
    "DuplicateAbilityError",
    "DuplicateCategoryError",
    "Err",
    "ErrorCode",
    "InvalidAbilityNameError",
    "InvocationEnvelope",
    "InvocationPipeline",
    "InvocationState",
    "Ok",
    "PermissionCheck",
    "PermissionDecision",
    "PermissionGate",
    "RequiresAuthentication",
    "RequiresCapability",
    "SchemaNode",
    "ValidationResult",
    "Visibility",
    "err",
    "ok",
    "validate",
]
