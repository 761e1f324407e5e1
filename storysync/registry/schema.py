"""Structural schema for registry and registry-item documents."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, model_validator

from ..errors import RegistryValidationError
from ..models import RegistryItemType

REGISTRY_SCHEMA_URL = "https://ui.shadcn.com/schema/registry.json"
REGISTRY_ITEM_SCHEMA_URL = "https://ui.shadcn.com/schema/registry-item.json"

ITEM_NAME_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


class RegistryFile(BaseModel):
    path: str = Field(min_length=1)
    type: RegistryItemType
    target: Optional[str] = None

    model_config = {"extra": "forbid"}


class CssVars(BaseModel):
    theme: Optional[Dict[str, str]] = None
    light: Optional[Dict[str, str]] = None
    dark: Optional[Dict[str, str]] = None

    model_config = {"extra": "forbid"}


class Tailwind(BaseModel):
    config: Optional[Dict[str, Any]] = None

    model_config = {"extra": "forbid"}


class RegistryItem(BaseModel):
    """One installable unit: metadata plus the files it ships."""

    schema_url: str = Field(default=REGISTRY_ITEM_SCHEMA_URL, alias="$schema")
    name: str = Field(min_length=1, pattern=ITEM_NAME_PATTERN)
    type: RegistryItemType
    title: str
    description: str
    author: Optional[str] = None
    dependencies: Optional[List[str]] = None
    registry_dependencies: Optional[List[str]] = Field(default=None, alias="registryDependencies")
    files: List[RegistryFile] = Field(min_length=1)
    css_vars: Optional[CssVars] = Field(default=None, alias="cssVars")
    tailwind: Optional[Tailwind] = None

    model_config = {"populate_by_name": True, "extra": "forbid"}


class Registry(BaseModel):
    """Top-level document aggregating every item of a named collection."""

    schema_url: str = Field(default=REGISTRY_SCHEMA_URL, alias="$schema")
    name: str = Field(min_length=1)
    homepage: Optional[str] = None
    items: List[RegistryItem] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "extra": "forbid"}

    @model_validator(mode="after")
    def _unique_item_names(self) -> "Registry":
        seen = set()
        duplicates = []
        for item in self.items:
            if item.name in seen and item.name not in duplicates:
                duplicates.append(item.name)
            seen.add(item.name)
        if duplicates:
            raise ValueError(f"duplicate item names: {', '.join(duplicates)}")
        return self


def validate_item(document: Mapping[str, Any], *, file: Optional[str] = None) -> RegistryItem:
    """Validate an item document, raising :class:`RegistryValidationError` on failure."""
    try:
        return RegistryItem.model_validate(dict(document))
    except ValidationError as exc:
        name = document.get("name") or "<unnamed>"
        raise RegistryValidationError(
            f"Generated registry item '{name}' is invalid",
            _issues(exc),
            code="REGISTRY_ITEM_VALIDATION_ERROR",
            file=file,
        ) from exc


def validate_registry(document: Mapping[str, Any]) -> Registry:
    try:
        return Registry.model_validate(dict(document))
    except ValidationError as exc:
        raise RegistryValidationError("Generated registry is invalid", _issues(exc)) from exc


def to_document(model: BaseModel) -> Dict[str, Any]:
    """JSON-ready mapping using the wire field names and omitting unset options."""
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


def _issues(exc: ValidationError) -> List[str]:
    issues: List[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "<root>"
        issues.append(f"{location}: {error.get('msg', 'invalid value')}")
    return issues


__all__ = [
    "CssVars",
    "ITEM_NAME_PATTERN",
    "REGISTRY_ITEM_SCHEMA_URL",
    "REGISTRY_SCHEMA_URL",
    "Registry",
    "RegistryFile",
    "RegistryItem",
    "Tailwind",
    "to_document",
    "validate_item",
    "validate_registry",
]
