"""Declarative annotations on mapped classes.

Annotations sit between reflection defaults and fluent configuration. Column
and relationship annotations live in the SQLAlchemy ``info`` dictionary; the
entity annotation is set by a class decorator::

    @admin_entity(display_name="Address", plural_name="Addresses", include=("shop",))
    class Address(Base):
        __tablename__ = "addresses"

        id: Mapped[int] = mapped_column(primary_key=True)
        street: Mapped[str] = mapped_column(
            info=admin_property(search_type="contains_case_insensitive", order=0)
        )
        postal_code: Mapped[str] = mapped_column(info=admin_property(is_excluded_from_query=True))
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, field_validator

from entityforge.core.types import SearchType
from entityforge.metadata.options import PropertyOverlay, validate_search_type

PROPERTY_INFO_KEY = "entityforge"
ENTITY_ATTRIBUTE = "__entityforge__"

UNSET_ORDER = -1

T = TypeVar("T", bound=type)


class PropertyAnnotation(PropertyOverlay):
    """Annotation on a column. ``order`` of ``UNSET_ORDER`` is stored as unset."""

    @field_validator("order")
    @classmethod
    def unset_sentinel_order(cls, order: int | None) -> int | None:
        return None if order == UNSET_ORDER else order


class NavigationAnnotation(PropertyAnnotation):
    """Annotation on a relationship. Its presence includes the navigation."""

    is_included: bool | None = None
    display_details: bool | None = None
    edit_details: bool | None = None


class EntityAnnotation(BaseModel):
    """Annotation on a mapped class."""

    model_config = ConfigDict(frozen=True)

    display_name: str | None = None
    plural_name: str | None = None
    description: str | None = None
    group: str | None = None
    is_hidden: bool | None = None
    is_editable: bool | None = None
    include: tuple[str, ...] = ()


def admin_property(
    *,
    display_name: str | None = None,
    description: str | None = None,
    order: int = UNSET_ORDER,
    is_hidden: bool | None = None,
    is_excluded_from_query: bool | None = None,
    is_read_only: bool | None = None,
    search_type: SearchType | str | None = None,
    display_format: str | None = None,
) -> dict[str, Any]:
    """Build a column ``info`` dictionary carrying a property annotation.

    Raises:
        InvalidSearchTypeError: If search_type is not a SearchType value
    """
    annotation = PropertyAnnotation(
        display_name=display_name,
        description=description,
        order=order,
        is_hidden=is_hidden,
        is_excluded_from_query=is_excluded_from_query,
        is_read_only=is_read_only,
        search_type=validate_search_type(search_type) if search_type is not None else None,
        display_format=display_format,
    )
    return {PROPERTY_INFO_KEY: annotation}


def admin_navigation(
    *,
    display_name: str | None = None,
    description: str | None = None,
    order: int = UNSET_ORDER,
    is_hidden: bool | None = None,
    is_read_only: bool | None = None,
    is_included: bool | None = None,
    display_details: bool | None = None,
    edit_details: bool | None = None,
) -> dict[str, Any]:
    """Build a relationship ``info`` dictionary that includes the navigation."""
    annotation = NavigationAnnotation(
        display_name=display_name,
        description=description,
        order=order,
        is_hidden=is_hidden,
        is_read_only=is_read_only,
        is_included=is_included,
        display_details=display_details,
        edit_details=edit_details,
    )
    return {PROPERTY_INFO_KEY: annotation}


def admin_entity(
    *,
    display_name: str | None = None,
    plural_name: str | None = None,
    description: str | None = None,
    group: str | None = None,
    is_hidden: bool | None = None,
    is_editable: bool | None = None,
    include: tuple[str, ...] | list[str] = (),
) -> Callable[[T], T]:
    """Class decorator attaching an entity annotation."""
    annotation = EntityAnnotation(
        display_name=display_name,
        plural_name=plural_name,
        description=description,
        group=group,
        is_hidden=is_hidden,
        is_editable=is_editable,
        include=tuple(include),
    )

    def decorator(cls: T) -> T:
        setattr(cls, ENTITY_ATTRIBUTE, annotation)
        return cls

    return decorator


def get_entity_annotation(entity_type: type) -> EntityAnnotation | None:
    """Read the annotation declared on the class itself (not inherited)."""
    annotation = entity_type.__dict__.get(ENTITY_ATTRIBUTE)
    return annotation if isinstance(annotation, EntityAnnotation) else None


def get_property_annotation(info: dict[str, Any] | None) -> PropertyAnnotation | None:
    """Read a property or navigation annotation from an ``info`` dictionary."""
    if not info:
        return None
    annotation = info.get(PROPERTY_INFO_KEY)
    return annotation if isinstance(annotation, PropertyAnnotation) else None
