"""Precedence rules for combining configuration sources.

Metadata attributes come from up to three sources, applied attribute by
attribute in this order (first set value wins):

1. Fluent configuration supplied by the host at startup
2. Declarative annotation on the mapped class or column
3. Reflection-derived default

An overlay value of ``None`` is unset. Annotations store their order sentinel
as ``None`` when built, so any other integer is an explicit order, ``0`` and
negative values included.
"""

from __future__ import annotations

from typing import Any, TypeVar

from entityforge.exceptions import ConflictingOrderError

T = TypeVar("T")


def layer_value(overlay: Any, attribute: str) -> Any:
    """Read an attribute from an overlay, returning None when it is unset."""
    if overlay is None:
        return None
    value = getattr(overlay, attribute, None)
    if value == ():
        return None
    return value


def merge_attribute(attribute: str, overlays: list[Any] | tuple[Any, ...], default: T) -> Any | T:
    """Resolve one attribute across overlays in precedence order.

    Args:
        attribute: Attribute name to read from each overlay
        overlays: Overlays, highest precedence first; entries may be None
        default: Reflection-derived value used when no overlay sets one

    Returns:
        The first set value, or the default
    """
    for overlay in overlays:
        value = layer_value(overlay, attribute)
        if value is not None:
            return value
    return default


def resolve_order(overlays: list[Any] | tuple[Any, ...], declaration_index: int) -> int:
    """Resolve a display order, falling back to the declaration index."""
    return merge_attribute("order", overlays, declaration_index)


def combine_fluent(earlier: T, later: T) -> T:
    """Combine two fluent configurations of the same property or navigation.

    Values set by the later call win; values it leaves unset keep the earlier
    ones.

    Raises:
        ConflictingOrderError: If both calls set different explicit orders
    """
    first_order = layer_value(earlier, "order")
    second_order = layer_value(later, "order")
    if first_order is not None and second_order is not None and first_order != second_order:
        name = later.name  # type: ignore[attr-defined]
        raise ConflictingOrderError(name, first_order, second_order)

    fields = type(later).model_fields  # type: ignore[attr-defined]
    updates = {name: merge_attribute(name, (later, earlier), None) for name in fields}
    updates = {name: value for name, value in updates.items() if value is not None}
    return earlier.model_copy(update=updates)  # type: ignore[attr-defined]
