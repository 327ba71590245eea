"""Partial Updates — explicit field -> new value mappings merged into stored records.

Invariants:
    - A patch only names fields the client actually sent
    - Required fields may not be cleared (set to None)
    - merge_patch touches only attributes whose value actually changes
"""

from typing import Any, Mapping

from storefront.core.errors import InvalidInputError

Patch = dict[str, Any]


def build_patch(
    sent: Mapping[str, Any], required: frozenset[str] = frozenset(),
) -> Patch:
    """Validate a client patch. Raises InvalidInputError on empty or null-required."""
    if not sent:
        raise InvalidInputError("No fields to update")
    for name in required & sent.keys():
        if sent[name] is None:
            raise InvalidInputError(f"Field '{name}' cannot be null", field=name)
    return dict(sent)


def merge_patch(record: object, patch: Mapping[str, Any]) -> list[str]:
    """Apply patch onto record. Returns names of the fields that changed."""
    changed = []
    for name, value in patch.items():
        if getattr(record, name) != value:
            setattr(record, name, value)
            changed.append(name)
    return changed
