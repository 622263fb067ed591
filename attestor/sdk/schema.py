"""Schema definition assembly and its transmitted JSON form.

The schema definition travels alongside every encoded attestation, since the
encoding carries no field names of its own.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from attestor.sdk.errors import SchemaError
from attestor.sdk.models import (
    NOT_AFTER_FIELD,
    NOT_BEFORE_FIELD,
    RESERVED_FIELD_NAMES,
    SIGNATURE_FIELD,
    VALIDITY_FIELD,
    FieldSpec,
    FieldType,
    SchemaDefinition,
)


def assemble_schema(custom_fields: Iterable[FieldSpec], has_validity: bool = False) -> SchemaDefinition:
    """Assemble the canonical schema from custom fields.

    Custom fields keep their given order. Name collisions are not checked
    here; use ``parse_field_specs`` to validate human input first.

    Args:
        custom_fields: Ticket fields in encoding order
        has_validity: Append the ``validity`` composite to the ticket

    Returns:
        Schema definition with ``signatureValue`` as final top-level field
    """
    return SchemaDefinition(custom_fields=tuple(custom_fields), has_validity=has_validity)


def parse_field_specs(raw: Mapping[str, Any] | Iterable[Mapping[str, Any]]) -> list[FieldSpec]:
    """Parse and validate user-supplied field specs.

    Accepts ``{name: {type, optional}}`` or ``[{name, type, optional}]``.
    """
    entries = _field_entries(raw)
    specs: list[FieldSpec] = []
    seen: set[str] = set()

    for name, entry in entries:
        _validate_field_name(name, seen)
        specs.append(_build_field_spec(name, entry))
        seen.add(name)

    return specs


def _field_entries(raw: Mapping[str, Any] | Iterable[Mapping[str, Any]]) -> list[tuple[str, Mapping[str, Any]]]:
    """Normalise both accepted input shapes to (name, entry) pairs."""
    if isinstance(raw, Mapping):
        return [(name, entry) for name, entry in raw.items()]

    entries = []
    for entry in raw:
        if not isinstance(entry, Mapping):
            raise SchemaError("Field spec entries must be objects")
        entries.append((entry.get("name", ""), entry))
    return entries


def _validate_field_name(name: Any, seen: set[str]) -> None:
    if not isinstance(name, str) or not name:
        raise SchemaError("Name must be entered.")
    if name in RESERVED_FIELD_NAMES:
        raise SchemaError(f"Field name '{name}' is reserved")
    if name in seen:
        raise SchemaError("Duplicate field name, all names must be unique.")


def _build_field_spec(name: str, entry: Mapping[str, Any]) -> FieldSpec:
    if not isinstance(entry, Mapping):
        raise SchemaError(f"Field '{name}' must be an object with 'type' and 'optional'")
    try:
        return FieldSpec(name=name, type=entry.get("type"), optional=entry.get("optional", False))
    except ValidationError as e:
        allowed = ", ".join(t.value for t in FieldType)
        raise SchemaError(f"Invalid spec for field '{name}' (types: {allowed}): {e.errors()[0]['msg']}")


def schema_to_definition(schema: SchemaDefinition) -> dict[str, Any]:
    """Render the schema in its transmitted JSON shape."""
    items: dict[str, Any] = {
        spec.name: {"type": spec.type.value, "optional": spec.optional}
        for spec in schema.custom_fields
    }

    if schema.has_validity:
        items[VALIDITY_FIELD] = {
            "name": "Validity",
            "items": {
                NOT_BEFORE_FIELD: {"type": FieldType.INTEGER.value, "optional": False},
                NOT_AFTER_FIELD: {"type": FieldType.INTEGER.value, "optional": False},
            },
        }

    return {
        "ticket": {"name": "Ticket", "items": items},
        SIGNATURE_FIELD: {"type": FieldType.BIT_STRING.value, "optional": False},
    }


def schema_from_definition(definition: Mapping[str, Any]) -> SchemaDefinition:
    """Rebuild a schema from its transmitted JSON shape.

    The presence of ``ticket.items.validity`` enables validity support.
    """
    if not isinstance(definition, Mapping):
        raise SchemaError("Schema definition must be a JSON object")

    ticket = definition.get("ticket")
    items = ticket.get("items") if isinstance(ticket, Mapping) else None
    if not isinstance(items, Mapping):
        raise SchemaError("Schema definition must contain 'ticket.items'")

    custom_items = {name: entry for name, entry in items.items() if name != VALIDITY_FIELD}
    return assemble_schema(parse_field_specs(custom_items), VALIDITY_FIELD in items)
