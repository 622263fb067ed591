"""Coercion of raw text input into typed field values.

The builder only accepts already-typed values; front ends (CLI, forms)
convert what users type with these helpers first.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from attestor.sdk.errors import FieldTypeError
from attestor.sdk.models import FieldType, FieldValue, SchemaDefinition

TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
FALSE_STRINGS = frozenset({"false", "0", "no", "off", ""})


def coerce_field_value(field_type: FieldType, raw: Any, field: str = "") -> FieldValue:
    """Convert a raw input value to the Python type of ``field_type``.

    Non-string values that already have the right type pass through, so
    JSON numbers and booleans can be used directly.
    """
    if field_type == FieldType.UTF8_STRING:
        return str(raw)
    if field_type == FieldType.INTEGER:
        return _to_int(raw, field)
    if field_type == FieldType.BOOLEAN:
        return _to_bool(raw, field)
    return _to_bytes(field_type, raw, field)


def coerce_field_values(schema: SchemaDefinition, raw_values: Mapping[str, Any]) -> dict[str, FieldValue]:
    """Coerce every declared value; empty optional values are dropped.

    Values for undeclared fields are passed through untouched so the builder's
    unknown-field policy still applies to them.
    """
    values: dict[str, FieldValue] = {}
    for name, raw in raw_values.items():
        spec = schema.get_field(name)
        if spec is None:
            values[name] = raw
            continue
        if raw is None or raw == "":
            continue
        values[name] = coerce_field_value(spec.type, raw, name)
    return values


def _to_int(raw: Any, field: str) -> int:
    if isinstance(raw, bool):
        raise FieldTypeError(field, FieldType.INTEGER.value, "got a boolean")
    if isinstance(raw, int):
        return raw
    text = str(raw).strip()
    try:
        if text.lower().startswith(("0x", "-0x")):
            return int(text, 16)
        return int(text, 10)
    except ValueError:
        raise FieldTypeError(field, FieldType.INTEGER.value, f"'{raw}' is not an integer")


def _to_bool(raw: Any, field: str) -> bool:
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in TRUE_STRINGS:
        return True
    if text in FALSE_STRINGS:
        return False
    raise FieldTypeError(field, FieldType.BOOLEAN.value, f"'{raw}' is not a boolean")


def _to_bytes(field_type: FieldType, raw: Any, field: str) -> bytes:
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw)
    text = "".join(str(raw).split())
    if text[:2].lower() == "0x":
        text = text[2:]
    try:
        return bytes.fromhex(text)
    except ValueError:
        raise FieldTypeError(field, field_type.value, f"'{raw}' is not valid hex")
