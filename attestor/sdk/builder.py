"""Attestation builder.

Turns a schema, caller-typed field values and an optional validity window
into a populated, unsigned record.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from attestor.sdk.errors import FieldTypeError, MissingRequiredFieldError, UnknownFieldError, ValidityRequiredError
from attestor.sdk.models import (
    AttestationRecord,
    FieldSpec,
    FieldType,
    FieldValue,
    SchemaDefinition,
    UnknownFieldPolicy,
    Validity,
)

logger = logging.getLogger(__name__)

_PYTHON_TYPES: dict[FieldType, tuple[type, ...]] = {
    FieldType.INTEGER: (int,),
    FieldType.UTF8_STRING: (str,),
    FieldType.BOOLEAN: (bool,),
    FieldType.OCTET_STRING: (bytes, bytearray),
    FieldType.BIT_STRING: (bytes, bytearray),
}


def build_attestation(
    schema: SchemaDefinition,
    field_values: Mapping[str, FieldValue],
    validity: Validity | None = None,
    unknown_fields: UnknownFieldPolicy = UnknownFieldPolicy.IGNORE,
) -> AttestationRecord:
    """Populate a record from already-typed field values.

    Args:
        schema: Assembled schema definition
        field_values: Values keyed by field name
        validity: Validity window, required when the schema has one
        unknown_fields: Ignore or reject values for undeclared fields

    Returns:
        Unsigned record with values in schema order

    Raises:
        MissingRequiredFieldError: A mandatory field has no value
        UnknownFieldError: An undeclared field was supplied under REJECT
        ValidityRequiredError: The schema has validity but none was given
        FieldTypeError: A value does not match its declared type
    """
    _check_unknown_fields(schema, field_values, unknown_fields)

    values: dict[str, FieldValue] = {}
    for spec in schema.custom_fields:
        if spec.name not in field_values or field_values[spec.name] is None:
            if not spec.optional:
                raise MissingRequiredFieldError(spec.name)
            continue
        values[spec.name] = _typed_value(spec, field_values[spec.name])

    if schema.has_validity and validity is None:
        raise ValidityRequiredError()

    record = AttestationRecord(
        definition=schema,
        values=values,
        validity=validity if schema.has_validity else None,
    )
    logger.debug("Built attestation with fields %s", list(values))
    return record


def _check_unknown_fields(
    schema: SchemaDefinition,
    field_values: Mapping[str, FieldValue],
    policy: UnknownFieldPolicy,
) -> None:
    unknown = [name for name in field_values if schema.get_field(name) is None]
    if not unknown:
        return
    if policy == UnknownFieldPolicy.REJECT:
        raise UnknownFieldError(unknown[0])
    logger.debug("Ignoring values for undeclared fields %s", unknown)


def _typed_value(spec: FieldSpec, value: FieldValue) -> FieldValue:
    """Check a value against its declared type without coercing it."""
    expected = _PYTHON_TYPES[spec.type]
    if spec.type == FieldType.INTEGER and isinstance(value, bool):
        raise FieldTypeError(spec.name, spec.type.value, "got a boolean")
    if not isinstance(value, expected):
        raise FieldTypeError(spec.name, spec.type.value, f"got {type(value).__name__}")
    if isinstance(value, bytearray):
        return bytes(value)
    return value
