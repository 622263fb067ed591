"""Canonical DER codec for attestations.

Builds a pyasn1 structure from a schema definition at run time and uses the
DER encoder so identical schema and ticket contents always produce identical
bytes. Layout::

    Attestation ::= SEQUENCE {
        ticket          SEQUENCE { <custom fields>, validity Validity OPTIONAL-by-schema },
        signatureValue  BIT STRING
    }
    Validity ::= SEQUENCE { notBefore INTEGER, notAfter INTEGER }

Mandatory fields keep their universal tag. Optional fields carry an IMPLICIT
context-specific tag equal to their position in the ticket, so an absent
optional field can never be confused with a following field of the same type.
"""

from __future__ import annotations

import logging

from pyasn1.codec.der import decoder, encoder
from pyasn1.error import PyAsn1Error
from pyasn1.type import char, namedtype, tag, univ

from attestor.sdk.errors import MalformedEncodingError
from attestor.sdk.models import (
    NOT_AFTER_FIELD,
    NOT_BEFORE_FIELD,
    SIGNATURE_FIELD,
    VALIDITY_FIELD,
    AttestationRecord,
    FieldSpec,
    FieldType,
    FieldValue,
    SchemaDefinition,
    Validity,
)

logger = logging.getLogger(__name__)

TICKET_FIELD = "ticket"

# pyasn1 surfaces some malformed lengths and values as builtin errors.
_DECODE_ERRORS = (PyAsn1Error, OverflowError, ValueError, TypeError)

_ASN1_TYPES = {
    FieldType.INTEGER: univ.Integer,
    FieldType.UTF8_STRING: char.UTF8String,
    FieldType.BOOLEAN: univ.Boolean,
    FieldType.OCTET_STRING: univ.OctetString,
    FieldType.BIT_STRING: univ.BitString,
}


def build_ticket_spec(schema: SchemaDefinition) -> univ.Sequence:
    """Build the pyasn1 ticket structure for a schema."""
    components = [_named_field(spec, position) for position, spec in enumerate(schema.custom_fields)]

    if schema.has_validity:
        components.append(namedtype.NamedType(VALIDITY_FIELD, _validity_spec()))

    return univ.Sequence(componentType=namedtype.NamedTypes(*components))


def build_attestation_spec(schema: SchemaDefinition) -> univ.Sequence:
    """Build the pyasn1 structure of a full attestation."""
    return univ.Sequence(componentType=namedtype.NamedTypes(
        namedtype.NamedType(TICKET_FIELD, build_ticket_spec(schema)),
        namedtype.NamedType(SIGNATURE_FIELD, univ.BitString()),
    ))


def build_empty_record(schema: SchemaDefinition) -> univ.Sequence:
    """Create an attestation value object with every field unset."""
    attestation = build_attestation_spec(schema)
    attestation.clear()
    attestation[TICKET_FIELD].clear()
    return attestation


def _named_field(spec: FieldSpec, position: int) -> namedtype.NamedType:
    asn1_type = _ASN1_TYPES[spec.type]()
    if not spec.optional:
        return namedtype.NamedType(spec.name, asn1_type)

    context_tag = tag.Tag(tag.tagClassContext, tag.tagFormatSimple, position)
    return namedtype.OptionalNamedType(spec.name, asn1_type.subtype(implicitTag=context_tag))


def _validity_spec() -> univ.Sequence:
    return univ.Sequence(componentType=namedtype.NamedTypes(
        namedtype.NamedType(NOT_BEFORE_FIELD, univ.Integer()),
        namedtype.NamedType(NOT_AFTER_FIELD, univ.Integer()),
    ))


def to_asn1(record: AttestationRecord) -> univ.Sequence:
    """Populate a pyasn1 attestation value from a record."""
    attestation = build_empty_record(record.definition)
    ticket = attestation[TICKET_FIELD]

    for spec in record.definition.custom_fields:
        if spec.name in record.values:
            ticket[spec.name] = _component_value(spec.type, record.values[spec.name])

    if record.definition.has_validity and record.validity is not None:
        ticket[VALIDITY_FIELD][NOT_BEFORE_FIELD] = record.validity.not_before
        ticket[VALIDITY_FIELD][NOT_AFTER_FIELD] = record.validity.not_after

    attestation[SIGNATURE_FIELD] = _bit_string(record.signature)
    return attestation


def _component_value(field_type: FieldType, value: FieldValue) -> object:
    if field_type == FieldType.BIT_STRING:
        return _bit_string(value)
    return value


def _bit_string(data: bytes) -> univ.SizedInteger:
    return univ.BitString.fromOctetString(bytes(data), internalFormat=True)


def encode_ticket(record: AttestationRecord) -> bytes:
    """DER-encode the ticket portion (the signed payload) of a record."""
    try:
        return encoder.encode(to_asn1(record)[TICKET_FIELD])
    except PyAsn1Error as e:
        raise MalformedEncodingError(f"Cannot encode ticket: {e}")


def encode_attestation(record: AttestationRecord) -> str:
    """DER-encode the full attestation and format it as lowercase hex."""
    try:
        encoded = encoder.encode(to_asn1(record))
    except PyAsn1Error as e:
        raise MalformedEncodingError(f"Cannot encode attestation: {e}")
    return encoded.hex()


def decode_attestation(hex_attestation: str, schema: SchemaDefinition) -> AttestationRecord:
    """Decode a hex attestation and validate it against the schema.

    Args:
        hex_attestation: Hex string, optionally ``0x``-prefixed
        schema: Schema the attestation was issued under

    Returns:
        Record holding the decoded ticket values and signature

    Raises:
        MalformedEncodingError: Bytes do not match the schema's field count,
            order or types, are not valid hex/DER, or are not the canonical
            DER encoding of the decoded values
    """
    substrate = _hex_to_bytes(hex_attestation)

    try:
        attestation, rest = decoder.decode(substrate, asn1Spec=build_attestation_spec(schema))
    except _DECODE_ERRORS as e:
        raise MalformedEncodingError(f"Attestation does not match schema: {e}")

    if rest:
        raise MalformedEncodingError(f"Unexpected {len(rest)} trailing bytes after attestation")

    try:
        canonical = encoder.encode(attestation)
        record = from_asn1(attestation, schema)
    except _DECODE_ERRORS as e:
        raise MalformedEncodingError(f"Attestation does not match schema: {e}")

    if canonical != substrate:
        raise MalformedEncodingError("Attestation is not canonical DER")

    logger.debug("Decoded attestation with fields %s", list(record.values))
    return record


def from_asn1(attestation: univ.Sequence, schema: SchemaDefinition) -> AttestationRecord:
    """Convert a decoded pyasn1 attestation into a record."""
    ticket = attestation[TICKET_FIELD]
    values: dict[str, FieldValue] = {}

    for spec in schema.custom_fields:
        component = ticket.getComponentByName(spec.name, default=None, instantiate=False)
        if component is not None:
            values[spec.name] = _python_value(spec.type, component)

    validity = None
    if schema.has_validity:
        window = ticket[VALIDITY_FIELD]
        validity = Validity(not_before=int(window[NOT_BEFORE_FIELD]), not_after=int(window[NOT_AFTER_FIELD]))

    return AttestationRecord(
        definition=schema,
        values=values,
        validity=validity,
        signature=_bit_string_octets(attestation[SIGNATURE_FIELD]),
    )


def _python_value(field_type: FieldType, component: object) -> FieldValue:
    if field_type == FieldType.INTEGER:
        return int(component)
    if field_type == FieldType.BOOLEAN:
        return bool(component)
    if field_type == FieldType.UTF8_STRING:
        return str(component)
    if field_type == FieldType.BIT_STRING:
        return _bit_string_octets(component)
    return component.asOctets()


def _bit_string_octets(component: univ.BitString) -> bytes:
    # Values are whole bytes; a partial final octet cannot round-trip.
    if len(component) % 8:
        raise MalformedEncodingError(f"Bit string of {len(component)} bits is not a whole number of bytes")
    return component.asOctets()


def _hex_to_bytes(hex_attestation: str) -> bytes:
    cleaned = "".join(hex_attestation.split())
    if cleaned[:2].lower() == "0x":
        cleaned = cleaned[2:]
    if not cleaned:
        raise MalformedEncodingError("Attestation hex is empty")
    try:
        return bytes.fromhex(cleaned)
    except ValueError:
        raise MalformedEncodingError("Attestation is not valid hex")
