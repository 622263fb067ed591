"""Test helper functions for DRY code and simplified test patterns.

Provides reusable schemas, keys and issuance shortcuts shared by the SDK and
CLI tests.
"""

from __future__ import annotations

from attestor.sdk.builder import build_attestation
from attestor.sdk.codec import encode_attestation
from attestor.sdk.keys import IssuerKeys
from attestor.sdk.models import FieldSpec, FieldType, FieldValue, SchemaDefinition, Validity
from attestor.sdk.schema import assemble_schema
from attestor.sdk.signer import sign_attestation

ISSUER_PRIVATE_KEY = "7411181bdb51a24edd197bacda369830b1c89bbf872a4c2babbdd2e94f25d3b5"
OTHER_PRIVATE_KEY = "0f1e2d3c4b5a69788796a5b4c3d2e1f00112233445566778899aabbccddeeff0"

T = 1_700_000_000
DAY = 86_400


def devcon_fields() -> list[FieldSpec]:
    """Ticket fields of the devcon example schema."""
    return [
        FieldSpec(name="devconId", type=FieldType.UTF8_STRING, optional=False),
        FieldSpec(name="ticketIdNumber", type=FieldType.INTEGER, optional=True),
        FieldSpec(name="ticketClass", type=FieldType.INTEGER, optional=False),
    ]


def devcon_schema(has_validity: bool = False) -> SchemaDefinition:
    return assemble_schema(devcon_fields(), has_validity)


def all_types_schema() -> SchemaDefinition:
    """Schema using every field type, mixing optional and mandatory fields."""
    return assemble_schema([
        FieldSpec(name="count", type=FieldType.INTEGER),
        FieldSpec(name="label", type=FieldType.UTF8_STRING, optional=True),
        FieldSpec(name="active", type=FieldType.BOOLEAN),
        FieldSpec(name="blob", type=FieldType.OCTET_STRING, optional=True),
        FieldSpec(name="flags", type=FieldType.BIT_STRING),
        FieldSpec(name="extra", type=FieldType.INTEGER, optional=True),
    ], has_validity=True)


def issuer_keys() -> IssuerKeys:
    return IssuerKeys.from_hex(ISSUER_PRIVATE_KEY)


def other_keys() -> IssuerKeys:
    return IssuerKeys.from_hex(OTHER_PRIVATE_KEY)


def issue_hex(
    schema: SchemaDefinition,
    values: dict[str, FieldValue],
    keys: IssuerKeys,
    validity: Validity | None = None,
) -> str:
    """Build, sign and encode an attestation in one step."""
    record = build_attestation(schema, values, validity)
    return encode_attestation(sign_attestation(record, keys))
