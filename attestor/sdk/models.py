"""Pydantic models for attestation data structures.

Provides the ordered field schema, the populated attestation record and the
verification result. Field values form a tagged union whose tag is the
declared ``FieldType`` of the field.
"""

from __future__ import annotations

from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict, Field

from attestor.sdk.errors import VerificationErrorKind


VALIDITY_FIELD = "validity"
SIGNATURE_FIELD = "signatureValue"
NOT_BEFORE_FIELD = "notBefore"
NOT_AFTER_FIELD = "notAfter"
RESERVED_FIELD_NAMES = frozenset({VALIDITY_FIELD, SIGNATURE_FIELD})

FieldValue = Union[bool, int, str, bytes]


class FieldType(str, Enum):
    """ASN.1 primitive types a ticket field may have."""
    INTEGER = "Integer"
    UTF8_STRING = "Utf8String"
    BOOLEAN = "Boolean"
    OCTET_STRING = "OctetString"
    BIT_STRING = "BitString"


class ValidityPolicy(str, Enum):
    """How verification treats a failed validity window check."""
    ENFORCE = "enforce"
    WARN = "warn"


class UnknownFieldPolicy(str, Enum):
    """How the builder treats values for fields the schema does not declare."""
    IGNORE = "ignore"
    REJECT = "reject"


class VerificationStatus(str, Enum):
    """Verification outcome."""
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class FieldSpec(BaseModel):
    """One user-defined ticket field."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Field name, unique within a schema")
    type: FieldType = Field(..., description="ASN.1 primitive type")
    optional: bool = Field(default=False, description="Whether the value may be omitted")


class Validity(BaseModel):
    """Inclusive validity window in UNIX epoch seconds."""

    model_config = ConfigDict(frozen=True)

    not_before: int = Field(..., description="First second the attestation is valid")
    not_after: int = Field(..., description="Last second the attestation is valid")

    def contains(self, now: int) -> bool:
        return self.not_before <= now <= self.not_after


class SchemaDefinition(BaseModel):
    """Ordered ticket fields plus the built-in validity and signature fields.

    The ticket holds ``custom_fields`` in declaration order followed by the
    ``validity`` composite when ``has_validity`` is set. ``signatureValue``
    is a sibling of the ticket and is never part of the signed payload.
    """

    model_config = ConfigDict(frozen=True)

    custom_fields: tuple[FieldSpec, ...] = Field(default=(), description="Custom ticket fields in encoding order")
    has_validity: bool = Field(default=False, description="Append the validity composite to the ticket")

    @property
    def field_names(self) -> list[str]:
        return [spec.name for spec in self.custom_fields]

    def get_field(self, name: str) -> FieldSpec | None:
        return next((spec for spec in self.custom_fields if spec.name == name), None)


class AttestationRecord(BaseModel):
    """Populated instance of a schema.

    ``values`` holds one entry per populated ticket field, keyed by name in
    schema order. ``signature`` stays empty until the record is signed.
    """

    definition: SchemaDefinition = Field(..., description="Schema the record instantiates")
    values: dict[str, FieldValue] = Field(default_factory=dict, description="Ticket field values")
    validity: Validity | None = Field(default=None, description="Optional validity window")
    signature: bytes = Field(default=b"", description="Packed r || s || v signature")

    @property
    def is_signed(self) -> bool:
        return bool(self.signature)

    def ticket_equals(self, other: AttestationRecord) -> bool:
        """Compare the signed portion of two records field for field."""
        return (
            self.definition == other.definition
            and self.values == other.values
            and self.validity == other.validity
        )


class VerificationResult(BaseModel):
    """Outcome of verifying an encoded attestation."""

    status: VerificationStatus = Field(..., description="Accepted or rejected")
    error_kind: VerificationErrorKind | None = Field(default=None, description="Failure kind when rejected")
    message: str | None = Field(default=None, description="Failure description when rejected")
    warnings: list[str] = Field(default_factory=list, description="Validity failures downgraded to warnings")
    record: AttestationRecord | None = Field(default=None, description="Decoded record, when decoding succeeded")
    recovered_public_key: str | None = Field(default=None, description="Uncompressed signer key in hex")

    @property
    def accepted(self) -> bool:
        return self.status == VerificationStatus.ACCEPTED
