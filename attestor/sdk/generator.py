"""High-level attestation generator.

Bundles a custom field schema with an issuer key pair so callers can issue
and verify attestations without wiring the individual stages themselves.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from attestor.sdk.builder import build_attestation
from attestor.sdk.codec import encode_attestation
from attestor.sdk.keys import IssuerKeys
from attestor.sdk.models import (
    FieldSpec,
    FieldValue,
    SchemaDefinition,
    UnknownFieldPolicy,
    Validity,
    ValidityPolicy,
    VerificationResult,
)
from attestor.sdk.schema import assemble_schema, schema_from_definition, schema_to_definition
from attestor.sdk.signer import sign_attestation
from attestor.sdk.verifier import verify_attestation

logger = logging.getLogger(__name__)


class AttestationGenerator:
    """Issue and verify attestations for one schema and issuer."""

    def __init__(
        self,
        custom_fields: Iterable[FieldSpec],
        keys: IssuerKeys,
        has_validity: bool = False,
        unknown_fields: UnknownFieldPolicy = UnknownFieldPolicy.IGNORE,
    ):
        """Initialize generator.

        Args:
            custom_fields: Ticket fields in encoding order
            keys: Issuer key pair
            has_validity: Whether attestations carry a validity window
            unknown_fields: Builder policy for undeclared field values
        """
        if not keys:
            raise ValueError("Issuer keys are required")

        self.keys = keys
        self.unknown_fields = unknown_fields
        self.schema: SchemaDefinition = assemble_schema(custom_fields, has_validity)

    @classmethod
    def from_definition(cls, definition: Mapping[str, Any], keys: IssuerKeys, **kwargs: Any) -> AttestationGenerator:
        """Create a generator from a transmitted schema definition."""
        schema = schema_from_definition(definition)
        return cls(schema.custom_fields, keys, schema.has_validity, **kwargs)

    @property
    def public_key_hex(self) -> str:
        return self.keys.public_key_hex

    def schema_definition(self) -> dict[str, Any]:
        """Schema definition JSON that travels with each attestation."""
        return schema_to_definition(self.schema)

    def generate_and_sign(self, field_values: Mapping[str, FieldValue], validity: Validity | None = None) -> str:
        """Build, sign and encode an attestation.

        The encoded result is verified before it is returned; a validity window
        that is already expired or not yet open is only logged as a warning.

        Returns:
            Hex encoded attestation
        """
        record = build_attestation(self.schema, field_values, validity, self.unknown_fields)
        record = sign_attestation(record, self.keys)
        encoded = encode_attestation(record)
        logger.debug("Encoded attestation %s", encoded)

        self.verify(encoded, validity_policy=ValidityPolicy.WARN)
        return encoded

    def verify(
        self,
        hex_attestation: str,
        validity_policy: ValidityPolicy = ValidityPolicy.ENFORCE,
        now: int | None = None,
    ) -> VerificationResult:
        """Verify an attestation against this generator's schema and issuer key."""
        return verify_attestation(hex_attestation, self.schema, self.public_key_hex, now, validity_policy)
