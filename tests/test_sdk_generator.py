"""Test the high-level attestation generator."""

from __future__ import annotations

import pytest

from attestor.sdk.errors import ExpiredError, MissingRequiredFieldError, UnknownFieldError
from attestor.sdk.generator import AttestationGenerator
from attestor.sdk.models import UnknownFieldPolicy, Validity, ValidityPolicy
from attestor.sdk.schema import schema_to_definition
from attestor.sdk.verifier import verify_attestation

from tests.helpers import DAY, T, devcon_fields, devcon_schema, issuer_keys


@pytest.fixture
def generator():
    """Generator for the devcon schema with a validity window."""
    return AttestationGenerator(devcon_fields(), issuer_keys(), has_validity=True)


def test_generate_and_verify(generator) -> None:
    """Test generated attestations verify with the generator and standalone."""
    encoded = generator.generate_and_sign(
        {"devconId": "6", "ticketIdNumber": 5, "ticketClass": 1},
        Validity(not_before=T, not_after=T + DAY),
    )

    result = generator.verify(encoded, now=T + 1)
    standalone = verify_attestation(encoded, devcon_schema(True), generator.public_key_hex, now=T + 1)

    assert result.accepted
    assert standalone.record.values == {"devconId": "6", "ticketIdNumber": 5, "ticketClass": 1}


def test_generate_expired_window_only_warns(generator) -> None:
    """Test issuing an already expired attestation succeeds; verifying enforces."""
    encoded = generator.generate_and_sign({"devconId": "6", "ticketClass": 1}, Validity(not_before=1, not_after=2))

    with pytest.raises(ExpiredError):
        generator.verify(encoded)
    assert generator.verify(encoded, validity_policy=ValidityPolicy.WARN).warnings


def test_generate_propagates_build_errors(generator) -> None:
    """Test builder errors surface unchanged."""
    with pytest.raises(MissingRequiredFieldError):
        generator.generate_and_sign({"devconId": "6"}, Validity(not_before=T, not_after=T + DAY))


def test_generator_reject_unknown_policy() -> None:
    """Test the unknown-field policy is forwarded to the builder."""
    strict = AttestationGenerator(devcon_fields(), issuer_keys(), unknown_fields=UnknownFieldPolicy.REJECT)

    with pytest.raises(UnknownFieldError):
        strict.generate_and_sign({"devconId": "6", "ticketClass": 1, "seat": "A1"})


def test_from_definition_round_trip(generator) -> None:
    """Test a generator rebuilt from its definition issues identical bytes."""
    rebuilt = AttestationGenerator.from_definition(generator.schema_definition(), issuer_keys())
    validity = Validity(not_before=T, not_after=T + DAY)
    values = {"devconId": "6", "ticketClass": 1}

    assert rebuilt.schema == generator.schema
    assert generator.schema_definition() == schema_to_definition(devcon_schema(True))
    assert rebuilt.generate_and_sign(values, validity) == generator.generate_and_sign(values, validity)


def test_generator_requires_keys() -> None:
    """Test a generator cannot be created without keys."""
    with pytest.raises(ValueError, match="Issuer keys are required"):
        AttestationGenerator(devcon_fields(), None)  # type: ignore[arg-type]
