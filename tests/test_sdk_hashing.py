"""Test payload hashing.

Ensures the signed digest is Keccak-256 over the ticket encoding only.
"""

from __future__ import annotations

from attestor.sdk.builder import build_attestation
from attestor.sdk.codec import encode_ticket
from attestor.sdk.hashing import keccak256, payload_digest, signing_payload
from attestor.sdk.signer import sign_attestation

from tests.helpers import devcon_schema, issuer_keys


def test_keccak256_known_vectors() -> None:
    """Test Ethereum Keccak-256, not NIST SHA3-256."""
    assert keccak256(b"").hex() == "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
    assert keccak256(b"abc").hex() == "4e03657aea45a94fc7d47ba826c8d667c0d1e6e33a64a036ec44f58fa12d6c45"


def test_signing_payload_is_ticket_encoding() -> None:
    """Test the payload is the DER ticket."""
    record = build_attestation(devcon_schema(), {"devconId": "6", "ticketClass": 1})

    assert signing_payload(record) == encode_ticket(record)
    assert payload_digest(record) == keccak256(bytes.fromhex("30060c0136020101"))


def test_digest_ignores_signature() -> None:
    """Test signing does not change the payload digest."""
    record = build_attestation(devcon_schema(), {"devconId": "6", "ticketClass": 1})
    before = payload_digest(record)

    sign_attestation(record, issuer_keys())

    assert record.is_signed
    assert payload_digest(record) == before


def test_digest_changes_with_values() -> None:
    """Test different ticket values give different digests."""
    first = build_attestation(devcon_schema(), {"devconId": "6", "ticketClass": 1})
    second = build_attestation(devcon_schema(), {"devconId": "6", "ticketClass": 2})

    assert payload_digest(first) != payload_digest(second)
