"""Payload hashing for attestation signatures.

The signed payload is the canonical DER encoding of the ticket only; the
signature field is never part of it.
"""

from __future__ import annotations

from Crypto.Hash import keccak

from attestor.sdk.codec import encode_ticket
from attestor.sdk.models import AttestationRecord


def keccak256(data: bytes) -> bytes:
    """Compute the 32-byte Keccak-256 digest used by Ethereum."""
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


def signing_payload(record: AttestationRecord) -> bytes:
    """Build the canonical bytes that get signed."""
    return encode_ticket(record)


def payload_digest(record: AttestationRecord) -> bytes:
    """Digest of the ticket portion of a record."""
    return keccak256(signing_payload(record))
