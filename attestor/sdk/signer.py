"""Attestation signer."""

from __future__ import annotations

import logging

from attestor.sdk.hashing import payload_digest
from attestor.sdk.keys import IssuerKeys
from attestor.sdk.models import AttestationRecord

logger = logging.getLogger(__name__)


def sign_attestation(record: AttestationRecord, keys: IssuerKeys) -> AttestationRecord:
    """Sign the ticket portion of a record and attach the signature.

    The record's ticket is encoded canonically, hashed with keccak-256 and
    signed with the issuer key. Only ``signature`` is written.

    Args:
        record: Populated record
        keys: Issuer key pair

    Returns:
        The same record with ``signature`` set
    """
    if not keys:
        raise ValueError("Issuer keys are required")

    digest = payload_digest(record)
    record.signature = keys.sign_digest(digest)
    logger.debug("Signed attestation digest %s", digest.hex())
    return record
