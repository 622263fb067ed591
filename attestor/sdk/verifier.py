"""Attestation verifier.

Verification runs four fail-fast stages::

    Decode -> RecomputeDigest -> RecoverAndCompareKey -> CheckValidityWindow -> Accepted

The digest is always recomputed from the decoded ticket values, so any change
to the ticket bytes changes the recovered key and fails the issuer check.
"""

from __future__ import annotations

import logging
import time

from attestor.sdk.codec import decode_attestation
from attestor.sdk.errors import (
    ExpiredError,
    IssuerMismatchError,
    NotYetValidError,
    ValidityWindowError,
    VerificationError,
)
from attestor.sdk.hashing import payload_digest
from attestor.sdk.keys import normalize_public_key, recover_public_key
from attestor.sdk.models import (
    SchemaDefinition,
    Validity,
    ValidityPolicy,
    VerificationResult,
    VerificationStatus,
)

logger = logging.getLogger(__name__)


def current_time() -> int:
    """Current UNIX time in whole seconds."""
    return round(time.time())


def verify_attestation(
    hex_attestation: str,
    schema: SchemaDefinition,
    expected_public_key: str,
    now: int | None = None,
    validity_policy: ValidityPolicy = ValidityPolicy.ENFORCE,
) -> VerificationResult:
    """Verify an encoded attestation, raising on the first failed stage.

    Args:
        hex_attestation: Encoded attestation as hex
        schema: Schema the attestation was issued under
        expected_public_key: Issuer public key (hex, compressed or uncompressed)
        now: Current time in epoch seconds, defaults to the system clock
        validity_policy: ENFORCE raises on a failed window, WARN records a warning

    Returns:
        Accepted result with the decoded record and any warnings

    Raises:
        MalformedEncodingError: Decode stage failed
        InvalidSignatureError: Signature rejected by the secp256k1 library
        IssuerMismatchError: Recovered key differs from the expected key
        NotYetValidError: ``now`` is before ``notBefore`` under ENFORCE
        ExpiredError: ``now`` is after ``notAfter`` under ENFORCE
    """
    expected = normalize_public_key(expected_public_key)

    record = decode_attestation(hex_attestation, schema)

    digest = payload_digest(record)
    logger.debug("Recomputed ticket digest %s", digest.hex())

    recovered = recover_public_key(digest, record.signature)
    if recovered != expected:
        raise IssuerMismatchError(expected, recovered)
    logger.debug("Signature successfully verified")

    warnings: list[str] = []
    if record.validity is not None:
        warnings = check_validity_window(
            record.validity,
            current_time() if now is None else now,
            validity_policy,
        )

    logger.info("Attestation accepted for issuer %s", recovered)
    return VerificationResult(
        status=VerificationStatus.ACCEPTED,
        warnings=warnings,
        record=record,
        recovered_public_key=recovered,
    )


def verify(
    hex_attestation: str,
    schema: SchemaDefinition,
    expected_public_key: str,
    now: int | None = None,
    validity_policy: ValidityPolicy = ValidityPolicy.ENFORCE,
) -> VerificationResult:
    """Verify an encoded attestation, returning rejections as results.

    Only verification failures become rejected results. An unparseable
    ``expected_public_key`` is the caller's error and still raises.

    Raises:
        KeyFormatError: ``expected_public_key`` is not a secp256k1 public key
    """
    expected = normalize_public_key(expected_public_key)
    try:
        return verify_attestation(hex_attestation, schema, expected, now, validity_policy)
    except VerificationError as e:
        logger.info("Attestation rejected (%s): %s", e.kind.value, e.message)
        return VerificationResult(
            status=VerificationStatus.REJECTED,
            error_kind=e.kind,
            message=e.message,
            recovered_public_key=getattr(e, "recovered", None),
        )


def check_validity_window(validity: Validity, now: int, policy: ValidityPolicy = ValidityPolicy.ENFORCE) -> list[str]:
    """Check ``now`` against the inclusive window ``[notBefore, notAfter]``.

    Returns the failures downgraded to warnings under WARN; raises the first
    failure under ENFORCE.
    """
    failures = _window_failures(validity, now)
    if failures and policy == ValidityPolicy.ENFORCE:
        raise failures[0]

    for failure in failures:
        logger.warning("Warning: %s", failure.message)

    if not failures:
        logger.debug("Ticket validity verified")
    return [failure.message for failure in failures]


def _window_failures(validity: Validity, now: int) -> list[ValidityWindowError]:
    failures: list[ValidityWindowError] = []
    if now < validity.not_before:
        failures.append(NotYetValidError(now, validity.not_before, validity.not_after))
    if now > validity.not_after:
        failures.append(ExpiredError(now, validity.not_before, validity.not_after))
    return failures
