"""Exception hierarchy for attestation building and verification.

Every failure is raised as a typed error carrying enough context to diagnose
it (field name, keys, timestamps) so callers can branch on the type or on
``VerificationError.kind`` instead of matching message strings.
"""

from __future__ import annotations

from enum import Enum


class VerificationErrorKind(str, Enum):
    """Kinds of verification failure."""
    MALFORMED_ENCODING = "malformed_encoding"
    INVALID_SIGNATURE = "invalid_signature"
    ISSUER_MISMATCH = "issuer_mismatch"
    NOT_YET_VALID = "not_yet_valid"
    EXPIRED = "expired"


class AttestationError(Exception):
    """Base class for all attestor errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class SchemaError(AttestationError):
    """Raised when a schema definition or field spec input is malformed."""


class KeyFormatError(AttestationError):
    """Raised when key material cannot be parsed."""


class BuildError(AttestationError):
    """Base class for errors raised while populating a record."""


class MissingRequiredFieldError(BuildError):
    """A mandatory ticket field has no value."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Missing value for required field '{field}'")


class UnknownFieldError(BuildError):
    """A value was supplied for a field the schema does not declare."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Field '{field}' is not declared in the schema")


class ValidityRequiredError(BuildError):
    """The schema declares a validity window but none was supplied."""

    def __init__(self) -> None:
        super().__init__("Schema requires a validity window but none was supplied")


class FieldTypeError(BuildError):
    """A value does not match the declared type of its field."""

    def __init__(self, field: str, expected: str, detail: str) -> None:
        self.field = field
        self.expected = expected
        super().__init__(f"Field '{field}' expects {expected}: {detail}")


class VerificationError(AttestationError):
    """Base class for verification failures."""

    kind: VerificationErrorKind


class MalformedEncodingError(VerificationError):
    """The encoded attestation does not match the schema structure."""

    kind = VerificationErrorKind.MALFORMED_ENCODING


class InvalidSignatureError(VerificationError):
    """The signature bytes were rejected by the secp256k1 library."""

    kind = VerificationErrorKind.INVALID_SIGNATURE


class IssuerMismatchError(VerificationError):
    """The recovered signer key differs from the expected issuer key."""

    kind = VerificationErrorKind.ISSUER_MISMATCH

    def __init__(self, expected: str, recovered: str) -> None:
        self.expected = expected
        self.recovered = recovered
        super().__init__(
            f"Attestor public key does not match, expected {expected} got {recovered}"
        )


class ValidityWindowError(VerificationError):
    """Base class for failures of the validity window check."""

    def __init__(self, message: str, now: int, not_before: int, not_after: int) -> None:
        self.now = now
        self.not_before = not_before
        self.not_after = not_after
        super().__init__(f"{message} (now={now}, notBefore={not_before}, notAfter={not_after})")


class NotYetValidError(ValidityWindowError):
    """The current time is before ``notBefore``."""

    kind = VerificationErrorKind.NOT_YET_VALID

    def __init__(self, now: int, not_before: int, not_after: int) -> None:
        super().__init__("Attestation is not yet valid", now, not_before, not_after)


class ExpiredError(ValidityWindowError):
    """The current time is after ``notAfter``."""

    kind = VerificationErrorKind.EXPIRED

    def __init__(self, now: int, not_before: int, not_after: int) -> None:
        super().__init__("Attestation has expired", now, not_before, not_after)
