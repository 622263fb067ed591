"""secp256k1 issuer keys and recoverable signatures.

Signatures use the Ethereum packing ``r (32) || s (32) || v (1)`` with
``v`` in {27, 28}. Public keys are compared as the hex of the uncompressed
SEC1 point (``04 || X || Y``), case-insensitively.
"""

from __future__ import annotations

import json
from pathlib import Path

from coincurve import PrivateKey, PublicKey
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from attestor.sdk.errors import InvalidSignatureError, KeyFormatError

SIGNATURE_LENGTH = 65
ETHEREUM_V_OFFSET = 27


class IssuerKeys:
    """Issuer secp256k1 key pair used to sign attestations."""

    def __init__(self, private_key: PrivateKey):
        if not private_key:
            raise KeyFormatError("Private key is required")
        self._private_key = private_key

    def __repr__(self) -> str:
        return f"IssuerKeys(public_key={self.public_key_hex})"

    @classmethod
    def generate(cls) -> IssuerKeys:
        """Generate a fresh random issuer key."""
        return cls(PrivateKey())

    @classmethod
    def from_hex(cls, private_key_hex: str) -> IssuerKeys:
        """Load a raw 32-byte scalar given as hex."""
        secret = _strip_hex_prefix(private_key_hex.strip())
        try:
            secret_bytes = bytes.fromhex(secret)
        except ValueError:
            raise KeyFormatError("Private key must be valid hex")
        if len(secret_bytes) != 32:
            raise KeyFormatError("Private key must be 32 bytes (64 hex characters)")
        try:
            return cls(PrivateKey(secret_bytes))
        except ValueError as e:
            raise KeyFormatError(f"Invalid secp256k1 private key: {e}")

    @classmethod
    def from_pem(cls, pem: bytes) -> IssuerKeys:
        """Load a PEM encoded secp256k1 private key."""
        try:
            key = serialization.load_pem_private_key(pem, password=None)
        except (ValueError, TypeError) as e:
            raise KeyFormatError(f"Invalid PEM private key: {e}")
        if not isinstance(key, ec.EllipticCurvePrivateKey) or not isinstance(key.curve, ec.SECP256K1):
            raise KeyFormatError("PEM private key must be a secp256k1 EC key")
        scalar = key.private_numbers().private_value
        return cls(PrivateKey(scalar.to_bytes(32, "big")))

    @classmethod
    def load(cls, source: str | Path) -> IssuerKeys:
        """Load a key from a file (JSON key file, PEM), PEM text or a hex string."""
        if isinstance(source, str) and source.lstrip().startswith("-----BEGIN"):
            return cls.from_pem(source.encode("utf-8"))
        path = Path(source)
        if path.is_file():
            return cls._from_key_file(path)
        return cls.from_hex(str(source))

    @classmethod
    def _from_key_file(cls, path: Path) -> IssuerKeys:
        content = path.read_bytes()
        if content.lstrip().startswith(b"-----BEGIN"):
            return cls.from_pem(content)

        text = content.decode("utf-8").strip()
        if text.startswith("{"):
            try:
                return cls.from_hex(json.loads(text)["private_key"])
            except (json.JSONDecodeError, KeyError, TypeError):
                raise KeyFormatError(f"Key file {path} must contain a 'private_key' entry")
        return cls.from_hex(text)

    @property
    def public_key_hex(self) -> str:
        """Uncompressed public key as lowercase hex."""
        return self._private_key.public_key.format(compressed=False).hex()

    def private_key_hex(self) -> str:
        return self._private_key.to_hex()

    def to_pem(self) -> bytes:
        """Export the private key as PKCS#8 PEM."""
        key = ec.derive_private_key(self._private_key.to_int(), ec.SECP256K1())
        return key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )

    def sign_digest(self, digest: bytes) -> bytes:
        """Sign a 32-byte digest, returning ``r || s || v``."""
        if len(digest) != 32:
            raise ValueError("Digest must be 32 bytes")
        signature = self._private_key.sign_recoverable(digest, hasher=None)
        return signature[:64] + bytes([signature[64] + ETHEREUM_V_OFFSET])


def recover_public_key(digest: bytes, signature: bytes) -> str:
    """Recover the uncompressed signer public key (hex) from a signature.

    Accepts ``v`` as 27/28 or as a raw recovery id 0/1.

    Raises:
        InvalidSignatureError: The signature is structurally invalid
    """
    if len(signature) != SIGNATURE_LENGTH:
        raise InvalidSignatureError(f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}")

    v = signature[64]
    recovery_id = v - ETHEREUM_V_OFFSET if v >= ETHEREUM_V_OFFSET else v
    try:
        public_key = PublicKey.from_signature_and_message(
            signature[:64] + bytes([recovery_id]), digest, hasher=None
        )
    except ValueError as e:
        raise InvalidSignatureError(f"Cannot recover public key from signature: {e}")
    return public_key.format(compressed=False).hex()


def normalize_public_key(public_key_hex: str) -> str:
    """Normalise a public key to lowercase uncompressed hex.

    Compressed keys are expanded so both encodings compare equal.
    """
    cleaned = _strip_hex_prefix(public_key_hex.strip()).lower()
    try:
        raw = bytes.fromhex(cleaned)
    except ValueError:
        raise KeyFormatError("Public key must be valid hex")

    if len(raw) == 64:
        raw = b"\x04" + raw
    try:
        return PublicKey(raw).format(compressed=False).hex()
    except ValueError as e:
        raise KeyFormatError(f"Invalid secp256k1 public key: {e}")


def _strip_hex_prefix(value: str) -> str:
    return value[2:] if value[:2].lower() == "0x" else value
