"""Custom Attestation Generator.

Issues and verifies schema-described attestations signed with secp256k1.
"""

__version__ = "0.1.0"
