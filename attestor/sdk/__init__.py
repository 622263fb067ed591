"""Attestation SDK: schema assembly, encoding, signing and verification."""
