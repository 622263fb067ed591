"""CLI configuration management for attestor using pydantic-settings.

Handles issuer key loading, expected issuer key resolution, verification
policies and logging setup from the environment.
"""

from __future__ import annotations

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.console import Console
from rich.logging import RichHandler

from attestor.sdk.errors import KeyFormatError
from attestor.sdk.keys import IssuerKeys, normalize_public_key
from attestor.sdk.models import UnknownFieldPolicy, ValidityPolicy


class AttestorConfig(BaseSettings):
    """Attestor CLI configuration using pydantic-settings BaseSettings."""

    model_config = SettingsConfigDict(
        env_prefix='ATTESTOR_',
        env_file='.env',
        env_file_encoding='utf-8',
        secrets_dir='/run/secrets'
    )

    private_key: str | None = Field(
        default=None,
        description="Issuer private key: 64-char hex, or path to a key/PEM file"
    )
    public_key: str | None = Field(
        default=None,
        description="Expected issuer public key for verification (hex)"
    )
    validity_policy: ValidityPolicy = Field(
        default=ValidityPolicy.ENFORCE,
        description="Treat validity window failures as errors or warnings"
    )
    unknown_field_policy: UnknownFieldPolicy = Field(
        default=UnknownFieldPolicy.IGNORE,
        description="Ignore or reject values for fields missing from the schema"
    )
    log_level: str = Field(
        default="WARNING",
        description="Logging level name"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a standard logging level name."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level


def create_issuer_keys(config: AttestorConfig, override: str | None = None) -> IssuerKeys:
    """Load the issuer key from an explicit value or the configuration."""
    source = override or config.private_key
    if not source:
        raise ValueError("Private key required. Set ATTESTOR_PRIVATE_KEY or pass --key.")
    return IssuerKeys.load(source)


def resolve_expected_public_key(config: AttestorConfig, override: str | None = None) -> str:
    """Pick the issuer public key to verify against.

    Falls back to the key derived from the configured private key.
    """
    if override or config.public_key:
        return normalize_public_key(override or config.public_key)
    if config.private_key:
        return IssuerKeys.load(config.private_key).public_key_hex
    raise ValueError("Issuer public key required. Set ATTESTOR_PUBLIC_KEY or pass --public-key.")


def validate_config(config: AttestorConfig) -> None:
    """Validate that configured key material parses."""
    try:
        if config.private_key:
            IssuerKeys.load(config.private_key)
        if config.public_key:
            normalize_public_key(config.public_key)
    except KeyFormatError as e:
        raise ValueError(f"Invalid key configuration: {e.message}")


def configure_logging(level: str = "WARNING") -> None:
    """Route log records through rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )
