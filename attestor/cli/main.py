"""Typer CLI for the custom attestation generator.

Provides commands: keygen, schema, issue, verify, decode.
Main entrypoint for the attestor command-line interface.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from attestor import __version__
from attestor.cli.config import (
    AttestorConfig,
    configure_logging,
    create_issuer_keys,
    resolve_expected_public_key,
)
from attestor.sdk.codec import decode_attestation
from attestor.sdk.generator import AttestationGenerator
from attestor.sdk.keys import IssuerKeys
from attestor.sdk.models import UnknownFieldPolicy, Validity, ValidityPolicy
from attestor.sdk.schema import assemble_schema, parse_field_specs, schema_from_definition, schema_to_definition
from attestor.sdk.values import coerce_field_values
from attestor.sdk.verifier import verify


app = typer.Typer(
    name="attestor",
    help="Custom Attestation Generator - issue and verify signed attestations",
    add_completion=False,
    rich_markup_mode="rich"
)
console = Console()


def version_callback(show_version: bool) -> None:
    """Show version and exit."""
    if show_version:
        console.print(f"attestor version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging")
) -> None:
    """Custom Attestation Generator CLI."""
    configure_logging("DEBUG" if verbose else AttestorConfig().log_level)


@app.command()
def keygen(
    output: Path | None = typer.Option(None, "--output", "-o", help="Output file for private key"),
    pem: bool = typer.Option(False, "--pem", help="Write the private key as PEM instead of JSON"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing key file")
) -> None:
    """Generate a secp256k1 issuer key and print its public key."""
    if output and output.exists() and not force:
        console.print(f"[red]Error: Key file {output} already exists. Use --force to overwrite.[/red]")
        raise typer.Exit(1)

    keys = IssuerKeys.generate()
    print(keys.public_key_hex)

    if output:
        _write_key_file(keys, output, pem)
        console.print(f"[green]Private key saved to {output}[/green]")


def _write_key_file(keys: IssuerKeys, output: Path, pem: bool) -> None:
    """Write private key as PEM or as JSON key file."""
    if pem:
        output.write_bytes(keys.to_pem())
    else:
        key_data = {"private_key": keys.private_key_hex(), "public_key": keys.public_key_hex}
        output.write_text(json.dumps(key_data, indent=2))
    output.chmod(0o600)


@app.command()
def schema(
    fields_file: Path = typer.Argument(..., help="JSON file with custom field specs"),
    validity: bool = typer.Option(False, "--validity", help="Add a validity window to the ticket"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output file for schema definition")
) -> None:
    """Assemble a schema definition from custom field specs."""
    try:
        specs = parse_field_specs(_load_json_file(fields_file, "Fields"))
        definition = schema_to_definition(assemble_schema(specs, validity))
        _output_json_result(definition, output)
    except Exception as e:
        console.print(f"❌ Error assembling schema: {e}")
        raise typer.Exit(1)


@app.command()
def issue(
    fields_file: Path = typer.Argument(..., help="JSON file with custom field specs"),
    values_file: Path = typer.Argument(..., help="JSON file with field values"),
    valid_from: int | None = typer.Option(None, "--valid-from", help="Validity start (epoch seconds)"),
    valid_to: int | None = typer.Option(None, "--valid-to", help="Validity end (epoch seconds)"),
    key: str | None = typer.Option(None, "--key", "-k", help="Private key hex or key file"),
    schema_out: Path | None = typer.Option(None, "--schema-out", help="Write schema definition to file"),
    reject_unknown: bool = typer.Option(False, "--reject-unknown", help="Fail on values for undeclared fields")
) -> None:
    """Issue a signed attestation and print it as hex."""
    try:
        config = AttestorConfig()
        keys = create_issuer_keys(config, key)
        validity = _build_validity(valid_from, valid_to)

        specs = parse_field_specs(_load_json_file(fields_file, "Fields"))
        generator = AttestationGenerator(
            specs, keys, validity is not None, _unknown_field_policy(config, reject_unknown)
        )
        field_values = coerce_field_values(generator.schema, _load_json_file(values_file, "Values"))

        encoded = generator.generate_and_sign(field_values, validity)

        if schema_out:
            schema_out.write_text(json.dumps(generator.schema_definition(), indent=2))
            console.print(f"[green]Schema definition saved to {schema_out}[/green]")
        print(encoded)

    except Exception as e:
        console.print(f"❌ Error issuing attestation: {e}")
        raise typer.Exit(1)


def _build_validity(valid_from: int | None, valid_to: int | None) -> Validity | None:
    """Build validity window from CLI options."""
    if valid_from is None and valid_to is None:
        return None
    if valid_from is None or valid_to is None:
        raise ValueError("Both --valid-from and --valid-to are required for a validity window")
    return Validity(not_before=valid_from, not_after=valid_to)


def _unknown_field_policy(config: AttestorConfig, reject_unknown: bool) -> UnknownFieldPolicy:
    return UnknownFieldPolicy.REJECT if reject_unknown else config.unknown_field_policy


@app.command("verify")
def verify_command(
    schema_file: Path = typer.Argument(..., help="Schema definition JSON file"),
    attestation: str = typer.Argument(..., help="Attestation hex or file containing it"),
    public_key: str | None = typer.Option(None, "--public-key", "-p", help="Expected issuer public key (hex)"),
    warn_validity: bool = typer.Option(False, "--warn-validity", help="Report validity failures as warnings"),
    now: int | None = typer.Option(None, "--now", help="Verification time (epoch seconds)")
) -> None:
    """Verify an attestation against its schema and issuer key."""
    try:
        config = AttestorConfig()
        expected_key = resolve_expected_public_key(config, public_key)
        schema_def = schema_from_definition(_load_json_file(schema_file, "Schema"))
        policy = ValidityPolicy.WARN if warn_validity else config.validity_policy

        result = verify(_read_attestation(attestation), schema_def, expected_key, now, policy)
    except Exception as e:
        console.print(f"❌ Error verifying attestation: {e}")
        raise typer.Exit(1)

    if not result.accepted:
        console.print(f"❌ Attestation rejected ({result.error_kind.value}): {result.message}")
        raise typer.Exit(1)

    for warning in result.warnings:
        console.print(f"[yellow]Warning: {warning}[/yellow]")
    console.print("✅ Attestation successfully validated!")
    console.print(f"Issuer: {result.recovered_public_key}")


@app.command()
def decode(
    schema_file: Path = typer.Argument(..., help="Schema definition JSON file"),
    attestation: str = typer.Argument(..., help="Attestation hex or file containing it")
) -> None:
    """Decode an attestation without verifying it and print its fields as JSON."""
    try:
        schema_def = schema_from_definition(_load_json_file(schema_file, "Schema"))
        record = decode_attestation(_read_attestation(attestation), schema_def)
    except Exception as e:
        console.print(f"❌ Error decoding attestation: {e}")
        raise typer.Exit(1)

    decoded: dict[str, Any] = {"ticket": {name: _json_value(value) for name, value in record.values.items()}}
    if record.validity is not None:
        decoded["ticket"]["validity"] = {
            "notBefore": record.validity.not_before,
            "notAfter": record.validity.not_after,
        }
    decoded["signatureValue"] = record.signature.hex()
    _output_json_result(decoded, None)


def _json_value(value: Any) -> Any:
    return value.hex() if isinstance(value, bytes) else value


def _load_json_file(path: Path, label: str) -> Any:
    """Load and parse a JSON input file."""
    if not path.exists():
        raise ValueError(f"{label} file not found: {path}")

    try:
        with path.open() as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {label.lower()} file: {e}")


def _read_attestation(attestation: str) -> str:
    """Read attestation hex from argument or file."""
    path = Path(attestation)
    if len(attestation) < 256 and path.is_file():
        return path.read_text().strip()
    return attestation.strip()


def _output_json_result(data: dict, output: Path | None) -> None:
    """Output JSON result to file or stdout."""
    json_str = json.dumps(data, indent=2)

    if output:
        output.write_text(json_str)
        console.print(f"[green]Output saved to {output}[/green]")
    else:
        # Use print() to avoid rich formatting issues
        print(json_str)


if __name__ == "__main__":
    app()
