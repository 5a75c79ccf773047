"""
Command-Line Interface for attested-claims

Offline tooling around a registry snapshot: manage epochs, compute claim
identifiers, preview witness selection and verify claim proofs.
"""

import json
import logging
import sys
from pathlib import Path

import click
import yaml

from attested_claims import __version__, print_disclaimer
from attested_claims.protocol import (
    ClaimInfo,
    ClaimRegistry,
    dump_state,
    extract_field_from_context,
    hash_claim_info,
    load_proof_json,
    load_state,
)
from attested_claims.protocol.exceptions import ClaimProtocolError

STATE_OPTION = click.option(
    "--state",
    "state_path",
    type=click.Path(dir_okay=False),
    default="registry.cbor",
    show_default=True,
    help="Registry snapshot file",
)


def _load_registry(state_path: str) -> ClaimRegistry:
    path = Path(state_path)
    if not path.exists():
        raise click.ClickException(
            f"state file {state_path} not found, run 'attested-claims init' first"
        )
    return load_state(path.read_bytes())


def _save_registry(registry: ClaimRegistry, state_path: str) -> None:
    Path(state_path).write_bytes(dump_state(registry))


def _fail(exc: Exception) -> None:
    click.echo(click.style(f"✗ {type(exc).__name__}: {exc}", fg="red"), err=True)
    sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", is_flag=True, help="Enable verbose logging")
def main(verbose):
    """
    attested-claims - witness-attested claims and anonymous provider groups
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command("hash-claim")
@click.option("--provider", required=True, help="Provider tag, e.g. http")
@click.option("--parameters", required=True, help="Serialized parameters")
@click.option("--context", default="", help="Serialized context")
def hash_claim(provider, parameters, context):
    """Print the identifier of a claim."""
    claim_info = ClaimInfo(provider=provider, parameters=parameters, context=context)
    click.echo(hash_claim_info(claim_info))


@main.command("extract-field")
@click.argument("context")
@click.argument("key")
def extract_field(context, key):
    """
    Extract KEY from a serialized CONTEXT.

    KEY is either a bare field name or the full '"name":"' prefix.
    Prints nothing and exits 1 when the field is absent.
    """
    value = extract_field_from_context(context, key)
    if not value:
        sys.exit(1)
    click.echo(value)


@main.command()
@STATE_OPTION
@click.option("--owner", required=True, help="Owner identity (address)")
@click.option(
    "--epoch-duration",
    type=int,
    default=None,
    help="Epoch validity window in seconds",
)
@click.option("--force", is_flag=True, help="Overwrite an existing state file")
def init(state_path, owner, epoch_duration, force):
    """Create an empty registry snapshot."""
    if Path(state_path).exists() and not force:
        raise click.ClickException(f"{state_path} already exists (use --force)")
    kwargs = {}
    if epoch_duration is not None:
        kwargs["epoch_duration_s"] = epoch_duration
    try:
        registry = ClaimRegistry(owner, **kwargs)
    except (ClaimProtocolError, ValueError) as exc:
        _fail(exc)
    _save_registry(registry, state_path)
    click.echo(click.style(f"✓ Initialized {state_path}", fg="green"))


@main.command("add-epoch")
@STATE_OPTION
@click.option("--caller", required=True, help="Identity submitting the epoch")
@click.option(
    "--minimum",
    type=int,
    required=True,
    help="Witnesses required per claim",
)
@click.argument("witnesses_file", type=click.Path(exists=True, dir_okay=False))
def add_epoch(state_path, caller, minimum, witnesses_file):
    """
    Append an epoch whose committee is read from WITNESSES_FILE.

    The file is YAML: a list of {addr: 0x..., host: wss://...} entries.
    """
    with open(witnesses_file, "r", encoding="utf-8") as fh:
        witnesses = yaml.safe_load(fh)
    if not isinstance(witnesses, list):
        raise click.ClickException("witnesses file must contain a list")

    registry = _load_registry(state_path)
    try:
        epoch = registry.add_epoch(caller, witnesses, minimum)
    except ClaimProtocolError as exc:
        _fail(exc)
    _save_registry(registry, state_path)
    click.echo(
        click.style(
            f"✓ Added epoch {epoch.id} ({len(epoch.witnesses)} witnesses, "
            f"threshold {epoch.minimum_witnesses_for_claim_creation})",
            fg="green",
        )
    )


@main.command("show-epoch")
@STATE_OPTION
@click.option("--id", "epoch_id", type=int, default=0, help="Epoch id (0 = current)")
def show_epoch(state_path, epoch_id):
    """Print an epoch as JSON."""
    registry = _load_registry(state_path)
    try:
        epoch = registry.fetch_epoch(epoch_id)
    except ClaimProtocolError as exc:
        _fail(exc)
    click.echo(json.dumps(epoch.to_dict(), indent=2))


@main.command("select-witnesses")
@STATE_OPTION
@click.option("--epoch", "epoch_id", type=int, default=0, help="Epoch id (0 = current)")
@click.option("--identifier", required=True, help="Claim identifier (0x hex)")
@click.option("--timestamp", type=int, required=True, help="Claim timestamp (s)")
def select_witnesses(state_path, epoch_id, identifier, timestamp):
    """List the witnesses that must sign a claim, in signature order."""
    registry = _load_registry(state_path)
    try:
        epoch = registry.fetch_epoch(epoch_id)
        selected = registry.fetch_witnesses_for_claim(epoch.id, identifier, timestamp)
    except ClaimProtocolError as exc:
        _fail(exc)
    for position, witness in enumerate(selected):
        click.echo(f"{position}\t{witness.identity_key}\t{witness.service_endpoint}")


@main.command("verify-proof")
@STATE_OPTION
@click.argument("proof_file", type=click.Path(exists=True, dir_okay=False))
def verify_proof_cmd(state_path, proof_file):
    """Verify the claim proof in PROOF_FILE (SDK JSON format)."""
    registry = _load_registry(state_path)
    try:
        proof = load_proof_json(Path(proof_file).read_text(encoding="utf-8"))
        witnesses = registry.verify_proof(proof)
    except ClaimProtocolError as exc:
        _fail(exc)
    click.echo(click.style(f"✓ Claim {proof.identifier} verified", fg="green"))
    for witness in witnesses:
        click.echo(f"  • {witness.identity_key} ({witness.service_endpoint})")


@main.command()
def version():
    """Show version and disclaimer information."""
    click.echo(f"\nattested-claims v{__version__}\n")
    print_disclaimer()


if __name__ == "__main__":
    main()
