"""CLI entry point for the merkle_claim client."""

from __future__ import annotations

import asyncio
import logging
import sys

import click
from stellar_sdk import Keypair

from merkle_claim.config import load_config
from merkle_claim.display import describe_amount
from merkle_claim.eligibility.merkle import compute_leaf, compute_root
from merkle_claim.manifest.decode import FieldError, decode_hex32
from merkle_claim.manifest.source import resolve_manifest_source
from merkle_claim.models.claims import EligibleClaim, Severity, StatusMessage
from merkle_claim.orchestrator import ClaimOrchestrator, open_orchestrator
from merkle_claim.stellar.addresses import canonical_address, shorten_address


def _load(ctx: click.Context):
    """Load config and apply its log level unless -v was given."""
    cfg = load_config(ctx.obj["config_path"])
    if not ctx.obj["verbose"]:
        logging.getLogger().setLevel(cfg.log_level.upper())
    return cfg


def _keypair(cfg) -> Keypair | None:
    return Keypair.from_secret(cfg.keypair_secret) if cfg.keypair_secret else None


def _require_secret(cfg):
    """Exit with error if no keypair secret is configured."""
    if not cfg.keypair_secret:
        click.echo("Error: No keypair secret configured.", err=True)
        click.echo("Set MERKLE_CLAIM_SECRET env var or keypair_secret in config.", err=True)
        sys.exit(1)


def _resolve_wallet(cfg, wallet: str | None) -> str:
    """Wallet to check: --wallet if given, else the configured keypair."""
    if wallet:
        try:
            return canonical_address(wallet)
        except ValueError:
            click.echo(f"Error: Invalid wallet address {wallet!r}.", err=True)
            sys.exit(1)
    if cfg.keypair_secret:
        return Keypair.from_secret(cfg.keypair_secret).public_key
    click.echo("Error: No wallet to check.", err=True)
    click.echo("Pass --wallet G... or configure a keypair secret.", err=True)
    sys.exit(1)


def _echo_status(status: StatusMessage | None) -> None:
    if status is None:
        return
    click.echo(status.message, err=status.severity is Severity.ERROR)
    if status.signature:
        click.echo(f"Signature:  {status.signature}")
    if status.explorer_url:
        click.echo(f"Explorer:   {status.explorer_url}")


def _echo_claim(claim: EligibleClaim, decimals: int | None) -> None:
    click.echo(f"  [{claim.id}] {claim.label}")
    click.echo(f"    Status:      {claim.status_label}")
    click.echo(f"    Mint:        {shorten_address(claim.mint)}")
    click.echo(f"    Distributor: {shorten_address(claim.candidate.distributor)}")
    click.echo(f"    Index:       {claim.index}")
    click.echo(f"    {describe_amount(claim.amount, decimals)}")
    if claim.lookup_error:
        click.echo(f"    Lookup error: {claim.lookup_error}")


def _echo_claims(orch: ClaimOrchestrator) -> None:
    for claim in orch.claims:
        _echo_claim(claim, orch.state.decimals_by_mint.get(claim.mint))


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """merkle-claim - Check and redeem Merkle-distributed token claims."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.option("--manifest", "manifest_url", default=None, help="Manifest URL override")
@click.pass_context
def status(ctx: click.Context, manifest_url: str | None) -> None:
    """Show client configuration and the active manifest source."""
    cfg = _load(ctx)
    source = resolve_manifest_source(
        query_url=manifest_url,
        env_url=cfg.manifest_env_url,
        app_url=cfg.manifest_default_url,
        fallback_path=cfg.manifest_fallback_path,
    )
    click.echo(f"Network:     {cfg.network}")
    click.echo(f"RPC URL:     {cfg.rpc_url}")
    click.echo(f"Factory:     {cfg.distributor_factory or '(not set)'}")
    click.echo(f"Manifest:    {source.location} ({source.origin.value})")
    click.echo(f"Concurrency: {cfg.max_concurrent_lookups} lookups")
    click.echo(f"Secret:      {'***configured***' if cfg.keypair_secret else '(not set)'}")


# ── Claims ─────────────────────────────────────────────


@cli.command()
@click.option("--manifest", "manifest_url", default=None, help="Manifest URL override")
@click.option("--wallet", default=None, help="Wallet to check (default: configured keypair)")
@click.pass_context
def check(ctx: click.Context, manifest_url: str | None, wallet: str | None) -> None:
    """Load the manifest and list the claims available to a wallet."""
    cfg = _load(ctx)
    identity = _resolve_wallet(cfg, wallet)

    async def _check() -> bool:
        async with open_orchestrator(cfg, _keypair(cfg)) as orch:
            orch.connect(identity)
            orch.set_manifest_override(manifest_url)
            click.echo(f"Wallet:   {identity}")
            click.echo(f"Manifest: {orch.manifest_source().location}")
            await orch.load_and_check()
            _echo_status(orch.status)
            _echo_claims(orch)
            return orch.status is None or orch.status.severity is not Severity.ERROR

    if not asyncio.run(_check()):
        sys.exit(1)


@cli.command()
@click.argument("claim_id")
@click.option("--manifest", "manifest_url", default=None, help="Manifest URL override")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def claim(ctx: click.Context, claim_id: str, manifest_url: str | None, yes: bool) -> None:
    """Redeem one claim (e.g. claim:0 or campaign:1:claim:2) for the configured wallet."""
    cfg = _load(ctx)
    _require_secret(cfg)
    keypair = Keypair.from_secret(cfg.keypair_secret)

    async def _claim() -> bool:
        async with open_orchestrator(cfg, keypair) as orch:
            orch.connect(keypair.public_key)
            orch.set_manifest_override(manifest_url)
            await orch.load_and_check()
            if orch.status is not None and orch.status.severity is Severity.ERROR:
                _echo_status(orch.status)
                return False

            entry = orch.state.find_claim(claim_id)
            if entry is None:
                click.echo(f"Error: No eligible claim {claim_id!r} for this wallet.", err=True)
                if orch.claims:
                    click.echo("Eligible claims:", err=True)
                    for c in orch.claims:
                        click.echo(f"  {c.id}  {c.label}", err=True)
                return False

            click.echo(f"Claiming on {cfg.network}")
            _echo_claim(entry, orch.state.decimals_by_mint.get(entry.mint))
            if not yes:
                click.confirm("\nProceed with claim?", abort=True)

            result = await orch.submit_claim(entry)
            _echo_status(result)
            return result.severity is Severity.SUCCESS

    if not asyncio.run(_claim()):
        sys.exit(1)


# ── Debugging ──────────────────────────────────────────


@cli.command("verify-proof")
@click.option("--claimant", required=True, help="Claimant address (G...)")
@click.option("--distributor", required=True, help="Distributor contract address (C...)")
@click.option("--index", type=int, required=True, help="Claim index")
@click.option("--amount", type=int, required=True, help="Amount in base units")
@click.option("--root", required=True, help="Expected Merkle root (32-byte hex)")
@click.option("--proof", "proof_nodes", multiple=True, help="Proof node (repeatable, 32-byte hex)")
def verify_proof(
    claimant: str, distributor: str, index: int, amount: int, root: str, proof_nodes: tuple[str, ...],
) -> None:
    """Recompute a claim leaf and check its proof against a root (offline)."""
    nodes = []
    for i, node in enumerate(proof_nodes):
        decoded = decode_hex32(node, f"proof[{i}]")
        if isinstance(decoded, FieldError):
            click.echo(f"Error: {decoded.path} {decoded.reason}", err=True)
            sys.exit(1)
        nodes.append(decoded.value)
    expected = decode_hex32(root, "root")
    if isinstance(expected, FieldError):
        click.echo(f"Error: {expected.path} {expected.reason}", err=True)
        sys.exit(1)

    try:
        leaf = compute_leaf(distributor, claimant, index, amount)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    computed = compute_root(leaf, nodes)
    click.echo(f"Leaf:     {leaf.hex()}")
    click.echo(f"Computed: {computed.hex()}")
    click.echo(f"Expected: {expected.value.hex()}")
    if computed != expected.value:
        click.echo("Proof does NOT match root.")
        sys.exit(1)
    click.echo("Proof OK.")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
